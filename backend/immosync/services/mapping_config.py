import logging
from typing import Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from immosync.core.errors import ConfigurationError, MappingConfigError
from immosync.models.interface import Interface, InterfaceMapping
from immosync.schemas.interface import InterfaceConfig, MappingRule, RecordKind
from .records import AttributeSchema, attribute_schema

logger = logging.getLogger(__name__)


def load_schemas() -> Dict[RecordKind, AttributeSchema]:
    return {kind: attribute_schema(kind) for kind in RecordKind}


def order_rules(rules: List[MappingRule]) -> List[MappingRule]:
    # Image rules run first so later rules see their accumulated values.
    return sorted(rules, key=lambda rule: not rule.save_image)


def load_mapping_rules(
    db: Session, interface_id: int, schemas: Dict[RecordKind, AttributeSchema]
) -> List[MappingRule]:
    mappings = db.execute(
        select(InterfaceMapping)
        .where(InterfaceMapping.interface_id == interface_id)
        .order_by(InterfaceMapping.sorting, InterfaceMapping.id)
    ).scalars().all()

    rules: List[MappingRule] = []
    for mapping in mappings:
        try:
            rule = MappingRule.from_mapping(mapping)
        except ValidationError as exc:
            raise MappingConfigError(f"Mapping {mapping.id} ({mapping.attribute}) is invalid: {exc}") from exc
        if rule.attribute not in schemas[rule.kind]:
            raise MappingConfigError(
                f"Mapping {mapping.id} targets unknown {rule.kind.value} attribute {rule.attribute!r}"
            )
        rules.append(rule)
    return order_rules(rules)


def unique_field_rule(interface: InterfaceConfig, rules: List[MappingRule]) -> Optional[MappingRule]:
    return next(
        (rule for rule in rules if rule.kind is RecordKind.LISTING and rule.attribute == interface.unique_field),
        None,
    )


def load_interface(db: Session, interface_id: int) -> InterfaceConfig:
    interface = db.get(Interface, interface_id)
    if interface is None:
        raise ConfigurationError(f"Interface {interface_id} does not exist.")
    try:
        return InterfaceConfig.model_validate(interface)
    except ValidationError as exc:
        raise ConfigurationError(f"Interface {interface_id} is misconfigured: {exc}") from exc
