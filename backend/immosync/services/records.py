"""Transient per-listing records validated against a declared attribute schema."""

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator

from sqlalchemy import inspect

from immosync.models.catalog import ContactPerson, RealEstate
from immosync.schemas.interface import RecordKind

ANBIETER = "ANBIETER"
AKTIONART = "AKTIONART"
AUFTRAGSART = "AUFTRAGSART"
CONTROL_KEYS = (ANBIETER, AKTIONART, AUFTRAGSART)

ACTION_DELETE = "DELETE"
ACTION_REFERENCE = "REFERENZ"

# Columns owned by the reconciliation step, never written from a feed.
PROTECTED_COLUMNS = {"id", "provider_id", "contact_person_id", "date_added", "tstamp"}

MODELS = {
    RecordKind.LISTING: RealEstate,
    RecordKind.CONTACT_PERSON: ContactPerson,
}


@dataclass(frozen=True)
class AttributeSchema:
    kind: RecordKind
    defaults: Dict[str, Any] = field(default_factory=dict)
    attributes: frozenset = frozenset()

    def __contains__(self, name: str) -> bool:
        return name in self.attributes

    def has_default(self, name: str) -> bool:
        return name in self.defaults


def attribute_schema(kind: RecordKind) -> AttributeSchema:
    mapper = inspect(MODELS[kind])
    attributes = set()
    defaults: Dict[str, Any] = {}
    for column_attr in mapper.column_attrs:
        name = column_attr.key
        if name in PROTECTED_COLUMNS:
            continue
        attributes.add(name)
        column = column_attr.columns[0]
        if column.default is not None and column.default.is_scalar:
            defaults[name] = column.default.arg
    return AttributeSchema(kind=kind, defaults=defaults, attributes=frozenset(attributes))


class TransientRecord(MutableMapping):
    """Key/value accumulator for one source listing.

    Keys are destination attribute names of the record kind plus the control
    keys, which carry the provider id and action code through the pipeline.
    """

    def __init__(self, schema: AttributeSchema, **values: Any) -> None:
        self.schema = schema
        self._values: Dict[str, Any] = {}
        for key, value in values.items():
            self[key] = value

    @property
    def kind(self) -> RecordKind:
        return self.schema.kind

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key not in CONTROL_KEYS and key not in self.schema:
            raise KeyError(f"Unknown {self.kind.value} attribute {key!r}")
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"TransientRecord({self.kind.value}, {self._values!r})"

    @property
    def action(self) -> Any:
        return self._values.get(AKTIONART)

    @property
    def provider_value(self) -> Any:
        return self._values.get(ANBIETER)

    def fields(self) -> Dict[str, Any]:
        return {key: value for key, value in self._values.items() if key not in CONTROL_KEYS}
