import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from xml.etree import ElementTree as ET

from immosync.connectors.openimmo import child_text, provider_nodes
from immosync.models.catalog import Provider
from immosync.schemas.interface import MappingRule, ProviderPolicy, RecordKind
from .assets import AssetManager
from .hooks import PrePrepareContext, SyncHooks, SyncRun
from .records import ACTION_DELETE, AKTIONART, ANBIETER, AttributeSchema, TransientRecord
from .selectors import parse_selector
from .resolver import find_groups, resolve_field, serialize_values
from .transforms import format_value, is_valid_condition

logger = logging.getLogger(__name__)

LISTING_TAG = "immobilie"
ACTION_SELECTOR = parse_selector("verwaltung_techn/aktion@aktionart")


@dataclass
class BuildResult:
    """Index-aligned contact person and listing records of one document."""

    contact_records: List[TransientRecord] = field(default_factory=list)
    listing_records: List[TransientRecord] = field(default_factory=list)

    def append(self, contact_person: TransientRecord, listing: TransientRecord) -> None:
        self.contact_records.append(contact_person)
        self.listing_records.append(listing)

    def __len__(self) -> int:
        return len(self.listing_records)


class RecordBuilder:
    def __init__(
        self,
        db: Session,
        run: SyncRun,
        rules: List[MappingRule],
        schemas: Dict[RecordKind, AttributeSchema],
        hooks: SyncHooks,
        assets: AssetManager,
        unique_rule: Optional[MappingRule] = None,
    ) -> None:
        self.db = db
        self.run = run
        self.rules = rules
        self.schemas = schemas
        self.hooks = hooks
        self.assets = assets
        self.unique_rule = unique_rule

    @property
    def interface(self):
        return self.run.interface

    def build(self, document: ET.Element, staging_dir: Path) -> BuildResult:
        result = BuildResult()
        for provider in provider_nodes(document):
            provider_value = self.provider_value(provider)
            if not self.include_provider(provider_value):
                continue

            self.run.provider_value = provider_value
            for listing in provider.findall(LISTING_TAG):
                records = self.build_listing(listing, provider_value, staging_dir)
                if records is not None:
                    result.append(*records)
        return result

    def provider_value(self, provider: ET.Element) -> str:
        return child_text(provider, self.interface.unique_provider_field) or self.interface.anbieternr

    def include_provider(self, provider_value: str) -> bool:
        policy = self.interface.import_third_party_records
        if policy is ProviderPolicy.OWN and provider_value != self.interface.anbieternr:
            self.run.logger.info("Skip real estate due to missing provider.", {"provider": provider_value})
            return False

        if policy is ProviderPolicy.IMPORT:
            known = self.db.execute(
                select(Provider.id).where(Provider.anbieternr == provider_value)
            ).scalars().first()
            if known is None:
                self.run.logger.info("Provider is unknown, skipping its real estates.", {"provider": provider_value})
                self.run.mark_partial()
                return False
        return True

    def unique_value(self, listing: ET.Element) -> Optional[str]:
        if self.unique_rule is None:
            return None
        groups = find_groups(listing, self.unique_rule.group)
        if not groups:
            return None
        return resolve_field(groups[0], self.unique_rule.field)

    def new_record(self, kind: RecordKind, **values) -> TransientRecord:
        return TransientRecord(self.schemas[kind], **values)

    def build_listing(
        self, listing: ET.Element, provider_value: str, staging_dir: Path
    ) -> Optional[tuple[TransientRecord, TransientRecord]]:
        self.run.unique_value = self.unique_value(listing)
        contact_person = self.new_record(RecordKind.CONTACT_PERSON)
        record = self.new_record(
            RecordKind.LISTING,
            **{ANBIETER: provider_value, AKTIONART: resolve_field(listing, ACTION_SELECTOR)},
        )

        ctx = self.hooks.fire_pre_prepare_record(
            PrePrepareContext(listing=listing, record=record, contact_person=contact_person, run=self.run)
        )
        if ctx.skip:
            self.run.logger.debug("Skipped real estate by hook", {"id": self.run.unique_value})
            return None

        self.run.logger.info("Import real estate.", {"id": self.run.unique_value})
        targets = {RecordKind.LISTING: ctx.record, RecordKind.CONTACT_PERSON: ctx.contact_person}

        for rule in self.rules:
            target = targets[rule.kind]
            values, forced = self.collect_values(rule, listing, target, ctx.record, staging_dir)

            if rule.attribute in self.interface.skip_records and (not values or not values[0]):
                self.run.logger.info(
                    "Skip real estate due to missing field.", {"id": self.run.unique_value, "field": rule.attribute}
                )
                return None

            if not values:
                schema = self.schemas[rule.kind]
                if not forced and schema.has_default(rule.attribute):
                    target[rule.attribute] = schema.defaults[rule.attribute]
                continue

            target[rule.attribute] = serialize_values(values) if rule.serialize else values[0]

        return ctx.contact_person, ctx.record

    def collect_values(
        self,
        rule: MappingRule,
        listing: ET.Element,
        target: TransientRecord,
        record: TransientRecord,
        staging_dir: Path,
    ) -> tuple[list, bool]:
        """Collect the formatted values of ``rule`` over all matched groups.

        Returns the values and whether a forced value was written. A forced
        value is kept even when nothing accumulated, so the caller skips the
        column default for it.
        """
        values: list = []
        forced = False
        for group in find_groups(listing, rule.group):
            if rule.has_condition:
                condition = resolve_field(group, rule.condition_field)
                if not is_valid_condition(rule.condition_value, condition):
                    if rule.force_active:
                        target[rule.attribute] = rule.force_value
                        forced = True
                    continue

            value = resolve_field(group, rule.field)
            if value is None:
                continue

            if rule.save_image and record.action != ACTION_DELETE:
                asset_id = self.assets.resolve_asset(
                    rule,
                    group,
                    value,
                    provider_key=self.run.provider_value,
                    listing_key=self.run.unique_value,
                    staging_dir=staging_dir,
                    values=values,
                )
                if asset_id is None:
                    continue
                value = asset_id

            value = format_value(value, rule)
            if value is None:
                continue
            values.append(value)
        return values, forced
