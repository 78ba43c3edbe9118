"""Merges built records into the catalog.

Records arrive as two index-aligned lists. For every index the owning
provider is resolved, the contact person is matched or created according to
the interface's allowed actions, and the listing is created, updated or
deleted depending on its action code.
"""

import datetime as dt
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, Float, Integer, inspect, select
from sqlalchemy.orm import Session

from immosync.core.errors import ConfigurationError
from immosync.models.catalog import ContactPerson, Provider, RealEstate
from immosync.models.interface import Interface
from immosync.schemas.interface import ProviderPolicy
from .assets import AssetManager
from .hooks import AssignContactPersonContext, BeforeDeleteContext, SyncHooks, SyncRun
from .records import ACTION_DELETE, ACTION_REFERENCE, ANBIETER, TransientRecord

logger = logging.getLogger(__name__)

NAME_FIRSTNAME = "name_vorname"
PROVIDER_COLUMN = "anbieternr"
TRUE_VALUES = {"1", "true", "yes", "on"}

# Marketing flag -> interface column holding the predefined contact person.
MARKETING_ASSIGNMENTS = (
    ("vermarktungsart_kauf", "assign_contact_person_kauf"),
    ("vermarktungsart_miete_pacht", "assign_contact_person_miete_pacht"),
    ("vermarktungsart_erbpacht", "assign_contact_person_erbpacht"),
    ("vermarktungsart_leasing", "assign_contact_person_leasing"),
)


def is_truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(value)


def coerce_value(model, name: str, value: Any) -> Any:
    """Convert a feed value to the python type of the ``name`` column."""
    column = inspect(model).columns[name]
    if value is None or value == "":
        return False if isinstance(column.type, Boolean) else None
    if isinstance(column.type, Boolean):
        return is_truthy(value)
    if isinstance(column.type, Integer):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None
    if isinstance(column.type, Float):
        try:
            return float(value)
        except (TypeError, ValueError):
            return None
    return value if isinstance(value, str) else str(value)


def apply_fields(entity, fields: Dict[str, Any]) -> None:
    model = type(entity)
    for name, value in fields.items():
        setattr(entity, name, coerce_value(model, name, value))


class CatalogReconciler:
    def __init__(self, db: Session, run: SyncRun, hooks: SyncHooks, assets: AssetManager) -> None:
        self.db = db
        self.run = run
        self.hooks = hooks
        self.assets = assets

        unique_field = self.interface.contact_person_unique_field
        if unique_field != NAME_FIRSTNAME and unique_field not in inspect(ContactPerson).columns:
            raise ConfigurationError(f"Unknown contact person unique field {unique_field!r}")
        if self.interface.unique_field not in inspect(RealEstate).columns:
            raise ConfigurationError(f"Unknown unique field {self.interface.unique_field!r}")

    @property
    def interface(self):
        return self.run.interface

    def own_provider(self) -> Optional[Provider]:
        return self.db.get(Provider, self.interface.provider_id)

    def find_provider(self, anbieternr: Optional[str]) -> Optional[Provider]:
        return self.db.execute(select(Provider).where(Provider.anbieternr == anbieternr)).scalars().first()

    def find_listing(self, unique_value: Any) -> Optional[RealEstate]:
        column = getattr(RealEstate, self.interface.unique_field)
        return self.db.execute(select(RealEstate).where(column == unique_value)).scalars().first()

    def contact_person_filters(self, contact_record: TransientRecord, provider: Provider) -> list:
        filters = [ContactPerson.provider_id == provider.id]
        unique_field = self.interface.contact_person_unique_field
        if unique_field == NAME_FIRSTNAME:
            filters.append(ContactPerson.name == contact_record.get("name"))
            filters.append(ContactPerson.vorname == contact_record.get("vorname"))
        else:
            filters.append(getattr(ContactPerson, unique_field) == contact_record.get(unique_field))
        return filters

    def find_contact_person(self, contact_record: TransientRecord, provider: Provider) -> Optional[ContactPerson]:
        filters = self.contact_person_filters(contact_record, provider)
        return self.db.execute(select(ContactPerson).where(*filters)).scalars().first()

    def assigned_contact_person(self, listing_record: TransientRecord) -> Optional[ContactPerson]:
        for flag, assignment in MARKETING_ASSIGNMENTS:
            if is_truthy(listing_record.get(flag)):
                contact_person_id = getattr(self.interface, assignment)
                return self.db.get(ContactPerson, contact_person_id) if contact_person_id else None
        return None

    def skip_listing(self, message: str, unique_value: Any) -> None:
        self.run.logger.info(message, {"id": unique_value})
        self.run.mark_partial()

    def update_catalog(
        self, contact_records: List[TransientRecord], listing_records: List[TransientRecord]
    ) -> bool:
        """Apply the batch to the catalog.

        Returns ``False`` when at least one listing had to be skipped.
        """
        self.run.logger.info("Update database")
        complete = True
        for contact_record, listing_record in zip(contact_records, listing_records):
            if not self.reconcile(contact_record, listing_record):
                complete = False

        if self.run.update_sync_time:
            interface = self.db.get(Interface, self.interface.id)
            interface.last_sync = dt.datetime.utcnow()
        self.db.flush()
        return complete

    def reconcile(self, contact_record: TransientRecord, listing_record: TransientRecord) -> bool:
        unique_value = listing_record.get(self.interface.unique_field)
        action = listing_record.action
        policy = self.interface.import_third_party_records
        provider = self.own_provider()
        contact_person: Optional[ContactPerson] = None

        if unique_value in (None, ""):
            self.skip_listing("Skip real estate without unique value.", unique_value)
            return False

        if policy is ProviderPolicy.ASSIGN and listing_record.provider_value != self.interface.anbieternr:
            contact_person = self.assigned_contact_person(listing_record)
        else:
            if policy is ProviderPolicy.IMPORT:
                provider = self.find_provider(listing_record.provider_value)
            if provider is None:
                self.skip_listing("Skip real estate because its provider does not exist.", unique_value)
                return False

            if action != ACTION_DELETE:
                ctx = self.hooks.fire_assign_contact_person(
                    AssignContactPersonContext(
                        provider=provider,
                        contact_record=contact_record,
                        listing_record=listing_record,
                        allow_create=self.interface.allow_create,
                        allow_update=self.interface.allow_update,
                        run=self.run,
                    )
                )
                if ctx.skip_record:
                    self.skip_listing("Skip real estate by contact person assignment.", unique_value)
                    return False
                contact_person = ctx.contact_person
                if not ctx.skip_contact_person:
                    contact_person = self.upsert_contact_person(contact_record, provider)
                    if contact_person is None:
                        self.skip_listing(
                            "Skip real estate because no contact person has been assigned or created.", unique_value
                        )
                        return False

        real_estate = self.find_listing(unique_value)
        if real_estate is None and action == ACTION_DELETE:
            self.run.logger.debug("Nothing to delete", {"id": unique_value})
            return True

        if real_estate is None:
            real_estate = RealEstate(
                date_added=dt.datetime.utcnow(),
                published=not self.interface.dont_publish_records,
            )
            self.db.add(real_estate)
            self.run.logger.info("New real estate was added.", {"id": unique_value})
        elif action == ACTION_DELETE:
            self.delete_listing(real_estate, provider, listing_record, unique_value)
            return True
        else:
            self.run.logger.info("Real estate was updated.", {"id": unique_value})

        if action == ACTION_REFERENCE:
            real_estate.referenz = True

        fields = listing_record.fields()
        fields[PROVIDER_COLUMN] = listing_record[ANBIETER]
        apply_fields(real_estate, fields)

        real_estate.provider_id = provider.id if provider is not None else None
        real_estate.contact_person_id = contact_person.id if contact_person is not None else None
        real_estate.tstamp = dt.datetime.utcnow()

        self.hooks.fire_before_import(real_estate, self.run)
        self.db.flush()
        return True

    def upsert_contact_person(self, contact_record: TransientRecord, provider: Provider) -> Optional[ContactPerson]:
        contact_person = self.find_contact_person(contact_record, provider)
        if contact_person is None:
            if not self.interface.allow_create:
                return None
            contact_person = ContactPerson(provider_id=provider.id, published=True)
            apply_fields(contact_person, contact_record.fields())
            self.db.add(contact_person)
            self.db.flush()
            self.run.logger.info(
                "New contact person was added.",
                {"firstname": contact_record.get("vorname"), "lastname": contact_record.get("name")},
            )
            return contact_person

        if self.interface.allow_update:
            apply_fields(contact_person, contact_record.fields())
            contact_person.tstamp = dt.datetime.utcnow()
            self.run.logger.info(
                "Contact person was updated.",
                {"firstname": contact_record.get("vorname"), "lastname": contact_record.get("name")},
            )
        return contact_person

    def delete_listing(
        self,
        real_estate: RealEstate,
        provider: Optional[Provider],
        listing_record: TransientRecord,
        unique_value: Any,
    ) -> None:
        ctx = self.hooks.fire_before_delete(
            BeforeDeleteContext(real_estate=real_estate, provider=provider, run=self.run)
        )
        if ctx.prevent_delete:
            self.run.logger.info("Deletion of real estate was prevented.", {"id": unique_value})
            return

        provider_number = provider.anbieternr if provider is not None else listing_record.provider_value
        self.assets.delete_listing_assets(provider_number, str(unique_value))
        self.db.delete(real_estate)
        self.db.flush()
        self.run.logger.info("Real estate was deleted.", {"id": unique_value})
