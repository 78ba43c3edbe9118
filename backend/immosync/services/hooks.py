"""Extension points of the OpenImmo sync pipeline.

External code intervenes in a run through ``SyncHooks``, an explicit set of
callback lists handed to the importer at construction. Callbacks of one stage
run in registration order and each sees the mutations of the previous one.

==========================  ===========================================
stage                       effect
==========================  ===========================================
before_sync                 observe or mutate the run
before_load_data            returning True aborts the load
pre_prepare_record          ``ctx.skip`` drops the listing
save_image                  ``ctx.skip`` drops the asset
assign_contact_person       skip the record or the contact person data
before_delete               ``ctx.prevent_delete`` keeps the listing
before_import               last mutation before the listing is saved
==========================  ===========================================
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, List, Optional

from xml.etree import ElementTree as ET

from immosync.models.catalog import ContactPerson, Provider, RealEstate
from immosync.schemas.interface import InterfaceConfig, MappingRule, SyncStatus
from .records import TransientRecord
from .sync_logger import SyncLogger

if TYPE_CHECKING:
    from .importer import RealEstateImporter

PARTIAL_MESSAGE = "File partially imported."
SUCCESS_MESSAGE = "File imported."
FAILED_MESSAGE = "File could not be imported."


@dataclass
class SyncRun:
    """Mutable state of one sync run."""

    interface: InterfaceConfig
    logger: SyncLogger
    username: Optional[str] = None
    sync_file: Optional[str] = None
    original_sync_file: Optional[str] = None
    update_sync_time: bool = True
    status: SyncStatus = SyncStatus.SUCCESS
    message: str = SUCCESS_MESSAGE
    provider_value: Optional[str] = None
    unique_value: Optional[str] = None
    importer: Optional["RealEstateImporter"] = None

    def mark_partial(self) -> None:
        if self.status is SyncStatus.SUCCESS:
            self.status = SyncStatus.PARTIAL
            self.message = PARTIAL_MESSAGE

    def mark_failed(self, message: str = FAILED_MESSAGE) -> None:
        self.status = SyncStatus.FAILED
        self.message = message


@dataclass
class PrePrepareContext:
    listing: ET.Element
    record: TransientRecord
    contact_person: TransientRecord
    run: SyncRun
    skip: bool = False


@dataclass
class SaveImageContext:
    rule: MappingRule
    group: ET.Element
    file_name: str
    target_folder: str
    values: list
    run: SyncRun
    skip: bool = False


@dataclass
class AssignContactPersonContext:
    provider: Optional[Provider]
    contact_record: TransientRecord
    listing_record: TransientRecord
    allow_create: bool
    allow_update: bool
    run: SyncRun
    skip_record: bool = False
    skip_contact_person: bool = False
    contact_person: Optional[ContactPerson] = None


@dataclass
class BeforeDeleteContext:
    real_estate: RealEstate
    provider: Optional[Provider]
    run: SyncRun
    prevent_delete: bool = False


SyncCallback = Callable[[SyncRun], None]
LoadDataCallback = Callable[[SyncRun], Optional[bool]]
PrePrepareCallback = Callable[[PrePrepareContext], None]
SaveImageCallback = Callable[[SaveImageContext], None]
AssignContactPersonCallback = Callable[[AssignContactPersonContext], None]
BeforeDeleteCallback = Callable[[BeforeDeleteContext], None]
BeforeImportCallback = Callable[[RealEstate, SyncRun], None]


@dataclass
class SyncHooks:
    before_sync: List[SyncCallback] = field(default_factory=list)
    before_load_data: List[LoadDataCallback] = field(default_factory=list)
    pre_prepare_record: List[PrePrepareCallback] = field(default_factory=list)
    save_image: List[SaveImageCallback] = field(default_factory=list)
    assign_contact_person: List[AssignContactPersonCallback] = field(default_factory=list)
    before_delete: List[BeforeDeleteCallback] = field(default_factory=list)
    before_import: List[BeforeImportCallback] = field(default_factory=list)

    def fire_before_sync(self, run: SyncRun) -> None:
        for callback in self.before_sync:
            callback(run)

    def fire_before_load_data(self, run: SyncRun) -> bool:
        skip = False
        for callback in self.before_load_data:
            skip = bool(callback(run)) or skip
        return skip

    def fire_pre_prepare_record(self, ctx: PrePrepareContext) -> PrePrepareContext:
        for callback in self.pre_prepare_record:
            callback(ctx)
        return ctx

    def fire_save_image(self, ctx: SaveImageContext) -> SaveImageContext:
        for callback in self.save_image:
            callback(ctx)
        return ctx

    def fire_assign_contact_person(self, ctx: AssignContactPersonContext) -> AssignContactPersonContext:
        for callback in self.assign_contact_person:
            callback(ctx)
        return ctx

    def fire_before_delete(self, ctx: BeforeDeleteContext) -> BeforeDeleteContext:
        for callback in self.before_delete:
            callback(ctx)
        return ctx

    def fire_before_import(self, real_estate: RealEstate, run: SyncRun) -> None:
        for callback in self.before_import:
            callback(real_estate, run)
