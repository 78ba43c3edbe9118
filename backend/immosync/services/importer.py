import datetime as dt
import logging
from pathlib import Path
from typing import Dict, List, Optional

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from immosync.connectors.openimmo import (
    SCRATCH_DIR_NAME,
    list_sync_files,
    load_document,
    purge_scratch,
    resolve_sync_file,
)
from immosync.core.config import Settings, get_settings
from immosync.core.errors import ConfigurationError, FeedError, SyncError
from immosync.models.interface import InterfaceHistory
from immosync.schemas.interface import InterfaceConfig, MappingRule, RecordKind, SyncStatus
from immosync.schemas.sync import SyncFileInfo, SyncRequest, SyncStatusView
from .assets import AssetManager
from .hooks import SyncHooks, SyncRun
from .mapping_config import load_interface, load_mapping_rules, load_schemas, unique_field_rule
from .reconciliation import CatalogReconciler
from .record_builder import BuildResult, RecordBuilder
from .records import AttributeSchema
from .sync_logger import SyncLogger
from .telemetry import send_anonymized_records

logger = logging.getLogger(__name__)


class RealEstateImporter:
    """Runs OpenImmo syncs for one interface at a time.

    ``initialize`` loads and validates the interface and its mapping rules.
    ``sync`` reports the importable files and, when a file is requested,
    imports it through ``start_sync``.
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        hooks: Optional[SyncHooks] = None,
        telemetry_client: Optional[httpx.Client] = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.hooks = hooks or SyncHooks()
        self.telemetry_client = telemetry_client
        self.files_root = Path(self.settings.files_root)

        self.logger = SyncLogger()
        self.interface: Optional[InterfaceConfig] = None
        self.rules: List[MappingRule] = []
        self.schemas: Dict[RecordKind, AttributeSchema] = {}
        self.unique_rule: Optional[MappingRule] = None
        self.run: Optional[SyncRun] = None
        self.error: Optional[str] = None

    @property
    def import_dir(self) -> Path:
        return self.files_root / self.interface.import_path

    @property
    def scratch_dir(self) -> Path:
        return self.import_dir / SCRATCH_DIR_NAME

    def _fail(self, message: str) -> bool:
        self.error = message
        self.logger.error(message)
        return False

    def initialize(self, interface_id: int) -> bool:
        self.logger = SyncLogger()
        self.error = None
        try:
            self.interface = load_interface(self.db, interface_id)
        except ConfigurationError as exc:
            return self._fail(str(exc))

        interface = self.interface
        if not interface.import_path or not (self.files_root / interface.import_path).is_dir():
            return self._fail("Import folder does not exist.")
        if not interface.files_path or not (self.files_root / interface.files_path).is_dir():
            return self._fail("Files folder does not exist.")

        self.schemas = load_schemas()
        try:
            self.rules = load_mapping_rules(self.db, interface.id, self.schemas)
        except ConfigurationError as exc:
            return self._fail(str(exc))
        if not self.rules:
            return self._fail("No field mappings are configured.")

        self.unique_rule = unique_field_rule(interface, self.rules)
        if self.unique_rule is None:
            return self._fail(f"The unique field {interface.unique_field!r} has no field mapping.")

        self.run = SyncRun(interface=interface, logger=self.logger, importer=self)
        return True

    def sync(self, interface_id: int, request: Optional[SyncRequest] = None) -> SyncStatusView:
        request = request or SyncRequest()
        if not self.initialize(interface_id):
            raise ConfigurationError(self.error)

        self.run.username = request.username
        self.hooks.fire_before_sync(self.run)

        status = None
        if request.file:
            status = self.start_sync(request.file)

        return SyncStatusView(
            interface_id=self.interface.id,
            type=self.interface.type,
            sync_file=self.run.original_sync_file,
            status=int(status) if status is not None else None,
            message=self.run.message if status is not None else None,
            files=self.sync_files(),
            messages=self.logger.messages,
        )

    def history_by_source(self) -> Dict[str, InterfaceHistory]:
        entries = self.db.execute(
            select(InterfaceHistory)
            .where(InterfaceHistory.interface_id == self.interface.id)
            .order_by(InterfaceHistory.tstamp, InterfaceHistory.id)
        ).scalars().all()
        # Later entries win.
        return {entry.source: entry for entry in entries}

    def sync_files(self) -> List[SyncFileInfo]:
        return list_sync_files(self.import_dir, self.files_root, self.history_by_source())

    def locate(self, file: str) -> Path:
        path = (self.files_root / file).resolve()
        if path.parent != self.import_dir.resolve():
            raise FeedError(f"Sync file {file} is not located in the import folder.")
        return path

    def start_sync(self, file: str) -> Optional[SyncStatus]:
        """Import one file of the import folder.

        Returns ``None`` when a hook skipped loading the data, otherwise the
        status that was written to the history.
        """
        run = self.run
        run.sync_file = file
        run.original_sync_file = file

        if self.hooks.fire_before_load_data(run):
            self.logger.info("Loading data was skipped.", {"file": file})
            return None

        result: Optional[BuildResult] = None
        try:
            xml_path = resolve_sync_file(self.locate(file), self.scratch_dir)
            run.sync_file = xml_path.resolve().relative_to(self.files_root.resolve()).as_posix()
            document = load_document(xml_path)

            assets = AssetManager(self.db, self.settings, self.hooks, run)
            builder = RecordBuilder(self.db, run, self.rules, self.schemas, self.hooks, assets, self.unique_rule)
            result = builder.build(document, xml_path.parent)

            reconciler = CatalogReconciler(self.db, run, self.hooks, assets)
            reconciler.update_catalog(result.contact_records, result.listing_records)
            self.add_history()
            self.db.commit()
        except SyncError as exc:
            self.db.rollback()
            run.mark_failed(str(exc))
            self.logger.error(str(exc), {"file": file})
            self.add_history()
            self.db.commit()
            return run.status
        except Exception:
            self.db.rollback()
            run.mark_failed()
            logger.exception("Sync of %s failed", file)
            self.add_history()
            self.db.commit()
            raise
        finally:
            purge_scratch(self.scratch_dir)

        self.logger.info(run.message, {"file": file, "records": len(result)})
        send_anonymized_records(self.settings, result.listing_records, self.telemetry_client)
        return run.status

    def add_history(self) -> InterfaceHistory:
        run = self.run
        entry = InterfaceHistory(
            interface_id=self.interface.id,
            tstamp=dt.datetime.utcnow(),
            source=run.original_sync_file,
            action="",
            username=run.username,
            text=run.message,
            status=int(run.status),
        )
        self.db.add(entry)
        return entry
