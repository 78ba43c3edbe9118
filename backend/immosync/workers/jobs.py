import logging
from typing import Optional

from redis import Redis
from rq import Queue

from immosync.core.config import get_settings
from immosync.db.session import SessionLocal
from immosync.schemas.interface import SyncStatus
from immosync.schemas.sync import SyncRequest
from immosync.services.importer import RealEstateImporter

logger = logging.getLogger(__name__)


def run_interface_sync(interface_id: int, file: str, username: Optional[str] = None) -> Optional[int]:
    with SessionLocal() as db:
        importer = RealEstateImporter(db)
        view = importer.sync(interface_id, SyncRequest(file=file, username=username))
        logger.info("[openimmo] interface=%s file=%s status=%s", interface_id, file, view.status)
        return view.status


def sync_pending_files(interface_id: int, username: Optional[str] = None) -> int:
    """Import every file of the import folder that was never synced, oldest first."""
    with SessionLocal() as db:
        importer = RealEstateImporter(db)
        if not importer.initialize(interface_id):
            logger.warning("Interface %s could not be initialized: %s", interface_id, importer.error)
            return 0

        pending = [info for info in importer.sync_files() if info.status == SyncStatus.NOT_SYNCED]
        imported = 0
        for info in reversed(pending):
            view = importer.sync(interface_id, SyncRequest(file=info.file, username=username))
            if view.status is not None and view.status != SyncStatus.FAILED:
                imported += 1
        logger.info("[openimmo] interface=%s pending=%s imported=%s", interface_id, len(pending), imported)
        return imported


def enqueue_interface_sync(interface_id: int, file: Optional[str] = None, username: Optional[str] = None) -> str:
    settings = get_settings()
    redis_conn = Redis.from_url(settings.redis_url)
    queue = Queue(settings.sync_queue_name, connection=redis_conn)
    if file:
        job = queue.enqueue(run_interface_sync, interface_id, file, username)
    else:
        job = queue.enqueue(sync_pending_files, interface_id, username)
    return job.id
