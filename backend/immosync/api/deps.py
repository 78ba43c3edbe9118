from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from immosync.core.config import Settings, get_settings
from immosync.db.session import SessionLocal
from immosync.services.hooks import SyncHooks
from immosync.services.importer import RealEstateImporter


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_sync_hooks() -> SyncHooks:
    return SyncHooks()


def get_importer(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    hooks: SyncHooks = Depends(get_sync_hooks),
) -> RealEstateImporter:
    return RealEstateImporter(db, settings=settings, hooks=hooks)
