from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from immosync.api.deps import get_db, get_importer
from immosync.core.errors import ConfigurationError
from immosync.core.rate_limit import rate_limit
from immosync.models.interface import Interface, InterfaceHistory
from immosync.schemas.sync import SyncHistoryOut, SyncRequest, SyncStatusView
from immosync.services.importer import RealEstateImporter

router = APIRouter(prefix="/v1/interfaces", tags=["sync"], dependencies=[Depends(rate_limit)])


def _run(importer: RealEstateImporter, interface_id: int, request: SyncRequest) -> SyncStatusView:
    try:
        return importer.sync(interface_id, request)
    except ConfigurationError as exc:
        if importer.interface is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


@router.get("/{interface_id}/sync", response_model=SyncStatusView)
def sync_status(interface_id: int, importer: RealEstateImporter = Depends(get_importer)) -> SyncStatusView:
    return _run(importer, interface_id, SyncRequest())


@router.post("/{interface_id}/sync", response_model=SyncStatusView)
def sync_file(
    interface_id: int, request: SyncRequest, importer: RealEstateImporter = Depends(get_importer)
) -> SyncStatusView:
    return _run(importer, interface_id, request)


@router.get("/{interface_id}/history", response_model=List[SyncHistoryOut])
def sync_history(interface_id: int, limit: int = 50, db: Session = Depends(get_db)) -> List[SyncHistoryOut]:
    if db.get(Interface, interface_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interface not found")
    entries = db.execute(
        select(InterfaceHistory)
        .where(InterfaceHistory.interface_id == interface_id)
        .order_by(InterfaceHistory.tstamp.desc(), InterfaceHistory.id.desc())
        .limit(limit)
    ).scalars().all()
    return entries
