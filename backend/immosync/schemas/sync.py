from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel


class SyncFileInfo(BaseModel):
    file: str
    time: datetime
    size: int
    user: Optional[str] = None
    status: int = 0
    synctime: Optional[datetime] = None
    checked: bool = False


class SyncMessage(BaseModel):
    level: str
    message: str
    context: Optional[dict[str, Any]] = None


class SyncRequest(BaseModel):
    file: Optional[str] = None
    username: Optional[str] = None


class SyncStatusView(BaseModel):
    interface_id: int
    type: str
    sync_file: Optional[str] = None
    status: Optional[int] = None
    message: Optional[str] = None
    files: List[SyncFileInfo]
    messages: List[SyncMessage]


class SyncHistoryOut(BaseModel):
    id: int
    source: str
    tstamp: datetime
    username: Optional[str] = None
    text: Optional[str] = None
    status: int

    class Config:
        from_attributes = True


class EnqueueResponse(BaseModel):
    enqueued: bool
    job_id: str
