from fastapi import APIRouter

from immosync.schemas.sync import EnqueueResponse, SyncRequest
from immosync.workers import jobs

router = APIRouter(prefix="/internal", tags=["internal"])


@router.post("/sync/{interface_id}", response_model=EnqueueResponse)
def enqueue_sync(interface_id: int, request: SyncRequest) -> EnqueueResponse:
    job_id = jobs.enqueue_interface_sync(interface_id, request.file, request.username)
    return EnqueueResponse(enqueued=True, job_id=job_id)
