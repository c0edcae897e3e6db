"""CV bank JSON routes."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from sqlalchemy.orm import Session

from ..auth.models import User
from ..config import settings
from ..database.base import get_db
from ..dependencies import get_current_user, get_scheduler, get_storage
from ..enrichment.scheduler import EnrichmentScheduler
from ..rate_limit import limiter
from ..storage import LocalFileStorage
from .schemas import BulkDeleteRequest
from .service import bulk_retire, distinct_positions, get_record, list_records, resolve_download, retire_record
from .upload import IncomingFile, accept_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cv-bank", tags=["cv-bank"])


@router.post("/upload", status_code=201)
@limiter.limit(settings.rate_limit_upload)
def upload_cvs(
    request: Request,
    background_tasks: BackgroundTasks,
    files: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: LocalFileStorage = Depends(get_storage),
    scheduler: EnrichmentScheduler = Depends(get_scheduler),
):
    # One byte past the limit is enough for validate_files to reject the file
    incoming = [
        IncomingFile(
            original_name=f.filename or "cv",
            mime_type=f.content_type or "",
            content=f.file.read(settings.max_file_size_bytes + 1),
        )
        for f in files
    ]
    result = accept_upload(db, storage, user.id, incoming)

    # Runs after the response is sent
    if result.jobs:
        background_tasks.add_task(scheduler.submit, result.jobs)

    return JSONResponse(
        {
            "ok": True,
            "message": f"{len(result.accepted)} CV file(s) uploaded successfully",
            "uploaded": result.accepted,
            "total": result.total_received,
            "duplicates_skipped": result.duplicates_skipped,
        },
        status_code=201,
    )


@router.get("")
def list_cvs(
    position: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    records = list_records(db, user.id, position)
    return JSONResponse({"ok": True, "cvs": [r.to_dict() for r in records]})


@router.get("/positions")
def list_positions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return JSONResponse({"ok": True, "positions": distinct_positions(db, user.id)})


@router.post("/bulk-delete")
def bulk_delete_cvs(
    body: BulkDeleteRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: LocalFileStorage = Depends(get_storage),
):
    deleted, not_found = bulk_retire(db, storage, user.id, body.ids)
    db.commit()
    return JSONResponse(
        {
            "ok": True,
            "message": f"{len(deleted)} CV(s) deleted successfully",
            "deleted": deleted,
            "not_found": not_found,
        }
    )


@router.get("/{record_id}")
def get_cv(
    record_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    record = get_record(db, user.id, record_id)
    return JSONResponse({"ok": True, "cv": record.to_dict()})


@router.get("/{record_id}/download")
def download_cv(
    record_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: LocalFileStorage = Depends(get_storage),
):
    record = get_record(db, user.id, record_id)
    path = resolve_download(storage, record)
    return FileResponse(path, media_type=record.mime_type, filename=record.original_name)


@router.delete("/{record_id}")
def delete_cv(
    record_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: LocalFileStorage = Depends(get_storage),
):
    record = get_record(db, user.id, record_id)
    retire_record(db, storage, record)
    db.commit()
    return JSONResponse({"ok": True, "message": "CV deleted successfully"})
