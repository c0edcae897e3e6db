"""Upload pipeline: validate, dedup per owner, store, create placeholder records.

The whole request is all-or-nothing: if any file fails to store or any record
fails to persist, the session is rolled back and every file written by this
request is removed before the error propagates.

Each file is staged under a temporary name and moved onto its locator only
after its record has been flushed, so the (owner, path) unique constraint
decides concurrent uploads and a leftover file without a record is replaced.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..enrichment.extractor import SUPPORTED_MEDIA_TYPES
from ..enrichment.scheduler import EnrichmentJob
from ..errors import Conflict, StorageError, ValidationError
from ..storage import LocalFileStorage
from .service import create_record, find_by_path

logger = logging.getLogger(__name__)


@dataclass
class IncomingFile:
    original_name: str
    mime_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class UploadResult:
    accepted: list[dict] = field(default_factory=list)
    total_received: int = 0
    jobs: list[EnrichmentJob] = field(default_factory=list)

    @property
    def duplicates_skipped(self) -> int:
        return self.total_received - len(self.accepted)


def validate_files(files: list[IncomingFile], max_files: int, max_file_size: int) -> None:
    """Reject the request before anything is written."""
    if not files:
        raise ValidationError("No files uploaded")
    if len(files) > max_files:
        raise ValidationError(f"Too many files. Maximum {max_files} files allowed.")
    for f in files:
        if f.mime_type not in SUPPORTED_MEDIA_TYPES:
            raise ValidationError(
                f"Invalid file type for {f.original_name}: only PDF, DOC and DOCX files are allowed."
            )
        if f.size > max_file_size:
            raise ValidationError(
                f"File too large: {f.original_name}. Maximum file size is {max_file_size // (1024 * 1024)}MB."
            )


def _discard(db: Session, storage: LocalFileStorage, written: list[str], staged: list[Path]) -> None:
    db.rollback()
    for tmp in staged:
        try:
            storage.discard(tmp)
        except OSError:
            logger.exception("Cleanup failed for %s", tmp)
    for locator in written:
        try:
            storage.delete(locator)
        except OSError:
            logger.exception("Cleanup failed for %s", locator)


def accept_upload(
    db: Session,
    storage: LocalFileStorage,
    owner_id: UUID,
    files: list[IncomingFile],
    max_files: int | None = None,
    max_file_size: int | None = None,
) -> UploadResult:
    """Persist new CV files and return the enrichment jobs to run after the response."""
    validate_files(
        files,
        max_files if max_files is not None else settings.max_upload_files,
        max_file_size if max_file_size is not None else settings.max_file_size_bytes,
    )

    result = UploadResult(total_received=len(files))
    written: list[str] = []
    staged: list[Path] = []
    try:
        for f in files:
            locator = storage.locator_for(owner_id, f.original_name)
            if find_by_path(db, owner_id, locator):
                logger.info("Skipping duplicate upload %s for owner %s", f.original_name, owner_id)
                continue

            tmp = storage.stage(locator, f.content)
            staged.append(tmp)
            record = create_record(db, owner_id, locator, f.original_name, f.mime_type, f.size)
            storage.promote(tmp, locator)
            staged.remove(tmp)
            written.append(locator)

            result.accepted.append(
                {
                    "id": record.id,
                    "path": locator,
                    "original_name": f.original_name,
                    "file_size": f.size,
                    "position": record.position,
                    "summary": record.summary,
                }
            )
            result.jobs.append(EnrichmentJob(record_id=record.id, storage_path=locator, mime_type=f.mime_type))
        db.commit()
    except IntegrityError as exc:
        _discard(db, storage, written, staged)
        logger.warning("Concurrent duplicate upload for owner %s: %s", owner_id, exc)
        raise Conflict("This CV is already being uploaded", cause=exc) from exc
    except (SQLAlchemyError, OSError) as exc:
        _discard(db, storage, written, staged)
        logger.exception("Upload failed for owner %s, %d file(s) removed", owner_id, len(written))
        raise StorageError(f"Failed to store uploaded files: {exc}", cause=exc) from exc

    logger.info(
        "Upload accepted for owner %s: %d new, %d duplicate(s)",
        owner_id, len(result.accepted), result.duplicates_skipped,
    )
    return result
