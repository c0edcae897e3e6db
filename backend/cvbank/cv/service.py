"""CV record store: owner-scoped queries, enrichment updates, soft delete."""

import logging
import re
from pathlib import Path
from uuid import UUID

from sqlalchemy.orm import Session

from ..errors import NotFound, ValidationError
from ..storage import LocalFileStorage
from .models import NOT_SPECIFIED, PLACEHOLDER, CVRecord

logger = logging.getLogger(__name__)

_RECORD_ID = re.compile(r"^[0-9a-fA-F]{24}$")


def is_valid_record_id(value: object) -> bool:
    return isinstance(value, str) and bool(_RECORD_ID.match(value))


def find_by_path(db: Session, owner_id: UUID, storage_path: str) -> CVRecord | None:
    """Active or inactive record for this owner and locator."""
    return (
        db.query(CVRecord)
        .filter(CVRecord.owner_id == owner_id, CVRecord.storage_path == storage_path)
        .first()
    )


def create_record(
    db: Session,
    owner_id: UUID,
    storage_path: str,
    original_name: str,
    mime_type: str,
    file_size: int,
) -> CVRecord:
    record = CVRecord(
        owner_id=owner_id,
        storage_path=storage_path,
        original_name=original_name,
        mime_type=mime_type,
        file_size=file_size,
        position=PLACEHOLDER,
        summary=PLACEHOLDER,
        is_active=True,
    )
    db.add(record)
    db.flush()
    return record


def update_enrichment(db: Session, record_id: str, position: str, summary: str) -> bool:
    """Write enrichment output. Returns False if the record no longer exists."""
    updated = (
        db.query(CVRecord)
        .filter(CVRecord.id == record_id)
        .update({CVRecord.position: position, CVRecord.summary: summary}, synchronize_session=False)
    )
    return bool(updated)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_records(db: Session, owner_id: UUID, position: str | None = None) -> list[CVRecord]:
    """Active records for an owner, newest first, optionally filtered by position substring."""
    query = db.query(CVRecord).filter(CVRecord.owner_id == owner_id, CVRecord.is_active.is_(True))
    if position and position.strip():
        pattern = f"%{_escape_like(position.strip())}%"
        query = query.filter(CVRecord.position.ilike(pattern, escape="\\"))
    return query.order_by(CVRecord.created_at.desc()).all()


def distinct_positions(db: Session, owner_id: UUID) -> list[str]:
    """Distinct real positions across an owner's active CVs, alphabetically."""
    rows = (
        db.query(CVRecord.position)
        .filter(
            CVRecord.owner_id == owner_id,
            CVRecord.is_active.is_(True),
            CVRecord.position.isnot(None),
            CVRecord.position.notin_([NOT_SPECIFIED, PLACEHOLDER, ""]),
        )
        .distinct()
        .all()
    )
    positions = {row[0].strip() for row in rows if row[0] and row[0].strip()}
    return sorted(positions, key=str.lower)


def get_record(db: Session, owner_id: UUID, record_id: str) -> CVRecord:
    if not is_valid_record_id(record_id):
        raise NotFound("CV not found")
    record = (
        db.query(CVRecord)
        .filter(
            CVRecord.id == record_id.lower(),
            CVRecord.owner_id == owner_id,
            CVRecord.is_active.is_(True),
        )
        .first()
    )
    if not record:
        raise NotFound("CV not found")
    return record


def retire_record(db: Session, storage: LocalFileStorage, record: CVRecord) -> None:
    """Soft-delete a record and remove its backing file.

    A failed unlink is logged; the record is deactivated regardless.
    """
    try:
        storage.delete(record.storage_path)
    except OSError:
        logger.exception("Could not delete file for CV %s (%s)", record.id, record.storage_path)
    record.is_active = False
    db.flush()
    logger.info("CV %s retired by owner %s", record.id, record.owner_id)


def bulk_retire(
    db: Session,
    storage: LocalFileStorage,
    owner_id: UUID,
    record_ids: list[str],
) -> tuple[list[str], list[str]]:
    """Retire several records. All ids are validated before anything is touched.

    Returns (deleted_ids, not_found_ids).
    """
    if not record_ids:
        raise ValidationError("No CV ids provided")
    malformed = [str(rid) for rid in record_ids if not is_valid_record_id(rid)]
    if malformed:
        raise ValidationError(f"Invalid CV id(s): {', '.join(malformed)}")

    ids = list(dict.fromkeys(rid.lower() for rid in record_ids))
    records = (
        db.query(CVRecord)
        .filter(
            CVRecord.id.in_(ids),
            CVRecord.owner_id == owner_id,
            CVRecord.is_active.is_(True),
        )
        .all()
    )
    for record in records:
        retire_record(db, storage, record)

    found = {r.id for r in records}
    return [rid for rid in ids if rid in found], [rid for rid in ids if rid not in found]


def resolve_download(storage: LocalFileStorage, record: CVRecord) -> Path:
    """Filesystem path of a record's stored file."""
    if not storage.exists(record.storage_path):
        raise NotFound("CV file not found on disk")
    return storage.path_for(record.storage_path)
