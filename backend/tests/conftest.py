"""Shared test fixtures."""

import io
import uuid
import zipfile

import pytest
from docx import Document
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cvbank.auth.models import User
from cvbank.cv.models import CVRecord
from cvbank.database.base import Base
from cvbank.errors import EnrichmentError
from cvbank.storage import LocalFileStorage

# Models must be imported so Base.metadata.create_all() sees all tables.
_ALL_MODELS = [User, CVRecord]

SAMPLE_CV_TEXT = (
    "Jane Doe\n"
    "Senior Backend Engineer\n"
    "Eight years building Python services with FastAPI, PostgreSQL and Redis.\n"
    "Led a team of five engineers delivering a payments platform.\n"
    "MSc Computer Science, University of Bologna."
)

SAMPLE_SUMMARY = (
    "Jane Doe is a senior backend engineer with eight years of experience building "
    "Python services. Key skills include FastAPI, PostgreSQL and Redis, along with "
    "team leadership on a payments platform. Holds an MSc in Computer Science."
)


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every session in a test."""
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Create an in-memory SQLite database session for testing.

    Note: SQLite doesn't support all PostgreSQL features (UUID), but works for
    service logic testing.
    """
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_user(db_session):
    user = User(
        id=uuid.uuid4(),
        email="test@example.com",
        password_hash="$2b$12$fakehash",
        first_name="Test",
        last_name="User",
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def other_user(db_session):
    user = User(id=uuid.uuid4(), email="other@example.com", password_hash="$2b$12$fakehash")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(tmp_path / "uploads")


@pytest.fixture
def make_record(db_session, storage):
    """Create a stored file plus its CV record."""

    def _make(owner, name="cv.pdf", position="Processing...", summary="Processing...", active=True, content=b"data"):
        locator = storage.locator_for(owner.id, name)
        storage.promote(storage.stage(locator, content), locator)
        record = CVRecord(
            owner_id=owner.id,
            storage_path=locator,
            original_name=name,
            mime_type="application/pdf",
            file_size=len(content),
            position=position,
            summary=summary,
            is_active=active,
        )
        db_session.add(record)
        db_session.commit()
        return record

    return _make


# ── Document builders ─────────────────────────────────────────────────


def build_pdf(lines: list[str]) -> bytes:
    """Minimal single-page PDF with Helvetica text, one line per entry."""

    def esc(s: str) -> str:
        return s.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")

    content = "BT /F1 12 Tf 16 TL 72 720 Td " + " ".join(f"({esc(line)}) Tj T*" for line in lines) + " ET"
    objects = [
        "<< /Type /Catalog /Pages 2 0 R >>",
        "<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        "/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        f"<< /Length {len(content)} >>\nstream\n{content}\nendstream",
        "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = b"%PDF-1.4\n"
    offsets = []
    for num, obj in enumerate(objects, 1):
        offsets.append(len(out))
        out += f"{num} 0 obj\n{obj}\nendobj\n".encode("latin-1")
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode()
    for off in offsets:
        out += f"{off:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    return out


def write_docx(path, paragraphs: list[str]) -> None:
    doc = Document()
    for p in paragraphs:
        doc.add_paragraph(p)
    doc.save(str(path))


def truncated_docx_bytes() -> bytes:
    """A valid DOCX package whose word/document.xml is cut in half."""
    doc = Document()
    doc.add_paragraph("Jane Doe")
    doc.add_paragraph("Senior Backend Engineer")
    buf = io.BytesIO()
    doc.save(buf)

    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(buf.getvalue())) as src, zipfile.ZipFile(out, "w") as dst:
        for item in src.infolist():
            data = src.read(item.filename)
            if item.filename == "word/document.xml":
                data = data[: len(data) // 2]
            dst.writestr(item, data)
    return out.getvalue()


# ── Fakes ─────────────────────────────────────────────────────────────


class FakeCompletionClient:
    """Deterministic completion client.

    Position prompts and summary prompts get separate scripted outcomes; an
    outcome that is an exception instance is raised instead of returned.
    """

    def __init__(self, position="Senior Backend Engineer", summary=SAMPLE_SUMMARY, events=None):
        self.position = position
        self.summary = summary
        self.calls = []
        self.events = events if events is not None else []

    def complete(self, prompt, *, max_output_tokens, temperature, model):
        kind = "position" if prompt.rstrip().endswith("Position/Job Title:") else "summary"
        self.calls.append(
            {"kind": kind, "prompt": prompt, "max_output_tokens": max_output_tokens,
             "temperature": temperature, "model": model}
        )
        self.events.append("call")
        outcome = self.position if kind == "position" else self.summary
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if isinstance(outcome, Exception):
            if isinstance(outcome, EnrichmentError):
                # fresh instance per call, like a real client
                raise type(outcome)(outcome.message)
            raise outcome
        return outcome


class SleepRecorder:
    def __init__(self, events=None):
        self.delays = []
        self.events = events if events is not None else []

    def __call__(self, seconds):
        self.delays.append(seconds)
        self.events.append("sleep")


class MemoryCache:
    def __init__(self):
        self.data = {}

    def get_json(self, key):
        return self.data.get(key)

    def set_json(self, key, data, ttl=86400):
        self.data[key] = data
