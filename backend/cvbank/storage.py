"""Local disk storage for uploaded CV files.

Files are addressed by absolute ``file:///`` locators, which is also what the
CV records store, so a locator can be resolved back to a path on any OS.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(name: str) -> str:
    """Reduce a client-supplied filename to a safe basename."""
    base = Path((name or "").replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned or "cv"


def to_locator(path: str | Path) -> str:
    return Path(path).resolve().as_uri()


def from_locator(locator: str) -> Path:
    if not locator.startswith("file:"):
        return Path(locator)
    return Path(url2pathname(urlparse(locator).path))


class LocalFileStorage:
    """Durable byte storage rooted at a directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def locator_for(self, owner_id, filename: str) -> str:
        """Canonical locator for an owner's file. Same owner + same name -> same locator."""
        return to_locator(self.root / str(owner_id) / safe_filename(filename))

    def path_for(self, locator: str) -> Path:
        return from_locator(locator)

    def exists(self, locator: str) -> bool:
        return self.path_for(locator).is_file()

    def read(self, locator: str) -> bytes:
        return self.path_for(locator).read_bytes()

    def stage(self, locator: str, content: bytes) -> Path:
        """Write content under a temporary name beside its final location."""
        path = self.path_for(locator)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".part", dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
        except OSError:
            Path(tmp).unlink(missing_ok=True)
            raise
        return Path(tmp)

    def promote(self, staged: Path, locator: str) -> None:
        """Atomically move a staged file onto its locator, replacing any leftover file."""
        path = self.path_for(locator)
        os.replace(staged, path)
        logger.debug("Stored %s", path)

    def discard(self, staged: Path) -> None:
        staged.unlink(missing_ok=True)

    def delete(self, locator: str) -> bool:
        """Delete a stored file. Returns False if it was already gone."""
        path = self.path_for(locator)
        if not path.exists():
            return False
        path.unlink()
        logger.debug("Deleted %s", path)
        return True
