"""
On-disk working areas: uploads, QR codes, generated downloads.

Generated PDFs live in their own folder (downloads/<artifact_id>/) and are
tracked by a DownloadRegistry, so two uploads with the same name never
overwrite each other. A Janitor thread removes anything older than
MAX_FILE_AGE_SECONDS.
"""

from __future__ import annotations

import logging
import shutil
import threading
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from config import (
    CLEANUP_INTERVAL_SECONDS,
    DOWNLOADS_DIR,
    MAX_FILE_AGE_SECONDS,
    QRCODE_BASE_DIR,
    TEMP_OUTPUT_DIR,
    UPLOAD_DIR,
)
from utils import sanitize_filename

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def ensure_directories(directories: Iterable[PathLike] = (UPLOAD_DIR, QRCODE_BASE_DIR, TEMP_OUTPUT_DIR, DOWNLOADS_DIR)) -> None:
    for d in directories:
        try:
            Path(d).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Could not create %s: %s", d, e)


def save_upload(data: bytes, original_name: str, upload_dir: PathLike = UPLOAD_DIR) -> Path:
    """Store an uploaded file as '<ms timestamp>_<sanitized name>'."""
    upload_dir = Path(upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    name = sanitize_filename(original_name) or "upload.csv"
    path = upload_dir / f"{int(time.time() * 1000)}_{name}"
    path.write_bytes(data)
    return path


def remove_path(path: Optional[PathLike]) -> None:
    """Delete a file or a directory tree. Failures are logged, never raised."""
    if not path:
        return
    p = Path(path)
    try:
        if p.is_dir():
            shutil.rmtree(p)
        elif p.exists():
            p.unlink()
    except OSError as e:
        logger.warning("Could not remove %s: %s", p, e)


def sweep_directory(directory: PathLike, max_age: float = MAX_FILE_AGE_SECONDS, now: Optional[float] = None) -> int:
    """
    Remove files older than max_age seconds (by mtime) under `directory`,
    recursively, then remove subdirectories left empty. The root is kept.
    Returns the number of files removed.
    """
    root = Path(directory)
    if not root.exists():
        logger.info("Directory to clean not found: %s", root)
        return 0
    now = time.time() if now is None else now
    removed = 0
    for entry in list(root.iterdir()):
        try:
            if entry.is_dir():
                removed += sweep_directory(entry, max_age, now)
                if not any(entry.iterdir()):
                    entry.rmdir()
                    logger.info("Removed empty directory: %s", entry)
            elif now - entry.stat().st_mtime > max_age:
                entry.unlink()
                removed += 1
                logger.info("Removed old file: %s", entry)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.error("Error cleaning %s: %s", entry, e)
    return removed


def clean_old_files(
    directories: Iterable[PathLike] = (UPLOAD_DIR, QRCODE_BASE_DIR, DOWNLOADS_DIR),
    max_age: float = MAX_FILE_AGE_SECONDS,
    now: Optional[float] = None,
) -> int:
    logger.debug("Cleaning old files...")
    return sum(sweep_directory(d, max_age, now) for d in directories)


@dataclass(frozen=True)
class DownloadArtifact:
    artifact_id: str
    filename: str
    path: Path
    created_at: float

    @property
    def size(self) -> int:
        try:
            return self.path.stat().st_size
        except OSError:
            return 0


def read_artifact(artifact: DownloadArtifact) -> Optional[bytes]:
    """File contents, or None if the janitor removed it in the meantime."""
    try:
        return artifact.path.read_bytes()
    except OSError as e:
        logger.warning("Download %s is no longer available: %s", artifact.artifact_id, e)
        return None


def new_artifact_dir(downloads_dir: PathLike = DOWNLOADS_DIR) -> Tuple[str, Path]:
    artifact_id = uuid.uuid4().hex
    path = Path(downloads_dir) / artifact_id
    path.mkdir(parents=True, exist_ok=True)
    return artifact_id, path


class DownloadRegistry:
    """Thread-safe map of artifact id -> generated file, with age-based expiry."""

    def __init__(self, max_age: float = MAX_FILE_AGE_SECONDS):
        self.max_age = max_age
        self._items: Dict[str, DownloadArtifact] = {}
        self._lock = threading.Lock()

    def register(self, artifact_id: str, path: PathLike, filename: Optional[str] = None, created_at: Optional[float] = None) -> DownloadArtifact:
        path = Path(path)
        artifact = DownloadArtifact(
            artifact_id=artifact_id,
            filename=filename or path.name,
            path=path,
            created_at=time.time() if created_at is None else created_at,
        )
        with self._lock:
            self._items[artifact_id] = artifact
        return artifact

    def get(self, artifact_id: str) -> Optional[DownloadArtifact]:
        with self._lock:
            artifact = self._items.get(artifact_id)
        if artifact is None or not artifact.path.exists():
            return None
        return artifact

    def list(self) -> List[DownloadArtifact]:
        """Artifacts still on disk, newest first."""
        with self._lock:
            items = list(self._items.values())
        return sorted((a for a in items if a.path.exists()), key=lambda a: a.created_at, reverse=True)

    def sweep(self, max_age: Optional[float] = None, now: Optional[float] = None) -> List[str]:
        """Forget and delete artifacts older than max_age. Returns their ids."""
        max_age = self.max_age if max_age is None else max_age
        now = time.time() if now is None else now
        with self._lock:
            expired = [a for a in self._items.values() if now - a.created_at > max_age]
            for a in expired:
                del self._items[a.artifact_id]
        for a in expired:
            remove_path(a.path.parent if a.path.parent.name == a.artifact_id else a.path)
        return [a.artifact_id for a in expired]


class Janitor:
    """Background thread: periodic clean_old_files() + registry sweep."""

    def __init__(
        self,
        registry: Optional[DownloadRegistry] = None,
        directories: Iterable[PathLike] = (UPLOAD_DIR, QRCODE_BASE_DIR, DOWNLOADS_DIR),
        interval: float = CLEANUP_INTERVAL_SECONDS,
        max_age: float = MAX_FILE_AGE_SECONDS,
    ):
        self.registry = registry
        self.directories = list(directories)
        self.interval = interval
        self.max_age = max_age
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self, now: Optional[float] = None) -> int:
        if self.registry is not None:
            self.registry.sweep(self.max_age, now)
        return clean_old_files(self.directories, self.max_age, now)

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.run_once()
            except Exception:
                logger.exception("Cleanup run failed")

    def start(self) -> "Janitor":
        if self._thread is None or not self._thread.is_alive():
            self._stop.clear()
            self._thread = threading.Thread(target=self._loop, name="janitor", daemon=True)
            self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
