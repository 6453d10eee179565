"""
Persistence for the novela catalog.

The merge logic only talks to the `CatalogStore` protocol, so the JSON file can be swapped for a
key-value store or a table without touching the merger or the matcher's novela source.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Any, Iterator, Protocol

from revius_backend.models.novelas import NovelaCatalog

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("./data")
DEFAULT_OUTPUT_FILE = "novelas.json"
DEFAULT_BACKUP_FILE = "novelas-backup.json"


class CatalogStoreError(RuntimeError):
    pass


class CatalogStore(Protocol):
    def load(self) -> NovelaCatalog: ...

    def save(self, catalog: NovelaCatalog) -> None: ...

    def backup(self) -> bool: ...

    def lock(self) -> Any:
        """Context manager held around a whole load-merge-save cycle."""
        ...


def validate_catalog_payload(data: Any) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Data must be an object"]
    if not isinstance(data.get("metadata"), dict):
        errors.append("Missing metadata object")
    novelas = data.get("novelas")
    if not isinstance(novelas, list):
        errors.append("Missing or invalid novelas array")
        return errors
    for index, novela in enumerate(novelas):
        if not isinstance(novela, dict):
            errors.append(f"Novela at index {index} is not an object")
            continue
        title = novela.get("title")
        if not title:
            errors.append(f"Novela at index {index} missing title")
        if not novela.get("country"):
            errors.append(f"Novela {title!r} missing country")
        if not novela.get("id"):
            errors.append(f"Novela {title!r} missing id")
    return errors


class InMemoryCatalogStore:
    def __init__(self, catalog: NovelaCatalog | None = None) -> None:
        self._payload: dict[str, Any] | None = catalog.to_dict() if catalog else None
        self.backup_payload: dict[str, Any] | None = None
        self.save_count = 0
        self._lock = Lock()

    def load(self) -> NovelaCatalog:
        if self._payload is None:
            return NovelaCatalog()
        return NovelaCatalog.from_dict(json.loads(json.dumps(self._payload)))

    def save(self, catalog: NovelaCatalog) -> None:
        self._payload = catalog.to_dict()
        self.save_count += 1

    def backup(self) -> bool:
        if self._payload is not None:
            self.backup_payload = json.loads(json.dumps(self._payload))
        return True

    @contextmanager
    def lock(self) -> Iterator[None]:
        with self._lock:
            yield


class JsonFileCatalogStore:
    """
    Catalog persisted as one pretty-printed JSON file.

    Writes go to a temp file in the same directory followed by `os.replace`, so readers never see a
    half-written catalog. `lock()` takes an exclusive lock file next to the catalog for the whole
    read-modify-write cycle.
    """

    def __init__(
        self,
        output_dir: Path | str = DEFAULT_OUTPUT_DIR,
        *,
        output_file: str = DEFAULT_OUTPUT_FILE,
        backup_file: str = DEFAULT_BACKUP_FILE,
        lock_timeout_seconds: float = 60.0,
        stale_lock_seconds: float = 3600.0,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.path = self.output_dir / output_file
        self.backup_path = self.output_dir / backup_file
        self.lock_path = self.output_dir / f"{output_file}.lock"
        self.lock_timeout_seconds = lock_timeout_seconds
        self.stale_lock_seconds = stale_lock_seconds
        self._thread_lock = Lock()

    def _ensure_output_dir(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def load(self) -> NovelaCatalog:
        if not self.path.is_file():
            return NovelaCatalog()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise CatalogStoreError(f"Unable to read catalog {self.path}: {exc}") from exc

        if not isinstance(data, dict) or not isinstance(data.get("novelas"), list):
            raise CatalogStoreError(f"Catalog {self.path} has no `novelas` array")
        catalog = NovelaCatalog.from_dict(data)
        logger.info("Loaded %d existing novelas from %s", len(catalog.novelas), self.path)
        return catalog

    def backup(self) -> bool:
        if not self.path.is_file():
            return True
        try:
            shutil.copyfile(self.path, self.backup_path)
        except OSError as exc:
            logger.error("Error creating backup %s: %s", self.backup_path, exc)
            return False
        logger.info("Backup created at %s", self.backup_path)
        return True

    def save(self, catalog: NovelaCatalog) -> None:
        self._ensure_output_dir()
        payload = catalog.to_dict()
        errors = validate_catalog_payload(payload)
        if errors:
            raise CatalogStoreError(f"Refusing to save invalid catalog: {errors[:5]}")

        fd, tmp_name = tempfile.mkstemp(prefix=".novelas-", suffix=".json.tmp", dir=self.output_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise CatalogStoreError(f"Unable to write catalog {self.path}: {exc}") from exc
        logger.info("Saved %d novelas to %s", len(catalog.novelas), self.path)

    def _acquire_lock_file(self) -> None:
        deadline = time.monotonic() + self.lock_timeout_seconds
        while True:
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                try:
                    age = time.time() - self.lock_path.stat().st_mtime
                except FileNotFoundError:
                    continue
                if age > self.stale_lock_seconds:
                    logger.warning("Removing stale catalog lock %s (%.0fs old)", self.lock_path, age)
                    self.lock_path.unlink(missing_ok=True)
                    continue
                if time.monotonic() >= deadline:
                    raise CatalogStoreError(f"Timed out waiting for catalog lock {self.lock_path}")
                time.sleep(0.2)
                continue
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(str(os.getpid()))
            return

    @contextmanager
    def lock(self) -> Iterator[None]:
        self._ensure_output_dir()
        with self._thread_lock:
            self._acquire_lock_file()
            try:
                yield
            finally:
                self.lock_path.unlink(missing_ok=True)

    def file_stats(self) -> dict[str, Any]:
        exists = self.path.is_file()
        stat = self.path.stat() if exists else None
        return {
            "exists": exists,
            "backupExists": self.backup_path.is_file(),
            "size": stat.st_size if stat else 0,
            "lastModified": stat.st_mtime if stat else None,
        }
