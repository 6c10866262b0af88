"""
Filesystem-backed object and version stores.

Layout under the data directory:
    objects/<bucket>/<path>       file blobs
    versions/<version_id>.json    version records

Version records are written atomically (temp file + rename) under a
re-entrant lock, so concurrent writers in one process never leave a torn
record behind.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from dataset_profiler.core.exceptions import StorageError
from dataset_profiler.storage.base import ObjectStore, VersionRecord, VersionStore

logger = logging.getLogger(__name__)


def _atomic_write(file_path: Path, data: Any, indent: Optional[int] = 2) -> None:
    """Write JSON atomically: write to a temp file, then rename over the target."""
    fd, tmp_path = tempfile.mkstemp(dir=str(file_path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, default=str)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, str(file_path))
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


class LocalObjectStore(ObjectStore):
    """Blobs stored as files under objects/<bucket>/."""

    def __init__(self, data_dir: str):
        self.root = Path(data_dir) / "objects"
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, bucket: str, path: str) -> Path:
        bucket_dir = (self.root / bucket).resolve()
        target = (bucket_dir / path.lstrip("/")).resolve()
        if bucket_dir != target and bucket_dir not in target.parents:
            raise StorageError(f"Path escapes bucket '{bucket}': {path}", operation="resolve", transient=False)
        return target

    def download(self, bucket: str, path: str) -> bytes:
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise StorageError(f"Object not found: {bucket}/{path}", operation="download", transient=False)
        try:
            return target.read_bytes()
        except OSError as e:
            raise StorageError(
                f"Failed to read {bucket}/{path}: {e}", operation="download", original_exception=e
            )

    def upload(self, bucket: str, path: str, data: bytes) -> None:
        target = self._resolve(bucket, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(
                f"Failed to write {bucket}/{path}: {e}", operation="upload", original_exception=e
            )
        logger.debug(f"Stored {len(data):,} bytes at {bucket}/{path}")


class LocalVersionStore(VersionStore):
    """Version records stored as one JSON file per version."""

    def __init__(self, data_dir: str):
        self.versions_dir = Path(data_dir) / "versions"
        self.versions_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _record_path(self, version_id: str) -> Path:
        if not version_id or "/" in version_id or "\\" in version_id or version_id.startswith("."):
            raise StorageError(f"Invalid version id: {version_id!r}", operation="get_version", transient=False)
        return self.versions_dir / f"{version_id}.json"

    def _load(self, version_id: str) -> Dict[str, Any]:
        record_path = self._record_path(version_id)
        if not record_path.exists():
            raise StorageError(f"Version not found: {version_id}", operation="get_version", transient=False)
        try:
            with open(record_path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(
                f"Failed to read version {version_id}: {e}", operation="get_version", original_exception=e
            )

    def _write(self, data: Dict[str, Any], operation: str) -> None:
        try:
            _atomic_write(self._record_path(data["id"]), data)
        except OSError as e:
            raise StorageError(
                f"Failed to write version {data['id']}: {e}", operation=operation, original_exception=e
            )

    def get_version(self, version_id: str) -> VersionRecord:
        with self._lock:
            return VersionRecord.from_dict(self._load(version_id))

    def save_version(self, record: VersionRecord) -> None:
        with self._lock:
            self._write(record.to_dict(), "save_version")

    def update_data_types(self, version_id: str, data_types: Dict[str, str]) -> None:
        with self._lock:
            data = self._load(version_id)
            data["data_types"] = dict(data_types)
            self._write(data, "update_data_types")
        logger.debug(f"Persisted {len(data_types)} column types for version {version_id}")

    def get_pre_analysis(self, version_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._load(version_id).get("pre_analysis")

    def set_pre_analysis(self, version_id: str, result: Dict[str, Any]) -> None:
        with self._lock:
            data = self._load(version_id)
            data["pre_analysis"] = result
            self._write(data, "set_pre_analysis")
