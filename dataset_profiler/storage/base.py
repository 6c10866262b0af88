"""
Persistence boundary.

Raw and processed files live in a path-addressed object store. Each dataset
version has a record in a version store. For a root version (one without a
previous version) the record's data_types map is the source of truth for
column types on later reloads.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dataset_profiler.core.constants import PROCESSED_DATA_BUCKET, RAW_DATA_BUCKET


@dataclass
class VersionRecord:
    """
    One dataset version.

    Attributes:
        id: Version identifier
        task_id: Task the version belongs to
        file_path: Object path of the version's CSV file
        prev_version: Identifier of the version this one was derived from
        data_types: Persisted column identifier -> type map
        pre_analysis: Result written back by the remote pre-analysis service
    """
    id: str
    task_id: str
    file_path: str
    prev_version: Optional[str] = None
    data_types: Dict[str, str] = field(default_factory=dict)
    pre_analysis: Optional[Dict[str, Any]] = None

    @property
    def is_root(self) -> bool:
        return self.prev_version is None

    @property
    def bucket(self) -> str:
        """Root versions hold uploaded files, derived versions processed ones."""
        return RAW_DATA_BUCKET if self.is_root else PROCESSED_DATA_BUCKET

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'task_id': self.task_id,
            'file_path': self.file_path,
            'prev_version': self.prev_version,
            'data_types': dict(self.data_types),
            'pre_analysis': self.pre_analysis,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionRecord":
        return cls(
            id=data['id'],
            task_id=data['task_id'],
            file_path=data['file_path'],
            prev_version=data.get('prev_version'),
            data_types=dict(data.get('data_types') or {}),
            pre_analysis=data.get('pre_analysis'),
        )


class ObjectStore(ABC):
    """Blob storage addressed by bucket and path."""

    @abstractmethod
    def download(self, bucket: str, path: str) -> bytes:
        """
        Raises:
            StorageError: transient=False when the object does not exist
        """
        pass

    @abstractmethod
    def upload(self, bucket: str, path: str, data: bytes) -> None:
        pass


class VersionStore(ABC):
    """Version records keyed by version identifier."""

    @abstractmethod
    def get_version(self, version_id: str) -> VersionRecord:
        """
        Raises:
            StorageError: transient=False when the version does not exist
        """
        pass

    @abstractmethod
    def save_version(self, record: VersionRecord) -> None:
        pass

    @abstractmethod
    def update_data_types(self, version_id: str, data_types: Dict[str, str]) -> None:
        pass

    @abstractmethod
    def get_pre_analysis(self, version_id: str) -> Optional[Dict[str, Any]]:
        """The pre-analysis result, or None while it is not yet populated."""
        pass

    @abstractmethod
    def set_pre_analysis(self, version_id: str, result: Dict[str, Any]) -> None:
        pass
