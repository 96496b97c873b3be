import asyncio
import mimetypes
import os
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from domain.errors import BatchInProgressError
from domain.schemas import AnalysisResult, UploadItemView


class ItemStatus(str, Enum):
    READY = "READY"
    READING = "READING"
    PARSING = "PARSING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


# ERROR -> READING is the manual retry path on a later run.
_TRANSITIONS: Dict[ItemStatus, set] = {
    ItemStatus.READY: {ItemStatus.READING},
    ItemStatus.READING: {ItemStatus.PARSING, ItemStatus.ERROR},
    ItemStatus.PARSING: {ItemStatus.COMPLETED, ItemStatus.ERROR},
    ItemStatus.COMPLETED: set(),
    ItemStatus.ERROR: {ItemStatus.READING},
}


class InvalidTransition(RuntimeError):
    pass


def format_size(num_bytes: int) -> str:
    return f"{num_bytes / (1024 * 1024):.1f} MB"


@dataclass(frozen=True)
class SourceDocument:
    path: Path
    name: str
    content_type: str
    size: int

    @classmethod
    def from_path(cls, path: Union[str, Path], name: Optional[str] = None,
                  content_type: Optional[str] = None) -> "SourceDocument":
        p = Path(path)
        guessed, _ = mimetypes.guess_type(p.name)
        return cls(
            path=p,
            name=name or p.name,
            content_type=content_type or guessed or "application/pdf",
            size=os.stat(p).st_size,
        )

    async def read(self) -> "LoadedDocument":
        data = await asyncio.to_thread(self.path.read_bytes)
        return LoadedDocument(name=self.name, content_type=self.content_type, data=data)


@dataclass(frozen=True)
class LoadedDocument:
    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class UploadItem:
    document: SourceDocument
    id: str = field(default_factory=lambda: f"item_{uuid.uuid4().hex}")
    status: ItemStatus = ItemStatus.READY
    progress: int = 0
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    candidate_id: Optional[str] = None

    @property
    def name(self) -> str:
        return self.document.name

    @property
    def size(self) -> str:
        return format_size(self.document.size)

    def transition(self, status: ItemStatus, progress: int) -> None:
        if status not in _TRANSITIONS[self.status]:
            raise InvalidTransition(f"{self.id}: {self.status.value} -> {status.value}")
        self.status = status
        self.progress = progress
        if status is ItemStatus.READING:
            self.error = None

    def set_progress(self, progress: int) -> None:
        self.progress = max(0, min(100, progress))

    def view(self) -> UploadItemView:
        return UploadItemView(
            id=self.id, name=self.name, size=self.size,
            status=self.status.value, progress=self.progress,
            error=self.error, candidate_id=self.candidate_id, result=self.result,
        )


class UploadQueue:
    """Pending resumes for one batch, in arrival order."""

    def __init__(self):
        self._items: List[UploadItem] = []
        self.locked = False

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    @property
    def items(self) -> List[UploadItem]:
        return list(self._items)

    def get(self, item_id: str) -> Optional[UploadItem]:
        return next((i for i in self._items if i.id == item_id), None)

    def add_files(self, files: Iterable[Union[SourceDocument, str, Path]]) -> List[UploadItem]:
        if self.locked:
            raise BatchInProgressError("cannot add files while a batch is running")
        added = []
        for f in files:
            doc = f if isinstance(f, SourceDocument) else SourceDocument.from_path(f)
            added.append(UploadItem(document=doc))
        self._items.extend(added)
        return added

    def remove_item(self, item_id: str) -> bool:
        if self.locked:
            raise BatchInProgressError("cannot remove files while a batch is running")
        item = self.get(item_id)
        if item is None or item.status is ItemStatus.COMPLETED:
            return False
        self._items.remove(item)
        return True
