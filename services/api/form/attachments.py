# services/api/form/attachments.py
from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple


@dataclass(frozen=True, eq=False)
class LocalImage:
    """
    A picked image that has not been uploaded yet.

    Compared by identity: two picks of the same bytes are still two files.
    """
    filename: str
    data: bytes
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str | Path) -> "LocalImage":
        p = Path(path)
        ctype = mimetypes.guess_type(p.name)[0] or "application/octet-stream"
        return cls(filename=p.name, data=p.read_bytes(), content_type=ctype)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class AttachmentSet:
    """
    Ordered, immutable collection of pending images for one record slot.

    Every add/remove returns a NEW set so a set handed to one record can
    never be mutated through another.
    """
    files: Tuple[LocalImage, ...] = ()

    def appended(self, new_files: Iterable[LocalImage]) -> "AttachmentSet":
        return AttachmentSet(self.files + tuple(new_files))

    def without(self, index: int) -> Optional["AttachmentSet"]:
        """Return the set minus the file at `index`, or None if out of range."""
        if not 0 <= index < len(self.files):
            return None
        return AttachmentSet(self.files[:index] + self.files[index + 1:])

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[LocalImage]:
        return iter(self.files)

    def __getitem__(self, index: int) -> LocalImage:
        return self.files[index]

    def is_empty(self) -> bool:
        return not self.files


EMPTY = AttachmentSet()
