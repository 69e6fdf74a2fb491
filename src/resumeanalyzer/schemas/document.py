"""Source document container shared by the archive expander and profiles."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from ..errors import DocumentReleasedError

ARCHIVE_EXTENSION = ".zip"

# Extension allow-list for resume documents, with the media type sent to the
# inference service when the file itself declares none.
DOCUMENT_MEDIA_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def extension_of(name: str) -> str:
    """Return the lowercase extension of ``name`` including the dot."""
    return PurePosixPath(name.replace("\\", "/")).suffix.lower()


def is_document_name(name: str) -> bool:
    return extension_of(name) in DOCUMENT_MEDIA_TYPES


def is_archive_name(name: str) -> bool:
    return name.lower().endswith(ARCHIVE_EXTENSION)


def media_type_for(name: str) -> str:
    """Media type for a supported document or archive name; empty string otherwise."""
    if is_archive_name(name):
        return "application/zip"
    return DOCUMENT_MEDIA_TYPES.get(extension_of(name), "")


@dataclass(slots=True, eq=False)
class SourceDocument:
    """A named blob with its declared media type.

    The bytes are owned by whoever holds the document last (a profile, once
    extraction succeeded) and are dropped by :meth:`release`.
    """

    name: str
    data: bytes | None = field(repr=False)
    media_type: str = ""

    @classmethod
    def from_path(cls, path: str | Path, *, media_type: str | None = None) -> "SourceDocument":
        path = Path(path)
        return cls(
            name=path.name,
            data=path.read_bytes(),
            media_type=media_type if media_type is not None else media_type_for(path.name),
        )

    @property
    def released(self) -> bool:
        return self.data is None

    @property
    def size(self) -> int:
        return 0 if self.data is None else len(self.data)

    def read(self) -> bytes:
        if self.data is None:
            raise DocumentReleasedError(f"Document {self.name!r} has been released")
        return self.data

    def release(self) -> None:
        self.data = None


__all__ = [
    "ARCHIVE_EXTENSION",
    "DOCUMENT_MEDIA_TYPES",
    "SourceDocument",
    "extension_of",
    "is_archive_name",
    "is_document_name",
    "media_type_for",
]
