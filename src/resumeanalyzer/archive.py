"""Expansion of uploaded files and zip containers into resume documents."""

from __future__ import annotations

import asyncio
import io
import zipfile
import zlib
from dataclasses import dataclass
from typing import Iterable

import structlog

from .errors import ArchiveError
from .schemas.document import SourceDocument, is_archive_name, is_document_name, media_type_for


@dataclass
class ArchiveExpanderConfig:
    """Configuration for container expansion."""

    # Containers nested deeper than this are skipped.
    max_depth: int = 4


class ArchiveExpander:
    """Flatten input files into the ordered list of documents to analyze.

    Order is input order, with each archive replaced in place by its entries in
    the archive's own enumeration order. Files that are neither archives nor
    supported documents are dropped.
    """

    def __init__(self, *, config: ArchiveExpanderConfig | None = None) -> None:
        self._config = config or ArchiveExpanderConfig()
        self._logger = structlog.get_logger(__name__)

    async def expand(self, files: Iterable[SourceDocument]) -> list[SourceDocument]:
        documents: list[SourceDocument] = []
        for file in files:
            if is_archive_name(file.name):
                # zipfile is blocking; decompress off the event loop.
                entries = await asyncio.to_thread(self._expand_archive, file.name, file.read(), 1)
                self._logger.info("archive.expanded", archive=file.name, documents=len(entries))
                documents.extend(entries)
            elif is_document_name(file.name):
                documents.append(file)
            else:
                self._logger.debug("archive.unsupported_file", file=file.name)
        return documents

    def _expand_archive(self, name: str, data: bytes, depth: int) -> list[SourceDocument]:
        documents: list[SourceDocument] = []
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                for info in archive.infolist():
                    if info.is_dir():
                        continue
                    entry_name = info.filename
                    if is_archive_name(entry_name):
                        if depth >= self._config.max_depth:
                            self._logger.warning("archive.depth_exceeded", archive=name, entry=entry_name)
                            continue
                        documents.extend(
                            self._expand_archive(entry_name, archive.read(info), depth + 1)
                        )
                    elif is_document_name(entry_name):
                        documents.append(
                            SourceDocument(
                                name=entry_name,
                                data=archive.read(info),
                                media_type=media_type_for(entry_name),
                            )
                        )
        except (
            zipfile.BadZipFile,
            zipfile.LargeZipFile,
            zlib.error,
            NotImplementedError,
            RuntimeError,
            EOFError,
            OSError,
        ) as exc:
            # RuntimeError covers encrypted entries; zlib.error corrupt entry data.
            raise ArchiveError(name, str(exc) or type(exc).__name__) from exc
        return documents


__all__ = ["ArchiveExpander", "ArchiveExpanderConfig"]
