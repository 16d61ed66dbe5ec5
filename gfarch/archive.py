"""
In-memory GfArch archive.

Holds the entries of an archive together with the version, compression and
GFCP placement it was read with, so an edited archive re-packs the same way.
"""

from pathlib import Path
from typing import Iterator, List, Optional, Union

from loguru import logger

from .errors import ArchivePackError
from .model import (
    DEFAULT_COMPRESSION,
    DEFAULT_LAYOUT,
    DEFAULT_VERSION,
    CompressionScheme,
    Entry,
    FormatVersion,
    LayoutOffset,
    encode_filename,
)
from .reader import read_archive
from .writer import pack


class GfArchive:
    def __init__(
        self,
        data: Optional[bytes] = None,
        version: FormatVersion = DEFAULT_VERSION,
        compression: CompressionScheme = DEFAULT_COMPRESSION,
        layout: LayoutOffset = DEFAULT_LAYOUT,
    ):
        self._entries: List[Entry] = []
        self.version = FormatVersion(version)
        self.compression = CompressionScheme(compression)
        self.layout = layout

        if data is not None:
            self._parse(data)

    def _parse(self, data: bytes) -> None:
        parsed = read_archive(data)

        if parsed.version is not None:
            self.version = parsed.version
        else:
            logger.warning(
                "Archive version 0x{:04X} is not supported, it will be saved as {}",
                parsed.version_code,
                str(self.version),
            )
        self.compression = parsed.compression
        self.layout = parsed.layout
        self._entries = [Entry(e.filename, e.contents) for e in parsed.entries]

    def validate(self) -> None:
        for i, entry in enumerate(self._entries):
            if not isinstance(entry.contents, (bytes, bytearray, memoryview)):
                raise ArchivePackError(f"Entry {i} contents are not bytes")
            encode_filename(entry.filename)

    def to_bytes(self) -> bytes:
        self.validate()
        return pack(self._entries, self.version, self.compression, self.layout)

    def names(self) -> List[str]:
        return [e.filename for e in self._entries]

    def index_of(self, name: str) -> int:
        for i, entry in enumerate(self._entries):
            if entry.filename == name:
                return i
        raise KeyError(name)

    def get(self, name: str) -> Optional[bytes]:
        try:
            return self._entries[self.index_of(name)].contents
        except KeyError:
            return None

    def replace(self, name: str, data: bytes) -> None:
        self._entries[self.index_of(name)].contents = data

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, key: int) -> Entry:
        return self._entries[key]

    def __setitem__(self, key: int, value: Entry) -> None:
        self._entries[key] = value

    def __delitem__(self, key: int) -> None:
        del self._entries[key]

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __contains__(self, name: str) -> bool:
        return any(e.filename == name for e in self._entries)

    def insert(self, index: int, item: Entry) -> None:
        self._entries.insert(index, item)

    def append(self, item: Entry) -> None:
        self._entries.append(item)

    def add(self, name: str, data: bytes) -> None:
        self._entries.append(Entry(name, data))

    def clear(self) -> None:
        self._entries.clear()

    def extend(self, items: List[Entry]) -> None:
        self._entries.extend(items)


def load_archive(path: Union[str, Path]) -> GfArchive:
    path = Path(path)
    archive = GfArchive(path.read_bytes())
    logger.debug("Loaded {} entries from {}", len(archive), path)
    return archive


def save_archive(archive: GfArchive, path: Union[str, Path]) -> int:
    """Write the archive, returning the number of bytes written."""
    data = archive.to_bytes()
    Path(path).write_bytes(data)
    return len(data)
