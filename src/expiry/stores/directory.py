"""Filesystem-directory-backed byte table.

One file per key, named from the lowercase hex of the key bytes. Hex names
longer than one path component allows are split into fixed-width chunks: every
full chunk but the last becomes a ``d<chunk>`` directory, the rest names the
``k<chunk>`` file. Sorting the reassembled hex strings sorts keys in byte
order. Values are written atomically via tempfile + fsync + replace, so
concurrent readers never see a torn value.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from expiry.errors import NotFoundError

_TMP_SUFFIX = ".tmp"
_PREFIX = "k"
_DIR_PREFIX = "d"
# Hex characters per path component (64 key bytes), well under NAME_MAX
_CHUNK = 128


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _is_hex(chunk: str) -> bool:
    try:
        bytes.fromhex(chunk)
    except ValueError:
        return False
    return True


class DirectoryTable:
    """Byte table stored as files in a directory."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()
        self._path.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def _file(self, key: str | bytes) -> Path:
        hexed = _to_bytes(key).hex()
        directory = self._path
        while len(hexed) > _CHUNK:
            directory = directory / (_DIR_PREFIX + hexed[:_CHUNK])
            hexed = hexed[_CHUNK:]
        return directory / (_PREFIX + hexed)

    def __getitem__(self, key: str | bytes) -> bytes:
        try:
            return self._file(key).read_bytes()
        except FileNotFoundError:
            raise NotFoundError(key) from None

    def __setitem__(self, key: str | bytes, value: str | bytes) -> None:
        target = self._file(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=target.parent, suffix=_TMP_SUFFIX)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(_to_bytes(value))
                f.flush()
                os.fsync(f.fileno())
            Path(tmp).replace(target)
        except BaseException:
            try:
                Path(tmp).unlink()
            except OSError:
                pass
            raise

    def __delitem__(self, key: str | bytes) -> None:
        target = self._file(key)
        try:
            target.unlink()
        except FileNotFoundError:
            raise NotFoundError(key) from None
        self._prune(target.parent)

    def _prune(self, directory: Path) -> None:
        """Remove chunk directories left empty by a delete."""
        while directory != self._path:
            try:
                directory.rmdir()
            except OSError:
                # Not empty, or already gone
                return
            directory = directory.parent

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str | bytes):
            return False
        return self._file(key).is_file()

    def __len__(self) -> int:
        return sum(1 for _ in self._hex_names(self._path, ""))

    def __iter__(self) -> Iterator[bytes]:
        return self.keys()

    def __repr__(self) -> str:
        return f"DirectoryTable({str(self._path)!r})"

    def _hex_names(self, directory: Path, prefix: str) -> Iterator[str]:
        try:
            entries = list(os.scandir(directory))
        except FileNotFoundError:
            # Chunk directory pruned by another process
            return
        for entry in entries:
            kind, chunk = entry.name[:1], entry.name[1:]
            if not _is_hex(chunk):
                continue
            if kind == _PREFIX and entry.is_file():
                yield prefix + chunk
            elif kind == _DIR_PREFIX and len(chunk) == _CHUNK and entry.is_dir():
                yield from self._hex_names(Path(entry.path), prefix + chunk)

    def keys(self) -> Iterator[bytes]:
        for hexed in sorted(self._hex_names(self._path, "")):
            yield bytes.fromhex(hexed)

    def items(self) -> Iterator[tuple[bytes, bytes]]:
        for key in list(self.keys()):
            try:
                yield key, self[key]
            except NotFoundError:
                # Removed by another process since listing
                continue

    def first(self) -> bytes:
        hexed = min(self._hex_names(self._path, ""), default=None)
        if hexed is None:
            raise NotFoundError(f"{self._path} is empty")
        return bytes.fromhex(hexed)
