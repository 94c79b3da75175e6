"""Byte-level compressors used on JSON payloads before they are persisted."""

import gzip
import zlib
from typing import Protocol


class CodecError(ValueError):
    """Stored bytes could not be decompressed, typically because the codec changed."""


class Codec(Protocol):
    @property
    def name(self) -> str: ...

    def compress(self, data: bytes) -> bytes: ...

    def decompress(self, data: bytes) -> bytes: ...


class GzipCodec:
    def __init__(self, level: int = 6) -> None:
        self._level = level

    @property
    def name(self) -> str:
        return "gzip"

    def compress(self, data: bytes) -> bytes:
        return gzip.compress(data, compresslevel=self._level, mtime=0)

    def decompress(self, data: bytes) -> bytes:
        try:
            return gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            raise CodecError(f"Not a gzip payload: {e}") from e


class ZlibCodec:
    def __init__(self, level: int = 6) -> None:
        self._level = level

    @property
    def name(self) -> str:
        return "zlib"

    def compress(self, data: bytes) -> bytes:
        return zlib.compress(data, self._level)

    def decompress(self, data: bytes) -> bytes:
        try:
            return zlib.decompress(data)
        except zlib.error as e:
            raise CodecError(f"Not a zlib payload: {e}") from e


class IdentityCodec:
    @property
    def name(self) -> str:
        return "none"

    def compress(self, data: bytes) -> bytes:
        return data

    def decompress(self, data: bytes) -> bytes:
        return data


_CODECS: dict[str, type[GzipCodec] | type[ZlibCodec] | type[IdentityCodec]] = {
    "gzip": GzipCodec,
    "zlib": ZlibCodec,
    "none": IdentityCodec,
}


def create_codec(name: str) -> Codec:
    """Look up a codec by its configured name."""
    try:
        return _CODECS[name]()
    except KeyError:
        raise ValueError(f"Unknown codec {name!r}; expected one of {sorted(_CODECS)}") from None
