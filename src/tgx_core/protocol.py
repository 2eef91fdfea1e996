"""3GX container protocol constants.

Single source of truth for the on-disk magic value and header layout.
Keep this file stable. Builder and Verifier must remain synchronized.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import NamedTuple

# "3GX$0001" read as a little-endian u64
MAGIC = 0x3130303024584733

# Header: [Magic(8) | Version(4) | CodeSize(4) | Code(4) | Infos(4x(4+4)) | Targets(4+4)] = 60 bytes
HEADER_FMT = "<QIII8I2I"
HEADER_LEN = 60

TARGET_FMT = "<I"
TARGET_LEN = 4

CODE_ALIGNMENT = 8
U32_MAX = 0xFFFFFFFF

# On-disk order of the info pairs.
INFO_FIELDS = ("author", "title", "summary", "description")
# Strings are emitted in this order, which is not the header field order.
EMIT_ORDER = ("title", "author", "summary", "description")


def pack_version(major: int, minor: int, revision: int) -> int:
    """Pack a version triple as (major << 24) | (minor << 16) | (revision << 8)."""
    for name, part in (("major", major), ("minor", minor), ("revision", revision)):
        if not 0 <= part <= 0xFF:
            raise ValueError(f"Version {name} {part} outside 0..255")
    return (major << 24) | (minor << 16) | (revision << 8)


def unpack_version(value: int) -> tuple[int, int, int]:
    return (value >> 24) & 0xFF, (value >> 16) & 0xFF, (value >> 8) & 0xFF


class Section(NamedTuple):
    """A (length, offset) pair. (0, 0) means the section is absent."""

    length: int = 0
    offset: int = 0

    @property
    def present(self) -> bool:
        return self.length != 0


@dataclass
class Header:
    magic: int = MAGIC
    version: int = 0
    code_size: int = 0
    code_offset: int = 0
    author: Section = field(default_factory=Section)
    title: Section = field(default_factory=Section)
    summary: Section = field(default_factory=Section)
    description: Section = field(default_factory=Section)
    # For targets, length is the identifier count, not a byte length.
    targets: Section = field(default_factory=Section)

    def encode(self) -> bytes:
        infos: list[int] = []
        for name in INFO_FIELDS:
            infos.extend(getattr(self, name))
        return struct.pack(
            HEADER_FMT,
            self.magic,
            self.version,
            self.code_size,
            self.code_offset,
            *infos,
            *self.targets,
        )

    @classmethod
    def decode(cls, data: bytes) -> Header:
        if len(data) < HEADER_LEN:
            raise ValueError(f"Header too small: {len(data)} < {HEADER_LEN}")

        values = struct.unpack(HEADER_FMT, data[:HEADER_LEN])
        magic, version, code_size, code_offset = values[:4]
        if magic != MAGIC:
            raise ValueError(f"Invalid magic 0x{magic:016X} (expected 0x{MAGIC:016X})")

        pairs = [Section(values[i], values[i + 1]) for i in range(4, 14, 2)]
        infos, targets = pairs[:4], pairs[4]
        return cls(
            magic=magic,
            version=version,
            code_size=code_size,
            code_offset=code_offset,
            targets=targets,
            **dict(zip(INFO_FIELDS, infos)),
        )


_computed_size = struct.calcsize(HEADER_FMT)
assert _computed_size == HEADER_LEN, f"Header format size mismatch: {_computed_size} != {HEADER_LEN}"
