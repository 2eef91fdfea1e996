"""3GX container builder.

Layout is produced in a single linear pass over a seekable stream:

    header placeholder | title | author | summary | description | targets | padding | code

and the header is back-patched once every offset is known.
"""
from __future__ import annotations

import io
import struct
from typing import BinaryIO

from tgx_core.protocol import (
    CODE_ALIGNMENT,
    EMIT_ORDER,
    TARGET_FMT,
    U32_MAX,
    Header,
    Section,
    pack_version,
)
from tgx_core.settings import Settings


def code_padding(offset: int) -> int:
    """Zero bytes written before the code. Always 1..8, never 0."""
    return CODE_ALIGNMENT - (offset % CODE_ALIGNMENT)


def _u32(value: int, what: str) -> int:
    if value > U32_MAX:
        raise ValueError(f"{what} {value} does not fit in 32 bits")
    return value


def write_container(stream: BinaryIO, settings: Settings, code: bytes) -> Header:
    """Write a complete container to `stream` and return the final header.

    `stream` must be writable and seekable. Offsets are relative to the
    position of the stream when the call starts. On return the stream is
    positioned at the end of the container.
    """
    base = stream.tell()

    def pos() -> int:
        return _u32(stream.tell() - base, "Container offset")

    header = Header(
        version=pack_version(*settings.version),
        code_size=_u32(len(code), "Code size"),
    )

    # 1. Reserve header place
    stream.write(header.encode())

    # 2. Info strings
    for name in EMIT_ORDER:
        text = getattr(settings, name)
        if not text:
            continue
        raw = text.encode("utf-8")
        setattr(header, name, Section(len(raw) + 1, pos()))
        stream.write(raw + b"\x00")
        stream.flush()

    # 3. Target table
    if settings.targets:
        header.targets = Section(len(settings.targets), pos())
        stream.write(b"".join(struct.pack(TARGET_FMT, t) for t in settings.targets))
        stream.flush()

    # 4. Align and write code
    code_offset = pos()
    padding = code_padding(code_offset)
    stream.write(b"\x00" * padding)
    header.code_offset = _u32(code_offset + padding, "Code offset")
    stream.write(code)
    stream.flush()
    end = stream.tell()

    # 5. Back-patch header
    stream.seek(base)
    stream.write(header.encode())
    stream.seek(end)
    stream.flush()

    return header


def build_container(settings: Settings, code: bytes) -> bytes:
    """Build a container in memory."""
    buf = io.BytesIO()
    write_container(buf, settings, code)
    return buf.getvalue()
