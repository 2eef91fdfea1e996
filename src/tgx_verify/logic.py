import hashlib
import struct
from pathlib import Path

from tgx_core.protocol import (
    CODE_ALIGNMENT,
    EMIT_ORDER,
    HEADER_LEN,
    INFO_FIELDS,
    TARGET_LEN,
    Header,
    unpack_version,
)
from .const import ERRORS


def _fail(code: str, **detail) -> dict:
    error = {"code": code, "message": ERRORS[code], **detail}
    return {"status": "FAIL", "error_count": 1, "errors": [error]}


def _sections(header: Header):
    """Yield (name, section, byte_length) for every variable section, in emission order."""
    for name in EMIT_ORDER:
        sec = getattr(header, name)
        yield name, sec, sec.length
    yield "targets", header.targets, header.targets.length * TARGET_LEN


def verify_bytes(data: bytes) -> dict:
    if len(data) < HEADER_LEN:
        return _fail("E_HEADER_TRUNCATED", size=len(data))

    try:
        header = Header.decode(data)
    except ValueError as e:
        return _fail("E_MAGIC", detail=str(e))

    # Present sections must follow each other with no gap or overlap.
    cursor = HEADER_LEN
    for name, sec, byte_len in _sections(header):
        if (sec.length == 0) != (sec.offset == 0):
            return _fail("E_SECTION_PAIR", section=name, length=sec.length, offset=sec.offset)
        if not sec.present:
            continue
        if sec.offset < HEADER_LEN or sec.offset + byte_len > len(data):
            return _fail("E_SECTION_BOUNDS", section=name, length=sec.length, offset=sec.offset)
        if name != "targets" and data[sec.offset + byte_len - 1] != 0:
            return _fail("E_STRING_TERMINATOR", section=name, offset=sec.offset)
        if sec.offset != cursor:
            return _fail("E_SECTION_ORDER", section=name, offset=sec.offset, expected=cursor)
        cursor += byte_len

    if header.code_offset % CODE_ALIGNMENT:
        return _fail("E_CODE_ALIGNMENT", code_offset=header.code_offset)
    if header.code_offset + header.code_size != len(data):
        return _fail(
            "E_CODE_BOUNDS",
            code_offset=header.code_offset,
            code_size=header.code_size,
            size=len(data),
        )

    padding = data[cursor:header.code_offset]
    if not 1 <= header.code_offset - cursor <= CODE_ALIGNMENT or padding.strip(b"\x00"):
        return _fail("E_PADDING", start=cursor, code_offset=header.code_offset)

    return {"status": "PASS", "error_count": 0, "errors": []}


def verify_container(path: Path) -> dict:
    path = Path(path)
    if not path.is_file():
        return _fail("E_LAYOUT_MISSING", path=str(path))
    return verify_bytes(path.read_bytes())


def inspect_container(data: bytes) -> dict:
    """Decode a container into plain values.

    Raises ValueError on a bad header or a section that runs past the end of `data`.
    """
    header = Header.decode(data)

    infos = {}
    for name in INFO_FIELDS:
        sec = getattr(header, name)
        if not sec.present:
            infos[name] = None
            continue
        if sec.offset + sec.length > len(data):
            raise ValueError(f"{name.capitalize()} string out of bounds: {sec.offset}+{sec.length} > {len(data)}")
        infos[name] = data[sec.offset:sec.offset + sec.length - 1].decode("utf-8", errors="replace")

    count, offset = header.targets
    try:
        targets = list(struct.unpack_from(f"<{count}I", data, offset)) if count else []
    except struct.error as e:
        raise ValueError(f"Target table out of bounds: {e}") from None

    code_end = header.code_offset + header.code_size
    if code_end > len(data):
        raise ValueError(f"Code payload out of bounds: {code_end} > {len(data)}")
    code = data[header.code_offset:code_end]
    return {
        "version": ".".join(str(p) for p in unpack_version(header.version)),
        **infos,
        "targets": targets,
        "code_offset": header.code_offset,
        "code_size": header.code_size,
        "code_sha256": hashlib.sha256(code).hexdigest(),
        "size": len(data),
    }
