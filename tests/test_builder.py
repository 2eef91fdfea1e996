import io
import struct

import pytest

from tgx_core.protocol import HEADER_LEN, MAGIC, Header, Section
from tgx_core.settings import Settings
from tgx_compile.builder import build_container, code_padding, write_container


def test_demo_title_scenario():
    code = b"\xAA" * 10
    out = build_container(Settings(title="Demo", major=1, minor=2, revision=3), code)

    header = Header.decode(out)
    assert header.magic == MAGIC
    assert header.version == 0x01020300
    assert header.title == Section(5, 60)
    assert header.author == header.summary == header.description == Section(0, 0)
    assert header.targets == Section(0, 0)
    assert header.code_offset == 72
    assert header.code_size == 10

    assert len(out) == 82
    assert out[60:65] == b"Demo\x00"
    assert out[65:72] == b"\x00" * 7
    assert out[72:82] == code


def test_no_optional_fields():
    out = build_container(Settings(), b"\x01\x02\x03")
    header = Header.decode(out)

    for name in ("author", "title", "summary", "description", "targets"):
        assert getattr(header, name) == (0, 0)
    # 60 is not aligned, so padding is 4
    assert header.code_offset == 64
    assert out[HEADER_LEN:64] == b"\x00" * 4
    assert out[64:] == b"\x01\x02\x03"


def test_aligned_offset_still_gets_full_padding():
    # 60 + len("abc\0") = 64, already aligned
    out = build_container(Settings(title="abc"), b"\xFF")
    header = Header.decode(out)
    assert header.code_offset == 72
    assert out[64:72] == b"\x00" * 8


@pytest.mark.parametrize(
    "offset, padding",
    [(60, 4), (64, 8), (65, 7), (71, 1), (72, 8), (0, 8)],
)
def test_code_padding_is_never_zero(offset, padding):
    assert code_padding(offset) == padding


def test_strings_emitted_in_title_author_summary_description_order():
    settings = Settings(author="Me", title="Demo", summary="Short", description="Long text")
    out = build_container(settings, b"")
    header = Header.decode(out)

    assert header.title.offset == 60
    assert header.author.offset == header.title.offset + header.title.length
    assert header.summary.offset == header.author.offset + header.author.length
    assert header.description.offset == header.summary.offset + header.summary.length

    for name in ("author", "title", "summary", "description"):
        sec = getattr(header, name)
        text = getattr(settings, name).encode("utf-8")
        assert out[sec.offset:sec.offset + sec.length - 1] == text
        assert out[sec.offset + sec.length - 1] == 0


def test_string_length_counts_utf8_bytes():
    out = build_container(Settings(author="Démo"), b"")
    header = Header.decode(out)
    assert header.author == Section(6, 60)
    assert out[60:66] == "Démo".encode("utf-8") + b"\x00"


def test_empty_string_is_not_emitted():
    out = build_container(Settings(title="", summary="S"), b"")
    header = Header.decode(out)
    assert header.title == (0, 0)
    assert header.summary == Section(2, 60)


def test_target_table():
    settings = Settings(title="Demo", author="Me", targets=(0x00030800, 0x00030700))
    out = build_container(settings, b"\x10" * 3)
    header = Header.decode(out)

    assert header.targets == Section(2, 68)
    assert struct.unpack_from("<2I", out, 68) == (0x00030800, 0x00030700)
    # 76 + 4 bytes padding
    assert header.code_offset == 80
    assert out[80:] == b"\x10" * 3


def test_zero_led_targets_behave_as_absent():
    with pytest.warns(UserWarning):
        settings = Settings(targets=(0, 5, 6))
    assert build_container(settings, b"abc") == build_container(Settings(), b"abc")


def test_build_is_deterministic():
    settings = Settings(author="A", title="T", summary="S", description="D", targets=(1, 2, 3), major=4)
    code = bytes(range(256)) * 3
    assert build_container(settings, code) == build_container(settings, code)


def test_code_is_copied_unmodified():
    code = bytes(range(256)) * 17
    out = build_container(Settings(title="x"), code)
    header = Header.decode(out)
    assert header.code_size == len(code)
    assert header.code_offset % 8 == 0
    assert out[header.code_offset:header.code_offset + header.code_size] == code


def test_offsets_are_relative_to_stream_start_position():
    buf = io.BytesIO()
    buf.write(b"prefix")
    header = write_container(buf, Settings(title="Demo"), b"\xAA")

    assert buf.tell() == len(buf.getvalue())
    assert buf.getvalue()[6:] == build_container(Settings(title="Demo"), b"\xAA")
    assert header.title == Section(5, 60)


def test_returns_final_header():
    buf = io.BytesIO()
    header = write_container(buf, Settings(title="Demo", major=1), b"\x00" * 4)
    assert header.encode() == buf.getvalue()[:HEADER_LEN]


class _FailingStream(io.BytesIO):
    def __init__(self, fail_after: int):
        super().__init__()
        self.writes_left = fail_after

    def write(self, data):
        if self.writes_left == 0:
            raise OSError(28, "No space left on device")
        self.writes_left -= 1
        return super().write(data)


def test_write_errors_propagate():
    with pytest.raises(OSError):
        write_container(_FailingStream(fail_after=2), Settings(title="Demo"), b"\xAA" * 10)


class _RecordingStream(io.BytesIO):
    def __init__(self):
        super().__init__()
        self.writes = []

    def write(self, data):
        self.writes.append(bytes(data))
        return super().write(data)


def test_placeholder_header_holds_only_magic_version_and_code_size():
    stream = _RecordingStream()
    settings = Settings(author="Me", title="Demo", targets=(7,), major=1, minor=2, revision=3)
    final = write_container(stream, settings, b"\xAA" * 10)

    placeholder = Header.decode(stream.writes[0])
    assert len(stream.writes[0]) == HEADER_LEN
    assert placeholder == Header(version=0x01020300, code_size=10)
    assert placeholder.code_offset == 0
    for name in ("author", "title", "summary", "description", "targets"):
        assert getattr(placeholder, name) == (0, 0)

    # Last header-sized write is the back-patched one
    assert stream.writes[-1] == final.encode()
    assert stream.getvalue()[:HEADER_LEN] == final.encode()
