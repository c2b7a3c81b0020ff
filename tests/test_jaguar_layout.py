import struct

import pytest

from rasvendor.jaguar_layout import JmCommonHead, parse_section
from rasvendor.vendor import DecodeError

HEAD = struct.pack("<IBBBBBBHB3x", 0xFF, 1, 0, 5, 0, 1, 2, 300, 2)


def test_head_from_bytes():
    head = JmCommonHead.from_bytes(HEAD)
    assert head.val_bits == 0xFF
    assert (head.subsystem_id, head.submodule_id, head.dev_id) == (5, 1, 2)
    assert head.err_type == 300
    assert head.err_severity == 2


def test_head_too_short():
    with pytest.raises(DecodeError):
        JmCommonHead.from_bytes(HEAD[:-1])


@pytest.mark.parametrize(
    "payload_type, code, count",
    [(0, "I", 15), (1, "I", 5), (2, "I", 4), (5, "Q", 14), (6, "Q", 8)],
)
def test_parse_each_type(payload_type, code, count):
    data = HEAD + struct.pack(f"<{count}{code}", *range(count)) + struct.pack("<4I", 3, 7, 8, 9)
    section = parse_section(payload_type, data)
    assert section.payload_type == payload_type
    assert section.registers == tuple(range(count))
    assert section.reg_array_size == 3
    assert section.reg_array == (7, 8, 9)


def test_missing_tail():
    section = parse_section(1, HEAD + struct.pack("<5I", *range(5)))
    assert section.reg_array_size == 0
    assert section.reg_array == ()


def test_declared_array_longer_than_data():
    data = HEAD + struct.pack("<4I", *range(4)) + struct.pack("<3I", 10, 1, 2)
    section = parse_section(2, data)
    assert section.reg_array_size == 10
    assert section.reg_array == (1, 2)


def test_unknown_payload_type():
    with pytest.raises(DecodeError):
        parse_section(3, HEAD + bytes(64))


def test_truncated_registers():
    with pytest.raises(DecodeError):
        parse_section(5, HEAD + bytes(8))