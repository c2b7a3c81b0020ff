"""Binary layout of JaguarMicro vendor error sections."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

from rasvendor.vendor import DecodeError

PAYLOAD_TYPE_0 = 0x00
PAYLOAD_TYPE_1 = 0x01
PAYLOAD_TYPE_2 = 0x02
PAYLOAD_TYPE_5 = 0x05
PAYLOAD_TYPE_6 = 0x06
PAYLOAD_VERSION = 0


class JmValid(IntEnum):
    """Bit positions in the common head's validity mask."""

    VERSION = 0
    SOC_ID = 1
    SUBSYSTEM_ID = 2
    MODULE_ID = 3
    SUBMODULE_ID = 4
    DEV_ID = 5
    ERR_TYPE = 6
    ERR_SEVERITY = 7
    REG_ARRAY_SIZE = 11


class JmField(IntEnum):
    """Column positions in the JaguarMicro event table."""

    ID = 0
    TIMESTAMP = 1
    VERSION = 2
    SOC_ID = 3
    SUB_SYS = 4
    MODULE = 5
    MODULE_ID = 6
    SUB_MODULE = 7
    SUBMODULE_ID = 8
    DEV = 9
    DEV_ID = 10
    ERR_TYPE = 11
    ERR_SEVERITY = 12
    REGS_DUMP = 13


_HEAD = struct.Struct("<IBBBBBBHB3x")
_TAIL_SIZE = struct.Struct("<I")

# payload type -> (struct code of each register, number of registers)
_REGISTER_LAYOUTS = {
    PAYLOAD_TYPE_0: ("I", 15),
    PAYLOAD_TYPE_1: ("I", 5),
    PAYLOAD_TYPE_2: ("I", 4),
    PAYLOAD_TYPE_5: ("Q", 14),
    PAYLOAD_TYPE_6: ("Q", 8),
}


@dataclass(frozen=True)
class JmCommonHead:
    val_bits: int
    version: int
    soc_id: int
    subsystem_id: int
    module_id: int
    submodule_id: int
    dev_id: int
    err_type: int
    err_severity: int

    @classmethod
    def from_bytes(cls, data: bytes) -> JmCommonHead:
        if len(data) < _HEAD.size:
            raise DecodeError(f"common head needs {_HEAD.size} bytes, got {len(data)}")
        return cls(*_HEAD.unpack_from(data))


@dataclass(frozen=True)
class JmSection:
    """A parsed section: head, payload registers and extended register array."""

    payload_type: int
    head: JmCommonHead
    registers: tuple[int, ...]
    reg_array_size: int
    reg_array: tuple[int, ...]


def parse_section(payload_type: int, data: bytes) -> JmSection:
    """Parse a section of the given payload type."""
    try:
        code, count = _REGISTER_LAYOUTS[payload_type]
    except KeyError:
        raise DecodeError(f"wrong payload type {payload_type}") from None

    head = JmCommonHead.from_bytes(data)
    body = struct.Struct(f"<{count}{code}")
    offset = _HEAD.size
    if len(data) < offset + body.size:
        raise DecodeError(
            f"payload type {payload_type} needs {offset + body.size} bytes, got {len(data)}"
        )
    registers = body.unpack_from(data, offset)
    offset += body.size

    reg_array_size = 0
    reg_array: tuple[int, ...] = ()
    if len(data) >= offset + _TAIL_SIZE.size:
        (reg_array_size,) = _TAIL_SIZE.unpack_from(data, offset)
        offset += _TAIL_SIZE.size
        available = min(reg_array_size, (len(data) - offset) // 4)
        reg_array = struct.unpack_from(f"<{available}I", data, offset)

    return JmSection(payload_type, head, tuple(registers), reg_array_size, tuple(reg_array))