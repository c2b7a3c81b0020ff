"""Decoder for Yitian 710 DDR error register dumps."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from datetime import datetime
from typing import TextIO

from rasvendor.vendor import (
    DecodeError,
    DecoderRegistry,
    NonStandardEvent,
    NsDecoder,
    TableSpec,
)

log = logging.getLogger(__name__)

YITIAN_RAS_TYPE_DDR = 0x50
YITIAN_SEC_TYPE = "a6980811-16ea-4e4d-b936-fb00a23ff29c"
_BUF_LEN = 1024

_REGISTER_NAMES = (
    "ECCCFG0:", "ECCCFG1:", "ECCSTAT:", "ECCERRCNT:", "ECCCADDR0:", "ECCCADDR1:",
    "ECCCSYN0:", "ECCCSYN1:", "ECCCSYN2:", "ECCUADDR0:", "ECCUADDR1:", "ECCUSYN0:",
    "ECCUSYN1:", "ECCUSYN2:", "ECCBITMASK0:", "ECCBITMASK1:", "ECCBITMASK2:",
    "ADVECCSTAT:", "ECCAPSTAT:", "ECCCDATA0:", "ECCCDATA1:", "ECCUDATA0:",
    "ECCUDATA1:", "ECCSYMBOL:", "ECCERRCNTCTL:", "ECCERRCNTSTAT:", "ECCERRCNT0:",
    "ECCERRCNT1:", "RESERVED0:", "RESERVED1:", "RESERVED2:",
)

_LAYOUT = struct.Struct(f"<BBH{len(_REGISTER_NAMES)}I")

_TYPE_NAMES = {YITIAN_RAS_TYPE_DDR: "DDR"}

YITIAN_DDR_TABLE = TableSpec(
    "yitian_ddr_reg_dump_event",
    (
        ("id", "INTEGER PRIMARY KEY"),
        ("timestamp", "TEXT"),
        ("address", "INTEGER"),
        ("regs_dump", "TEXT"),
    ),
)


@dataclass(frozen=True)
class YitianDdrPayload:
    """Header and DDR controller ECC registers of one payload."""

    type: int
    subtype: int
    instance: int
    registers: tuple[int, ...]

    @classmethod
    def from_bytes(cls, data: bytes) -> YitianDdrPayload:
        if len(data) < _LAYOUT.size:
            raise DecodeError(
                f"DDR payload needs {_LAYOUT.size} bytes, got {len(data)}"
            )
        type_id, subtype, instance, *registers = _LAYOUT.unpack_from(data)
        return cls(type_id, subtype, instance, tuple(registers))


def oem_type_name(type_id: int) -> str:
    return _TYPE_NAMES.get(type_id, "unknown")


def oem_subtype_name(type_id: int, subtype_id: int) -> str:
    # No Yitian type has sub types; the type name stands in for them.
    return _TYPE_NAMES.get(type_id, "unknown")


def format_ddr_payload(payload: YitianDdrPayload) -> str:
    """One-line register dump of a DDR payload."""
    parts = [
        f" Error Type: {oem_type_name(payload.type)},",
        f" Error SubType: {oem_subtype_name(payload.type, payload.subtype)},",
        f" Error Instance: 0x{payload.instance:x},",
    ]
    parts.extend(
        f" {name} 0x{value:x} "
        for name, value in zip(_REGISTER_NAMES, payload.registers)
    )
    text = "".join(parts)[: _BUF_LEN - 1]
    return text[:-1] if text else text


def decode_yitian710_error(
    event: NonStandardEvent, out: TextIO, decoder: NsDecoder | None = None
) -> str:
    """Decode a Yitian 710 section, print it and record it if a table is open."""
    if event.error[:1] != bytes([YITIAN_RAS_TYPE_DDR]):
        message = f"{decode_yitian710_error.__name__}: wrong payload type"
        out.write(message + "\n")
        raise DecodeError(message)

    text = format_ddr_payload(YitianDdrPayload.from_bytes(event.error))
    out.write(text + "\n")

    table = decoder.table if decoder is not None else None
    if table is not None:
        timestamp = datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S %z")
        table.bind(1, timestamp)
        table.bind(2, 0)
        table.bind(3, text)
        table.step()
        log.debug("register inserted at db")
    return text


def register(registry: DecoderRegistry) -> NsDecoder:
    return registry.register(
        NsDecoder(YITIAN_SEC_TYPE, decode_yitian710_error, YITIAN_DDR_TABLE)
    )