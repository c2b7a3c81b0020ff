"""Decoders for JaguarMicro vendor error sections."""

from __future__ import annotations

import logging
from functools import partial
from typing import TextIO

from rasvendor.jaguar_format import (
    REGISTER_NAMES,
    JmField,
    format_common_head,
    format_register_dump,
)
from rasvendor.jaguar_layout import parse_section
from rasvendor.vendor import (
    DecodeError,
    DecoderRegistry,
    NonStandardEvent,
    NsDecoder,
    TableSpec,
)

log = logging.getLogger(__name__)

PAYLOAD_TYPE_0 = 0x00
PAYLOAD_TYPE_1 = 0x01
PAYLOAD_TYPE_2 = 0x02
PAYLOAD_TYPE_5 = 0x05
PAYLOAD_TYPE_6 = 0x06

SEC_TYPES = {
    PAYLOAD_TYPE_0: "82d78ba3-fa14-407a-ba0e-f3ba8170013c",
    PAYLOAD_TYPE_1: "f9723053-2558-49b1-b58a-1c1a82492a62",
    PAYLOAD_TYPE_2: "2d31de54-3037-4f24-a283-f69ca1ec0b9a",
    PAYLOAD_TYPE_5: "dac80d69-0a72-4eba-8114-148ee344af06",
    PAYLOAD_TYPE_6: "746f06fe-405e-451f-8d09-02e802ed984a",
}

JM_PAYLOAD_TABLE = TableSpec(
    "jm_payload0_event",
    (
        ("id", "INTEGER PRIMARY KEY"),
        ("timestamp", "TEXT"),
        ("version", "INTEGER"),
        ("soc_id", "INTEGER"),
        ("subsystem", "TEXT"),
        ("module", "TEXT"),
        ("module_id", "INTEGER"),
        ("sub_module", "TEXT"),
        ("submodule_id", "INTEGER"),
        ("dev", "TEXT"),
        ("dev_id", "INTEGER"),
        ("err_type", "INTEGER"),
        ("err_severity", "TEXT"),
        ("regs_dump", "TEXT"),
    ),
)


def decode_jm_oem_error(
    event: NonStandardEvent,
    out: TextIO,
    decoder: NsDecoder | None,
    payload_type: int,
) -> str:
    """Print a JaguarMicro section, record it if a table is open; return the dump."""
    table = decoder.table if decoder is not None else None
    if table is not None:
        table.bind(JmField.TIMESTAMP, event.timestamp)

    if payload_type not in REGISTER_NAMES:
        message = "decode_jm_oem_type_error : wrong payload type"
        out.write(message + "\n")
        log.error(message)
        raise DecodeError(message)

    section = parse_section(payload_type, event.error)
    head = getattr(section, "head", None) or getattr(section, "common_head")

    if payload_type == PAYLOAD_TYPE_0:
        out.write("\nJaguar Micro Common Error Section:\n")
    else:
        out.write("\nJaguarMicro Common Error Section:\n")
    out.write(format_common_head(head, table) + "\n")

    reg_msg = format_register_dump(section)
    out.write("Register Dump:\n")

    if table is not None:
        table.bind(JmField.REGS_DUMP, reg_msg)
        table.step()

    out.write(reg_msg + "\n")
    return reg_msg


def register(registry: DecoderRegistry) -> tuple[NsDecoder, ...]:
    """Register a decoder for each JaguarMicro payload type."""
    return tuple(
        registry.register(
            NsDecoder(
                sec_type,
                partial(decode_jm_oem_error, payload_type=kind),
                JM_PAYLOAD_TABLE,
            )
        )
        for kind, sec_type in SEC_TYPES.items()
    )