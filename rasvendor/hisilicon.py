"""Decoder for the Hisilicon common error section."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import TextIO

from rasvendor.vendor import (
    DataType,
    DecodeError,
    DecoderRegistry,
    FieldMessage,
    NonStandardEvent,
    NsDecoder,
    TableSpec,
    VendorTable,
    err_severity,
)

HISI_COMMON_SEC_TYPE = "c8b328a8-9917-4af6-9a13-2e08ab2e7586"
HISI_BUF_LEN = 2048
HISI_PCIE_INFO_BUF_LEN = 256

# val_bits, ten byte ids, err_type, pcie function/device/segment/bus,
# err_severity, reg_array_size
_LAYOUT = struct.Struct("<I10BHBBHB3xB3xI")


class HisiValid(IntEnum):
    """Bit positions in the section's validity mask."""

    SOC_ID = 0
    SOCKET_ID = 1
    TOTEM_ID = 2
    NIMBUS_ID = 3
    SUBSYSTEM_ID = 4
    MODULE_ID = 5
    SUBMODULE_ID = 6
    CORE_ID = 7
    PORT_ID = 8
    ERR_TYPE = 9
    PCIE_INFO = 10
    ERR_SEVERITY = 11
    REG_ARRAY_SIZE = 12


class HisiField(IntEnum):
    """Column positions in the common section table."""

    ID = 0
    TIMESTAMP = 1
    VERSION = 2
    SOC_ID = 3
    SOCKET_ID = 4
    TOTEM_ID = 5
    NIMBUS_ID = 6
    SUB_SYSTEM_ID = 7
    MODULE_ID = 8
    SUB_MODULE_ID = 9
    CORE_ID = 10
    PORT_ID = 11
    ERR_TYPE = 12
    PCIE_INFO = 13
    ERR_SEVERITY = 14
    REGS_DUMP = 15


HISI_COMMON_TABLE = TableSpec(
    "hisi_common_section_v2",
    (
        ("id", "INTEGER PRIMARY KEY"),
        ("timestamp", "TEXT"),
        ("version", "INTEGER"),
        ("soc_id", "INTEGER"),
        ("socket_id", "INTEGER"),
        ("totem_id", "INTEGER"),
        ("nimbus_id", "INTEGER"),
        ("sub_system_id", "INTEGER"),
        ("module_id", "TEXT"),
        ("sub_module_id", "INTEGER"),
        ("core_id", "INTEGER"),
        ("port_id", "INTEGER"),
        ("err_type", "INTEGER"),
        ("pcie_info", "TEXT"),
        ("err_severity", "TEXT"),
        ("regs_dump", "TEXT"),
    ),
)

_SOC_NAMES = ("Kunpeng916", "Kunpeng920", "Kunpeng930")

_MODULE_NAMES = (
    "MN", "PLL", "SLLC", "AA", "SIOE", "POE", "CPA", "DISP", "GIC", "ITS",
    "AVSBUS", "CS", "PPU", "SMMU", "PA", "HLLC", "DDRC", "L3TAG", "L3DATA",
    "PCS", "MATA", "PCIe Local", "SAS", "SATA", "NIC", "RoCE", "USB", "ZIP",
    "HPRE", "SEC", "RDE", "MEE", "L4D", "Tsensor", "ROH", "BTC", "HILINK",
    "STARS", "SDMA", "UC", "HBMC",
)


@dataclass(frozen=True)
class HisiCommonSection:
    """A Hisilicon common error section with its register array."""

    val_bits: int
    version: int
    soc_id: int
    socket_id: int
    totem_id: int
    nimbus_id: int
    subsystem_id: int
    module_id: int
    submodule_id: int
    core_id: int
    port_id: int
    err_type: int
    pcie_function: int
    pcie_device: int
    pcie_segment: int
    pcie_bus: int
    err_severity: int
    reg_array_size: int
    reg_array: tuple[int, ...] = ()

    @classmethod
    def from_bytes(cls, data: bytes) -> HisiCommonSection:
        if len(data) < _LAYOUT.size:
            raise DecodeError(
                f"common section needs {_LAYOUT.size} bytes, got {len(data)}"
            )
        fields = _LAYOUT.unpack_from(data)
        reg_array_size = fields[-1]
        count = min(reg_array_size // 4, (len(data) - _LAYOUT.size) // 4)
        reg_array = struct.unpack_from(f"<{count}I", data, _LAYOUT.size)
        return cls(*fields, reg_array=tuple(reg_array))

    def is_valid(self, bit: HisiValid) -> bool:
        return bool(self.val_bits & (1 << bit))

    @property
    def pcie_id(self) -> str:
        """PCIe location as segment:bus:device.function."""
        return (
            f"{self.pcie_segment:04x}:{self.pcie_bus:02x}:"
            f"{self.pcie_device:02x}.{self.pcie_function:x}"
        )


def soc_description(soc_id: int) -> str:
    return _SOC_NAMES[soc_id] if 0 <= soc_id < len(_SOC_NAMES) else "unknown"


def module_description(module_id: int) -> str:
    return _MODULE_NAMES[module_id] if 0 <= module_id < len(_MODULE_NAMES) else "unknown"


def format_common_header(
    section: HisiCommonSection, table: VendorTable | None = None
) -> str:
    """Describe the section header; bind its fields into ``table`` if given."""
    msg = FieldMessage(HISI_BUF_LEN)

    def record(column: HisiField, value: int | str) -> None:
        if table is not None:
            table.bind(column, value)

    msg.add(f"[ table_version={section.version}")
    record(HisiField.VERSION, section.version)

    if section.is_valid(HisiValid.SOC_ID):
        msg.add(f"soc={soc_description(section.soc_id)}")
        record(HisiField.SOC_ID, section.soc_id)

    simple_ids = (
        (HisiValid.SOCKET_ID, HisiField.SOCKET_ID, "socket_id", section.socket_id),
        (HisiValid.TOTEM_ID, HisiField.TOTEM_ID, "totem_id", section.totem_id),
        (HisiValid.NIMBUS_ID, HisiField.NIMBUS_ID, "nimbus_id", section.nimbus_id),
        (HisiValid.SUBSYSTEM_ID, HisiField.SUB_SYSTEM_ID, "subsystem_id",
         section.subsystem_id),
    )
    for bit, column, label, value in simple_ids:
        if section.is_valid(bit):
            msg.add(f"{label}={value}")
            record(column, value)

    if section.is_valid(HisiValid.MODULE_ID):
        if section.module_id < len(_MODULE_NAMES):
            name = _MODULE_NAMES[section.module_id]
            msg.add(f"module={name} ")
            record(HisiField.MODULE_ID, name)
        else:
            msg.add(f"module=unknown(id={section.module_id}) ")
            record(HisiField.MODULE_ID, "unknown")

    trailing_ids = (
        (HisiValid.SUBMODULE_ID, HisiField.SUB_MODULE_ID, "submodule_id",
         section.submodule_id),
        (HisiValid.CORE_ID, HisiField.CORE_ID, "core_id", section.core_id),
        (HisiValid.PORT_ID, HisiField.PORT_ID, "port_id", section.port_id),
        (HisiValid.ERR_TYPE, HisiField.ERR_TYPE, "err_type", section.err_type),
    )
    for bit, column, label, value in trailing_ids:
        if section.is_valid(bit):
            msg.add(f"{label}={value}")
            record(column, value)

    if section.is_valid(HisiValid.PCIE_INFO):
        pcie = section.pcie_id
        msg.add(f"pcie_device_id={pcie}")
        record(HisiField.PCIE_INFO, pcie[: HISI_PCIE_INFO_BUF_LEN - 1])

    if section.is_valid(HisiValid.ERR_SEVERITY):
        severity = err_severity(section.err_severity)
        msg.add(f"err_severity={severity}")
        record(HisiField.ERR_SEVERITY, severity)

    msg.add("]")
    return str(msg)


def decode_hisi_common_section(
    event: NonStandardEvent, out: TextIO, decoder: NsDecoder | None = None
) -> str:
    """Print a common error section and record it if the decoder has a table."""
    section = HisiCommonSection.from_bytes(event.error)
    table = decoder.table if decoder is not None else None

    out.write("\nHisilicon Common Error Section:\n")
    header = format_common_header(section, table)
    out.write(header + "\n")

    reg_msg = FieldMessage(HISI_BUF_LEN)
    if section.is_valid(HisiValid.REG_ARRAY_SIZE) and section.reg_array_size > 0:
        out.write("Register Dump:\n")
        for index, value in enumerate(section.reg_array):
            entry = f"reg{index:02d}=0x{value:08x}"
            out.write(entry + "\n")
            reg_msg.add(entry)

    if table is not None:
        table.bind(HisiField.TIMESTAMP, event.timestamp)
        table.bind(HisiField.REGS_DUMP, str(reg_msg))
        table.step()
    return header


def register(registry: DecoderRegistry) -> NsDecoder:
    return registry.register(
        NsDecoder(HISI_COMMON_SEC_TYPE, decode_hisi_common_section, HISI_COMMON_TABLE)
    )


__all__ = [
    "DataType",
    "HISI_COMMON_SEC_TYPE",
    "HISI_COMMON_TABLE",
    "HisiCommonSection",
    "HisiField",
    "HisiValid",
    "decode_hisi_common_section",
    "format_common_header",
    "module_description",
    "register",
    "soc_description",
]