"""Binary layouts and name tables of HIP08 vendor error sections."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Sequence

from rasvendor.vendor import DecodeError, TableSpec

HIP08_OEM_TYPE1_SEC_TYPE = "1f8161e1-55d6-41e6-bd10-7afd1dc5f7c5"
HIP08_OEM_TYPE2_SEC_TYPE = "45534ea6-ce23-4115-8535-e07ab3aef91d"
HIP08_PCIE_LOCAL_SEC_TYPE = "b2889fc9-e7d7-4f9d-a867-af42e98be772"

HISI_BUF_LEN = 1024

# Validity bits common to OEM type 1 and type 2 sections.
OEM_VALID_SOC_ID = 1 << 0
OEM_VALID_SOCKET_ID = 1 << 1
OEM_VALID_NIMBUS_ID = 1 << 2
OEM_VALID_MODULE_ID = 1 << 3
OEM_VALID_SUB_MODULE_ID = 1 << 4
OEM_VALID_ERR_SEVERITY = 1 << 5

TYPE1_VALID_ERR_MISC = tuple(1 << bit for bit in range(6, 11))
TYPE1_VALID_ERR_ADDR = 1 << 11

TYPE2_VALID_ERR_FR = 1 << 6
TYPE2_VALID_ERR_CTRL = 1 << 7
TYPE2_VALID_ERR_STATUS = 1 << 8
TYPE2_VALID_ERR_ADDR = 1 << 9
TYPE2_VALID_ERR_MISC_0 = 1 << 10
TYPE2_VALID_ERR_MISC_1 = 1 << 11

PCIE_LOCAL_VALID_VERSION = 1 << 0
PCIE_LOCAL_VALID_SOC_ID = 1 << 1
PCIE_LOCAL_VALID_SOCKET_ID = 1 << 2
PCIE_LOCAL_VALID_NIMBUS_ID = 1 << 3
PCIE_LOCAL_VALID_SUB_MODULE_ID = 1 << 4
PCIE_LOCAL_VALID_CORE_ID = 1 << 5
PCIE_LOCAL_VALID_PORT_ID = 1 << 6
PCIE_LOCAL_VALID_ERR_TYPE = 1 << 7
PCIE_LOCAL_VALID_ERR_SEVERITY = 1 << 8
PCIE_LOCAL_VALID_ERR_MISC_SHIFT = 9
PCIE_LOCAL_ERR_MISC_MAX = 33


class OemField(IntEnum):
    """Column positions shared by the OEM type 1 and type 2 tables."""

    ID = 0
    TIMESTAMP = 1
    VERSION = 2
    SOC_ID = 3
    SOCKET_ID = 4
    NIMBUS_ID = 5
    MODULE_ID = 6
    SUB_MODULE_ID = 7
    ERR_SEV = 8
    REGS_DUMP = 9


class PcieLocalField(IntEnum):
    """Column positions in the PCIe local table."""

    ID = 0
    TIMESTAMP = 1
    VERSION = 2
    SOC_ID = 3
    SOCKET_ID = 4
    NIMBUS_ID = 5
    SUB_MODULE_ID = 6
    CORE_ID = 7
    PORT_ID = 8
    ERR_SEV = 9
    ERR_TYPE = 10
    REGS_DUMP = 11


_OEM_FIELDS = (
    ("id", "INTEGER PRIMARY KEY"),
    ("timestamp", "TEXT"),
    ("version", "INTEGER"),
    ("soc_id", "INTEGER"),
    ("socket_id", "INTEGER"),
    ("nimbus_id", "INTEGER"),
    ("module_id", "TEXT"),
    ("sub_module_id", "TEXT"),
    ("err_severity", "TEXT"),
    ("regs_dump", "TEXT"),
)

OEM_TYPE1_TABLE = TableSpec("hip08_oem_type1_event_v2", _OEM_FIELDS)
OEM_TYPE2_TABLE = TableSpec("hip08_oem_type2_event_v2", _OEM_FIELDS)
PCIE_LOCAL_TABLE = TableSpec(
    "hip08_pcie_local_event_v2",
    (
        ("id", "INTEGER PRIMARY KEY"),
        ("timestamp", "TEXT"),
        ("version", "INTEGER"),
        ("soc_id", "INTEGER"),
        ("socket_id", "INTEGER"),
        ("nimbus_id", "INTEGER"),
        ("sub_module_id", "TEXT"),
        ("core_id", "INTEGER"),
        ("port_id", "INTEGER"),
        ("err_severity", "TEXT"),
        ("err_type", "INTEGER"),
        ("regs_dump", "TEXT"),
    ),
)


@dataclass(frozen=True)
class ModuleInfo:
    """A module id, its name and the names of its sub modules, if any."""

    id: int
    name: str
    sub: tuple[str, ...] = ()


OEM_TYPE1_MODULES = (
    ModuleInfo(1, "PLL", (
        "TB_PLL0", "TB_PLL1", "TB_PLL2", "TB_PLL3", "TA_PLL0", "TA_PLL1",
        "TA_PLL2", "TA_PLL3", "NIMBUS_PLL0", "NIMBUS_PLL1", "NIMBUS_PLL2",
        "NIMBUS_PLL3", "NIMBUS_PLL4",
    )),
    ModuleInfo(15, "SAS", ("SAS0", "SAS1")),
    ModuleInfo(5, "POE", ("TB_POE", "TA_POE")),
    ModuleInfo(2, "SLLC", (
        "TB_SLLC0", "TB_SLLC1", "TB_SLLC2", "TA_SLLC0", "TA_SLLC1", "TA_SLLC2",
        "NIMBUS_SLLC0", "NIMBUS_SLLC1",
    )),
    ModuleInfo(4, "SIOE", (
        "TB_SIOE0", "TB_SIOE1", "TB_SIOE2", "TB_SIOE3", "TA_SIOE0", "TA_SIOE1",
        "TA_SIOE2", "TA_SIOE3", "NIMBUS_SIOE0", "NIMBUS_SIOE1",
    )),
    ModuleInfo(8, "DISP", (
        "TB_PERI_DISP", "TB_POE_DISP", "TB_GIC_DISP", "TA_PERI_DISP",
        "TA_POE_DISP", "TA_GIC_DISP", "HAC_DISP", "PCIE_DISP", "IO_MGMT_DISP",
        "NETWORK_DISP",
    )),
    ModuleInfo(0, "MN"),
    ModuleInfo(3, "AA"),
    ModuleInfo(9, "LPC"),
    ModuleInfo(13, "GIC"),
    ModuleInfo(14, "RDE"),
    ModuleInfo(16, "SATA"),
    ModuleInfo(17, "USB"),
)

OEM_TYPE2_MODULES = (
    ModuleInfo(0, "SMMU", ("HAC_SMMU", "PCIE_SMMU", "MGMT_SMMU", "NIC_SMMU")),
    ModuleInfo(1, "HHA", ("TB_HHA0", "TB_HHA1", "TA_HHA0", "TA_HHA1")),
    ModuleInfo(2, "PA"),
    ModuleInfo(3, "HLLC", ("HLLC0", "HLLC1", "HLLC2")),
    ModuleInfo(4, "DDRC", (
        "TB_DDRC0", "TB_DDRC1", "TB_DDRC2", "TB_DDRC3", "TA_DDRC0", "TA_DDRC1",
        "TA_DDRC2", "TA_DDRC3",
    )),
    ModuleInfo(5, "L3TAG", tuple(
        f"{die}_PARTITION{n}" for die in ("TB", "TA") for n in range(8)
    )),
    ModuleInfo(6, "L3DATA", tuple(
        f"{die}_BANK{n}" for die in ("TB", "TA") for n in range(4)
    )),
)

_PCIE_LOCAL_SUB_MODULES = {
    0: "AP_Layer",
    1: "TL_Layer",
    2: "MAC_Layer",
    3: "DL_Layer",
    4: "SDI_Layer",
}


def module_name(modules: Sequence[ModuleInfo], module_id: int) -> str:
    for module in modules:
        if module.id == module_id:
            return module.name
    return "unknown"


def submodule_name(
    modules: Sequence[ModuleInfo], module_id: int, sub_module_id: int
) -> str:
    """Sub module name; a module without sub modules stands for itself."""
    for module in modules:
        if module.id != module_id:
            continue
        if not module.sub:
            return module.name
        if not 0 <= sub_module_id < len(module.sub):
            return "unknown"
        return module.sub[sub_module_id]
    return "unknown"


def pcie_local_sub_module_name(sub_id: int) -> str:
    return _PCIE_LOCAL_SUB_MODULES.get(sub_id, "unknown")


def _check_size(layout: struct.Struct, data: bytes, what: str) -> None:
    if len(data) < layout.size:
        raise DecodeError(f"{what} needs {layout.size} bytes, got {len(data)}")


_TYPE1 = struct.Struct("<I7Bx5IQ")
_TYPE2 = struct.Struct("<I7Bx12I")
_PCIE_LOCAL = struct.Struct(f"<Q8BH2x{PCIE_LOCAL_ERR_MISC_MAX}I")


@dataclass(frozen=True)
class OemType1Section:
    val_bits: int
    version: int
    soc_id: int
    socket_id: int
    nimbus_id: int
    module_id: int
    sub_module_id: int
    err_severity: int
    err_misc: tuple[int, ...]
    err_addr: int

    @classmethod
    def from_bytes(cls, data: bytes) -> OemType1Section:
        _check_size(_TYPE1, data, "OEM type 1 section")
        values = _TYPE1.unpack_from(data)
        return cls(*values[:8], err_misc=tuple(values[8:13]), err_addr=values[13])


@dataclass(frozen=True)
class OemType2Section:
    val_bits: int
    version: int
    soc_id: int
    socket_id: int
    nimbus_id: int
    module_id: int
    sub_module_id: int
    err_severity: int
    err_fr: tuple[int, int]
    err_ctrl: tuple[int, int]
    err_status: tuple[int, int]
    err_addr: tuple[int, int]
    err_misc0: tuple[int, int]
    err_misc1: tuple[int, int]

    @classmethod
    def from_bytes(cls, data: bytes) -> OemType2Section:
        _check_size(_TYPE2, data, "OEM type 2 section")
        values = _TYPE2.unpack_from(data)
        regs = values[8:]
        pairs = [tuple(regs[i:i + 2]) for i in range(0, len(regs), 2)]
        return cls(*values[:8], *pairs)


@dataclass(frozen=True)
class PcieLocalSection:
    val_bits: int
    version: int
    soc_id: int
    socket_id: int
    nimbus_id: int
    sub_module_id: int
    core_id: int
    port_id: int
    err_severity: int
    err_type: int
    err_misc: tuple[int, ...]

    @classmethod
    def from_bytes(cls, data: bytes) -> PcieLocalSection:
        _check_size(_PCIE_LOCAL, data, "PCIe local section")
        values = _PCIE_LOCAL.unpack_from(data)
        return cls(*values[:10], err_misc=tuple(values[10:]))