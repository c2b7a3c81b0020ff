"""Text rendering of JaguarMicro vendor error sections."""

from __future__ import annotations

from collections.abc import Mapping
from enum import IntEnum
from typing import Any, Sequence

from rasvendor.jaguar_layout import JmCommonHead, JmSection
from rasvendor.jaguar_names import (
    device_description,
    jm_err_severity,
    module_description,
    soc_description,
    submodule_description,
    subsystem_description,
)
from rasvendor.vendor import DecodeError, FieldMessage, VendorTable

JM_BUF_LEN = 256
JM_REG_BUF_LEN = 2048
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


REGISTER_NAMES: dict[int, tuple[str, ...]] = {
    0: (
        "LOCK_CONTROL:", "LOCK_FUNCTION:", "CFG_RAM_ID:", "ERR_FR_LOW32:",
        "ERR_FR_HIGH32:", "ERR_CTLR_LOW32:", "ECC_STATUS_LOW32:",
        "ECC_ADDR_LOW32:", "ECC_ADDR_HIGH32:", "ECC_MISC0_LOW32:",
        "ECC_MISC0_HIGH32:", "ECC_MISC1_LOW32:", "ECC_MISC1_HIGH32:",
        "ECC_MISC2_LOW32:", "ECC_MISC2_HIGH32:",
    ),
    1: ("CSR_INT_STATUS:", "ERR_FR:", "ERR_CTLR:", "ERR_STATUS:", "ERR_GEN:"),
    2: (
        "ECC_1BIT_INFO_LOW32:", "ECC_1BIT_INFO_HIGH32:",
        "ECC_2BIT_INFO_LOW32:", "ECC_2BIT_INFO_HIGH32:",
    ),
    5: (
        "CFGM_MXP_0:", "CFGM_HNF_0:", "CFGM_HNI_0:", "CFGM_SBSX_0:",
        "ERR_FR_NS:", "ERR_CTLRR_NS:", "ERR_STATUSR_NS:", "ERR_ADDRR_NS:",
        "ERR_MISCR_NS:", "ERR_FR:", "ERR_CTLR:", "ERR_STATUS:", "ERR_ADDR:",
        "ERR_MISC:",
    ),
    6: (
        "RECORD_ID:", "GICT_ERR_FR:", "GICT_ERR_CTLR:", "GICT_ERR_STATUS:",
        "GICT_ERR_ADDR:", "GICT_ERR_MISC0:", "GICT_ERR_MISC1:", "GICT_ERRGSR:",
    ),
}


def _part(section: Any, *names: str) -> Any:
    # The section object may name its parts in any of these ways.
    for name in names:
        if hasattr(section, name):
            return getattr(section, name)
    raise DecodeError(f"section has none of {', '.join(names)}")


def _head(section: JmSection) -> JmCommonHead:
    return _part(section, "head", "common_head", "header")


def _payload_type(section: JmSection) -> int:
    return _part(section, "payload_type", "kind", "type")


def _registers(section: JmSection) -> Sequence[int]:
    values = _part(section, "registers", "values", "regs")
    if isinstance(values, Mapping):
        return list(values.values())
    return list(values)


def _reg_array(section: JmSection) -> Sequence[int]:
    tail = _part(section, "reg_array", "tail", "common_tail", "extended")
    if hasattr(tail, "reg_array"):
        tail = tail.reg_array
    return list(tail)


def _valid(head: JmCommonHead, bit: JmValid) -> bool:
    return bool(head.val_bits & (1 << bit))


def format_common_head(head: JmCommonHead, table: VendorTable | None = None) -> str:
    """Describe the common head; bind its fields into ``table`` if given."""
    msg = FieldMessage(JM_BUF_LEN)

    def record(column: JmField, value: int | str) -> None:
        if table is not None:
            table.bind(column, value)

    if _valid(head, JmValid.SOC_ID):
        msg.add(f"[ table_version={head.version} decode_version:{PAYLOAD_VERSION}")
        record(JmField.VERSION, head.version)
        msg.add(f" soc={soc_description(head.soc_id)}")
        record(JmField.SOC_ID, head.soc_id)

    if _valid(head, JmValid.SUBSYSTEM_ID):
        name = subsystem_description(head.subsystem_id)
        msg.add(f" sub system={name}")
        record(JmField.SUB_SYS, name)

    if _valid(head, JmValid.MODULE_ID):
        name = module_description(head.subsystem_id, head.module_id)
        msg.add(f" module={name}")
        record(JmField.MODULE, name)
        record(JmField.MODULE_ID, head.module_id)

    if _valid(head, JmValid.SUBMODULE_ID):
        name = submodule_description(head.subsystem_id, head.module_id, head.submodule_id)
        msg.add(f" sub module={name}")
        record(JmField.SUB_MODULE, name)
        # The sub module id goes into the module id column.
        record(JmField.MODULE_ID, head.submodule_id)

    if _valid(head, JmValid.DEV_ID):
        name = device_description(head.subsystem_id, head.module_id, head.submodule_id)
        msg.add(f" dev={name}")
        record(JmField.DEV, name)
        record(JmField.DEV_ID, head.dev_id)

    if _valid(head, JmValid.ERR_TYPE):
        msg.add(f" err_type={head.err_type}")
        record(JmField.ERR_TYPE, head.err_type)

    if _valid(head, JmValid.ERR_SEVERITY):
        severity = jm_err_severity(head.err_severity)
        msg.add(f" err_severity={severity}")
        record(JmField.ERR_SEVERITY, severity)

    msg.add("]")
    return str(msg)


def format_tail(section: JmSection) -> list[str]:
    """Pieces of the extended register dump, empty when there is none."""
    head = _head(section)
    regs = _reg_array(section)
    if not _valid(head, JmValid.REG_ARRAY_SIZE) or not regs:
        return []
    return ["Extended Register Dump:"] + [
        f"reg{index:02d}=0x{value:08x}" for index, value in enumerate(regs)
    ]


def format_register_dump(section: JmSection) -> str:
    """Payload registers followed by the extended register dump."""
    kind = _payload_type(section)
    try:
        names = REGISTER_NAMES[kind]
    except KeyError:
        raise DecodeError(f"wrong payload type {kind}") from None
    values = _registers(section)
    msg = FieldMessage(JM_REG_BUF_LEN)
    last = len(names) - 1
    for index, (name, value) in enumerate(zip(names, values)):
        msg.add(f" {name}")
        msg.add(f" 0x{value:x}\n" if index == last else f" 0x{value:x}; ")
    for piece in format_tail(section):
        msg.add(piece)
    return str(msg)