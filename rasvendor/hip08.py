"""Decoders for HIP08 OEM type 1, OEM type 2 and PCIe local error sections."""

from __future__ import annotations

from typing import Callable, Sequence, TextIO

from rasvendor.hip08_sections import (
    HIP08_OEM_TYPE1_SEC_TYPE,
    HIP08_OEM_TYPE2_SEC_TYPE,
    HIP08_PCIE_LOCAL_SEC_TYPE,
    HISI_BUF_LEN,
    OEM_TYPE1_MODULES,
    OEM_TYPE1_TABLE,
    OEM_TYPE2_MODULES,
    OEM_TYPE2_TABLE,
    OEM_VALID_ERR_SEVERITY,
    OEM_VALID_MODULE_ID,
    OEM_VALID_NIMBUS_ID,
    OEM_VALID_SOC_ID,
    OEM_VALID_SOCKET_ID,
    OEM_VALID_SUB_MODULE_ID,
    PCIE_LOCAL_ERR_MISC_MAX,
    PCIE_LOCAL_TABLE,
    PCIE_LOCAL_VALID_CORE_ID,
    PCIE_LOCAL_VALID_ERR_MISC_SHIFT,
    PCIE_LOCAL_VALID_ERR_SEVERITY,
    PCIE_LOCAL_VALID_ERR_TYPE,
    PCIE_LOCAL_VALID_NIMBUS_ID,
    PCIE_LOCAL_VALID_PORT_ID,
    PCIE_LOCAL_VALID_SOC_ID,
    PCIE_LOCAL_VALID_SOCKET_ID,
    PCIE_LOCAL_VALID_SUB_MODULE_ID,
    TYPE1_VALID_ERR_ADDR,
    TYPE1_VALID_ERR_MISC,
    TYPE2_VALID_ERR_ADDR,
    TYPE2_VALID_ERR_CTRL,
    TYPE2_VALID_ERR_FR,
    TYPE2_VALID_ERR_MISC_0,
    TYPE2_VALID_ERR_MISC_1,
    TYPE2_VALID_ERR_STATUS,
    ModuleInfo,
    OemField,
    OemType1Section,
    OemType2Section,
    PcieLocalField,
    PcieLocalSection,
    module_name,
    pcie_local_sub_module_name,
    submodule_name,
)
from rasvendor.vendor import (
    DecodeError,
    DecoderRegistry,
    NonStandardEvent,
    NsDecoder,
    VendorTable,
    err_severity,
)


def _bind(table: VendorTable | None, column: int, value: int | str) -> None:
    if table is not None:
        table.bind(column, value)


def _bounded(parts: Sequence[str]) -> str:
    return "".join(parts)[: HISI_BUF_LEN - 1]


def _oem_header(
    section: OemType1Section | OemType2Section,
    table: VendorTable | None,
    modules: Sequence[ModuleInfo],
) -> str:
    bits = section.val_bits
    parts = [f"[ table_version={section.version} "]
    _bind(table, OemField.VERSION, section.version)

    if bits & OEM_VALID_SOC_ID:
        parts.append(f"SOC_ID={section.soc_id} ")
        _bind(table, OemField.SOC_ID, section.soc_id)
    if bits & OEM_VALID_SOCKET_ID:
        parts.append(f"socket_ID={section.socket_id} ")
        _bind(table, OemField.SOCKET_ID, section.socket_id)
    if bits & OEM_VALID_NIMBUS_ID:
        parts.append(f"nimbus_ID={section.nimbus_id} ")
        _bind(table, OemField.NIMBUS_ID, section.nimbus_id)
    if bits & OEM_VALID_MODULE_ID:
        name = module_name(modules, section.module_id)
        parts.append(f"module={name} ")
        _bind(table, OemField.MODULE_ID, name)
    if bits & OEM_VALID_SUB_MODULE_ID:
        name = submodule_name(modules, section.module_id, section.sub_module_id)
        parts.append(f"submodule={name} ")
        _bind(table, OemField.SUB_MODULE_ID, name)
    if bits & OEM_VALID_ERR_SEVERITY:
        severity = err_severity(section.err_severity)
        parts.append(f"error_severity={severity} ")
        _bind(table, OemField.ERR_SEV, severity)

    parts.append("]")
    return _bounded(parts)


def format_type1_header(
    section: OemType1Section, table: VendorTable | None = None
) -> str:
    """Header line of an OEM type 1 section; binds its fields into ``table``."""
    return _oem_header(section, table, OEM_TYPE1_MODULES)


def format_type1_registers(section: OemType1Section) -> list[str]:
    """The valid registers of an OEM type 1 section, one entry each."""
    entries = [
        f"ERR_MISC{index}=0x{value:x}"
        for index, (bit, value) in enumerate(zip(TYPE1_VALID_ERR_MISC, section.err_misc))
        if section.val_bits & bit
    ]
    if section.val_bits & TYPE1_VALID_ERR_ADDR:
        entries.append(f"ERR_ADDR=0x{section.err_addr:x}")
    return entries


def format_type2_header(
    section: OemType2Section, table: VendorTable | None = None
) -> str:
    """Header line of an OEM type 2 section; binds its fields into ``table``."""
    return _oem_header(section, table, OEM_TYPE2_MODULES)


def format_type2_registers(section: OemType2Section) -> list[str]:
    """The valid register pairs of an OEM type 2 section, one entry per register."""
    groups = (
        (TYPE2_VALID_ERR_FR, "ERR_FR", section.err_fr),
        (TYPE2_VALID_ERR_CTRL, "ERR_CTRL", section.err_ctrl),
        (TYPE2_VALID_ERR_STATUS, "ERR_STATUS", section.err_status),
        (TYPE2_VALID_ERR_ADDR, "ERR_ADDR", section.err_addr),
        (TYPE2_VALID_ERR_MISC_0, "ERR_MISC0", section.err_misc0),
        (TYPE2_VALID_ERR_MISC_1, "ERR_MISC1", section.err_misc1),
    )
    return [
        f"{name}_{half}=0x{value:x}"
        for bit, name, pair in groups
        if section.val_bits & bit
        for half, value in enumerate(pair)
    ]


def format_pcie_local_header(
    section: PcieLocalSection, table: VendorTable | None = None
) -> str:
    """Header line of a PCIe local section; binds its fields into ``table``."""
    bits = section.val_bits
    parts = [f"[ table_version={section.version} "]
    _bind(table, PcieLocalField.VERSION, section.version)

    if bits & PCIE_LOCAL_VALID_SOC_ID:
        parts.append(f"SOC_ID={section.soc_id} ")
        _bind(table, PcieLocalField.SOC_ID, section.soc_id)
    if bits & PCIE_LOCAL_VALID_SOCKET_ID:
        parts.append(f"socket_ID={section.socket_id} ")
        _bind(table, PcieLocalField.SOCKET_ID, section.socket_id)
    if bits & PCIE_LOCAL_VALID_NIMBUS_ID:
        parts.append(f"nimbus_ID={section.nimbus_id} ")
        _bind(table, PcieLocalField.NIMBUS_ID, section.nimbus_id)
    if bits & PCIE_LOCAL_VALID_SUB_MODULE_ID:
        name = pcie_local_sub_module_name(section.sub_module_id)
        parts.append(f"submodule={name} ")
        _bind(table, PcieLocalField.SUB_MODULE_ID, name)
    if bits & PCIE_LOCAL_VALID_CORE_ID:
        parts.append(f"core_ID=core{section.core_id} ")
        _bind(table, PcieLocalField.CORE_ID, section.core_id)
    if bits & PCIE_LOCAL_VALID_PORT_ID:
        parts.append(f"port_ID=port{section.port_id} ")
        _bind(table, PcieLocalField.PORT_ID, section.port_id)
    if bits & PCIE_LOCAL_VALID_ERR_SEVERITY:
        severity = err_severity(section.err_severity)
        parts.append(f"error_severity={severity} ")
        _bind(table, PcieLocalField.ERR_SEV, severity)
    if bits & PCIE_LOCAL_VALID_ERR_TYPE:
        parts.append(f"error_type=0x{section.err_type:x} ")
        _bind(table, PcieLocalField.ERR_TYPE, section.err_type)

    parts.append("]")
    return _bounded(parts)


def format_pcie_local_registers(section: PcieLocalSection) -> list[str]:
    """The valid miscellaneous registers of a PCIe local section."""
    return [
        f"ERR_MISC_{index}=0x{value:x}"
        for index, value in enumerate(section.err_misc[:PCIE_LOCAL_ERR_MISC_MAX])
        if section.val_bits & (1 << (PCIE_LOCAL_VALID_ERR_MISC_SHIFT + index))
    ]


def _decode(
    event: NonStandardEvent,
    out: TextIO,
    decoder: NsDecoder | None,
    *,
    parse: Callable[[bytes], object],
    title: str,
    header_fn: Callable[[object, VendorTable | None], str],
    registers_fn: Callable[[object], list[str]],
    timestamp_column: int,
    dump_column: int,
    caller: str,
) -> str:
    section = parse(event.error)
    if section.val_bits == 0:
        message = f"{caller}: no valid error information"
        out.write(message + "\n")
        raise DecodeError(message)

    table = decoder.table if decoder is not None else None
    _bind(table, timestamp_column, event.timestamp)

    out.write(f"\nHISI HIP08: {title}\n")
    header = header_fn(section, table)
    out.write(header + "\n")

    out.write("Reg Dump:\n")
    entries = registers_fn(section)
    for entry in entries:
        out.write(entry + "\n")

    if table is not None:
        table.bind(dump_column, _bounded([" ".join(entries)]))
        table.step()
    return header


def decode_oem_type1_error(
    event: NonStandardEvent, out: TextIO, decoder: NsDecoder | None = None
) -> str:
    """Print an OEM type 1 section and record it if the decoder has a table."""
    return _decode(
        event, out, decoder,
        parse=OemType1Section.from_bytes,
        title="OEM Type-1 Error",
        header_fn=format_type1_header,
        registers_fn=format_type1_registers,
        timestamp_column=OemField.TIMESTAMP,
        dump_column=OemField.REGS_DUMP,
        caller="decode_oem_type1_error",
    )


def decode_oem_type2_error(
    event: NonStandardEvent, out: TextIO, decoder: NsDecoder | None = None
) -> str:
    """Print an OEM type 2 section and record it if the decoder has a table."""
    return _decode(
        event, out, decoder,
        parse=OemType2Section.from_bytes,
        title="OEM Type-2 Error",
        header_fn=format_type2_header,
        registers_fn=format_type2_registers,
        timestamp_column=OemField.TIMESTAMP,
        dump_column=OemField.REGS_DUMP,
        caller="decode_oem_type2_error",
    )


def decode_pcie_local_error(
    event: NonStandardEvent, out: TextIO, decoder: NsDecoder | None = None
) -> str:
    """Print a PCIe local section and record it if the decoder has a table."""
    return _decode(
        event, out, decoder,
        parse=PcieLocalSection.from_bytes,
        title="PCIe local error",
        header_fn=format_pcie_local_header,
        registers_fn=format_pcie_local_registers,
        timestamp_column=PcieLocalField.TIMESTAMP,
        dump_column=PcieLocalField.REGS_DUMP,
        caller="decode_pcie_local_error",
    )


def register(registry: DecoderRegistry) -> tuple[NsDecoder, NsDecoder, NsDecoder]:
    """Register the three HIP08 section decoders."""
    return (
        registry.register(
            NsDecoder(HIP08_OEM_TYPE1_SEC_TYPE, decode_oem_type1_error, OEM_TYPE1_TABLE)
        ),
        registry.register(
            NsDecoder(HIP08_OEM_TYPE2_SEC_TYPE, decode_oem_type2_error, OEM_TYPE2_TABLE)
        ),
        registry.register(
            NsDecoder(HIP08_PCIE_LOCAL_SEC_TYPE, decode_pcie_local_error, PCIE_LOCAL_TABLE)
        ),
    )