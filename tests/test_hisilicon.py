import io
import sqlite3
import struct

import pytest

from rasvendor.hisilicon import (
    HISI_COMMON_SEC_TYPE,
    HisiCommonSection,
    HisiValid,
    decode_hisi_common_section,
    format_common_header,
    module_description,
    register,
    soc_description,
)
from rasvendor.vendor import DecodeError, DecoderRegistry, NonStandardEvent


def bit(*bits):
    value = 0
    for b in bits:
        value |= 1 << b
    return value


def pack_section(
    val_bits=0, version=1, soc_id=1, socket_id=0, totem_id=0, nimbus_id=0,
    subsystem_id=0, module_id=1, submodule_id=0, core_id=0, port_id=0,
    err_type=0, function=0, device=0, segment=0, bus=0, severity=2, regs=(),
):
    head = struct.pack(
        "<I10BHBBHB3xB3xI", val_bits, version, soc_id, socket_id, totem_id,
        nimbus_id, subsystem_id, module_id, submodule_id, core_id, port_id,
        err_type, function, device, segment, bus, severity, 4 * len(regs),
    )
    return head + struct.pack(f"<{len(regs)}I", *regs)


def test_from_bytes_reads_every_field():
    data = pack_section(
        val_bits=0x1FFF, version=5, soc_id=2, socket_id=3, totem_id=4,
        nimbus_id=5, subsystem_id=6, module_id=7, submodule_id=8, core_id=9,
        port_id=10, err_type=300, function=1, device=2, segment=3, bus=4,
        severity=1, regs=(11, 22),
    )
    section = HisiCommonSection.from_bytes(data)
    assert section.val_bits == 0x1FFF
    assert section.version == 5
    assert section.port_id == 10
    assert section.err_type == 300
    assert section.pcie_segment == 3
    assert section.pcie_bus == 4
    assert section.err_severity == 1
    assert section.reg_array_size == 8
    assert section.reg_array == (11, 22)


def test_from_bytes_rejects_short_data():
    with pytest.raises(DecodeError):
        HisiCommonSection.from_bytes(b"\x00" * 10)


def test_soc_description():
    assert soc_description(0) == "Kunpeng916"
    assert soc_description(1) == "Kunpeng920"
    assert soc_description(3) == "unknown"


def test_module_description():
    assert module_description(1) == "PLL"
    assert module_description(40) == "HBMC"
    assert module_description(41) == "unknown"


def test_header_with_no_valid_bits():
    section = HisiCommonSection.from_bytes(pack_section(version=3))
    assert format_common_header(section) == "[ table_version=3 ]"


def test_header_lists_valid_ids():
    data = pack_section(
        val_bits=bit(HisiValid.SOC_ID, HisiValid.SOCKET_ID, HisiValid.CORE_ID),
        soc_id=1, socket_id=7, core_id=9,
    )
    header = format_common_header(HisiCommonSection.from_bytes(data))
    assert header.startswith("[ table_version=")
    assert header.endswith("]")
    assert "soc=Kunpeng920" in header
    assert "socket_id=7" in header
    assert "core_id=9" in header
    assert "totem_id" not in header


def test_header_unknown_module():
    data = pack_section(val_bits=bit(HisiValid.MODULE_ID), module_id=200)
    header = format_common_header(HisiCommonSection.from_bytes(data))
    assert "module=unknown(id=200)" in header


def test_header_pcie_and_severity():
    data = pack_section(
        val_bits=bit(HisiValid.PCIE_INFO, HisiValid.ERR_SEVERITY),
        segment=1, bus=2, device=3, function=4, severity=1,
    )
    header = format_common_header(HisiCommonSection.from_bytes(data))
    assert "pcie_device_id=0001:02:03.4" in header
    assert "err_severity=fatal" in header


def test_decode_prints_register_dump():
    data = pack_section(val_bits=bit(HisiValid.REG_ARRAY_SIZE), regs=(0xABCD, 1, 2))
    out = io.StringIO()
    decode_hisi_common_section(NonStandardEvent(HISI_COMMON_SEC_TYPE, data), out)
    text = out.getvalue()
    assert text.startswith("\nHisilicon Common Error Section:\n")
    assert "Register Dump:\n" in text
    assert "reg00=0x0000abcd" in text
    assert sum(line.startswith("reg") for line in text.splitlines()) == 3


def test_decode_without_register_bit_skips_dump():
    data = pack_section(regs=(5,))
    out = io.StringIO()
    header = decode_hisi_common_section(NonStandardEvent(HISI_COMMON_SEC_TYPE, data), out)
    assert "Register Dump" not in out.getvalue()
    assert header in out.getvalue()


def test_registered_decoder_records_row():
    registry = DecoderRegistry()
    decoder = register(registry)
    assert registry.find(HISI_COMMON_SEC_TYPE) is decoder
    connection = sqlite3.connect(":memory:")
    decoder.add_table(connection)
    data = pack_section(
        val_bits=bit(HisiValid.SOC_ID, HisiValid.MODULE_ID, HisiValid.REG_ARRAY_SIZE),
        soc_id=1, module_id=1, regs=(7, 8),
    )
    event = NonStandardEvent(HISI_COMMON_SEC_TYPE, data, "2024-01-01 00:00:00 +0000")
    registry.decode(event, io.StringIO())
    row = connection.execute(
        "SELECT timestamp, soc_id, module_id, regs_dump FROM hisi_common_section_v2"
    ).fetchone()
    assert row[0] == event.timestamp
    assert row[1] == 1
    assert row[2] == "PLL"
    assert row[3].startswith("reg00=")
    assert "reg01=" in row[3]