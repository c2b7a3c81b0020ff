import sqlite3
import struct

import pytest

from rasvendor.hip08_sections import (
    OEM_TYPE1_MODULES,
    OEM_TYPE1_TABLE,
    OEM_TYPE2_MODULES,
    PCIE_LOCAL_ERR_MISC_MAX,
    PCIE_LOCAL_TABLE,
    OemType1Section,
    OemType2Section,
    PcieLocalSection,
    module_name,
    pcie_local_sub_module_name,
    submodule_name,
)
from rasvendor.vendor import DecodeError


def test_module_name_lookup():
    assert module_name(OEM_TYPE1_MODULES, 1) == "PLL"
    assert module_name(OEM_TYPE1_MODULES, 17) == "USB"
    assert module_name(OEM_TYPE2_MODULES, 5) == "L3TAG"
    assert module_name(OEM_TYPE1_MODULES, 6) == "unknown"


def test_submodule_name_lookup():
    assert submodule_name(OEM_TYPE1_MODULES, 1, 0) == "TB_PLL0"
    assert submodule_name(OEM_TYPE1_MODULES, 1, 12) == "NIMBUS_PLL4"
    assert submodule_name(OEM_TYPE2_MODULES, 5, 15) == "TA_PARTITION7"
    assert submodule_name(OEM_TYPE2_MODULES, 6, 4) == "TA_BANK0"


def test_submodule_name_fallbacks():
    assert submodule_name(OEM_TYPE1_MODULES, 0, 3) == "MN"
    assert submodule_name(OEM_TYPE1_MODULES, 15, 2) == "unknown"
    assert submodule_name(OEM_TYPE2_MODULES, 42, 0) == "unknown"


def test_every_submodule_resolves_to_its_table_entry():
    for module in OEM_TYPE2_MODULES:
        for index, name in enumerate(module.sub):
            assert submodule_name(OEM_TYPE2_MODULES, module.id, index) == name


def test_pcie_local_sub_module_names():
    assert pcie_local_sub_module_name(0) == "AP_Layer"
    assert pcie_local_sub_module_name(4) == "SDI_Layer"
    assert pcie_local_sub_module_name(5) == "unknown"


def test_type1_from_bytes():
    data = struct.pack("<I8B5IQ", 0xFFF, 1, 2, 3, 4, 5, 6, 7, 0,
                       10, 11, 12, 13, 14, 0x1122334455667788)
    section = OemType1Section.from_bytes(data)
    assert section.val_bits == 0xFFF
    assert section.version == 1
    assert section.module_id == 5
    assert section.err_severity == 7
    assert section.err_misc == (10, 11, 12, 13, 14)
    assert section.err_addr == 0x1122334455667788


def test_type1_rejects_short_data():
    with pytest.raises(DecodeError):
        OemType1Section.from_bytes(b"\x01" * 20)


def test_type2_from_bytes():
    regs = list(range(100, 112))
    data = struct.pack("<I8B12I", 3, 1, 2, 3, 4, 5, 6, 1, 0, *regs)
    section = OemType2Section.from_bytes(data)
    assert section.sub_module_id == 6
    assert section.err_fr == (100, 101)
    assert section.err_status == (104, 105)
    assert section.err_misc1 == (110, 111)


def test_type2_rejects_short_data():
    with pytest.raises(DecodeError):
        OemType2Section.from_bytes(b"")


def test_pcie_local_from_bytes():
    misc = list(range(PCIE_LOCAL_ERR_MISC_MAX))
    data = struct.pack(f"<Q8BH2x{PCIE_LOCAL_ERR_MISC_MAX}I",
                       1 << 40, 2, 3, 4, 5, 1, 6, 7, 2, 0x1234, *misc)
    section = PcieLocalSection.from_bytes(data)
    assert section.val_bits == 1 << 40
    assert section.core_id == 6
    assert section.port_id == 7
    assert section.err_type == 0x1234
    assert section.err_misc == tuple(misc)


def test_pcie_local_rejects_short_data():
    with pytest.raises(DecodeError):
        PcieLocalSection.from_bytes(b"\x00" * 100)


def test_tables_create_expected_columns():
    connection = sqlite3.connect(":memory:")
    OEM_TYPE1_TABLE.create(connection)
    PCIE_LOCAL_TABLE.create(connection)
    oem_columns = [row[1] for row in connection.execute(
        "PRAGMA table_info(hip08_oem_type1_event_v2)")]
    pcie_columns = [row[1] for row in connection.execute(
        "PRAGMA table_info(hip08_pcie_local_event_v2)")]
    assert oem_columns == [name for name, _ in OEM_TYPE1_TABLE.fields]
    assert oem_columns[-1] == "regs_dump"
    assert "core_id" in pcie_columns
    assert len(pcie_columns) == len(PCIE_LOCAL_TABLE.fields)