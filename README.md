# rasvendor

Decoders for vendor-specific ("non-standard") RAS error sections reported
by the firmware of several ARM server platforms. Each decoder turns the raw
bytes of an error section into a human-readable report written to a text
stream and, when its decoder has a SQLite table open, records the decoded
fields as a row of a vendor table.

Supported section formats:

- **HiSilicon common error section** — `rasvendor.hisilicon`
  (`HisiCommonSection`, `format_common_header`, `decode_hisi_common_section`)
- **HiSilicon HIP08** OEM type 1, OEM type 2 and PCIe local errors —
  `rasvendor.hip08`, with the binary layouts and name tables in
  `rasvendor.hip08_sections` (`OemType1Section`, `OemType2Section`,
  `PcieLocalSection`, `module_name`, `submodule_name`,
  `pcie_local_sub_module_name`)
- **JaguarMicro** payload types 0, 1, 2, 5 and 6 — `rasvendor.jaguarmicro`,
  with `rasvendor.jaguar_layout` (`parse_section`, `JmCommonHead`,
  `JmSection`), `rasvendor.jaguar_names` and `rasvendor.jaguar_format`
- **Yitian 710** DDR register dumps — `rasvendor.yitian`
  (`YitianDdrPayload`, `format_ddr_payload`, `decode_yitian710_error`)

`rasvendor.queue.LinkQueue` is a small FIFO of `QueueNode(time, value)`
entries with `push`, `pop`, `front`, `clear`, `is_empty`, `len()` and
iteration. `pop` on an empty queue raises `IndexError`; `front` returns
`None` instead.

## Installation

```
pip install rasvendor
```

The package has no runtime dependencies beyond the standard library.

## Usage

Decoders are looked up by the section type GUID of the event (with or
without dashes, in any case). Build a `DecoderRegistry`, let each vendor
module register its decoders, and pass events to it:

```python
import io
import sqlite3
import struct

from rasvendor import hip08, hisilicon, jaguarmicro, yitian
from rasvendor.vendor import DecoderRegistry, NonStandardEvent

registry = DecoderRegistry()
for vendor in (hisilicon, hip08, jaguarmicro, yitian):
    vendor.register(registry)

connection = sqlite3.connect("ras-events.db")
decoder = registry.find(hisilicon.HISI_COMMON_SEC_TYPE)
decoder.add_table(connection)          # creates hisi_common_section_v2 once

# A common error section with the SoC, module and severity fields valid.
val_bits = (1 << 0) | (1 << 5) | (1 << 11)
raw = struct.pack(
    "<I10BHBBHB3xB3xI",
    val_bits, 1, 1, 0, 0, 0, 0, 16, 0, 0, 0,  # ids: version, soc, ..., module
    0, 0, 0, 0, 0,                             # err_type, pcie info
    2, 0,                                      # severity, register array size
)

event = NonStandardEvent(
    sec_type=hisilicon.HISI_COMMON_SEC_TYPE,
    error=raw,
    timestamp="2024-01-01 00:00:00 +0000",
)

out = io.StringIO()
registry.decode(event, out)
print(out.getvalue())
```

Each decoder function returns the text it produced (the header line, or
the register dump for JaguarMicro and Yitian sections). Decoders only
write to SQLite when `NsDecoder.add_table` has been called for them; the
row is inserted by `VendorTable.step`. The Yitian decoder stamps its row
with the current local time rather than the event's timestamp.

A section that cannot be decoded raises `rasvendor.vendor.DecodeError`:
too few bytes for its layout, a HIP08 section with no valid bits, a wrong
Yitian or JaguarMicro payload type, or no decoder registered for the
section type.

Sections can also be parsed and formatted directly, for example
`rasvendor.hip08_sections.OemType1Section.from_bytes(data)` followed by
`rasvendor.hip08.format_type1_header(section)` and
`rasvendor.hip08.format_type1_registers(section)`.

## What the package does not do

- It does not read events from the kernel. There is no command or daemon;
  the caller supplies each section's type GUID and raw bytes.
- It has decoders only for the section formats listed above; any other
  section type makes `DecoderRegistry.decode` raise `DecodeError`.
- It keeps no database schema of its own beyond the per-vendor tables the
  decoders create on the connection they are given.

## Running the tests

```
pip install -e ".[test]"
pytest
```