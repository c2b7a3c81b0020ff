import io
import sqlite3

import pytest

from rasvendor.vendor import (
    DecodeError,
    DecoderRegistry,
    FieldMessage,
    NonStandardEvent,
    NsDecoder,
    TableSpec,
    err_severity,
)

SPEC = TableSpec(
    "demo_event",
    (("id", "INTEGER PRIMARY KEY"), ("timestamp", "TEXT"), ("value", "INTEGER")),
)


@pytest.mark.parametrize(
    "code, name",
    [(0, "recoverable"), (1, "fatal"), (2, "corrected"), (3, "none"), (9, "unknown")],
)
def test_err_severity(code, name):
    assert err_severity(code) == name


def test_field_message_joins_with_spaces():
    msg = FieldMessage()
    msg.add("[ table_version=1")
    msg.add("soc=x")
    msg.add("]")
    assert str(msg) == "[ table_version=1 soc=x ]"


def test_field_message_respects_limit():
    msg = FieldMessage(limit=8)
    for _ in range(5):
        msg.add("abcdef")
    assert len(str(msg)) <= 7
    assert str(msg).startswith("abcdef")


def test_empty_field_message():
    assert str(FieldMessage()) == ""


def test_table_round_trip():
    conn = sqlite3.connect(":memory:")
    table = SPEC.create(conn)
    table.bind(1, "now")
    table.bind(2, 5)
    assert table.step() is not None
    assert conn.execute("SELECT timestamp, value FROM demo_event").fetchall() == [("now", 5)]


def test_step_clears_bindings():
    conn = sqlite3.connect(":memory:")
    table = SPEC.create(conn)
    table.bind(2, 4)
    table.step()
    table.step()
    rows = conn.execute("SELECT value FROM demo_event ORDER BY id").fetchall()
    assert rows == [(4,), (None,)]


def test_large_unsigned_wraps_to_signed():
    conn = sqlite3.connect(":memory:")
    table = SPEC.create(conn)
    table.bind(2, 2**64 - 1)
    table.step()
    assert conn.execute("SELECT value FROM demo_event").fetchone() == (-1,)


@pytest.mark.parametrize("index", [0, 3])
def test_bind_out_of_range(index):
    table = SPEC.create(sqlite3.connect(":memory:"))
    with pytest.raises(IndexError):
        table.bind(index, 1)


def test_add_table_is_idempotent():
    conn = sqlite3.connect(":memory:")
    decoder = NsDecoder("abc", lambda e, o, d: None, SPEC)
    first = decoder.add_table(conn)
    assert decoder.add_table(conn) is first
    assert NsDecoder("abc", lambda e, o, d: None).add_table(conn) is None


def test_decoder_calls_function():
    decoder = NsDecoder("abc", lambda e, o, d: (e.error, d.sec_type))
    event = NonStandardEvent("abc", b"\x01")
    assert decoder.decode(event, io.StringIO()) == (b"\x01", "abc")


def test_registry_normalizes_guid():
    registry = DecoderRegistry()
    decoder = registry.register(NsDecoder("A6980811-16EA-4E4D", lambda e, o, d: 1))
    assert registry.find("a698081116ea4e4d") is decoder
    assert registry.find("ffff") is None


def test_registry_unknown_section_raises():
    with pytest.raises(DecodeError):
        DecoderRegistry().decode(NonStandardEvent("dead", b""), io.StringIO())