"""Shared machinery for vendor-specific (non-standard) error section decoders."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence, TextIO, Union

log = logging.getLogger(__name__)

HISI_ERR_SEVERITY_NFE = 0
HISI_ERR_SEVERITY_FE = 1
HISI_ERR_SEVERITY_CE = 2
HISI_ERR_SEVERITY_NONE = 3

_SEVERITIES = {
    HISI_ERR_SEVERITY_NFE: "recoverable",
    HISI_ERR_SEVERITY_FE: "fatal",
    HISI_ERR_SEVERITY_CE: "corrected",
    HISI_ERR_SEVERITY_NONE: "none",
}

Value = Union[int, str, None]


class DecodeError(ValueError):
    """A vendor error section could not be decoded."""


class DataType(Enum):
    INT = "int"
    INT64 = "int64"
    TEXT = "text"


def err_severity(value: int) -> str:
    """Name of a vendor error severity code."""
    return _SEVERITIES.get(value, "unknown")


class FieldMessage:
    """A bounded message assembled from space separated pieces."""

    def __init__(self, limit: int = 2048) -> None:
        self.limit = limit
        self._text = ""

    def add(self, text: str) -> None:
        """Append a piece, separated from the previous one by a space."""
        room = self.limit - 1
        if len(self._text) >= room:
            return
        piece = f" {text}" if self._text else text
        self._text = (self._text + piece)[:room]

    def __str__(self) -> str:
        return self._text


def _to_sql(value: Value) -> Value:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        value &= (1 << 64) - 1
        return value - (1 << 64) if value >= 1 << 63 else value
    return value


@dataclass(frozen=True)
class TableSpec:
    """Name and columns of a vendor event table; the first column is the key."""

    name: str
    fields: Sequence[tuple[str, str]]

    def create(self, connection: sqlite3.Connection) -> VendorTable:
        """Create the table if missing and return a writer for it."""
        columns = ", ".join(f"{name} {kind}" for name, kind in self.fields)
        connection.execute(f"CREATE TABLE IF NOT EXISTS {self.name} ({columns})")
        connection.commit()
        return VendorTable(self, connection)


class VendorTable:
    """Writes rows into a vendor table, one bound column at a time."""

    def __init__(self, spec: TableSpec, connection: sqlite3.Connection) -> None:
        self.spec = spec
        self.connection = connection
        self._values: dict[int, Value] = {}
        placeholders = ", ".join(["NULL"] + ["?"] * (len(spec.fields) - 1))
        self._insert = f"INSERT INTO {spec.name} VALUES ({placeholders})"

    def bind(self, index: int, value: Value) -> None:
        """Set the value of column ``index`` (1 is the first after the key)."""
        if not 1 <= index < len(self.spec.fields):
            raise IndexError(f"column {index} out of range for {self.spec.name}")
        self._values[index] = _to_sql(value)

    def step(self) -> int | None:
        """Insert the bound row, clear the bindings and return the row id."""
        row = [self._values.get(i) for i in range(1, len(self.spec.fields))]
        try:
            cursor = self.connection.execute(self._insert, row)
            self.connection.commit()
        except sqlite3.Error as exc:
            log.error("Failed to do %s step on sqlite: %s", self.spec.name, exc)
            return None
        finally:
            self.clear()
        return cursor.lastrowid

    def clear(self) -> None:
        """Forget every bound value."""
        self._values.clear()


@dataclass
class NonStandardEvent:
    """A vendor error section as reported by the kernel."""

    sec_type: str
    error: bytes
    timestamp: str = ""


DecodeFn = Callable[[NonStandardEvent, TextIO, "NsDecoder"], object]


@dataclass
class NsDecoder:
    """Decoder for one vendor section type, with its optional table."""

    sec_type: str
    decode_fn: DecodeFn
    table_spec: TableSpec | None = None
    table: VendorTable | None = field(default=None)

    def add_table(self, connection: sqlite3.Connection) -> VendorTable | None:
        """Create the decoder's table once; return it."""
        if self.table_spec is not None and self.table is None:
            try:
                self.table = self.table_spec.create(connection)
            except sqlite3.Error as exc:
                log.warning("Failed to create sql %s", self.table_spec.name)
                raise DecodeError(f"cannot create table {self.table_spec.name}") from exc
        return self.table

    def decode(self, event: NonStandardEvent, out: TextIO) -> object:
        return self.decode_fn(event, out, self)


def _normalize(sec_type: str) -> str:
    return sec_type.replace("-", "").lower()


class DecoderRegistry:
    """Decoders indexed by section type GUID."""

    def __init__(self) -> None:
        self._decoders: dict[str, NsDecoder] = {}

    def register(self, decoder: NsDecoder) -> NsDecoder:
        self._decoders[_normalize(decoder.sec_type)] = decoder
        return decoder

    def find(self, sec_type: str) -> NsDecoder | None:
        return self._decoders.get(_normalize(sec_type))

    def decode(self, event: NonStandardEvent, out: TextIO) -> object:
        decoder = self.find(event.sec_type)
        if decoder is None:
            raise DecodeError(f"no decoder for section type {event.sec_type}")
        return decoder.decode(event, out)