"""Parse the university hostel roster workbook into StudentRecord rows.

The workbook has one sheet per hostel (VH, AH, MH, KH, SH). Each sheet may
carry a few title rows before the real header, so the header is detected
within the first rows by looking for a "reg" or "students name" cell.
"""
from __future__ import annotations

import io
import logging
from typing import Iterable, Optional, Sequence

import pandas as pd

from ..core.constants import SHEET_TO_HOSTEL
from .model import StudentRecord

logger = logging.getLogger(__name__)

HEADER_SCAN_ROWS = 5
MIN_REGISTER_ID_LENGTH = 3


def _clean(value) -> str:
    if value is None:
        return ""
    text = str(value).strip()
    return "" if text.lower() == "nan" else text


def _first(header: Sequence[str], match) -> Optional[int]:
    for index, raw in enumerate(header):
        if match(raw.lower()):
            return index
    return None


def find_header_row(rows: Sequence[Sequence[str]]) -> Optional[int]:
    for index, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        if len(row) < 3:
            continue
        if _first(row, lambda c: "reg" in c or "students name" in c) is not None:
            return index
    return None


def detect_columns(header: Sequence[str]) -> dict[str, Optional[int]]:
    return {
        "reg": _first(header, lambda c: "reg" in c),
        "name": _first(header, lambda c: "students name" in c or c == "name"),
        "dept": _first(header, lambda c: "dept" in c),
        "year": _first(header, lambda c: c in ("yr", "year")),
        "room": _first(header, lambda c: "room" in c),
    }


def parse_sheet(rows: Sequence[Sequence[str]], hostel_block: str) -> list[StudentRecord]:
    header_index = find_header_row(rows)
    if header_index is None:
        return []

    columns = detect_columns(rows[header_index])
    if columns["reg"] is None or columns["name"] is None:
        return []

    def cell(row: Sequence[str], key: str) -> str:
        idx = columns.get(key)
        if idx is None or idx >= len(row):
            return ""
        return row[idx]

    records = []
    for row in rows[header_index + 1:]:
        register_id = cell(row, "reg").upper()
        if len(register_id) < MIN_REGISTER_ID_LENGTH:
            continue
        records.append(
            StudentRecord(
                register_id=register_id,
                name=cell(row, "name"),
                department=cell(row, "dept") or None,
                year=cell(row, "year") or None,
                hostel_block=hostel_block,
                room_no=cell(row, "room") or None,
            )
        )
    return records


def dedupe(records: Iterable[StudentRecord]) -> list[StudentRecord]:
    seen: dict[str, StudentRecord] = {}
    for record in records:
        seen.setdefault(record.register_id, record)
    return list(seen.values())


def parse_roster_workbook(data: bytes) -> list[StudentRecord]:
    sheets = pd.read_excel(io.BytesIO(data), sheet_name=None, header=None, dtype=str, engine="openpyxl")

    records: list[StudentRecord] = []
    for sheet_name, frame in sheets.items():
        hostel = SHEET_TO_HOSTEL.get(str(sheet_name).strip().upper())
        if not hostel:
            logger.debug("Skipping roster sheet %s", sheet_name)
            continue
        rows = [[_clean(v) for v in row] for row in frame.fillna("").values.tolist()]
        parsed = parse_sheet(rows, hostel)
        logger.info("Roster sheet %s: %d rows", sheet_name, len(parsed))
        records.extend(parsed)

    return dedupe(records)
