# L1: Ingestion Layer - Tagged cell values
# Raw records hold whatever the decoder produced; everything downstream
# works on a closed set of cell kinds instead.

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
import math
import numbers
import re

import pandas as pd


class CellKind(Enum):
    NUMBER = "number"
    TEXT = "text"
    DATE = "date"
    NULL = "null"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    raw: Any
    number: Optional[float] = None


NULL_CELL = Cell(CellKind.NULL, None)

# Everything but digits, dot and minus is dropped before parsing ("$1,200" -> "1200").
NON_NUMERIC_CHARS = re.compile(r"[^0-9.\-]+")
NUMBER_LITERAL = re.compile(r"^-?(\d+\.?\d*|\.\d+)$")


def to_cell(value: Any) -> Cell:
    """Tag a raw scalar."""
    if value is None:
        return NULL_CELL
    if isinstance(value, bool):
        return Cell(CellKind.TEXT, value)
    if isinstance(value, (numbers.Real, Decimal)):
        number = float(value)
        if math.isnan(number):
            return NULL_CELL
        return Cell(CellKind.NUMBER, value, number)
    if isinstance(value, (datetime, date, pd.Timestamp)):
        if value is pd.NaT:
            return NULL_CELL
        return Cell(CellKind.DATE, value)
    if isinstance(value, str):
        return Cell(CellKind.TEXT, value)
    try:
        if pd.isna(value):
            return NULL_CELL
    except (TypeError, ValueError):
        pass
    return Cell(CellKind.TEXT, value)


def parse_number(cell: Cell) -> Optional[float]:
    """Numeric value of a cell after stripping formatting, or None."""
    if cell.kind == CellKind.NUMBER:
        return cell.number
    if cell.kind != CellKind.TEXT:
        return None
    cleaned = NON_NUMERIC_CHARS.sub("", str(cell.raw))
    if not NUMBER_LITERAL.match(cleaned):
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if math.isinf(number):
        return None
    return number


def is_date(cell: Cell) -> bool:
    """True when the cell holds or parses as a calendar date."""
    if cell.kind == CellKind.DATE:
        return True
    if cell.kind != CellKind.TEXT or isinstance(cell.raw, bool):
        return False
    text = str(cell.raw).strip()
    if not text:
        return False
    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return False
    return parsed is not pd.NaT and not pd.isna(parsed)


def to_number(value: Any) -> float:
    """Aggregation helper: malformed values contribute zero."""
    number = parse_number(to_cell(value))
    return number if number is not None else 0.0
