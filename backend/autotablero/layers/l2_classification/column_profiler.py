# L2: Classification Layer - Column Profiler
from typing import Dict, Any, List, Sequence, Hashable
import logging

from autotablero.config import settings
from autotablero.layers.l1_ingestion.cells import CellKind, to_cell, parse_number, is_date
from autotablero.models.schemas import ColumnMetadata, ColumnType

logger = logging.getLogger(__name__)


class ColumnProfiler:
    """
    Derives per-column metadata from a bounded sample of a table.

    Column keys are read from the first row only, so a column missing
    from row 0 is not profiled even when later rows carry it.
    """

    def __init__(self, sample_size: int = None, max_unique: int = None):
        self.sample_size = sample_size or settings.PROFILE_SAMPLE_SIZE
        self.max_unique = max_unique or settings.DIMENSION_MAX_UNIQUE

    def profile(self, rows: Sequence[Dict[str, Any]]) -> Dict[str, ColumnMetadata]:
        """Profile a table's rows. Empty input gives an empty mapping."""
        if not rows:
            return {}

        sample = list(rows[:self.sample_size])
        first = sample[0] if isinstance(sample[0], dict) else {}

        columns = {}
        for key in first.keys():
            values = [row.get(key) if isinstance(row, dict) else None for row in sample]
            columns[str(key)] = self._profile_column(str(key), values)

        logger.debug(f"Profiled {len(columns)} columns from {len(sample)} sampled rows")
        return columns

    def _profile_column(self, name: str, values: List[Any]) -> ColumnMetadata:
        """Profile a single column."""
        cells = [to_cell(v) for v in values]
        present = [c for c in cells if c.kind != CellKind.NULL]

        unique_count = len({_distinct_key(v) for v in values})

        is_numeric = all(parse_number(c) is not None for c in present)
        is_date_col = not is_numeric and all(is_date(c) for c in present)

        if is_numeric:
            col_type = ColumnType.NUMBER
        elif is_date_col:
            col_type = ColumnType.DATE
        else:
            col_type = ColumnType.TEXT

        return ColumnMetadata(
            name=name,
            alias=name,
            type=col_type,
            unique_ratio=unique_count / len(values),
            is_metric=is_numeric,
            is_dimension=col_type == ColumnType.TEXT and 1 < unique_count < self.max_unique,
        )


def _distinct_key(value: Any) -> Hashable:
    """Key used to count distinct raw values; unhashable values compare by repr."""
    if to_cell(value).kind == CellKind.NULL:
        return ("null",)
    try:
        hash(value)
    except TypeError:
        return ("unhashable", repr(value))
    return (type(value).__name__, value)


# Singleton
column_profiler = ColumnProfiler()


def profile(rows: Sequence[Dict[str, Any]]) -> Dict[str, ColumnMetadata]:
    """Profile rows with the default profiler."""
    return column_profiler.profile(rows)
