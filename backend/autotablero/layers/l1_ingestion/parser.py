# L1: Ingestion Layer - File Parser
import pandas as pd
import io
import json
import chardet
from typing import Dict, Any, List
from pathlib import Path
import asyncio
import zipfile
import logging
from concurrent.futures import ThreadPoolExecutor
from openpyxl.utils.exceptions import InvalidFileException

from autotablero.core.exceptions import UnsupportedFileError
from autotablero.models.schemas import Table

logger = logging.getLogger(__name__)

# Thread pool for CPU-bound parsing
executor = ThreadPoolExecutor(max_workers=4)


async def parse_upload(filename: str, content: bytes) -> Dict[str, Table]:
    """Parse an uploaded file into named tables."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(
        executor,
        parse_upload_sync,
        filename,
        content
    )


def parse_upload_sync(filename: str, content: bytes) -> Dict[str, Table]:
    """
    Synchronous file parsing.

    JSON and CSV files become one table named after the file; every
    non-empty spreadsheet sheet becomes "<file> - <sheet>".
    """
    file_type = Path(filename).suffix.lower().lstrip(".")

    if file_type == "json":
        try:
            data = json.loads(content.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise UnsupportedFileError(f"Invalid JSON in {filename}", {"error": str(e)})
        return {filename: Table(rows=_json_records(data))}

    elif file_type == "csv":
        # Detect encoding
        result = chardet.detect(content[:10000])
        encoding = result['encoding'] or 'utf-8'
        try:
            df = pd.read_csv(io.BytesIO(content), encoding=encoding)
        except (UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise UnsupportedFileError(f"Could not read CSV {filename}", {"error": str(e)})
        return {filename: Table(rows=dataframe_to_records(df))}

    elif file_type in ["xls", "xlsx"]:
        try:
            sheets = pd.read_excel(io.BytesIO(content), sheet_name=None)
        except (ValueError, ImportError, KeyError, zipfile.BadZipFile, InvalidFileException) as e:
            raise UnsupportedFileError(f"Could not read workbook {filename}", {"error": str(e)})

        tables = {}
        for sheet_name, df in sheets.items():
            rows = dataframe_to_records(df)
            if rows:
                tables[f"{filename} - {sheet_name}"] = Table(rows=rows)
            else:
                logger.info(f"Skipping empty sheet {sheet_name} in {filename}")
        return tables

    raise UnsupportedFileError(f"Unsupported file type: {file_type or filename}")


def _json_records(data: Any) -> List[Dict[str, Any]]:
    """Find the array of records in a decoded JSON document."""
    if isinstance(data, dict):
        # Try to find the array of records
        for key, value in data.items():
            if isinstance(value, list):
                data = value
                break
        else:
            return []

    if not isinstance(data, list):
        return []

    return [row for row in data if isinstance(row, dict)]


def dataframe_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame rows as plain dicts with missing cells set to None."""
    df = df.rename(columns=str)
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")
