"""Spreadsheet codec — bytes ↔ list of row dicts.

Handles:
- Reading .xlsx workbooks (first worksheet only)
- Reading .csv files (encoding and separator sniffed)
- Writing a single-sheet .xlsx with fixed column widths

Cells come back as raw Python values (str, int, float, datetime) with empty
cells as None. Interpreting them is the caller's job.
"""

import io
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
import structlog
from openpyxl.utils import get_column_letter

from ifood_crm.core.exceptions import SpreadsheetDecodeError

logger = structlog.get_logger(__name__)

Row = Dict[str, Any]


def _clean_column_name(col: str) -> str:
    """Strip whitespace from column names."""
    return col.strip() if isinstance(col, str) else col


def _frame_to_rows(df: pd.DataFrame) -> List[Row]:
    df.columns = [_clean_column_name(c) for c in df.columns]
    df = df.dropna(how="all")
    df = df.astype(object).where(pd.notnull(df), None)
    return df.to_dict(orient="records")


def _detect_encoding(data: bytes) -> str:
    """Detect text encoding by trying common encodings."""
    for enc in ("utf-8-sig", "latin-1", "cp1252"):
        try:
            data[:4096].decode(enc)
            return enc
        except UnicodeDecodeError:
            continue
    return "latin-1"


def _detect_separator(text: str) -> str:
    """Detect CSV separator from the header line."""
    first_line = text.splitlines()[0] if text else ""
    if ";" in first_line:
        return ";"
    if "\t" in first_line:
        return "\t"
    return ","


def _read_csv(data: bytes) -> pd.DataFrame:
    encoding = _detect_encoding(data)
    text = data.decode(encoding, errors="replace")
    sep = _detect_separator(text)
    return pd.read_csv(io.StringIO(text), sep=sep, dtype=object, keep_default_na=False, na_values=[""])


def _read_xlsx(data: bytes) -> pd.DataFrame:
    # Only the first worksheet holds clients; other sheets are ignored
    return pd.read_excel(io.BytesIO(data), engine="openpyxl", sheet_name=0, dtype=object)


def read_table(data: bytes, filename: Optional[str] = None) -> List[Row]:
    """Decode spreadsheet bytes into rows keyed by header.

    Raises SpreadsheetDecodeError for anything that is not a readable table.
    """
    if not data:
        raise SpreadsheetDecodeError(details={"reason": "empty file"})

    is_csv = bool(filename) and filename.lower().endswith(".csv")
    try:
        df = _read_csv(data) if is_csv else _read_xlsx(data)
        rows = _frame_to_rows(df)
    except Exception as e:
        logger.warning("Spreadsheet decode failed", filename=filename, error=str(e))
        raise SpreadsheetDecodeError(details={"reason": str(e)[:500]}) from e

    logger.debug("Spreadsheet decoded", filename=filename, rows=len(rows))
    return rows


def write_table(
    rows: Sequence[Row],
    columns: Sequence[str],
    column_widths: Optional[Sequence[int]] = None,
    sheet_name: str = "Sheet1",
) -> bytes:
    """Encode rows as a single-sheet .xlsx workbook."""
    df = pd.DataFrame(list(rows), columns=list(columns))
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        if column_widths:
            ws = writer.sheets[sheet_name]
            for i, width in enumerate(column_widths, start=1):
                ws.column_dimensions[get_column_letter(i)].width = width
    return buf.getvalue()
