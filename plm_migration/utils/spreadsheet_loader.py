"""
Spreadsheet loader for PLM exports.
Reads Excel or CSV exports into an ordered list of string-keyed records.
"""

import io
import warnings
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from ..core.exceptions import CSVValidationError, ExcelValidationError, FileValidationError
from ..core.logging_config import get_logger
from ..core.validation import FileValidator

# Configure warnings
warnings.filterwarnings(
    "ignore",
    r"Workbook contains no default style.*",
    UserWarning,
    r"openpyxl\.styles\.stylesheet",
)

logger = get_logger(__name__)

Row = Dict[str, str]

CSV_DELIMITERS = (';', ',', '\t')


def normalize_cell(value) -> str:
    """
    Normalize a raw cell value to trimmed text.

    Args:
        value: Raw value from pandas

    Returns:
        "" for missing cells, "12" for integral floats, the stripped string otherwise
    """
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass

    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(value)

    return str(value).strip()


def dataframe_to_rows(df: pd.DataFrame) -> List[Row]:
    """Convert a DataFrame to records, dropping fully empty rows, keeping order."""
    columns = [normalize_cell(c).lstrip('\ufeff').strip() for c in df.columns]
    rows: List[Row] = []
    for values in df.itertuples(index=False, name=None):
        row = {column: normalize_cell(value) for column, value in zip(columns, values)}
        if any(row.values()):
            rows.append(row)
    return rows


def _read_excel(source, sheet: Optional[Union[str, int]]) -> pd.DataFrame:
    try:
        return pd.read_excel(source, sheet_name=sheet if sheet is not None else 0, dtype=str)
    except ValueError as e:
        raise ExcelValidationError(f"Cannot read Excel sheet: {e}", field="sheet", value=str(sheet))
    except Exception as e:
        raise ExcelValidationError(f"Invalid Excel file format: {e}")


def detect_delimiter(header: str, default: str = ';') -> str:
    """Most frequent of `;`, `,` and tab in the header line; the default when none occurs."""
    counts = {d: header.count(d) for d in CSV_DELIMITERS}
    best = max(CSV_DELIMITERS, key=lambda d: counts[d])
    return best if counts[best] else default


def _read_csv(data: bytes, encoding: str, delimiter: str = ';') -> pd.DataFrame:
    # Excel "CSV UTF-8" exports start with a byte order mark
    if encoding.lower().replace('_', '-') in ('utf-8', 'utf8'):
        encoding = 'utf-8-sig'
    try:
        lines = data.decode(encoding).splitlines()
        sep = detect_delimiter(lines[0] if lines else '', delimiter)
        logger.debug(f"CSV delimiter: {sep!r}")
        return pd.read_csv(io.BytesIO(data), sep=sep, dtype=str, keep_default_na=False, encoding=encoding)
    except pd.errors.EmptyDataError:
        raise CSVValidationError("CSV file is empty")
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise CSVValidationError(f"Invalid CSV format: {e}")


def read_rows(file_path: Union[str, Path], sheet: Optional[Union[str, int]] = None,
              encoding: str = 'utf-8', max_size: Optional[int] = None,
              delimiter: str = ';') -> List[Row]:
    """
    Read a PLM export into an ordered list of records.

    Args:
        file_path: Excel (.xlsx/.xlsm/.xls) or delimited text (.csv/.tsv/.txt) file
        sheet: Sheet name or index for Excel files (first sheet by default)
        encoding: Text encoding for delimited files
        max_size: Optional size limit in bytes
        delimiter: Used when the header line holds none of `;`, `,` or tab

    Returns:
        Records in file order

    Raises:
        FileValidationError: If the file is missing, too large or unreadable
    """
    path = FileValidator.validate_input_file(file_path, max_size=max_size)

    if path.suffix.lower() in FileValidator.ALLOWED_EXCEL_EXTENSIONS:
        df = _read_excel(path, sheet)
    else:
        df = _read_csv(path.read_bytes(), encoding, delimiter)

    rows = dataframe_to_rows(df)
    logger.info(f"Read {len(rows)} rows, {len(df.columns)} columns from {path.name}",
                extra={'file': str(path), 'rows': len(rows), 'columns': len(df.columns)})
    return rows


def read_rows_from_bytes(data: bytes, filename: str, sheet: Optional[Union[str, int]] = None,
                         encoding: str = 'utf-8', delimiter: str = ';') -> List[Row]:
    """Read an uploaded export held in memory; the filename selects the parser."""
    if not data:
        raise FileValidationError(f"Uploaded file is empty: {filename}", value=filename)

    suffix = Path(filename).suffix.lower()
    if suffix in FileValidator.ALLOWED_EXCEL_EXTENSIONS:
        df = _read_excel(io.BytesIO(data), sheet)
    elif suffix in FileValidator.ALLOWED_CSV_EXTENSIONS:
        df = _read_csv(data, encoding, delimiter)
    else:
        raise FileValidationError(f"Unsupported file extension: {suffix}", field="file_extension", value=suffix)

    rows = dataframe_to_rows(df)
    logger.info(f"Read {len(rows)} rows from upload {filename}")
    return rows
