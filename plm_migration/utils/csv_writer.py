"""
Delimited-text output for the IFS extracts, and reader for previously
written extracts used as module dependencies.
"""

from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Union

import pandas as pd

from ..core.exceptions import DataProcessingError
from ..core.logging_config import get_logger

logger = get_logger(__name__)


def write_records(records: Sequence[Mapping[str, object]], columns: Sequence[str],
                  output_path: Union[str, Path], delimiter: str = ';',
                  encoding: str = 'utf-8') -> Path:
    """
    Write records to a delimited file with a fixed column order and a header row.

    Args:
        records: Flat records; missing keys are written empty
        columns: Output column order
        output_path: Destination file (parent directories are created)
        delimiter: Field delimiter
        encoding: Output encoding

    Returns:
        The written path
    """
    path = Path(output_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        df = pd.DataFrame(list(records), columns=list(columns))
        df.to_csv(path, sep=delimiter, index=False, encoding=encoding)
    except OSError as e:
        raise DataProcessingError(f"Failed to write CSV file at {path}: {e}")

    logger.debug(f"Wrote {len(records)} rows to {path}")
    return path


def read_records(input_path: Union[str, Path], delimiter: str = ';',
                 encoding: str = 'utf-8') -> List[Dict[str, str]]:
    """
    Read a delimited file written by write_records back into text records.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(input_path)
    if not path.is_file():
        raise FileNotFoundError(f"CSV file not found: {path}")

    try:
        df = pd.read_csv(path, sep=delimiter, dtype=str, keep_default_na=False, encoding=encoding)
    except pd.errors.EmptyDataError:
        return []

    df.columns = [str(c).strip() for c in df.columns]
    return [{k: str(v).strip() for k, v in record.items()} for record in df.to_dict(orient='records')]
