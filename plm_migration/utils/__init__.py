from .spreadsheet_loader import read_rows, read_rows_from_bytes, normalize_cell
from .csv_writer import write_records, read_records
from .archive import create_ifs_archive

__all__ = ['read_rows', 'read_rows_from_bytes', 'normalize_cell', 'write_records', 'read_records', 'create_ifs_archive']
