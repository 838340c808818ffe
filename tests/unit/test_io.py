"""
Tests for reading PLM exports, writing extracts and packaging the IFS archive.
"""

import importlib.util
import math
import os
import shutil
import sys
import tempfile
import unittest
import zipfile
from pathlib import Path
from unittest.mock import patch

import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from plm_migration.core.exceptions import CSVValidationError, FileValidationError
from plm_migration.utils.archive import create_ifs_archive, ifs_file_name
from plm_migration.utils.csv_writer import read_records, write_records
from plm_migration.utils.spreadsheet_loader import detect_delimiter, normalize_cell, read_rows, read_rows_from_bytes


class TestNormalizeCell(unittest.TestCase):

    def test_values(self):
        self.assertEqual(normalize_cell(None), "")
        self.assertEqual(normalize_cell(math.nan), "")
        self.assertEqual(normalize_cell(12.0), "12")
        self.assertEqual(normalize_cell(2.5), "2.5")
        self.assertEqual(normalize_cell("  P-100 "), "P-100")
        self.assertEqual(normalize_cell(3), "3")


class TestReadRows(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_read_excel(self):
        path = self.temp_path / "export.xlsx"
        pd.DataFrame({
            'Number': ['P1', None, 'C1'],
            ' Structure Level ': [0, None, 1],
            'Quantity': [1, None, 2.5],
        }).to_excel(path, index=False)

        rows = read_rows(path)
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]['Number'], 'P1')
        self.assertEqual(rows[1]['Structure Level'], '1')
        self.assertEqual(rows[1]['Quantity'], '2.5')

    def test_read_semicolon_csv(self):
        path = self.temp_path / "export.csv"
        path.write_text(
            "Number;Structure Level;Quantity;Name\nP1;0;1;Panel A\n;;;\nC1;1;2;Panel B\n",
            encoding='utf-8'
        )
        rows = read_rows(path)
        self.assertEqual(rows, [
            {'Number': 'P1', 'Structure Level': '0', 'Quantity': '1', 'Name': 'Panel A'},
            {'Number': 'C1', 'Structure Level': '1', 'Quantity': '2', 'Name': 'Panel B'},
        ])

    def test_read_missing_file(self):
        with self.assertRaises(FileValidationError):
            read_rows(self.temp_path / "missing.xlsx")

    def test_read_csv_with_byte_order_mark(self):
        path = self.temp_path / "export.csv"
        path.write_bytes("\ufeffNumber;Structure Level\nP1;0\n".encode('utf-8'))
        self.assertEqual(read_rows(path), [{'Number': 'P1', 'Structure Level': '0'}])

        rows = read_rows_from_bytes("\ufeffNumber,Name\nP1,Panel\n".encode('utf-8'), "upload.csv")
        self.assertEqual(list(rows[0].keys()), ['Number', 'Name'])

    def test_detect_delimiter(self):
        self.assertEqual(detect_delimiter("Number;Name;Part, English"), ';')
        self.assertEqual(detect_delimiter("Number,Name"), ',')
        self.assertEqual(detect_delimiter("Number\tName"), '\t')
        self.assertEqual(detect_delimiter("Number"), ';')
        self.assertEqual(detect_delimiter("Number", default=','), ',')

    def test_single_column_and_tab_exports(self):
        rows = read_rows_from_bytes(b"Number\nP1\nC1\n", "export.csv")
        self.assertEqual(rows, [{'Number': 'P1'}, {'Number': 'C1'}])

        rows = read_rows_from_bytes(b"Number\tStructure Level\nP1\t0\n", "export.tsv")
        self.assertEqual(rows, [{'Number': 'P1', 'Structure Level': '0'}])

        rows = read_rows_from_bytes(b"Number,Name\nP1,Side panel\nC1,Edge\n", "export.csv")
        self.assertEqual([r['Name'] for r in rows], ['Side panel', 'Edge'])

    def test_xls_goes_through_excel_reader(self):
        self.assertIsNotNone(importlib.util.find_spec('xlrd'))
        with patch('plm_migration.utils.spreadsheet_loader.pd.read_excel',
                   return_value=pd.DataFrame({'Number': ['P1']})) as read_excel:
            rows = read_rows_from_bytes(b"\xd0\xcf\x11\xe0", "export.xls")
        self.assertEqual(rows, [{'Number': 'P1'}])
        read_excel.assert_called_once()

    def test_read_from_bytes(self):
        data = "Number,Name\nP1,Panel\n".encode('utf-8')
        rows = read_rows_from_bytes(data, "upload.csv")
        self.assertEqual(rows, [{'Number': 'P1', 'Name': 'Panel'}])

        with self.assertRaises(FileValidationError):
            read_rows_from_bytes(b"", "upload.csv")
        with self.assertRaises(FileValidationError):
            read_rows_from_bytes(b"data", "upload.pdf")


class TestCsvWriter(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_write_fixed_columns(self):
        path = self.temp_path / "nested" / "out.csv"
        write_records(
            [{'B': 'x', 'A': 1, 'IGNORED': 'y'}, {'A': 2}],
            ['A', 'B'], path
        )
        self.assertEqual(path.read_text(encoding='utf-8').splitlines(), ['A;B', '1;x', '2;'])
        self.assertEqual(read_records(path), [{'A': '1', 'B': 'x'}, {'A': '2', 'B': ''}])

    def test_header_only_when_empty(self):
        path = self.temp_path / "empty.csv"
        write_records([], ['PART_NO', 'PART_REV'], path)
        self.assertEqual(path.read_text(encoding='utf-8').strip(), 'PART_NO;PART_REV')
        self.assertEqual(read_records(path), [])

    def test_read_missing(self):
        with self.assertRaises(FileNotFoundError):
            read_records(self.temp_path / "missing.csv")


class TestArchive(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_ifs_file_names(self):
        self.assertEqual(ifs_file_name('eng_part_structure.csv', 'ABC12'), '02_L_ENG_PART_STRUCT_ABC12_WOOD.csv')
        self.assertEqual(ifs_file_name('master_part_all.csv', 'ABC12'), 'master_part_all.csv')

    def test_create_archive(self):
        files = []
        for name in ('master_part.csv', 'master_part_all.csv', 'inventory_part_plan.csv'):
            path = self.temp_path / name
            path.write_text("PART_NO\nP1\n")
            files.append(path)
        files.append(self.temp_path / 'inventory_part.csv')

        result = create_ifs_archive(files, 'ABC12', self.temp_path / 'dist')

        self.assertEqual(result.archive_path, self.temp_path / 'dist' / 'Import IFS ABC12.zip')
        self.assertGreater(result.archive_size, 0)
        with zipfile.ZipFile(result.archive_path) as zf:
            names = sorted(zf.namelist())
            self.assertEqual(zf.read('Import IFS ABC12/01_L_PARTS_MD_004_ABC12_WOOD.csv'), b"PART_NO\nP1\n")
        self.assertEqual(names, [
            'Import IFS ABC12/01_L_PARTS_MD_004_ABC12_WOOD.csv',
            'Import IFS ABC12/05_L_INVENTORY_PART_PLAN_ABC12_WOOD.csv',
            'Import IFS ABC12/master_part_all.csv',
        ])
        self.assertEqual(len(result.files_included), 3)


if __name__ == '__main__':
    unittest.main()
