"""
End-to-end tests: a small PLM export through every module, the CLI and the archive.
"""

import os
import shutil
import sys
import tempfile
import unittest
import zipfile
from dataclasses import replace
from pathlib import Path

import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from plm_migration import cli
from plm_migration.core.config import PipelineConfig
from plm_migration.core.exceptions import MissingInputError
from plm_migration.pipeline import MigrationPipeline, detect_project_code
from plm_migration.utils.csv_writer import read_records


def export_rows():
    base = {
        'Name': '', 'Part English designation': '', 'Context': '', 'Site IFS': 'SAINT GILLES (FR014)',
        'Phantom Manufacturing Part': '', 'Masse': '', 'Matière': '',
    }
    rows = [
        dict(base, Number='ASM1', Name='Cabinet', Source='Make', Classification='Meubles/AN29-02-00',
             State='Released', Revision='B', **{'Structure Level': '0', 'Quantity': '1',
                                                  'Context': 'ABC12 Yacht', 'Phantom Manufacturing Part': 'yes'}),
        dict(base, Number='SUB1', Name='Side panel', Source='Make', Classification='Panneaux/AN29-01-00',
             State='Released', Revision='A', Masse='3 kg', Matière='chêne',
             **{'Structure Level': '1', 'Quantity': '2'}),
        dict(base, Number='PNL1', Name='Veneer', Source='Buy', Classification='Achats/AN29-05-00',
             State='Released', Revision='C', **{'Structure Level': '2', 'Quantity': '4'}),
        dict(base, Number='PNL2', Name='Edge', Source='Make', Classification='Panneaux/AN29-01-00',
             State='In Work', Revision='C', **{'Structure Level': '2', 'Quantity': '1'}),
        dict(base, Number='SCR1', Name='Screw', Source='Buy', Classification='Vis/AN29-09-00',
             State='Released', Revision='A', **{'Structure Level': '1', 'Quantity': '8'}),
    ]
    return rows


class TestMigrationPipeline(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)
        self.config = PipelineConfig(output_directory=self.temp_path / 'output')

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_full_run(self):
        summary = MigrationPipeline(self.config).run(rows=export_rows())

        self.assertTrue(summary.success, [r.errors for r in summary.results])
        self.assertEqual(summary.project_code, 'ABC12')
        self.assertEqual([r.module for r in summary.results], [
            'master-part', 'master-part-all', 'technical-specs', 'eng-structure',
            'inventory-part', 'inventory-plan',
        ])
        outputs = {r.module: r.rows_output for r in summary.results}
        self.assertEqual(outputs, {
            'master-part': 3, 'master-part-all': 5, 'technical-specs': 2, 'eng-structure': 4,
            'inventory-part': 1, 'inventory-plan': 1,
        })

        structure = read_records(self.config.output_path('eng-structure'))
        self.assertEqual(
            [(r['PART NO'], r['PART REV'], r['SUB PART NO'], r['SUB PART REV'], r['QTY'], r['SORT NO'])
             for r in structure],
            [
                ('ASM1', 'B', 'SUB1', 'A', '2', '10'),
                ('SUB1', 'A', 'PNL1', 'C', '4', '10'),
                ('SUB1', 'A', 'PNL2', 'B', '1', '20'),
                ('ASM1', 'B', 'SCR1', 'A', '8', '20'),
            ]
        )

        master = read_records(self.config.output_path('master-part'))
        self.assertEqual([r['PART_NO'] for r in master], ['ASM1', 'SUB1', 'PNL2'])
        self.assertEqual(master[2]['PART_REV'], 'B')

        self.assertIsNotNone(summary.archive_path)
        with zipfile.ZipFile(summary.archive_path) as zf:
            self.assertIn('Import IFS ABC12/02_L_ENG_PART_STRUCT_ABC12_WOOD.csv', zf.namelist())
            self.assertEqual(len(zf.namelist()), 6)

    def test_run_from_excel_file(self):
        path = self.temp_path / 'export.xlsx'
        pd.DataFrame(export_rows()).to_excel(path, index=False)

        summary = MigrationPipeline(replace(self.config, create_archive=False)).run(path)

        self.assertTrue(summary.success)
        self.assertIsNone(summary.archive_path)
        self.assertEqual(summary.to_dict()['results'][3]['rows_output'], 4)

    def test_structure_without_reference_fails(self):
        config = self.config.with_modules(['eng-structure'])
        summary = MigrationPipeline(config).run(rows=export_rows())

        self.assertFalse(summary.success)
        self.assertEqual(len(summary.results), 1)
        self.assertIn('Extended parts reference not found', summary.results[0].errors[0])
        self.assertIsNone(summary.archive_path)

    def test_failed_prerequisite_skips_dependents(self):
        rows = [{k: v for k, v in row.items() if k != 'Classification'} for row in export_rows()]
        summary = MigrationPipeline(self.config).run(rows=rows)
        by_module = {r.module: r for r in summary.results}

        self.assertFalse(by_module['master-part-all'].success)
        self.assertIn('Prerequisite module(s) failed: master-part-all', by_module['eng-structure'].errors[0])
        self.assertIn('Prerequisite module(s) failed: master-part', by_module['technical-specs'].errors[0])
        self.assertFalse(by_module['inventory-part'].success)
        self.assertGreaterEqual(summary.total_errors, 6)

    def test_empty_input_is_fatal(self):
        with self.assertRaises(MissingInputError):
            MigrationPipeline(self.config).run(rows=[])
        with self.assertRaises(MissingInputError):
            MigrationPipeline(self.config).run()

    def test_detect_project_code(self):
        self.assertEqual(detect_project_code([{'Context': 'XY123 Boat'}]), 'XY123')
        self.assertEqual(detect_project_code([{'Context': 'boat'}]), 'XXXXX')
        self.assertEqual(detect_project_code([{'Number': 'P1'}]), 'XXXXX')
        self.assertEqual(detect_project_code([]), 'XXXXX')


class TestCli(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)
        self.input_path = self.temp_path / 'export.csv'
        pd.DataFrame(export_rows()).to_csv(self.input_path, sep=';', index=False)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_successful_run(self):
        output_dir = self.temp_path / 'out'
        code = cli.main(['--input', str(self.input_path), '--output-dir', str(output_dir),
                         '--no-archive', '--log-level', 'WARNING'])

        self.assertEqual(code, 0)
        self.assertTrue((output_dir / 'eng_part_structure.csv').exists())
        self.assertFalse((output_dir / 'Import IFS ABC12.zip').exists())

    def test_selected_modules_and_buy_parents(self):
        output_dir = self.temp_path / 'out'
        code = cli.main(['--input', str(self.input_path), '--output-dir', str(output_dir),
                         '--modules', 'master-part-all', 'eng-structure', '--exclude-buy-parents',
                         '--log-level', 'WARNING'])

        self.assertEqual(code, 0)
        self.assertFalse((output_dir / 'master_part.csv').exists())
        self.assertEqual(len(read_records(output_dir / 'eng_part_structure.csv')), 4)
        self.assertTrue((output_dir / 'Import IFS ABC12.zip').exists())

    def test_failed_module_exit_code(self):
        output_dir = self.temp_path / 'out'
        code = cli.main(['--input', str(self.input_path), '--output-dir', str(output_dir),
                         '--modules', 'eng-structure', '--log-level', 'ERROR'])
        self.assertEqual(code, 1)

    def test_missing_input_exit_code(self):
        code = cli.main(['--input', str(self.temp_path / 'missing.xlsx'), '--log-level', 'CRITICAL'])
        self.assertEqual(code, 2)


if __name__ == '__main__':
    unittest.main()
