"""
Tests for the migration web API.
"""

import io
import os
import shutil
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from plm_migration.core.config import PipelineConfig
from plm_migration.web_server import create_app

HEADER = "Number;Name;Source;Classification;State;Revision;Structure Level;Quantity;Context;Site IFS;Phantom Manufacturing Part"
EXPORT = "\n".join([
    HEADER,
    "ASM1;Cabinet;Make;Meubles/AN29-02-00;Released;B;0;1;ABC12 Yacht;SAINT GILLES (FR014);yes",
    "SUB1;Side panel;Make;Panneaux/AN29-01-00;Released;A;1;2;ABC12 Yacht;SAINT GILLES (FR014);",
    "SCR1;Screw;Buy;Vis/AN29-09-00;Released;A;1;8;ABC12 Yacht;SAINT GILLES (FR014);",
]) + "\n"


class TestWebServer(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.output_dir = Path(self.temp_dir) / 'output'
        self.app = create_app(PipelineConfig(output_directory=self.output_dir))
        self.app.config['TESTING'] = True
        self.client = self.app.test_client()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def upload(self, content: bytes, filename: str = 'export.csv'):
        return self.client.post(
            '/api/migration',
            data={'file': (io.BytesIO(content), filename)},
            content_type='multipart/form-data',
        )

    def test_health(self):
        response = self.client.get('/api/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {'status': 'ok'})
        self.assertEqual(response.headers['X-Content-Type-Options'], 'nosniff')

    def test_migration_and_download(self):
        response = self.upload(EXPORT.encode('utf-8'))
        self.assertEqual(response.status_code, 200)

        payload = response.get_json()
        self.assertTrue(payload['success'])
        self.assertEqual(payload['project_code'], 'ABC12')
        self.assertIn('eng_part_structure.csv', payload['files'])
        self.assertEqual(payload['archive'], 'Import IFS ABC12.zip')

        run_id = payload['run_id']
        self.assertTrue((self.output_dir / run_id / 'eng_part_structure.csv').is_file())

        download = self.client.get(f'/api/migration/download/{run_id}/eng_part_structure.csv')
        self.assertEqual(download.status_code, 200)
        lines = download.data.decode('utf-8').splitlines()
        self.assertEqual(lines[0], 'PART NO;PART REV;SUB PART NO;SUB PART REV;QTY;STR COMMENT;SORT NO')
        self.assertEqual(lines[1:], ['ASM1;B;SUB1;A;2;;10', 'ASM1;B;SCR1;A;8;;20'])
        download.close()

    def test_missing_file(self):
        response = self.client.post('/api/migration', data={}, content_type='multipart/form-data')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'No file uploaded')

    def test_unsupported_upload(self):
        response = self.upload(b'%PDF', 'export.pdf')
        self.assertEqual(response.status_code, 400)

    def test_header_only_upload(self):
        response = self.upload((HEADER + "\n").encode('utf-8'))
        self.assertEqual(response.status_code, 400)

    def test_upload_with_byte_order_mark(self):
        response = self.upload(('\ufeff' + EXPORT).encode('utf-8'))
        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertTrue(payload['success'], [r['errors'] for r in payload['results']])
        self.assertEqual(payload['results'][3]['rows_output'], 2)

    def test_each_upload_has_its_own_output_directory(self):
        first = self.upload(EXPORT.encode('utf-8')).get_json()
        second = self.upload(EXPORT.encode('utf-8')).get_json()

        self.assertNotEqual(first['run_id'], second['run_id'])
        for payload in (first, second):
            run_dir = self.output_dir / payload['run_id']
            self.assertTrue((run_dir / 'master_part_all.csv').is_file())
            self.assertTrue((run_dir / 'Import IFS ABC12.zip').is_file())
        self.assertFalse((self.output_dir / 'master_part_all.csv').exists())

    def test_download_rejects_hidden_and_missing_files(self):
        run_id = self.upload(EXPORT.encode('utf-8')).get_json()['run_id']
        self.assertEqual(self.client.get(f'/api/migration/download/{run_id}/.env').status_code, 400)
        self.assertEqual(self.client.get(f'/api/migration/download/{run_id}/missing.csv').status_code, 404)
        self.assertEqual(self.client.get('/api/migration/download/not-a-run/master_part.csv').status_code, 400)
        self.assertEqual(self.client.get(f'/api/migration/download/{"0" * 32}/master_part.csv').status_code, 404)


if __name__ == '__main__':
    unittest.main()
