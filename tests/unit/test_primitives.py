import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from plm_migration.processors import primitives as p


class TestRevisions(unittest.TestCase):

    def test_decrement_letter(self):
        self.assertEqual(p.decrement_letter('B'), 'A')
        self.assertEqual(p.decrement_letter('A'), 'A')
        self.assertEqual(p.decrement_letter('I'), 'H')
        self.assertEqual(p.decrement_letter('J'), 'J')
        self.assertEqual(p.decrement_letter('G', highest='F'), 'G')
        self.assertEqual(p.decrement_letter('b'), 'b')
        self.assertEqual(p.decrement_letter('AB'), 'AB')
        self.assertEqual(p.decrement_letter(''), '')

    def test_compute_revision(self):
        self.assertEqual(p.compute_revision('C', 'Released'), 'C')
        self.assertEqual(p.compute_revision(' C ', ' released '), 'C')
        self.assertEqual(p.compute_revision('C', 'In Work'), 'B')
        self.assertEqual(p.compute_revision('F', 'Under Review'), 'E')
        self.assertEqual(p.compute_revision('A', 'In Work'), 'A')
        self.assertEqual(p.compute_revision('G', 'In Work'), 'G')
        self.assertEqual(p.compute_revision('C', 'Obsolete'), 'C')
        self.assertEqual(p.compute_revision(None, None), '')

    def test_compute_child_revision(self):
        self.assertEqual(p.compute_child_revision('I', 'In Work'), 'H')
        self.assertEqual(p.compute_child_revision('I', 'Released'), 'I')
        self.assertEqual(p.compute_child_revision('C', 'Obsolete'), 'B')
        self.assertEqual(p.compute_child_revision('Z', 'In Work'), 'Z')


class TestFilters(unittest.TestCase):

    def test_filter_by_source(self):
        rows = [{'Number': '1', 'Source': 'Make'}, {'Number': '2', 'Source': ' BUY '}, {'Number': '3'}]
        self.assertEqual([r['Number'] for r in p.filter_by_source(rows, True)], ['1', '3'])
        self.assertEqual(len(p.filter_by_source(rows, False)), 3)

    def test_deduplicate_keeps_first(self):
        rows = [{'Number': 'A', 'v': 1}, {'Number': 'B', 'v': 2}, {'Number': 'A', 'v': 3}]
        result = p.deduplicate_by_key(rows, lambda r: r['Number'])
        self.assertEqual([r['v'] for r in result], [1, 2])

    def test_parse_level(self):
        self.assertEqual(p.parse_level('2'), 2)
        self.assertEqual(p.parse_level(' 3 '), 3)
        self.assertEqual(p.parse_level('2.0'), 2)
        self.assertEqual(p.parse_level('-1'), -1)
        self.assertEqual(p.parse_level(''), 0)
        self.assertEqual(p.parse_level('n/a'), 0)
        self.assertEqual(p.parse_level(None, default=7), 7)


class TestExtractors(unittest.TestCase):

    def test_assortment_node(self):
        self.assertEqual(p.extract_assortment_node('Mobilier/AN29-02-00'), 'AN29-02-00')
        self.assertEqual(p.extract_assortment_node('AN29-1-00'), '')
        self.assertEqual(p.extract_assortment_node(''), '')

    def test_project_code(self):
        self.assertEqual(p.extract_project_code('ABC12 Yacht 45'), 'ABC12')
        self.assertEqual(p.extract_project_code('abc12 Yacht'), '')
        self.assertEqual(p.extract_project_code('AB1'), '')

    def test_site_code_and_contract(self):
        self.assertEqual(p.extract_site_code('SAINT GILLES (FR014)'), 'FR014')
        self.assertEqual(p.extract_site_code('SAINT GILLES'), '')
        self.assertEqual(p.extract_contract('SAINT GILLES (FR014)'), 'FR014')
        self.assertEqual(p.extract_contract('FR01'), '')

    def test_classification_pattern(self):
        self.assertTrue(p.has_classification_pattern('X/AN29-02-00', 'AN29-02-00'))
        self.assertFalse(p.has_classification_pattern('', 'AN29'))


if __name__ == '__main__':
    unittest.main()
