"""
Principal parts reference (master_part.csv).

Manufactured parts only: purchased parts, obsolete parts, non-AN29
classifications, non-phantom configured parts and first revisions still in
work are left out.
"""

from typing import Dict, List, Mapping, Sequence

from ..core.validation import ValidationReport
from .base import BaseProcessor
from .primitives import (
    OBSOLETE_STATES, WORK_STATES, clean_value, compute_revision, extract_assortment_node,
    extract_project_code, extract_site_code, has_classification_pattern, row_number,
)

Row = Mapping[str, str]

CONFIGURED_NODE = 'AN29-02-00'
PHANTOM_COLUMN = 'Phantom Manufacturing Part'

MASTER_PART_COLUMNS = (
    'PART_NO', 'DESCRIPTION', 'INFO_TEXT', 'UNIT_CODE', 'CONFIGURABLE_DB', 'SERIAL_TRACKING_CODE_DB',
    'PROVIDE_DB', 'PART_REV', 'ASSORTMENT_ID', 'ASSORTMENT_NODE', 'CODE_GTIN', 'PART_MAIN_GROUP',
    'FIRST_INVENTORY_SITE', 'CONFIG_FAMILY_ID', 'ALLOW_CHANGES_TO_CREATED_DOP_STRUCTURE',
    'ALLOW_AS_NOT_CONSUMED', 'VOLUME_NET', 'WEIGHT_NET',
)


def is_first_revision_in_work(row: Row) -> bool:
    """In Work / Under Review parts still at revision A have nothing released to export."""
    return clean_value(row.get('State')).lower() in WORK_STATES and clean_value(row.get('Revision')) == 'A'


def is_non_phantom(row: Row) -> bool:
    return clean_value(row.get(PHANTOM_COLUMN)).lower() == 'no'


class MasterPartProcessor(BaseProcessor):
    """Master Part module: principal reference of manufactured parts."""

    module_name = 'master-part'
    required_columns = ('Number', 'Source', 'Classification', 'State', 'Revision')
    output_columns = MASTER_PART_COLUMNS

    config_family_id = 'ANY-XX-WOOD-P'

    def process_data(self, rows: Sequence[Row]) -> List[Dict[str, object]]:
        self.logger.info(f"Starting processing with {len(rows)} input rows")

        filtered = self.filter_by_source(rows, exclude_buy=True)
        filtered = self.filter_rows(filtered, self.has_an29_suffix, 'Classification')
        filtered = self.filter_rows(
            filtered, lambda r: clean_value(r.get('State')).lower() not in OBSOLETE_STATES, 'Obsolete'
        )
        filtered = self.filter_rows(
            filtered, lambda r: not (self.is_configured_suffix(r) and is_non_phantom(r)), 'Phantom'
        )
        filtered = self.filter_rows(filtered, lambda r: not is_first_revision_in_work(r), 'Revision A')
        filtered = self.deduplicate_by_key(filtered, row_number)

        records = [self.transform_row(row) for row in filtered]
        self.logger.info(f"Final results: {len(records)} rows")
        return records

    @staticmethod
    def has_an29_suffix(row: Row) -> bool:
        """Classification of at least 10 characters whose last 10 start with AN29."""
        classification = clean_value(row.get('Classification'))
        return len(classification) >= 10 and classification[-10:].startswith('AN29')

    @staticmethod
    def is_configured_suffix(row: Row) -> bool:
        return clean_value(row.get('Classification'))[-10:] == CONFIGURED_NODE

    def first_inventory_site(self, row: Row, configured: bool) -> str:
        return extract_site_code(row.get('Site IFS')) if configured else ''

    def transform_row(self, row: Row) -> Dict[str, object]:
        classification = clean_value(row.get('Classification'))
        configured = has_classification_pattern(classification, CONFIGURED_NODE)

        return {
            'PART_NO': row_number(row),
            'DESCRIPTION': clean_value(row.get('Part English designation')) or clean_value(row.get('Name')),
            'INFO_TEXT': '',
            'UNIT_CODE': 'PCS',
            'CONFIGURABLE_DB': 'CONFIGURED' if configured else 'NOT CONFIGURED',
            'SERIAL_TRACKING_CODE_DB': 'NOT SERIAL TRACKING',
            'PROVIDE_DB': 'PHANTOM',
            'PART_REV': compute_revision(row.get('Revision'), row.get('State')),
            'ASSORTMENT_ID': 'CLASSIFICATION',
            'ASSORTMENT_NODE': extract_assortment_node(classification),
            'CODE_GTIN': '',
            'PART_MAIN_GROUP': extract_project_code(row.get('Context')),
            'FIRST_INVENTORY_SITE': self.first_inventory_site(row, configured),
            'CONFIG_FAMILY_ID': self.config_family_id if configured else '',
            'ALLOW_CHANGES_TO_CREATED_DOP_STRUCTURE': '',
            'ALLOW_AS_NOT_CONSUMED': 'FALSE',
            'VOLUME_NET': 0,
            'WEIGHT_NET': 0,
        }

    def validate_output(self, records: Sequence[Mapping[str, object]]) -> ValidationReport:
        report = ValidationReport()
        self.check_present(records, 'PART_NO', report, fatal=False)
        self.check_unique(records, 'PART_NO', report)
        self.check_fixed(records, 'UNIT_CODE', 'PCS', report)
        return report
