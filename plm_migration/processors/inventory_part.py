"""
Inventory part (inventory_part.csv).

Only configured phantom assemblies (classification ending AN29-02-00) are
stocked; each part number is taken from its first occurrence in the export.
"""

from typing import Dict, List, Mapping, Sequence

from ..core.validation import ValidationReport
from .base import BaseProcessor
from .master_part import CONFIGURED_NODE, is_first_revision_in_work, is_non_phantom
from .primitives import clean_value, extract_contract, row_number

Row = Mapping[str, str]

INVENTORY_PART_COLUMNS = (
    'CONTRACT', 'PART_NO', 'DESCRIPTION', 'PART_STATUS', 'PLANNER_BUYER', 'UNIT_MEAS', 'CATCH_UNIT',
    'PART_PRODUCT_CODE', 'TYPE_CODE_DB', 'SAFETY_CODE', 'INVENTORY_VALUATION_METHOD',
    'INVENTORY_PART_COST_LEVEL', 'NB_OF_TROLLEYS_FOR_KIT', 'SUPERDES_START_DATE', 'CYCLE_COUNTING',
    'MRP_TO_DOP', 'CUSTOMS_STATISTIC', 'COUNTRY_OF_ORIGI', 'C_PPV_STATUS',
)


def is_stocked_assembly(row: Row) -> bool:
    """Classification ends with AN29-02-00, phantom flag not "no", and not a revision A still in work."""
    classification = clean_value(row.get('Classification'))
    if len(classification) < 10 or classification[-10:] != CONFIGURED_NODE:
        return False
    if is_non_phantom(row):
        return False
    return not is_first_revision_in_work(row)


class InventoryPartProcessor(BaseProcessor):
    """Inventory Part module."""

    module_name = 'inventory-part'
    required_columns = ('Number', 'Source', 'Name', 'Classification', 'Site IFS')
    output_columns = INVENTORY_PART_COLUMNS

    def process_data(self, rows: Sequence[Row]) -> List[Dict[str, object]]:
        self.logger.info(f"Starting processing with {len(rows)} input rows")
        filtered = self.filter_by_source(rows, exclude_buy=True)

        records = []
        occurrences: Dict[str, int] = {}
        for row in filtered:
            part_no = row_number(row)
            occurrences[part_no] = occurrences.get(part_no, 0) + 1
            # A later occurrence never qualifies, even if the first one did not
            if occurrences[part_no] == 1 and is_stocked_assembly(row):
                records.append(self.transform_row(row))

        self.logger.info(f"Final results: {len(records)} rows")
        return records

    def transform_row(self, row: Row) -> Dict[str, object]:
        return {
            'CONTRACT': extract_contract(row.get('Site IFS')),
            'PART_NO': row_number(row),
            'DESCRIPTION': clean_value(row.get('Name')),
            'PART_STATUS': 'A',
            'PLANNER_BUYER': '*',
            'UNIT_MEAS': 'PCS',
            'CATCH_UNIT': 'PCS',
            'PART_PRODUCT_CODE': 'BND00',
            'TYPE_CODE_DB': '1',
            'SAFETY_CODE': '',
            'INVENTORY_VALUATION_METHOD': 'AV',
            'INVENTORY_PART_COST_LEVEL': 'COST PER CONFIGURATION',
            'NB_OF_TROLLEYS_FOR_KIT': '0',
            'SUPERDES_START_DATE': '',
            'CYCLE_COUNTING': 'N',
            'MRP_TO_DOP': 'FALSE',
            'CUSTOMS_STATISTIC': '',
            'COUNTRY_OF_ORIGI': '',
            'C_PPV_STATUS': '',
        }

    def validate_output(self, records: Sequence[Mapping[str, object]]) -> ValidationReport:
        report = ValidationReport()
        self.check_present(records, 'PART_NO', report)
        self.check_present(records, 'CONTRACT', report, fatal=False)
        self.check_fixed(records, 'UNIT_MEAS', 'PCS', report)
        self.check_fixed(records, 'PART_STATUS', 'A', report)
        self.check_unique(records, 'PART_NO', report)
        return report
