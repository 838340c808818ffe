"""
Extended parts reference (master_part_all.csv).

Same record layout as the principal reference plus SOURCE, but purchased
parts are kept. The eng structure module indexes this file to decide which
parts may act as BOM parents.
"""

from typing import Dict, List, Mapping, Sequence

from ..core.validation import ValidationReport
from .master_part import (
    CONFIGURED_NODE, MASTER_PART_COLUMNS, MasterPartProcessor, is_first_revision_in_work, is_non_phantom,
)
from .primitives import RELEASED, WORK_STATES, clean_value, has_classification_pattern, row_number

Row = Mapping[str, str]

MASTER_PART_ALL_COLUMNS = MASTER_PART_COLUMNS + ('SOURCE',)


def is_exportable_state(row: Row) -> bool:
    """Released, or In Work / Under Review past revision A."""
    state = clean_value(row.get('State')).lower()
    if state == RELEASED:
        return True
    return state in WORK_STATES and not is_first_revision_in_work(row)


class MasterPartAllProcessor(MasterPartProcessor):
    """Master Part ALL module: every AN29 part, purchased ones included."""

    module_name = 'master-part-all'
    output_columns = MASTER_PART_ALL_COLUMNS

    config_family_id = 'ANY-XX-WOODP-0'
    default_inventory_site = 'FR008'

    def process_data(self, rows: Sequence[Row]) -> List[Dict[str, object]]:
        self.logger.info(f"Starting processing with {len(rows)} input rows (no Source filter)")

        filtered = self.filter_rows(
            rows,
            lambda r: has_classification_pattern(clean_value(r.get('Classification')), 'AN29') and is_exportable_state(r),
            'Classification/State'
        )
        filtered = self.filter_rows(
            filtered,
            lambda r: not (has_classification_pattern(clean_value(r.get('Classification')), CONFIGURED_NODE)
                           and is_non_phantom(r)),
            'Phantom'
        )
        filtered = self.deduplicate_by_key(filtered, row_number)

        records = [self.transform_row(row) for row in filtered]
        self.logger.info(f"Final results: {len(records)} rows")
        return records

    def first_inventory_site(self, row: Row, configured: bool) -> str:
        return self.default_inventory_site

    def transform_row(self, row: Row) -> Dict[str, object]:
        record = super().transform_row(row)
        record['SOURCE'] = clean_value(row.get('Source'))
        return record

    def validate_output(self, records: Sequence[Mapping[str, object]]) -> ValidationReport:
        report = super().validate_output(records)
        if not records:
            report.warnings.append("Extended parts reference is empty; eng structure will have no parents")
        return report
