"""
Inventory planning parameters (inventory_part_plan.csv).
"""

from typing import Dict, List, Mapping, Sequence

from ..core.validation import ValidationReport
from .base import BaseProcessor
from .inventory_part import is_stocked_assembly
from .primitives import extract_contract, row_number

Row = Mapping[str, str]

INVENTORY_PLAN_COLUMNS = (
    'CONTRACT', 'PART_NO', 'CARRY_RATE', 'LAST_ACTIVITY_DATE', 'LOT_SIZE', 'LOT_SIZE_AUTO_DB',
    'MAXWEEK_SUPPLY', 'MAX_ORDER_QT', 'MIN_ORDER_QTY', 'MUL_ORDER_QTY', 'ORDER_POINT_QTY',
    'ORDER_POINT_QTY_AUTO_DB', 'ORDER_TRIP_DATE', 'SAFETY_STOCK', 'SAFETY_LEAD_TIME',
    'SAFETY_STOCK_AUTO_DB', 'SERVICE_RATE', 'SETUP_COST', 'SHRINKAGE_FAC', 'STD_ORDER_SIZE',
    'ORDER_REQUISITION_DB', 'QTY_PREDICTED_CONSUMPTION', 'PLANNING_METHOD', 'PROPOSAL_RELEASE_DB',
    'PERCENT_MANUFACTURED', 'PERCENT_ACQUIRED', 'SPLIT_MANUF_ACQUIRED_DB', 'ACQUIRED_SUPPLY_TYPE_DB',
    'MANUF_SUPPLY_TYPE_DB', 'PLANNING_METHOD_AUTO_DB', 'SCHED_CAPACITY_DB',
)

LAST_ACTIVITY_DATE = '01/01/2020'

# Planning defaults shared by every stocked assembly
PLAN_DEFAULTS = {
    'CARRY_RATE': '',
    'LAST_ACTIVITY_DATE': LAST_ACTIVITY_DATE,
    'LOT_SIZE': 0,
    'LOT_SIZE_AUTO_DB': 'N',
    'MAXWEEK_SUPPLY': 0,
    'MAX_ORDER_QT': 0,
    'MIN_ORDER_QTY': 0,
    'MUL_ORDER_QTY': 0,
    'ORDER_POINT_QTY': 0,
    'ORDER_POINT_QTY_AUTO_DB': 'N',
    'ORDER_TRIP_DATE': '',
    'SAFETY_STOCK': 0,
    'SAFETY_LEAD_TIME': 0,
    'SAFETY_STOCK_AUTO_DB': 'N',
    'SERVICE_RATE': '',
    'SETUP_COST': '',
    'SHRINKAGE_FAC': 0,
    'STD_ORDER_SIZE': 0,
    'ORDER_REQUISITION_DB': 'R',
    'QTY_PREDICTED_CONSUMPTION': '',
    'PLANNING_METHOD': 'P',
    'PROPOSAL_RELEASE_DB': 'RELEASE',
    'PERCENT_MANUFACTURED': 0,
    'PERCENT_ACQUIRED': 100,
    'SPLIT_MANUF_ACQUIRED_DB': 'NO_SPLIT',
    'ACQUIRED_SUPPLY_TYPE_DB': 'R',
    'MANUF_SUPPLY_TYPE_DB': 'R',
    'PLANNING_METHOD_AUTO_DB': 'TRUE',
    'SCHED_CAPACITY_DB': 'I',
}


class InventoryPartPlanProcessor(BaseProcessor):
    """Inventory Part Plan module: deduplicate first, then keep stocked assemblies."""

    module_name = 'inventory-plan'
    required_columns = ('Number', 'Source', 'Name', 'Classification', 'Site IFS')
    output_columns = INVENTORY_PLAN_COLUMNS

    def process_data(self, rows: Sequence[Row]) -> List[Dict[str, object]]:
        self.logger.info(f"Starting processing with {len(rows)} input rows")
        filtered = self.filter_by_source(rows, exclude_buy=True)
        filtered = self.deduplicate_by_key(filtered, row_number)
        filtered = self.filter_rows(filtered, is_stocked_assembly, 'Stocked assembly')

        records = []
        for row in filtered:
            record = {'CONTRACT': extract_contract(row.get('Site IFS')), 'PART_NO': row_number(row)}
            record.update(PLAN_DEFAULTS)
            records.append(record)
        return records

    def validate_output(self, records: Sequence[Mapping[str, object]]) -> ValidationReport:
        report = ValidationReport()
        self.check_present(records, 'PART_NO', report)
        self.check_present(records, 'CONTRACT', report, fatal=False)
        self.check_fixed(records, 'PLANNING_METHOD', 'P', report)
        self.check_fixed(records, 'PERCENT_ACQUIRED', 100, report)
        self.check_fixed(records, 'LAST_ACTIVITY_DATE', LAST_ACTIVITY_DATE, report)
        self.check_unique(records, 'PART_NO', report)
        return report
