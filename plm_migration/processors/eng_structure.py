"""
Engineering part structure (BOM) reconstruction.

The PLM export lists parts in pre-order: every row carries a "Structure Level"
giving its depth, and a row's parent is the nearest preceding row exactly one
level shallower. This module rebuilds the direct parent -> child links from
that listing and emits them in the IFS eng part structure format:

    PART NO; PART REV; SUB PART NO; SUB PART REV; QTY; STR COMMENT; SORT NO

A link is only emitted when

* the parent part number is present in the extended parts reference
  (master_part_all.csv), and
* the parent part number has occurred exactly once among the rows up to and
  including the child row. Once a parent number repeats, the children that
  follow can no longer be attributed to a single occurrence and are dropped.

Rows that do not produce a link are expected (roots, children of purchased or
unreferenced parts) and are only counted, never raised.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ..core.config import PipelineConfig
from ..core.exceptions import ValidationError
from ..core.logging_config import get_logger
from ..core.validation import DataValidator, ValidationReport
from .base import BaseProcessor
from .primitives import clean_value, compute_child_revision, is_buy, parse_level, row_number
from .reference_index import ReferenceIndex

logger = get_logger(__name__)

Row = Mapping[str, str]

STRUCTURE_COLUMNS = ('PART NO', 'PART REV', 'SUB PART NO', 'SUB PART REV', 'QTY', 'STR COMMENT', 'SORT NO')

# Reasons a row yields no link
DROP_NO_ANCESTOR = 'no_ancestor'
DROP_NOT_IN_REFERENCE = 'not_in_reference'
DROP_AMBIGUOUS = 'ambiguous_ancestor'
DROP_BUY_PARENT = 'buy_parent'


@dataclass(frozen=True)
class RowAnnotation:
    """Derived per-row values computed during the forward pass."""
    index: int
    level: int
    ancestor_number: str
    ancestor_qualifies: bool
    occurrence_count: int

    @property
    def parent_candidate(self) -> str:
        return self.ancestor_number if self.occurrence_count == 1 else ''


@dataclass(frozen=True)
class StructureEdge:
    parent_number: str
    parent_revision: str
    child_number: str
    child_revision: str
    quantity: str
    sort_order: int
    comment: str = ''

    def to_record(self) -> Dict[str, object]:
        return {
            'PART NO': self.parent_number,
            'PART REV': self.parent_revision,
            'SUB PART NO': self.child_number,
            'SUB PART REV': self.child_revision,
            'QTY': self.quantity,
            'STR COMMENT': self.comment,
            'SORT NO': self.sort_order,
        }


@dataclass
class ReconstructionResult:
    edges: List[StructureEdge] = field(default_factory=list)
    annotations: List[RowAnnotation] = field(default_factory=list)
    dropped: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


def scan_nearest_ancestor(rows: Sequence[Row], index: int) -> str:
    """
    Part number of the closest row before `index` whose level is exactly one less.

    Direct backward scan, O(n) per call. StructureReconstructor.annotate
    computes the same value for every row in a single forward pass.
    """
    level = parse_level(rows[index].get('Structure Level'))
    if level == 0:
        return ''
    for j in range(index - 1, -1, -1):
        if parse_level(rows[j].get('Structure Level')) == level - 1:
            return row_number(rows[j])
    return ''


class StructureReconstructor:
    """
    Rebuilds parent -> child BOM links from a depth-annotated pre-order listing.

    Args:
        reference_index: Parts allowed to act as parents, with their revisions
        exclude_buy_parents: Also refuse parents whose reference record has
            SOURCE "Buy"
    """

    def __init__(self, reference_index: ReferenceIndex, exclude_buy_parents: bool = False):
        self.reference_index = reference_index
        self.exclude_buy_parents = exclude_buy_parents

    def annotate(self, rows: Sequence[Row]) -> List[RowAnnotation]:
        """
        Compute ancestor, qualification and occurrence count for every row.

        `last_at_depth` holds the part number of the most recent row seen at
        each depth. Only the entry for the current row's own depth is replaced,
        so a lookup at depth-1 returns the nearest preceding row at that depth
        even when shallower rows came in between.
        """
        last_at_depth: Dict[int, str] = {}
        occurrences: Dict[str, int] = {}
        annotations: List[RowAnnotation] = []

        for i, row in enumerate(rows):
            level = parse_level(row.get('Structure Level'))
            number = row_number(row)
            occurrences[number] = occurrences.get(number, 0) + 1

            ancestor = last_at_depth.get(level - 1, '') if level != 0 else ''
            qualifies = bool(ancestor) and self.reference_index.has(ancestor)
            # Occurrences of the ancestor among rows 0..i inclusive
            count = occurrences.get(ancestor, 0) if qualifies else 0

            annotations.append(RowAnnotation(
                index=i,
                level=level,
                ancestor_number=ancestor,
                ancestor_qualifies=qualifies,
                occurrence_count=count,
            ))
            last_at_depth[level] = number

        return annotations

    def reconstruct(self, rows: Sequence[Row]) -> ReconstructionResult:
        """Emit one StructureEdge per row whose parent is referenced and unambiguous."""
        result = ReconstructionResult(annotations=self.annotate(rows))
        dropped = {DROP_NO_ANCESTOR: 0, DROP_NOT_IN_REFERENCE: 0, DROP_AMBIGUOUS: 0, DROP_BUY_PARENT: 0}
        ranks: Dict[str, int] = {}

        for annotation in result.annotations:
            if not annotation.ancestor_number:
                dropped[DROP_NO_ANCESTOR] += 1
                continue
            if not annotation.ancestor_qualifies:
                dropped[DROP_NOT_IN_REFERENCE] += 1
                continue

            parent = annotation.parent_candidate
            if not parent:
                dropped[DROP_AMBIGUOUS] += 1
                continue

            record = self.reference_index.get(parent)
            if record is None:
                dropped[DROP_NOT_IN_REFERENCE] += 1
                continue
            if self.exclude_buy_parents and is_buy(record.get('SOURCE')):
                dropped[DROP_BUY_PARENT] += 1
                logger.debug(f"PART_NO {parent} excluded - Source is Buy")
                continue

            row = rows[annotation.index]
            rank = ranks.get(parent, 0) + 1
            ranks[parent] = rank

            result.edges.append(StructureEdge(
                parent_number=parent,
                parent_revision=self.reference_index.revision(parent),
                child_number=row_number(row),
                child_revision=compute_child_revision(row.get('Revision'), row.get('State')),
                quantity=clean_value(row.get('Quantity')),
                sort_order=rank * 10,
            ))

        result.dropped = dropped
        result.warnings = self._drop_warnings(dropped)

        logger.info(
            f"Structure reconstruction: {len(rows)} rows -> {len(result.edges)} links "
            f"({dropped[DROP_NO_ANCESTOR]} without parent, {dropped[DROP_NOT_IN_REFERENCE]} parent not referenced, "
            f"{dropped[DROP_AMBIGUOUS]} ambiguous parent, {dropped[DROP_BUY_PARENT]} purchased parent)",
            extra={'rows': len(rows), 'links': len(result.edges), 'dropped': dropped}
        )
        return result

    @staticmethod
    def _drop_warnings(dropped: Mapping[str, int]) -> List[str]:
        warnings = []
        if dropped[DROP_NOT_IN_REFERENCE]:
            warnings.append(
                f"{dropped[DROP_NOT_IN_REFERENCE]} rows dropped: parent part not in extended parts reference"
            )
        if dropped[DROP_AMBIGUOUS]:
            warnings.append(
                f"{dropped[DROP_AMBIGUOUS]} rows dropped: parent part number occurs more than once "
                f"up to the child row (ambiguous parent)"
            )
        if dropped[DROP_BUY_PARENT]:
            warnings.append(f"{dropped[DROP_BUY_PARENT]} rows dropped: parent part is purchased (Source Buy)")
        return warnings


class EngStructureProcessor(BaseProcessor):
    """Eng part structure module; needs the extended parts reference written first."""

    module_name = 'eng-structure'
    required_columns = ('Number', 'Structure Level', 'Revision', 'State', 'Quantity')
    output_columns = STRUCTURE_COLUMNS

    def __init__(self, config: Optional[PipelineConfig] = None,
                 reference_path: Optional[Union[str, Path]] = None,
                 reference_index: Optional[ReferenceIndex] = None):
        super().__init__(config)
        self.reference_path = reference_path
        self.reference_index = reference_index
        self.last_result: Optional[ReconstructionResult] = None

    def load_reference_index(self) -> ReferenceIndex:
        if self.reference_index is not None:
            return self.reference_index

        path = self.reference_path or self.config.output_path('master-part-all')
        self.reference_index = ReferenceIndex.from_csv(
            path,
            delimiter=self.config.csv_delimiter,
            encoding=self.config.encoding,
            revision_field=self.config.reference_revision_field,
        )
        return self.reference_index

    def process_data(self, rows: Sequence[Row]) -> List[Dict[str, object]]:
        self.logger.info(f"Starting processing with {len(rows)} input rows")
        index = self.load_reference_index()
        self.logger.info(f"Loaded {len(index)} extended reference records")

        reconstructor = StructureReconstructor(index, exclude_buy_parents=self.config.exclude_buy_parents)
        self.last_result = reconstructor.reconstruct(rows)
        self.warnings.extend(self.last_result.warnings)
        return [edge.to_record() for edge in self.last_result.edges]

    def validate_output(self, records: Sequence[Mapping[str, object]]) -> ValidationReport:
        report = ValidationReport()
        self.check_present(records, 'PART NO', report)
        self.check_present(records, 'SUB PART NO', report)

        invalid_sort = sum(1 for r in records if int(r['SORT NO']) % 10 != 0)
        if invalid_sort:
            report.warnings.append(f"{invalid_sort} rows with SORT NO not multiple of 10")

        self_links = 0
        for r in records:
            try:
                DataValidator.validate_bom_relationship(str(r['PART NO']), str(r['SUB PART NO']))
            except ValidationError:
                self_links += 1
        if self_links:
            report.warnings.append(f"{self_links} rows where a part is listed as its own component")

        parents = {r['PART NO'] for r in records}
        children = {r['SUB PART NO'] for r in records}
        leaves = children - parents
        if leaves:
            report.warnings.append(
                f"{len(leaves)} child parts never appear as parents (leaf components, expected in a BOM)"
            )
        self.logger.info(
            f"Structure: {len(parents)} parent parts, {len(leaves)} leaf parts, "
            f"{len(children & parents)} intermediate sub-assemblies"
        )
        return report
