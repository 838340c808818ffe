"""
Technical attribute values (technical_spec_values.csv).

One MASTER_PART / ATTRIBUT / VALEUR / TYPE record per mapped PLM attribute of
each manufactured part listed in master_part.csv.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Set, Union

from ..core.config import PipelineConfig
from ..core.exceptions import ConfigurationError, MissingDependencyError
from ..core.logging_config import get_logger
from ..core.validation import ValidationReport
from ..utils.csv_writer import read_records
from .base import BaseProcessor
from .primitives import clean_value, row_number

logger = get_logger(__name__)

Row = Mapping[str, str]

TECHNICAL_SPEC_COLUMNS = ('MASTER_PART', 'ATTRIBUT', 'VALEUR', 'TYPE')
ATTRIBUTE_TYPES = ('A', 'N')

_EXPONENT = re.compile(r'\*\*\d+')
_UNITS = re.compile(r'm²|m|deg|kg')


@dataclass(frozen=True)
class AttributeMapping:
    plm_name: str
    ifs_name: str
    type: str  # A (alphanumeric) or N (numeric)


DEFAULT_ATTRIBUTE_MAPPINGS = (
    AttributeMapping('Marque', 'BRAND', 'A'),
    AttributeMapping('Matière', 'MATERIAL', 'A'),
    AttributeMapping('Masse', 'WEIGHT', 'N'),
    AttributeMapping('Thickness', 'PANEL THICKNESS', 'N'),
    AttributeMapping('Largeur sens du fil', 'GRAIN DIR WIDTH', 'N'),
    AttributeMapping('Longueur sens du fil', 'GRAIN DIR LGTH', 'N'),
    AttributeMapping('Working length', 'OVERALL LENGTH', 'N'),
    AttributeMapping('Surface', 'SURFACE', 'N'),
    AttributeMapping('Edge banding length', 'EDGE LENGTH', 'N'),
    AttributeMapping('Edge banding thickness', 'EDGE THICKN', 'N'),
    AttributeMapping('Edge banding wood type', 'EDGE MATERIAL', 'A'),
    AttributeMapping('Edge banding width', 'EDGE WIDTH', 'N'),
    AttributeMapping('Largeur', 'WIDTH VNR SHEET', 'N'),
    AttributeMapping('Longueur', 'LNGH VENEER SHT', 'N'),
    AttributeMapping('Profile', 'PROFILE CODE', 'A'),
)


def load_attribute_mappings(path: Optional[Union[str, Path]] = None, delimiter: str = ';',
                            encoding: str = 'utf-8') -> List[AttributeMapping]:
    """
    Load the PLM -> IFS attribute mapping from a PLM;IFS;TYPE file.

    Falls back to the built-in mapping when no file is configured or the file
    does not exist.

    Raises:
        ConfigurationError: If the file exists but holds no usable mapping
    """
    if path is None or not Path(path).exists():
        if path is not None:
            logger.warning(f"Attribute mapping file not found: {path}, using built-in mapping")
        return list(DEFAULT_ATTRIBUTE_MAPPINGS)

    mappings = []
    for record in read_records(path, delimiter=delimiter, encoding=encoding):
        plm_name = clean_value(record.get('PLM'))
        ifs_name = clean_value(record.get('IFS'))
        attr_type = clean_value(record.get('TYPE')).upper()
        if not (plm_name and ifs_name and attr_type):
            continue
        if attr_type not in ATTRIBUTE_TYPES:
            logger.warning(f"Skipping attribute mapping {plm_name}: invalid TYPE {attr_type}")
            continue
        mappings.append(AttributeMapping(plm_name, ifs_name, attr_type))

    if not mappings:
        raise ConfigurationError(
            f"No valid attribute mappings found in {path}", field='attributes_path', value=str(path)
        )
    return mappings


def clean_attribute_value(value, attr_type: str) -> str:
    """Drop **n exponents; numeric attributes also lose their physical unit (m², m, deg, kg)."""
    cleaned = _EXPONENT.sub('', clean_value(value)).strip()
    if attr_type == 'N':
        cleaned = _UNITS.sub('', cleaned).strip()
    return cleaned


class TechnicalSpecsProcessor(BaseProcessor):
    """Technical Spec Values module; needs master_part.csv written first."""

    module_name = 'technical-specs'
    required_columns = ('Number', 'Source')
    output_columns = TECHNICAL_SPEC_COLUMNS

    def __init__(self, config: Optional[PipelineConfig] = None,
                 master_part_path: Optional[Union[str, Path]] = None,
                 mappings: Optional[Sequence[AttributeMapping]] = None):
        super().__init__(config)
        self.master_part_path = master_part_path
        self.mappings = list(mappings) if mappings is not None else None

    def load_master_parts(self) -> Set[str]:
        path = self.master_part_path or self.config.output_path('master-part')
        try:
            records = read_records(path, delimiter=self.config.csv_delimiter, encoding=self.config.encoding)
        except FileNotFoundError:
            raise MissingDependencyError(
                f"Master Part file not found: {path}", dependency='master-part', path=str(path),
                module=self.module_name
            )
        if not records:
            raise MissingDependencyError(
                f"Master Part file is empty: {path}", dependency='master-part', path=str(path),
                module=self.module_name
            )
        return {clean_value(r.get('PART_NO')) for r in records}

    def process_data(self, rows: Sequence[Row]) -> List[Dict[str, object]]:
        self.logger.info(f"Starting processing with {len(rows)} input rows")

        if self.mappings is None:
            self.mappings = load_attribute_mappings(
                self.config.attributes_path, delimiter=self.config.csv_delimiter, encoding=self.config.encoding
            )
        self.logger.info(f"Loaded {len(self.mappings)} attribute mappings")

        master_parts = self.load_master_parts()
        self.logger.info(f"Loaded {len(master_parts)} master part records")

        filtered = self.filter_by_source(rows, exclude_buy=True)
        filtered = self.filter_rows(filtered, lambda r: row_number(r) in master_parts, 'Master Part existence')

        records = []
        missing_attributes = {m.plm_name for m in self.mappings}
        for row in filtered:
            part_no = row_number(row)
            for mapping in self.mappings:
                if mapping.plm_name not in row:
                    continue
                missing_attributes.discard(mapping.plm_name)
                value = clean_attribute_value(row.get(mapping.plm_name), mapping.type)
                if value:
                    records.append({
                        'MASTER_PART': part_no,
                        'ATTRIBUT': mapping.ifs_name,
                        'VALEUR': value,
                        'TYPE': mapping.type,
                    })

        if filtered and missing_attributes:
            self.warnings.append(
                f"{len(missing_attributes)} mapped attributes absent from input: {', '.join(sorted(missing_attributes))}"
            )

        self.logger.info(f"Generated {len(records)} attribute values (with duplicates)")
        records = self.deduplicate_by_key(
            records, lambda r: (r['MASTER_PART'], r['ATTRIBUT'], r['VALEUR'], r['TYPE'])
        )
        return records

    def validate_output(self, records: Sequence[Mapping[str, object]]) -> ValidationReport:
        report = ValidationReport()
        self.check_present(records, 'MASTER_PART', report)
        self.check_present(records, 'ATTRIBUT', report)
        invalid_types = sum(1 for r in records if r.get('TYPE') not in ATTRIBUTE_TYPES)
        if invalid_types:
            report.errors.append(f"{invalid_types} rows with invalid TYPE (should be A or N)")
        return report
