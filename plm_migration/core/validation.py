"""
Validation utilities for the PLM to IFS migration toolkit.
Provides validation for files, input rows, BOM data and configuration.
"""

import os
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .exceptions import (
    ValidationError, FileValidationError, ExcelValidationError, CSVValidationError,
    ConfigurationError, MissingInputError
)
from .logging_config import get_logger

logger = get_logger(__name__)


class FileValidator:
    """Validates input files for the migration."""

    # Maximum file sizes (in bytes)
    MAX_EXCEL_SIZE = 50 * 1024 * 1024   # 50MB
    MAX_CSV_SIZE = 50 * 1024 * 1024     # 50MB

    # Allowed file extensions
    ALLOWED_EXCEL_EXTENSIONS = {'.xlsx', '.xlsm', '.xls'}
    ALLOWED_CSV_EXTENSIONS = {'.csv', '.tsv', '.txt'}

    @staticmethod
    def validate_file_exists(file_path: Union[str, Path]) -> Path:
        """Validate that a file exists and is readable."""
        path = Path(file_path)

        if not path.exists():
            raise FileValidationError(f"File does not exist: {file_path}", value=str(file_path))

        if not path.is_file():
            raise FileValidationError(f"Path is not a file: {file_path}", value=str(file_path))

        if not os.access(path, os.R_OK):
            raise FileValidationError(f"File is not readable: {file_path}", value=str(file_path))

        return path

    @staticmethod
    def validate_input_file(file_path: Union[str, Path], max_size: Optional[int] = None) -> Path:
        """Validate a PLM export: existence, extension and size."""
        path = FileValidator.validate_file_exists(file_path)
        suffix = path.suffix.lower()

        if suffix in FileValidator.ALLOWED_EXCEL_EXTENSIONS:
            error_cls = ExcelValidationError
            limit = max_size or FileValidator.MAX_EXCEL_SIZE
        elif suffix in FileValidator.ALLOWED_CSV_EXTENSIONS:
            error_cls = CSVValidationError
            limit = max_size or FileValidator.MAX_CSV_SIZE
        else:
            allowed = sorted(FileValidator.ALLOWED_EXCEL_EXTENSIONS | FileValidator.ALLOWED_CSV_EXTENSIONS)
            raise FileValidationError(
                f"Unsupported file extension: {path.suffix}. Allowed: {allowed}",
                field="file_extension",
                value=path.suffix
            )

        file_size = path.stat().st_size
        if file_size == 0:
            raise error_cls(f"File is empty: {file_path}", field="file_size", value="0")

        if file_size > limit:
            raise error_cls(
                f"File too large: {file_size / 1024 / 1024:.1f}MB (max: {limit / 1024 / 1024}MB)",
                field="file_size",
                value=str(file_size)
            )

        return path


@dataclass
class ValidationReport:
    """Errors block processing; warnings are reported alongside the output."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class InputValidator:
    """Validates the rows of a PLM export."""

    VALID_SOURCES = {'buy', 'make'}
    VALID_STATES = {'released', 'in work', 'under review', 'obsolete', 'obsolète'}
    MAX_REPORTED_ROWS = 5

    @staticmethod
    def require_columns(rows: Sequence[Mapping[str, str]], columns: Iterable[str]) -> None:
        """
        Check that the row sequence is non-empty and carries the given columns.

        Raises:
            MissingInputError: If there are no rows or columns are missing
        """
        if not rows:
            raise MissingInputError("No input data provided")

        available = set(rows[0].keys())
        missing = [c for c in columns if c not in available]
        if missing:
            raise MissingInputError(f"Missing required columns: {', '.join(missing)}", columns=missing)

    @classmethod
    def validate_rows(cls, rows: Sequence[Mapping[str, str]]) -> ValidationReport:
        """Run the row-level checks and aggregate warnings by kind."""
        report = ValidationReport()
        if not rows:
            report.errors.append("No data found in input file")
            return report

        issues: "OrderedDict[str, List[int]]" = OrderedDict()

        def flag(message: str, index: int) -> None:
            issues.setdefault(message, []).append(index + 1)

        for index, row in enumerate(rows):
            number = (row.get('Number') or '').strip()
            if not number:
                flag("Number field is empty", index)

            if 'Classification' in row and len((row.get('Classification') or '').strip()) < 10:
                flag("Classification field should have at least 10 characters", index)

            source = (row.get('Source') or '').strip()
            if source and source.lower() not in cls.VALID_SOURCES:
                flag('Source field should be "Buy" or "Make"', index)

            state = (row.get('State') or '').strip()
            if state and state.lower() not in cls.VALID_STATES:
                flag('State field should be "Released", "In Work", "Under Review" or "Obsolete"', index)

            for column in ('Revision', 'Version'):
                value = (row.get(column) or '').strip()
                if value and not re.fullmatch(r'[A-Za-z]', value):
                    flag(f"{column} field should be a single letter (A-Z)", index)

            if 'Context' in row and len((row.get('Context') or '').strip()) < 5:
                flag("Context field should have at least 5 characters for project code extraction", index)

            level = (row.get('Structure Level') or '').strip()
            if level and not level.isdigit():
                flag("Structure Level field should be a number", index)

            quantity = (row.get('Quantity') or '').strip()
            if quantity and not re.fullmatch(r'\d*[.,]?\d+', quantity):
                flag("Quantity field should be a number", index)

        for message, row_numbers in issues.items():
            shown = ', '.join(str(n) for n in row_numbers[:cls.MAX_REPORTED_ROWS])
            if len(row_numbers) > cls.MAX_REPORTED_ROWS:
                shown += ', ...'
            report.warnings.append(f"{message} ({len(row_numbers)} rows: {shown})")

        if report.warnings:
            logger.warning(
                f"Input validation produced {len(report.warnings)} warning(s)",
                extra={'row_count': len(rows), 'warning_count': len(report.warnings)}
            )
        return report


class DataValidator:
    """Validates data content and structure."""

    @staticmethod
    def validate_part_number(part_number: str) -> str:
        """Validate part number format."""
        if not part_number or not part_number.strip():
            raise ValidationError("Part number cannot be empty", value=part_number)

        part_number = part_number.strip()

        if re.search(r'[<>:"|?*\x00-\x1f]', part_number):
            raise ValidationError(
                "Part number contains invalid characters",
                field="part_number",
                value=part_number
            )

        return part_number

    @staticmethod
    def validate_bom_relationship(parent: str, child: str) -> tuple:
        """Validate BOM parent-child relationship."""
        validated_parent = DataValidator.validate_part_number(parent)
        validated_child = DataValidator.validate_part_number(child)

        if validated_parent == validated_child:
            raise ValidationError(
                "Parent and child part numbers cannot be the same",
                field="bom_relationship",
                value=f"{parent} -> {child}"
            )

        return validated_parent, validated_child


class ConfigurationValidator:
    """Validates application configuration."""

    @staticmethod
    def validate_delimiter(delimiter: str) -> str:
        """Validate the CSV field delimiter."""
        if not isinstance(delimiter, str) or len(delimiter) != 1:
            raise ConfigurationError(
                "CSV delimiter must be a single character",
                field="csv_delimiter",
                value=str(delimiter)
            )

        if delimiter in {'"', '\n', '\r'}:
            raise ConfigurationError(
                "CSV delimiter cannot be a quote or line break",
                field="csv_delimiter",
                value=repr(delimiter)
            )

        return delimiter

    @staticmethod
    def validate_max_file_size(max_file_size) -> int:
        """Validate the maximum accepted upload size."""
        if not isinstance(max_file_size, int):
            try:
                max_file_size = int(max_file_size)
            except (ValueError, TypeError):
                raise ConfigurationError(
                    "Maximum file size must be an integer",
                    field="max_file_size",
                    value=str(max_file_size)
                )

        if max_file_size <= 0:
            raise ConfigurationError(
                "Maximum file size must be positive",
                field="max_file_size",
                value=str(max_file_size)
            )

        return max_file_size

    @staticmethod
    def validate_module_order(modules: Sequence) -> None:
        """Every dependency must be a known module that runs earlier."""
        orders: Dict[str, int] = {m.name: m.order for m in modules}
        for module in modules:
            for dependency in module.dependencies:
                if dependency not in orders:
                    raise ConfigurationError(
                        f"Module '{module.name}' depends on unknown module '{dependency}'",
                        field="modules",
                        value=dependency
                    )
                if orders[dependency] >= module.order:
                    raise ConfigurationError(
                        f"Module '{module.name}' must run after '{dependency}'",
                        field="modules",
                        value=module.name
                    )
