"""
Template shared by all extract generators: validate input, transform,
validate output, write the CSV, and report a ProcessingResult.
"""

import time
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Callable, Dict, Hashable, List, Mapping, Optional, Sequence, TypeVar, Union

from ..core.config import PipelineConfig
from ..core.exceptions import DataProcessingError, MigrationError
from ..core.logging_config import get_logger, log_operation_start, log_operation_end
from ..core.validation import InputValidator, ValidationReport
from ..utils.csv_writer import write_records
from . import primitives

T = TypeVar('T')
Row = Mapping[str, str]


@dataclass
class ProcessingResult:
    success: bool
    module: str
    rows_input: int
    rows_output: int
    output_path: str
    processing_time: float
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class BaseProcessor:
    """Base class for the migration modules."""

    module_name = 'base'
    required_columns: Sequence[str] = ('Number',)
    output_columns: Sequence[str] = ()

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        self.logger = get_logger(f"{__name__}.{type(self).__name__}")
        self.input_rows: List[Row] = []
        self.output_rows: List[Dict[str, object]] = []
        self.warnings: List[str] = []

    def process(self, rows: Sequence[Row], output_path: Union[str, Path]) -> ProcessingResult:
        """
        Run the module over the input rows and write its extract.

        Failures are logged and reported in the result instead of raised, so the
        caller can continue with independent modules.
        """
        start = time.perf_counter()
        self.input_rows = list(rows)
        self.output_rows = []
        self.warnings = []
        log_operation_start(self.module_name, rows=len(self.input_rows), output=str(output_path))

        try:
            self.validate_input(self.input_rows)
            self.output_rows = self.process_data(self.input_rows)

            report = self.validate_output(self.output_rows)
            if report.errors:
                raise DataProcessingError(
                    f"Output validation failed: {', '.join(report.errors)}", module=self.module_name
                )
            self.warnings.extend(report.warnings)

            write_records(self.output_rows, self.output_columns, output_path,
                          delimiter=self.config.csv_delimiter, encoding=self.config.encoding)
            self.logger.info(f"Generated CSV with {len(self.output_rows)} rows at {output_path}")
        except Exception as e:
            duration = time.perf_counter() - start
            if isinstance(e, MigrationError):
                self.logger.error(f"{self.module_name} processing failed: {e}")
            else:
                self.logger.exception(f"{self.module_name} processing failed unexpectedly: {e}")
            log_operation_end(self.module_name, success=False, duration=duration, error=str(e))
            return ProcessingResult(
                success=False,
                module=self.module_name,
                rows_input=len(self.input_rows),
                rows_output=0,
                output_path=str(output_path),
                processing_time=duration,
                errors=[str(e)],
                warnings=list(self.warnings),
            )

        duration = time.perf_counter() - start
        log_operation_end(self.module_name, success=True, duration=duration,
                          **self.get_processing_stats())
        return ProcessingResult(
            success=True,
            module=self.module_name,
            rows_input=len(self.input_rows),
            rows_output=len(self.output_rows),
            output_path=str(output_path),
            processing_time=duration,
            errors=[],
            warnings=list(self.warnings),
        )

    def validate_input(self, rows: Sequence[Row]) -> None:
        InputValidator.require_columns(rows, self.required_columns)

    def process_data(self, rows: Sequence[Row]) -> List[Dict[str, object]]:
        raise NotImplementedError

    def validate_output(self, records: Sequence[Mapping[str, object]]) -> ValidationReport:
        return ValidationReport()

    # Logged wrappers around the shared primitives

    def filter_rows(self, rows: Sequence[Row], predicate: Callable[[Row], bool], label: str) -> List[Row]:
        filtered = [row for row in rows if predicate(row)]
        self.logger.info(f"{label} filter: {len(rows)} -> {len(filtered)} rows")
        return filtered

    def filter_by_source(self, rows: Sequence[Row], exclude_buy: bool = True) -> List[Row]:
        filtered = primitives.filter_by_source(rows, exclude_buy)
        self.logger.info(
            f"Source filter: {len(rows)} -> {len(filtered)} rows "
            f"(excluded {len(rows) - len(filtered)} 'Buy' items)"
        )
        return filtered

    def deduplicate_by_key(self, items: Sequence[T], key_fn: Callable[[T], Hashable]) -> List[T]:
        deduplicated = primitives.deduplicate_by_key(items, key_fn)
        self.logger.info(
            f"Deduplication: {len(items)} -> {len(deduplicated)} rows "
            f"(removed {len(items) - len(deduplicated)} duplicates)"
        )
        return deduplicated

    def check_unique(self, records: Sequence[Mapping[str, object]], key: str, report: ValidationReport) -> None:
        values = [r.get(key) for r in records]
        if len(values) != len(set(values)):
            report.warnings.append(f"Duplicate {key} detected in {self.module_name} output")

    def check_fixed(self, records: Sequence[Mapping[str, object]], column: str, expected: object,
                    report: ValidationReport) -> None:
        wrong = sum(1 for r in records if r.get(column) != expected)
        if wrong:
            report.errors.append(f"{wrong} rows with incorrect {column} (should be {expected})")

    def check_present(self, records: Sequence[Mapping[str, object]], column: str,
                      report: ValidationReport, fatal: bool = True) -> None:
        missing = sum(1 for r in records if not r.get(column))
        if missing:
            target = report.errors if fatal else report.warnings
            target.append(f"{missing} rows missing {column}")

    def get_processing_stats(self) -> Dict[str, float]:
        inputs = len(self.input_rows)
        outputs = len(self.output_rows)
        rate = ((inputs - outputs) / inputs) * 100 if inputs else 0.0
        return {'input_rows': inputs, 'output_rows': outputs, 'filtering_rate': rate}
