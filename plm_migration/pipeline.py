"""
Runs the extract generators over one PLM export, in dependency order, and
packages the results for the IFS import.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .core.config import PipelineConfig
from .core.exceptions import ArchiveError, MissingDependencyError, MissingInputError
from .core.logging_config import get_logger, log_operation_start, log_operation_end
from .core.validation import InputValidator
from .processors import PROCESSORS, ProcessingResult
from .processors.primitives import extract_project_code
from .utils.archive import create_ifs_archive
from .utils.spreadsheet_loader import read_rows

logger = get_logger(__name__)

DEFAULT_PROJECT_CODE = 'XXXXX'


def detect_project_code(rows: Sequence[Mapping[str, str]]) -> str:
    """Project code from the first row's Context, XXXXX when it has none."""
    if not rows:
        return DEFAULT_PROJECT_CODE
    return extract_project_code(rows[0].get('Context')) or DEFAULT_PROJECT_CODE


@dataclass
class MigrationSummary:
    project_code: str
    results: List[ProcessingResult] = field(default_factory=list)
    input_warnings: List[str] = field(default_factory=list)
    archive_path: Optional[str] = None
    archive_error: Optional[str] = None
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return bool(self.results) and all(r.success for r in self.results)

    @property
    def total_errors(self) -> int:
        return sum(len(r.errors) for r in self.results)

    @property
    def total_warnings(self) -> int:
        return sum(len(r.warnings) for r in self.results) + len(self.input_warnings)

    def to_dict(self) -> Dict[str, object]:
        return {
            'success': self.success,
            'project_code': self.project_code,
            'results': [r.to_dict() for r in self.results],
            'input_warnings': list(self.input_warnings),
            'archive_path': self.archive_path,
            'archive_error': self.archive_error,
            'total_errors': self.total_errors,
            'total_warnings': self.total_warnings,
            'duration': self.duration,
        }


class MigrationPipeline:
    """
    Orchestrates one migration run.

    Modules run sequentially in their configured order. A module whose
    prerequisite failed in the same run is reported as failed without being
    started; other modules carry on.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()

    def load_rows(self, input_path: Union[str, Path], sheet: Optional[Union[str, int]] = None) -> List[Dict[str, str]]:
        return read_rows(input_path, sheet=sheet, encoding=self.config.encoding,
                         max_size=self.config.max_file_size, delimiter=self.config.csv_delimiter)

    def run(self, input_path: Optional[Union[str, Path]] = None,
            rows: Optional[Sequence[Mapping[str, str]]] = None,
            sheet: Optional[Union[str, int]] = None) -> MigrationSummary:
        """
        Run every enabled module over the export.

        Args:
            input_path: Excel or CSV export to read (ignored when rows are given)
            rows: Already loaded rows
            sheet: Excel sheet name or index

        Returns:
            MigrationSummary with one ProcessingResult per enabled module

        Raises:
            FileValidationError: If the export cannot be read
            MissingInputError: If the export holds no rows
        """
        start = time.perf_counter()
        if rows is None:
            if input_path is None:
                raise MissingInputError("No input file or rows provided")
            rows = self.load_rows(input_path, sheet=sheet)
        rows = list(rows)

        report = InputValidator.validate_rows(rows)
        if not report.is_valid:
            raise MissingInputError('; '.join(report.errors))

        project_code = detect_project_code(rows)
        summary = MigrationSummary(project_code=project_code, input_warnings=list(report.warnings))
        modules = self.config.enabled_modules()
        log_operation_start('migration', rows=len(rows), project_code=project_code,
                            modules=[m.name for m in modules])

        Path(self.config.output_directory).mkdir(parents=True, exist_ok=True)
        outcome: Dict[str, bool] = {}

        for module in modules:
            output_path = self.config.output_path(module.name)
            failed = [d for d in module.dependencies if outcome.get(d) is False]
            if failed:
                error = MissingDependencyError(
                    f"Prerequisite module(s) failed: {', '.join(failed)}",
                    dependency=failed[0], module=module.name
                )
                logger.error(f"Skipping {module.display_name}: {error}")
                result = ProcessingResult(
                    success=False, module=module.name, rows_input=len(rows), rows_output=0,
                    output_path=str(output_path), processing_time=0.0, errors=[str(error)],
                )
            else:
                logger.info(f"Running module {module.order}: {module.display_name}")
                processor = PROCESSORS[module.name](self.config)
                result = processor.process(rows, output_path)

            outcome[module.name] = result.success
            summary.results.append(result)

        if self.config.create_archive:
            self._package(summary)

        summary.duration = time.perf_counter() - start
        log_operation_end('migration', success=summary.success, duration=summary.duration,
                          errors=summary.total_errors, warnings=summary.total_warnings)
        return summary

    def _package(self, summary: MigrationSummary) -> None:
        files = [r.output_path for r in summary.results if r.success]
        if not files:
            logger.warning("No successful module output to archive")
            return
        try:
            archive = create_ifs_archive(files, summary.project_code, self.config.output_directory)
        except ArchiveError as e:
            logger.error(f"Archive creation failed: {e}")
            summary.archive_error = str(e)
            return
        summary.archive_path = str(archive.archive_path)
