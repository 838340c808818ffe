"""
Custom exceptions for the PLM to IFS migration toolkit.
Provides specific error types for different failure scenarios.
"""


class MigrationError(Exception):
    """Base exception for all migration errors."""
    pass


class ValidationError(MigrationError):
    """Raised when input validation fails."""
    def __init__(self, message: str, field: str = None, value: str = None):
        super().__init__(message)
        self.field = field
        self.value = value


class FileValidationError(ValidationError):
    """Raised when file validation fails."""
    pass


class ExcelValidationError(FileValidationError):
    """Raised when Excel file validation fails."""
    pass


class CSVValidationError(FileValidationError):
    """Raised when CSV file validation fails."""
    pass


class MissingInputError(ValidationError):
    """Raised when the row sequence is empty or lacks required columns."""
    def __init__(self, message: str, columns: list = None):
        super().__init__(message, field="columns", value=", ".join(columns) if columns else None)
        self.columns = list(columns) if columns else []


class ConfigurationError(MigrationError):
    """Raised when configuration is invalid."""
    def __init__(self, message: str, field: str = None, value: str = None):
        super().__init__(message)
        self.field = field
        self.value = value


class DataProcessingError(MigrationError):
    """Raised when data processing fails."""
    def __init__(self, message: str, row: int = None, module: str = None):
        super().__init__(message)
        self.row = row
        self.module = module


class MissingDependencyError(DataProcessingError):
    """Raised when a dataset required by a module is absent or empty."""
    def __init__(self, message: str, dependency: str = None, path: str = None, module: str = None):
        super().__init__(message, module=module)
        self.dependency = dependency
        self.path = path


class ArchiveError(MigrationError):
    """Raised when the output archive cannot be created."""
    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path
