# Core modules
from .exceptions import (
    MigrationError, ValidationError, MissingInputError, ConfigurationError,
    DataProcessingError, MissingDependencyError
)
from .logging_config import setup_logging, get_logger
from .validation import InputValidator, FileValidator, DataValidator
from .config import PipelineConfig, ModuleConfig, load_config

__all__ = [
    'MigrationError', 'ValidationError', 'MissingInputError', 'ConfigurationError',
    'DataProcessingError', 'MissingDependencyError', 'setup_logging', 'get_logger',
    'InputValidator', 'FileValidator', 'DataValidator',
    'PipelineConfig', 'ModuleConfig', 'load_config',
]
