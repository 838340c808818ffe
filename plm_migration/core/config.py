"""
Pipeline configuration for the PLM to IFS migration toolkit.

Defaults mirror the IFS import conventions: six modules run in a fixed order,
`;`-delimited UTF-8 CSV files written to ./output. Values can be overridden
from a JSON file and then from PLM_MIGRATION_* environment variables.
"""

import os
import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import ConfigurationError
from .validation import ConfigurationValidator


@dataclass(frozen=True)
class ModuleConfig:
    name: str
    display_name: str
    order: int
    output_file_name: str
    dependencies: tuple = ()
    enabled: bool = True


DEFAULT_MODULES = (
    ModuleConfig('master-part', 'Master Part', 1, 'master_part.csv'),
    ModuleConfig('master-part-all', 'Master Part ALL', 2, 'master_part_all.csv'),
    ModuleConfig('technical-specs', 'Technical Spec Values', 3, 'technical_spec_values.csv', ('master-part',)),
    ModuleConfig('eng-structure', 'Eng Part Structure', 4, 'eng_part_structure.csv', ('master-part-all',)),
    ModuleConfig('inventory-part', 'Inventory Part', 5, 'inventory_part.csv'),
    ModuleConfig('inventory-plan', 'Inventory Part Plan', 6, 'inventory_part_plan.csv'),
)


@dataclass
class PipelineConfig:
    modules: List[ModuleConfig] = field(default_factory=lambda: list(DEFAULT_MODULES))
    output_directory: Path = Path('output')
    csv_delimiter: str = ';'
    encoding: str = 'utf-8'
    max_file_size: int = 50 * 1024 * 1024  # 50MB
    attributes_path: Optional[Path] = None
    create_archive: bool = True
    exclude_buy_parents: bool = False
    reference_revision_field: str = 'PART_REV'

    def get_module(self, name: str) -> ModuleConfig:
        for module in self.modules:
            if module.name == name:
                return module
        raise ConfigurationError(f"Unknown module: {name}", field='modules', value=name)

    def enabled_modules(self) -> List[ModuleConfig]:
        return sorted((m for m in self.modules if m.enabled), key=lambda m: m.order)

    def output_path(self, name: str) -> Path:
        return Path(self.output_directory) / self.get_module(name).output_file_name

    def with_modules(self, names: List[str]) -> 'PipelineConfig':
        """Return a copy where only the named modules are enabled."""
        known = {m.name for m in self.modules}
        unknown = [n for n in names if n not in known]
        if unknown:
            raise ConfigurationError(f"Unknown module(s): {', '.join(unknown)}", field='modules', value=', '.join(unknown))
        modules = [replace(m, enabled=m.name in names) for m in self.modules]
        return replace(self, modules=modules)


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _apply_overrides(config: PipelineConfig, values: Dict[str, Any]) -> PipelineConfig:
    updates: Dict[str, Any] = {}
    for key, value in values.items():
        if key == 'modules':
            continue
        if not hasattr(config, key):
            raise ConfigurationError(f"Unknown configuration key: {key}", field=key, value=str(value))
        updates[key] = value

    if 'output_directory' in updates:
        updates['output_directory'] = Path(updates['output_directory'])
    if updates.get('attributes_path'):
        updates['attributes_path'] = Path(updates['attributes_path'])

    config = replace(config, **updates)

    enabled = values.get('modules')
    if enabled is not None:
        config = config.with_modules(list(enabled))
    return config


def load_config(path: Optional[Union[str, Path]] = None) -> PipelineConfig:
    """
    Build the pipeline configuration.

    Args:
        path: Optional JSON file whose keys match PipelineConfig fields;
            `modules` is a list of module names to enable.

    Returns:
        Validated PipelineConfig

    Raises:
        ConfigurationError: If the file or a value is invalid
    """
    config = PipelineConfig()

    if path:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                values = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {e}", field='config', value=str(path))
        if not isinstance(values, dict):
            raise ConfigurationError("Configuration file must contain a JSON object", field='config', value=str(path))
        config = _apply_overrides(config, values)

    env = os.environ
    env_values: Dict[str, Any] = {}
    if env.get('PLM_MIGRATION_OUTPUT_DIR'):
        env_values['output_directory'] = env['PLM_MIGRATION_OUTPUT_DIR']
    if env.get('PLM_MIGRATION_DELIMITER'):
        env_values['csv_delimiter'] = env['PLM_MIGRATION_DELIMITER']
    if env.get('PLM_MIGRATION_ENCODING'):
        env_values['encoding'] = env['PLM_MIGRATION_ENCODING']
    if env.get('PLM_MIGRATION_ATTRIBUTES'):
        env_values['attributes_path'] = env['PLM_MIGRATION_ATTRIBUTES']
    if env.get('PLM_MIGRATION_MAX_FILE_SIZE'):
        env_values['max_file_size'] = env['PLM_MIGRATION_MAX_FILE_SIZE']
    if 'PLM_MIGRATION_ARCHIVE' in env:
        env_values['create_archive'] = _parse_bool(env.get('PLM_MIGRATION_ARCHIVE'), True)
    if 'PLM_MIGRATION_EXCLUDE_BUY_PARENTS' in env:
        env_values['exclude_buy_parents'] = _parse_bool(env.get('PLM_MIGRATION_EXCLUDE_BUY_PARENTS'), False)
    if env_values:
        config = _apply_overrides(config, env_values)

    config.csv_delimiter = ConfigurationValidator.validate_delimiter(config.csv_delimiter)
    config.max_file_size = ConfigurationValidator.validate_max_file_size(config.max_file_size)
    ConfigurationValidator.validate_module_order(config.modules)
    return config
