"""
Packages the generated extracts into the zip archive expected by the IFS import.
"""

import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union

from ..core.exceptions import ArchiveError
from ..core.logging_config import get_logger

logger = get_logger(__name__)

# Output file name -> IFS import file name template
IFS_FILE_NAMES = {
    'master_part.csv': '01_L_PARTS_MD_004_{code}_WOOD.csv',
    'eng_part_structure.csv': '02_L_ENG_PART_STRUCT_{code}_WOOD.csv',
    'technical_spec_values.csv': '03_L_TECHNICAL_CLASS_VALUES_{code}_WOOD.csv',
    'inventory_part.csv': '04_L_INVENTORY_PART_{code}_WOOD.csv',
    'inventory_part_plan.csv': '05_L_INVENTORY_PART_PLAN_{code}_WOOD.csv',
}


@dataclass
class ArchiveResult:
    archive_path: Path
    archive_size: int
    project_code: str
    files_included: List[str] = field(default_factory=list)


def ifs_file_name(file_name: str, project_code: str) -> str:
    template = IFS_FILE_NAMES.get(file_name)
    return template.format(code=project_code) if template else file_name


def create_ifs_archive(files: List[Union[str, Path]], project_code: str,
                       output_directory: Union[str, Path]) -> ArchiveResult:
    """
    Create `Import IFS <code>.zip` with the extracts renamed to the IFS convention.

    Args:
        files: Generated CSV files; missing files are skipped
        project_code: Five character project code
        output_directory: Directory receiving the archive

    Returns:
        ArchiveResult describing the archive

    Raises:
        ArchiveError: If the archive cannot be written
    """
    folder_name = f"Import IFS {project_code}"
    output_dir = Path(output_directory)
    archive_path = output_dir / f"{folder_name}.zip"
    included: List[str] = []

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path, 'w', compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
            for file_path in files:
                path = Path(file_path)
                if not path.is_file():
                    logger.warning(f"File not found during archiving: {path}")
                    continue
                arcname = f"{folder_name}/{ifs_file_name(path.name, project_code)}"
                zf.write(path, arcname=arcname)
                included.append(arcname)
    except (OSError, zipfile.BadZipFile) as e:
        raise ArchiveError(f"Archive creation failed: {e}", path=str(archive_path))

    size = archive_path.stat().st_size
    logger.info(f"Created archive {archive_path.name} with {len(included)} files ({size} bytes)")
    return ArchiveResult(archive_path=archive_path, archive_size=size,
                         project_code=project_code, files_included=included)
