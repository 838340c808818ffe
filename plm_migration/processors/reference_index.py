"""
Part-number index over the extended parts reference (master_part_all.csv).

The BOM structure reconstruction only links children to parents that are
present here, and takes the parent revision from the indexed record.
"""

from pathlib import Path
from typing import Dict, Iterable, Iterator, Mapping, Optional, Union

from ..core.exceptions import MissingDependencyError
from ..core.logging_config import get_logger
from ..utils.csv_writer import read_records
from .primitives import clean_value

logger = get_logger(__name__)

Record = Mapping[str, str]


class ReferenceIndex:
    """Read-only lookup of reference records by part number."""

    def __init__(self, records: Dict[str, Record], revision_field: str = 'PART_REV'):
        self._records = records
        self.revision_field = revision_field

    @classmethod
    def build(cls, records: Iterable[Record], key_field: str = 'PART_NO',
              revision_field: str = 'PART_REV') -> 'ReferenceIndex':
        """
        Index an already deduplicated reference sequence.

        Records without a part number are skipped; if a part number repeats the
        first record is kept.

        Raises:
            MissingDependencyError: If no keyed record is available
        """
        index: Dict[str, Record] = {}
        total = 0
        for record in records:
            total += 1
            part_no = clean_value(record.get(key_field))
            if part_no and part_no not in index:
                index[part_no] = record

        if not index:
            raise MissingDependencyError(
                "Extended parts reference is empty; structure cannot be reconstructed",
                dependency='master-part-all'
            )

        logger.info(f"Created reference index with {len(index)} entries from {total} records")
        return cls(index, revision_field=revision_field)

    @classmethod
    def from_csv(cls, path: Union[str, Path], delimiter: str = ';', encoding: str = 'utf-8',
                 key_field: str = 'PART_NO', revision_field: str = 'PART_REV') -> 'ReferenceIndex':
        """
        Load and index the extended reference file written by the master-part-all module.

        Raises:
            MissingDependencyError: If the file is missing or holds no records
        """
        try:
            records = read_records(path, delimiter=delimiter, encoding=encoding)
        except FileNotFoundError:
            raise MissingDependencyError(
                f"Extended parts reference not found: {path}",
                dependency='master-part-all', path=str(path)
            )

        if not records:
            raise MissingDependencyError(
                f"Extended parts reference is empty: {path}",
                dependency='master-part-all', path=str(path)
            )

        try:
            return cls.build(records, key_field=key_field, revision_field=revision_field)
        except MissingDependencyError as e:
            e.path = str(path)
            raise

    def has(self, part_number: str) -> bool:
        return part_number in self._records

    def get(self, part_number: str) -> Optional[Record]:
        return self._records.get(part_number)

    def revision(self, part_number: str) -> str:
        record = self._records.get(part_number)
        if record is None:
            return ''
        return clean_value(record.get(self.revision_field))

    def __contains__(self, part_number: object) -> bool:
        return part_number in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)
