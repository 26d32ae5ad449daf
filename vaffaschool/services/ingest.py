"""Loading raw MIUR files and building the schools database.

MIUR publishes school registries as JSON-LD files where the records live
under the ``@graph`` key. Files are read from a directory tree, every record
is normalized, and the result is stored in SQLite.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence, Union

from ..config import Settings, get_settings
from ..exceptions import MissingRecordField
from .models import SchoolEntity
from .normalizer import RecordNormalizer
from .storage import SchoolStore

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    """Result of loading a directory of raw files."""

    files_read: int = 0
    records_read: int = 0
    schools_saved: int = 0
    skipped_files: dict[str, str] = field(default_factory=dict)
    skipped_records: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.skipped_files

    def to_dict(self) -> dict:
        return {
            "files_read": self.files_read,
            "records_read": self.records_read,
            "schools_saved": self.schools_saved,
            "skipped_files": self.skipped_files,
            "skipped_records": self.skipped_records,
        }


def find_raw_files(
    directory: Union[str, Path],
    file_types: Sequence[str] = ("json",),
) -> list[Path]:
    """All files under ``directory`` with one of the given extensions, sorted."""
    extensions = {f".{ext.lstrip('.').lower()}" for ext in file_types}
    return sorted(
        path
        for path in Path(directory).rglob("*")
        if path.is_file() and path.suffix.lower() in extensions
    )


def read_raw_file(path: Path, records_key: Optional[str] = "@graph") -> list[dict[str, Any]]:
    """Decode one raw file and return its records.

    Raises:
        ValueError: if the file is not JSON or has no record list
    """
    with open(path, encoding="utf-8-sig") as f:
        data = json.load(f)

    if records_key and isinstance(data, dict):
        data = data.get(records_key)
    if not isinstance(data, list):
        raise ValueError(f"no record list under '{records_key}'")
    return [record for record in data if isinstance(record, dict)]


def iter_raw_records(
    directory: Union[str, Path],
    file_types: Sequence[str] = ("json",),
    records_key: Optional[str] = "@graph",
    report: Optional[IngestReport] = None,
) -> Iterator[dict[str, Any]]:
    """Yield raw records from every matching file in a directory tree.

    Unreadable files are skipped and noted in ``report`` when given.
    """
    for path in find_raw_files(directory, file_types):
        try:
            records = read_raw_file(path, records_key)
        except (OSError, ValueError) as e:
            logger.warning(f"Skipping {path}: {e}")
            if report is not None:
                report.skipped_files[str(path)] = str(e)
            continue

        if report is not None:
            report.files_read += 1
        logger.debug(f"Read {len(records)} records from {path.name}")
        yield from records


def load_schools(
    directory: Union[str, Path],
    normalizer: RecordNormalizer,
    file_types: Sequence[str] = ("json",),
    records_key: Optional[str] = "@graph",
    report: Optional[IngestReport] = None,
) -> list[SchoolEntity]:
    """Normalize every raw record found under ``directory``."""
    schools = []
    for raw in iter_raw_records(directory, file_types, records_key, report):
        if report is not None:
            report.records_read += 1
        try:
            schools.append(normalizer.normalize(raw))
        except MissingRecordField as e:
            logger.debug(f"Skipping record: {e}")
            if report is not None:
                report.skipped_records.append(str(e))
    return schools


def ingest_directory(
    directory: Union[str, Path],
    store: SchoolStore,
    normalizer: RecordNormalizer,
    file_types: Sequence[str] = ("json",),
    records_key: Optional[str] = "@graph",
) -> IngestReport:
    """Normalize all raw files in ``directory`` and save them to ``store``."""
    report = IngestReport()
    schools = load_schools(directory, normalizer, file_types, records_key, report)
    store.create_schema()
    report.schools_saved = store.save(schools)
    logger.info(
        f"Ingested {report.schools_saved} schools from {report.files_read} files "
        f"({len(report.skipped_files)} files skipped)"
    )
    return report


def get_schools(
    normalizer: Optional[RecordNormalizer] = None,
    settings: Optional[Settings] = None,
    use_db: Optional[bool] = None,
) -> list[SchoolEntity]:
    """Get all schools, from the database or by scanning the raw files."""
    settings = settings or get_settings()
    if use_db is None:
        use_db = settings.search_use_db

    if use_db:
        with SchoolStore(settings.sqlite_path) as store:
            return store.all()

    return load_schools(
        settings.raw_data_dir,
        normalizer or RecordNormalizer(),
        file_types=settings.raw_file_extensions,
        records_key=settings.raw_records_key,
    )
