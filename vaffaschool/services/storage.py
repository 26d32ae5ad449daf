"""SQLite storage for normalized schools and candidate retrieval."""

import logging
import os
import sqlite3
from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence, Union

from ..exceptions import DatabaseNotFound, DatabaseUnavailable
from .models import CandidateBatch, ParentSchool, SchoolEntity

logger = logging.getLogger(__name__)

SCHOOL_COLUMNS = (
    "id",
    "ref_id",
    "school_year",
    "type",
    "name",
    "email",
    "certified_email",
    "website",
    "address",
    "postcode",
    "cad_code",
    "city_name",
    "city_id",
    "nuts3_code",
    "province_abbr",
    "region_name",
    "parent_school_id",
    "parent_school_name",
)

CREATE_SCHOOLS_TABLE = (
    "CREATE TABLE IF NOT EXISTS schools (id TEXT PRIMARY KEY, "
    + ", ".join(f"{col} TEXT" for col in SCHOOL_COLUMNS[1:])
    + ")"
)


class CandidateSource(Protocol):
    """Coarse retrieval of schools that may match some tokens."""

    def find_by_tokens(self, tokens: Sequence[str]) -> CandidateBatch:
        ...


def school_to_row(school: SchoolEntity) -> tuple:
    data = school.model_dump(exclude={"parent_school", "debug_info"})
    parent = school.parent_school
    data["parent_school_id"] = parent.id if parent else None
    data["parent_school_name"] = parent.name if parent else None
    return tuple(data[col] for col in SCHOOL_COLUMNS)


def row_to_school(row: sqlite3.Row) -> SchoolEntity:
    data = {col: row[col] for col in SCHOOL_COLUMNS}
    parent_id = data.pop("parent_school_id")
    parent_name = data.pop("parent_school_name")
    if parent_id:
        data["parent_school"] = ParentSchool(id=parent_id, name=parent_name or "")
    for col in ("ref_id", "school_year", "type", "certified_email", "website",
                "address", "postcode", "cad_code", "city_name"):
        data[col] = data[col] or ""
    # Names may carry stray whitespace in databases built by older tools
    data["name"] = (data["name"] or "").strip()
    return SchoolEntity(**data)


class SchoolStore:
    """
    SQLite-backed school storage.

    Holds one connection per store. Opening checks that the file is
    readable and that SQLite can actually use it, so a misconfigured
    environment fails loudly instead of returning no results.
    """

    def __init__(self, path: Union[str, Path], create: bool = False):
        self._path = Path(path)
        self._create = create
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def path(self) -> Path:
        return self._path

    def get_connection(self) -> sqlite3.Connection:
        """Return an open connection, creating one if needed."""
        if self._conn is None:
            self._open()
        return self._conn

    def _open(self) -> None:
        if self._create:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        elif not self._path.is_file() or not os.access(self._path, os.R_OK):
            raise DatabaseNotFound(self._path)

        try:
            conn = sqlite3.connect(str(self._path))
            conn.row_factory = sqlite3.Row
            conn.execute("SELECT name FROM sqlite_master LIMIT 1").fetchall()
        except sqlite3.Error as e:
            raise DatabaseUnavailable(self._path, str(e)) from e
        self._conn = conn

        if self._create:
            self.create_schema()

    def create_schema(self) -> None:
        """Create the schools table if it does not exist."""
        conn = self.get_connection()
        with conn:
            conn.execute(CREATE_SCHOOLS_TABLE)

    def save(self, schools: Iterable[SchoolEntity]) -> int:
        """Insert or replace schools. Returns how many were written."""
        conn = self.get_connection()
        placeholders = ", ".join("?" for _ in SCHOOL_COLUMNS)
        rows = [school_to_row(school) for school in schools]
        with conn:
            conn.executemany(
                f"INSERT OR REPLACE INTO schools ({', '.join(SCHOOL_COLUMNS)}) "
                f"VALUES ({placeholders})",
                rows,
            )
        return len(rows)

    def all(self) -> list[SchoolEntity]:
        """Get all schools."""
        cur = self.get_connection().execute("SELECT * FROM schools")
        return [row_to_school(row) for row in cur]

    def get(self, school_id: str) -> Optional[SchoolEntity]:
        """Get a school by its code."""
        cur = self.get_connection().execute(
            "SELECT * FROM schools WHERE id = ?", (school_id,)
        )
        row = cur.fetchone()
        return row_to_school(row) if row else None

    def count(self) -> int:
        cur = self.get_connection().execute("SELECT COUNT(*) FROM schools")
        return cur.fetchone()[0]

    def find_by_tokens(self, tokens: Sequence[str]) -> CandidateBatch:
        """
        Schools whose name or city contains at least one token.

        Query errors do not propagate: the batch comes back empty with
        ``error`` set, so one bad lookup degrades a search instead of
        aborting it.
        """
        tokens = [token for token in tokens if token]
        if not tokens:
            return CandidateBatch()

        statements = []
        params = {}
        for i, token in enumerate(tokens, start=1):
            statements.append(f"name LIKE :needle_{i} OR city_name LIKE :needle_{i}")
            params[f"needle_{i}"] = f"%{token}%"
        query = "SELECT * FROM schools WHERE " + " OR ".join(statements)

        conn = self.get_connection()
        try:
            schools = [row_to_school(row) for row in conn.execute(query, params)]
        except sqlite3.Error as e:
            logger.warning(f"Candidate retrieval failed for {tokens}: {e}")
            return CandidateBatch(error=str(e))
        return CandidateBatch(schools=schools)

    def close(self) -> None:
        """Close the connection if open."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SchoolStore":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class InMemorySchoolSource:
    """Candidate retrieval over schools already in memory."""

    def __init__(self, schools: Iterable[SchoolEntity]):
        self.schools = list(schools)

    def find_by_tokens(self, tokens: Sequence[str]) -> CandidateBatch:
        needles = [token.lower() for token in tokens if token]
        if not needles:
            return CandidateBatch()
        return CandidateBatch(
            schools=[
                school
                for school in self.schools
                if any(
                    needle in school.name.lower() or needle in school.city_name.lower()
                    for needle in needles
                )
            ]
        )
