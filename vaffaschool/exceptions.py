"""Custom exception hierarchy for vaffaschool."""

from pathlib import Path
from typing import Optional, Union


class VaffaschoolError(Exception):
    """Base exception for all vaffaschool errors."""


class EmptySearchQuery(VaffaschoolError):
    """The search query is empty or contains only whitespace."""

    def __init__(self, query: Optional[str]):
        self.query = query
        super().__init__(f"Search keyword mandatory, got {query!r}")


class InvalidSearchAlgorithm(VaffaschoolError):
    """The configured scoring mode is not one we know about."""

    def __init__(self, algorithm: str):
        self.algorithm = algorithm
        super().__init__(f"Invalid search algorithm: '{algorithm}'")


class MissingRecordField(VaffaschoolError, KeyError):
    """A raw record lacks a field every school record must carry."""

    def __init__(self, field: str, school_id: Optional[str] = None):
        self.field = field
        self.school_id = school_id
        super().__init__(
            f"Raw record is missing required field '{field}' "
            f"(ID: {school_id or 'unknown'})"
        )

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class GeoLookupError(VaffaschoolError):
    """The geographic reference service could not answer."""

    def __init__(self, code: str, detail: str):
        self.code = code
        self.detail = detail
        super().__init__(f"Location lookup failed for cadastral code '{code}': {detail}")


class GeoCatalogUnavailable(VaffaschoolError):
    """The municipality catalog file cannot be read or decoded."""

    def __init__(self, path: Union[str, Path], detail: str):
        self.path = str(path)
        self.detail = detail
        super().__init__(f"Cannot load the municipality catalog at {path}: {detail}")


class DatabaseNotFound(VaffaschoolError):
    """The schools database file does not exist or is not readable."""

    def __init__(self, path: Union[str, Path]):
        self.path = str(path)
        super().__init__(f"Cannot read schools, DB file is not readable: {path}")


class DatabaseUnavailable(VaffaschoolError):
    """The database exists but SQLite cannot be used to open it."""

    def __init__(self, path: Union[str, Path], detail: str):
        self.path = str(path)
        self.detail = detail
        super().__init__(f"Cannot open the database at {path}: {detail}")
