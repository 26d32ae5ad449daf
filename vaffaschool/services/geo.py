"""Geographic reference lookup by cadastral code.

Schools carry the cadastral code (codice catastale) of their municipality.
Resolving it gives us the canonical city name, the ISTAT city id, the NUTS3
code, the province abbreviation and the region.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Protocol, Union

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..exceptions import GeoCatalogUnavailable, GeoLookupError
from .models import LocationRecord

logger = logging.getLogger(__name__)


class GeoLookupClient(Protocol):
    """Anything that resolves a cadastral code to a municipality.

    Returns None for an unknown code. Implementations should raise
    GeoLookupError when they cannot answer, but callers treat any
    exception as a failed lookup.
    """

    def by_cadastral_code(self, code: str) -> Optional[LocationRecord]:
        ...


class MunicipalityCatalog:
    """In-memory municipality index loaded from a JSON file.

    The file holds a list of location records, each with a ``cad_code`` key:

        [{"id": "048017", "name": "Firenze", "cad_code": "D612",
          "nuts3_2010_code": "ITE14", "license_plate_code": "FI",
          "region": {"name": "Toscana"}}, ...]
    """

    def __init__(self, locations: Iterable[LocationRecord]):
        self._by_code: dict[str, LocationRecord] = {}
        for location in locations:
            if location.cad_code:
                self._by_code[location.cad_code.strip().upper()] = location

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "MunicipalityCatalog":
        """Load the catalog from a JSON file.

        Raises:
            GeoCatalogUnavailable: when the file is missing, unreadable or not a JSON list
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise GeoCatalogUnavailable(path, str(e)) from e
        if not isinstance(data, list):
            raise GeoCatalogUnavailable(path, f"expected a list, got {type(data).__name__}")

        locations = []
        for entry in data:
            try:
                locations.append(LocationRecord.model_validate(entry))
            except ValidationError as e:
                logger.debug(f"Skipping malformed location entry in {path}: {e}")
        logger.info(f"Loaded {len(locations)} municipalities from {path}")
        return cls(locations)

    def by_cadastral_code(self, code: str) -> Optional[LocationRecord]:
        if not code:
            return None
        return self._by_code.get(code.strip().upper())

    def __len__(self) -> int:
        return len(self._by_code)


class HttpGeoLookup:
    """Municipality lookup against an HTTP reference service.

    Issues ``GET {base_url}/{code}`` and expects a location record as JSON.
    A 404 means the code is unknown; anything else that goes wrong is raised
    as GeoLookupError. No retries: callers own their retry policy.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpGeoLookup":
        if not settings.geo_api_url:
            raise ValueError("geo_api_url is not configured")
        return cls(settings.geo_api_url, timeout=settings.http_timeout)

    def by_cadastral_code(self, code: str) -> Optional[LocationRecord]:
        try:
            response = self._client.get(f"{self.base_url}/{code}")
        except httpx.HTTPError as e:
            raise GeoLookupError(code, str(e)) from e

        if response.status_code == 404:
            return None
        try:
            response.raise_for_status()
            return LocationRecord.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            raise GeoLookupError(code, f"HTTP {response.status_code}") from e
        except (ValueError, ValidationError) as e:
            raise GeoLookupError(code, f"unexpected response: {e}") from e

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpGeoLookup":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def geo_lookup_from_settings(settings: Settings) -> Optional[GeoLookupClient]:
    """Build the configured lookup: catalog file first, then HTTP service."""
    if settings.geo_catalog_path:
        return MunicipalityCatalog.from_file(settings.geo_catalog_path)
    if settings.geo_api_url:
        return HttpGeoLookup.from_settings(settings)
    return None
