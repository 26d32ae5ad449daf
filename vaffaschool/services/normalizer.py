"""Normalization of raw MIUR school records.

Turns one decoded record from the MIUR open data (JSON-LD ``@graph`` items)
into a SchoolEntity: field cleanup, derived defaults and enrichment with
municipality data resolved from the cadastral code.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..config import Settings, get_settings
from ..exceptions import MissingRecordField
from .geo import GeoLookupClient
from .models import GeoResolution, ParentSchool, SchoolEntity

logger = logging.getLogger(__name__)

RAW_FIELD_PREFIX = "miur:"

# SchoolEntity field -> raw MIUR field
RAW_FIELDS = {
    "id": "CODICESCUOLA",
    "ref_id": "@id",
    "school_year": "ANNOSCOLASTICO",
    "type": "DESCRIZIONETIPOLOGIAGRADOISTRUZIONESCUOLA",
    "name": "DENOMINAZIONESCUOLA",
    "email": "INDIRIZZOEMAILSCUOLA",
    "certified_email": "INDIRIZZOPECSCUOLA",
    "website": "SITOWEBSCUOLA",
    "address": "INDIRIZZOSCUOLA",
    "postcode": "CAPSCUOLA",
    "cad_code": "CODICECOMUNESCUOLA",
    "city_name": "DESCRIZIONECOMUNE",
}
REQUIRED_FIELDS = ("id", "name")

PARENT_ID_FIELD = "CODICEISTITUTORIFERIMENTO"
PARENT_NAME_FIELD = "DENOMINAZIONEISTITUTORIFERIMENTO"

# How MIUR marks a value as missing
NOT_AVAILABLE = re.compile(r"non disponibile", re.IGNORECASE)


@dataclass(frozen=True)
class NormalizerConfig:
    """Configuration for record normalization."""

    institutional_email_domain: str = "istruzione.it"
    debug: bool = False  # attach raw record and location to each entity

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "NormalizerConfig":
        """Create config from application settings."""
        settings = settings or get_settings()
        return cls(
            institutional_email_domain=settings.institutional_email_domain,
            debug=settings.debug,
        )


def raw_value(raw: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Read a raw field, accepting both ``miur:KEY`` and bare ``KEY``."""
    if key.startswith("@"):
        return raw.get(key, default)
    if RAW_FIELD_PREFIX + key in raw:
        return raw[RAW_FIELD_PREFIX + key]
    return raw.get(key, default)


def clean_value(value: Any) -> Any:
    """Trim a scalar and drop the "Non Disponibile" marker.

    Nested structures pass through untouched; None becomes "".
    """
    if isinstance(value, (dict, list)):
        return value
    if value is None:
        return ""
    value = NOT_AVAILABLE.sub("", str(value).strip())
    return value.strip()


class RecordNormalizer:
    """Converts raw MIUR records into SchoolEntity values.

    Usage:
        normalizer = RecordNormalizer(geo_lookup=MunicipalityCatalog.from_file(path))
        school = normalizer.normalize(raw_record)
    """

    def __init__(
        self,
        geo_lookup: Optional[GeoLookupClient] = None,
        config: Optional[NormalizerConfig] = None,
    ):
        self.geo_lookup = geo_lookup
        self.config = config or NormalizerConfig()

    def normalize(self, raw: Mapping[str, Any]) -> SchoolEntity:
        """Normalize one raw record.

        Raises:
            MissingRecordField: when the school code or name key is absent
        """
        data = self._extract(raw)

        data["name"] = self._clean_name(data["name"], data["type"], data["city_name"])

        if not data["email"]:
            # Fall back to the government mailbox
            data["email"] = f"{data['id'].lower()}@{self.config.institutional_email_domain}"

        resolution = self.resolve_location(data["cad_code"], data["id"])
        if resolution.resolved:
            location = resolution.location
            data.update(
                city_name=location.name,
                city_id=location.id,
                nuts3_code=location.nuts3_2010_code,
                province_abbr=location.license_plate_code,
                region_name=location.region.name,
            )
        else:
            logger.debug(resolution.reason)

        data["parent_school"] = self._parent_school(raw, data["id"])

        if self.config.debug:
            data["debug_info"] = {
                "raw_record": dict(raw),
                "location": (
                    resolution.location.model_dump() if resolution.resolved else None
                ),
            }

        return SchoolEntity(**data)

    def resolve_location(self, cad_code: str, school_id: str) -> GeoResolution:
        """Resolve a cadastral code without ever raising."""
        if not cad_code:
            return GeoResolution(
                reason=f"cadastral code missing, cannot get location (ID: {school_id})"
            )
        if self.geo_lookup is None:
            return GeoResolution(reason="no geographic lookup configured")
        try:
            location = self.geo_lookup.by_cadastral_code(cad_code)
        except Exception as e:
            # Any failure leaves the location unresolved
            return GeoResolution(
                reason=f"location lookup failed for code {cad_code}: {e} (ID: {school_id})"
            )
        if location is None:
            return GeoResolution(
                reason=f"cannot find location via cadastral code (code: {cad_code})"
            )
        return GeoResolution(location=location)

    def _extract(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        school_id = raw_value(raw, RAW_FIELDS["id"])
        for field in REQUIRED_FIELDS:
            if raw_value(raw, RAW_FIELDS[field]) is None:
                raise MissingRecordField(RAW_FIELDS[field], school_id)

        data = {}
        for field, key in RAW_FIELDS.items():
            value = clean_value(raw_value(raw, key, ""))
            data[field] = value if isinstance(value, str) else ""
        data["school_year"] = data["school_year"][:4]
        return data

    @staticmethod
    def _clean_name(name: str, school_type: str, city_name: str) -> str:
        if school_type:
            name = name.replace(school_type, "").strip()
        # The only school in town is often named just like the town.
        # Compared with the raw city name: enrichment happens afterwards and
        # may still leave name == city_name for a differently cased raw value.
        if name == city_name:
            name = f"{school_type} {name}".strip()
        return name

    @staticmethod
    def _parent_school(raw: Mapping[str, Any], school_id: str) -> Optional[ParentSchool]:
        parent_id = clean_value(raw_value(raw, PARENT_ID_FIELD, ""))
        if not isinstance(parent_id, str) or not parent_id or parent_id == school_id:
            return None
        return ParentSchool(
            id=parent_id,
            name=str(clean_value(raw_value(raw, PARENT_NAME_FIELD, ""))),
        )
