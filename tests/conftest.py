"""Pytest configuration and fixtures for Vaffaschool tests."""

import json
import tempfile
from pathlib import Path
from typing import Generator, Optional

import pytest
import respx

from vaffaschool.config import Settings, reset_settings
from vaffaschool.exceptions import GeoLookupError
from vaffaschool.services.models import LocationRecord, Region, SchoolEntity
from vaffaschool.services.normalizer import RecordNormalizer
from vaffaschool.services.storage import SchoolStore


class FakeGeoLookup:
    """Geo lookup backed by a dict; records every code it is asked for."""

    def __init__(self, locations: Optional[dict[str, LocationRecord]] = None, fail: bool = False):
        self.locations = locations or {}
        self.fail = fail
        self.calls: list[str] = []

    def by_cadastral_code(self, code: str) -> Optional[LocationRecord]:
        self.calls.append(code)
        if self.fail:
            raise GeoLookupError(code, "service unavailable")
        return self.locations.get(code)


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset all global state between tests."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Create test settings with temporary directory."""
    return Settings(
        data_dir=temp_dir / "data",
        raw_data_dir=temp_dir / "raw",
    )


@pytest.fixture
def firenze() -> LocationRecord:
    return LocationRecord(
        id="048017",
        name="Firenze",
        cad_code="D612",
        nuts3_2010_code="ITE14",
        license_plate_code="FI",
        region=Region(name="Toscana"),
    )


@pytest.fixture
def pontassieve() -> LocationRecord:
    return LocationRecord(
        id="048033",
        name="Pontassieve",
        cad_code="G825",
        nuts3_2010_code="ITE14",
        license_plate_code="FI",
        region=Region(name="Toscana"),
    )


@pytest.fixture
def geo_lookup(firenze: LocationRecord, pontassieve: LocationRecord) -> FakeGeoLookup:
    return FakeGeoLookup({"D612": firenze, "G825": pontassieve})


@pytest.fixture
def normalizer(geo_lookup: FakeGeoLookup) -> RecordNormalizer:
    return RecordNormalizer(geo_lookup=geo_lookup)


@pytest.fixture
def raw_record() -> dict:
    """A raw MIUR record as found in the JSON-LD @graph."""
    return {
        "@id": "http://dati.istruzione.it/opendata/SCUANAGRAFESTAT/FIEE84201X",
        "miur:ANNOSCOLASTICO": "201819",
        "miur:AREAGEOGRAFICA": "CENTRO",
        "miur:REGIONE": "TOSCANA",
        "miur:PROVINCIA": "FIRENZE",
        "miur:CODICEISTITUTORIFERIMENTO": "FIIC84200T",
        "miur:DENOMINAZIONEISTITUTORIFERIMENTO": "COMPAGNI - CARDUCCI",
        "miur:CODICESCUOLA": "FIEE84201X",
        "miur:DENOMINAZIONESCUOLA": "SCUOLA PRIMARIA DINO COMPAGNI",
        "miur:INDIRIZZOSCUOLA": " VIA DEL GIGLIO 12 ",
        "miur:CAPSCUOLA": "50123",
        "miur:CODICECOMUNESCUOLA": "D612",
        "miur:DESCRIZIONECOMUNE": "FIRENZE",
        "miur:DESCRIZIONECARATTERISTICASCUOLA": "NORMALE",
        "miur:DESCRIZIONETIPOLOGIAGRADOISTRUZIONESCUOLA": "SCUOLA PRIMARIA",
        "miur:INDICAZIONESEDEDIRETTIVO": "NO",
        "miur:INDICAZIONESEDEOMNICOMPRENSIVO": "Non Disponibile",
        "miur:INDIRIZZOEMAILSCUOLA": "Non Disponibile",
        "miur:INDIRIZZOPECSCUOLA": "Non Disponibile",
        "miur:SITOWEBSCUOLA": "Non disponibile",
        "miur:SEDESCOLASTICA": "NO",
    }


@pytest.fixture
def sample_schools() -> list[SchoolEntity]:
    """Normalized schools for search tests."""
    return [
        SchoolEntity(
            id="FIEE84201X",
            name="DINO COMPAGNI",
            type="SCUOLA PRIMARIA",
            email="fiee84201x@istruzione.it",
            city_name="Firenze",
            province_abbr="FI",
        ),
        SchoolEntity(
            id="FIEE123",
            name="Scuola Primaria Ponte a Sieve",
            type="Scuola Primaria",
            email="fiee123@istruzione.it",
            city_name="Ponte a Sieve",
        ),
        SchoolEntity(
            id="FIMM85001A",
            name="GIOSUE CARDUCCI",
            type="SCUOLA SECONDARIA I GRADO",
            email="fimm85001a@istruzione.it",
            city_name="Pontassieve",
            province_abbr="FI",
        ),
        SchoolEntity(
            id="MIEE12345B",
            name="GIUSEPPE MAZZINI",
            type="SCUOLA PRIMARIA",
            email="miee12345b@istruzione.it",
            city_name="Milano",
            province_abbr="MI",
        ),
    ]


@pytest.fixture
def school_store(temp_dir: Path, sample_schools: list[SchoolEntity]) -> Generator[SchoolStore, None, None]:
    """A SQLite store holding the sample schools."""
    store = SchoolStore(temp_dir / "schools.sqlite", create=True)
    store.save(sample_schools)
    yield store
    store.close()


@pytest.fixture
def raw_data_dir(temp_dir: Path, raw_record: dict) -> Path:
    """A directory tree of raw JSON-LD files."""
    root = temp_dir / "raw"
    (root / "2018").mkdir(parents=True)

    second = dict(raw_record)
    second.update({
        "miur:CODICESCUOLA": "FIEE123",
        "miur:DENOMINAZIONESCUOLA": "Scuola Primaria Ponte a Sieve",
        "miur:DESCRIZIONETIPOLOGIAGRADOISTRUZIONESCUOLA": "Scuola Primaria",
        "miur:DESCRIZIONECOMUNE": "Ponte a Sieve",
        "miur:CODICECOMUNESCUOLA": "Non Disponibile",
    })

    (root / "2018" / "primarie.json").write_text(
        json.dumps({"@context": {}, "@graph": [raw_record, second]}),
        encoding="utf-8",
    )
    (root / "notes.txt").write_text("not a data file", encoding="utf-8")
    return root


@pytest.fixture
def respx_mock():
    """Set up respx mock for HTTP requests."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock
