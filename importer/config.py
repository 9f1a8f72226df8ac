import os

# Artifact root; every relative input/output path resolves against it
DATA_DIR_ENV = "IMPORTER_DATA_DIR"
DEFAULT_DATA_DIR = "data"

# Landing file for downloads before they are normalized
TMP_OUTPUT = "tmp_output"

# Artifact layout under the root
RAW_MAPS_DIR = "input/raw_maps"
MAPS_DIR = "system/maps"
CITIES_DIR = "system/cities"
BINARY_SUFFIX = ".bin"
KML_SUFFIX = ".kml"

# External tools (must be on PATH)
CURL = "curl"
OSMCONVERT = "osmconvert"

# Fetch backend: "curl" shells out through the process runner, "requests" streams in-process
FETCH_BACKEND_ENV = "IMPORTER_FETCH_BACKEND"
DEFAULT_FETCH_BACKEND = "curl"
HTTP_TIMEOUT_ENV = "IMPORTER_HTTP_TIMEOUT"
DEFAULT_HTTP_TIMEOUT = 300.0
CHUNK_SIZE = 8192

# Maps that also get a city manifest
CITY_MANIFEST_MAPS_ENV = "IMPORTER_CITY_MANIFEST_MAPS"
DEFAULT_CITY_MANIFEST_MAPS = frozenset({"huge_seattle"})

# Default speed used for travel_time when a road has no usable maxspeed
DEFAULT_SPEED_KMH = 40.0


def data_dir() -> str:
    return os.getenv(DATA_DIR_ENV, DEFAULT_DATA_DIR)


def fetch_backend() -> str:
    return os.getenv(FETCH_BACKEND_ENV, DEFAULT_FETCH_BACKEND).strip().lower()


def http_timeout() -> float:
    raw = os.getenv(HTTP_TIMEOUT_ENV)
    return float(raw) if raw else DEFAULT_HTTP_TIMEOUT


def city_manifest_maps() -> frozenset:
    raw = os.getenv(CITY_MANIFEST_MAPS_ENV)
    if raw is None:
        return DEFAULT_CITY_MANIFEST_MAPS
    return frozenset(name.strip() for name in raw.split(",") if name.strip())
