from .clip import osmconvert
from .download import download, download_kml, download_source
from .raw_to_map import raw_to_map
from .sources import SourceDescriptor, SourceFormat

__all__ = [
    "download",
    "download_kml",
    "download_source",
    "osmconvert",
    "raw_to_map",
    "SourceDescriptor",
    "SourceFormat",
]

# -------------------------
# Importer file structure
# -------------------------
# config.py: constants, env overrides.
# paths.py: artifact root resolution and canonical artifact paths.
# errors.py: error types; nothing here recovers from them.
# process.py: blocking external command runner.
# cache.py: skip-if-present gate.
# sources.py: source formats and descriptors.
# fetch.py: curl / requests download backends.
# download.py: fetch + normalize (zip, gzip, plain, KML).
# geometry_utils.py: bounding regions (bbox, Osmosis .poly).
# kml.py: KML -> bounded shape collection.
# artifacts.py: binary artifact I/O.
# clip.py: osmconvert polygon clipping.
# map_model.py: RawMap/Map/City and the map builder.
# raw_to_map.py: raw map -> saved map (+ city manifest).
# timer.py: phase timing.
# cli.py: argparse entrypoint.
