"""
Fetch remote datasets into their canonical on-disk form.

Every operation here is skip-if-present: if the output already exists
nothing is fetched. Delete the output to force a refresh.
"""
from __future__ import annotations

import gzip
import logging
import os
import shutil
import zipfile
from typing import Optional, Union

from shapely.geometry.base import BaseGeometry

from . import artifacts, cache, kml, paths
from .errors import ExtractionError, PreconditionError
from .fetch import fetch_url, temp_output_path
from .process import rm
from .sources import SourceDescriptor, SourceFormat
from .timer import Timer

logger = logging.getLogger(__name__)


def _discard(path: str) -> None:
    if os.path.lexists(path):
        os.remove(path)


def _unzip(tmp: str, output: str) -> None:
    # A directory-shaped target ("foo/") is the destination; otherwise the archive
    # is expected to produce the target inside its parent
    unzip_to = output if paths.is_directory_shaped(output) else os.path.dirname(output)
    logger.info("- Unzipping into %s", unzip_to)
    try:
        with zipfile.ZipFile(tmp, "r") as archive:
            bad_member = archive.testzip()
            if bad_member is not None:
                raise ExtractionError(f"Corrupt member {bad_member!r} in archive downloaded for {output}")
            archive.extractall(unzip_to or ".")
    except zipfile.BadZipFile as exc:
        raise ExtractionError(f"Downloaded file for {output} is not a valid zip: {exc}") from exc
    rm(tmp)


def _gunzip(tmp: str, output: str) -> None:
    logger.info("- Gunzipping")
    gz_path = f"{output}.gz"
    part_path = f"{output}.part"
    shutil.move(tmp, gz_path)
    try:
        with gzip.open(gz_path, "rb") as src, open(part_path, "wb") as dst:
            shutil.copyfileobj(src, dst)
    except (OSError, EOFError) as exc:
        _discard(part_path)
        _discard(gz_path)
        raise ExtractionError(f"Failed to gunzip {gz_path}: {exc}") from exc
    os.replace(part_path, output)
    os.remove(gz_path)


def download(output: str, url: str, fmt: Union[SourceFormat, str, None] = None) -> None:
    """
    If ``output`` doesn't already exist, download ``url`` into that location.

    ``fmt`` says how to normalize the download; when omitted it is guessed
    from the URL. Zip archives are extracted next to ``output`` (or into it,
    when ``output`` ends with a separator) and gzip streams are decompressed
    to ``output``. Anything else, a ``.kml`` file included, is moved into
    place as fetched; use ``download_kml`` to convert KML to shapes.
    """
    fmt = SourceFormat(fmt) if fmt is not None else SourceFormat.from_url(url)
    if fmt is SourceFormat.KML:
        fmt = SourceFormat.PLAIN
    output = paths.path(output)
    if cache.already_built(output):
        return
    parent = paths.ensure_parent_dir(output)

    tmp = temp_output_path(parent)
    logger.info("- Missing %s, so downloading %s", output, url)
    try:
        fetch_url(url, tmp)
        if fmt is SourceFormat.ZIP:
            _unzip(tmp, output)
        elif fmt is SourceFormat.GZIP:
            _gunzip(tmp, output)
        else:
            shutil.move(tmp, output)
    except BaseException:
        _discard(tmp)
        raise


def download_kml(
    output: str,
    url: str,
    bounds: BaseGeometry,
    require_all_pts_in_bounds: bool,
    timer: Optional[Timer] = None,
) -> None:
    """
    If ``output`` doesn't already exist, build it from the KML at ``url``.

    The KML is kept beside ``output`` with a ``.kml`` suffix. When that file
    is already there it is used instead of downloading again, so changing a
    binary format never silently picks up new upstream data.
    """
    if not url.endswith(".kml"):
        raise PreconditionError(f"download_kml needs a .kml URL, got {url}")
    output = paths.path(output)
    kml_path = paths.sidecar_path(output)
    if kml_path == output:
        raise PreconditionError(f"Output {output} would overwrite its own KML sidecar")
    if cache.already_built(output):
        return
    parent = paths.ensure_parent_dir(output)

    tmp = temp_output_path(parent)
    reused = os.path.exists(kml_path)
    try:
        if reused:
            logger.info("- Reusing %s", kml_path)
            shutil.copyfile(kml_path, tmp)
        else:
            logger.info("- Missing %s, so downloading %s", output, url)
            fetch_url(url, tmp)

        logger.info("- Extracting KML data")
        shapes = kml.load(tmp, bounds, require_all_pts_in_bounds, timer)
        artifacts.write_shapes(output, shapes)

        # Keep the KML; otherwise changing a binary format would re-fetch from upstream
        if reused:
            os.remove(tmp)
        else:
            shutil.move(tmp, kml_path)
    except BaseException:
        _discard(tmp)
        raise


def download_source(output: str, source: SourceDescriptor, timer: Optional[Timer] = None) -> None:
    """Dispatch on the format the caller attached to ``source``."""
    if source.format is SourceFormat.KML:
        if source.bounds is None:
            raise PreconditionError(f"KML source {source.url} has no bounds")
        download_kml(output, source.url, source.bounds, source.require_all_pts_in_bounds, timer)
    else:
        download(output, source.url, source.format)
