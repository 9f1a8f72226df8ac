import logging
import os

from . import cache, config, paths
from .errors import CommandFailedError
from .process import run

logger = logging.getLogger(__name__)


def osmconvert(input: str, clipping_polygon: str, output: str) -> None:
    """
    Clip the input .osm (or .pbf) against an Osmosis polygon, keeping only
    complete ways. Skips if the output exists.
    """
    input = paths.path(input)
    clipping_polygon = paths.path(clipping_polygon)
    output = paths.path(output)

    if cache.already_built(output):
        return
    paths.ensure_parent_dir(output)
    logger.info("- Clipping %s to %s", input, clipping_polygon)

    try:
        run(
            [
                config.OSMCONVERT,
                input,
                f"-B={clipping_polygon}",
                "--complete-ways",
                f"-o={output}",
            ]
        )
    except CommandFailedError:
        # osmconvert may have started writing before it failed
        if os.path.lexists(output):
            os.remove(output)
        raise
