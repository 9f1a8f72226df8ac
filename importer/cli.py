import argparse
import json
import logging
import sys
from typing import Dict, List

from . import paths
from .clip import osmconvert
from .download import download, download_kml
from .errors import ImporterError, PreconditionError
from .geometry_utils import bounds_from_bbox, read_osmosis_polygon
from .raw_to_map import raw_to_map
from .sources import SourceFormat
from .timer import Timer

logger = logging.getLogger(__name__)


def _add_bounds_args(p: argparse.ArgumentParser) -> None:
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--bbox", nargs=4, type=float, metavar=("MINLON", "MINLAT", "MAXLON", "MAXLAT"))
    group.add_argument("--poly", help="Osmosis .poly file to use as the bounding region")
    p.add_argument(
        "--require-all-points",
        action="store_true",
        help="Drop any shape with a point outside the bounds",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Fetch, normalize and convert map source data")
    ap.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...)")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("download", help="Download a URL unless the output exists")
    p.add_argument("output")
    p.add_argument("url")
    p.add_argument("--format", choices=[f.value for f in SourceFormat if f is not SourceFormat.KML])

    p = sub.add_parser("download-kml", help="Download a KML and convert it to shapes")
    p.add_argument("output")
    p.add_argument("url")
    _add_bounds_args(p)

    p = sub.add_parser("clip", help="Clip an OSM extract to a polygon with osmconvert")
    p.add_argument("input")
    p.add_argument("poly")
    p.add_argument("output")

    p = sub.add_parser("raw-to-map", help="Convert a raw map into a routable map")
    p.add_argument("name")
    p.add_argument("--no-ch", action="store_true", help="Skip building the routing graph")

    p = sub.add_parser("batch", help="Run the steps listed in a JSON file, stopping at the first failure")
    p.add_argument("manifest")
    return ap


def _bounds_from_step(step: Dict):
    if "bbox" in step:
        return bounds_from_bbox(*step["bbox"])
    if "poly" in step:
        return read_osmosis_polygon(paths.path(step["poly"]))
    raise PreconditionError(f"KML step for {step.get('url')} needs 'bbox' or 'poly'")


def run_step(step: Dict) -> None:
    """
    Run one batch step. Steps look like:
        {"op": "download", "output": "...", "url": "...", "format": "zip"}
        {"op": "download_kml", "output": "...", "url": "...", "bbox": [...], "require_all_points": true}
        {"op": "clip", "input": "...", "poly": "...", "output": "..."}
        {"op": "raw_to_map", "name": "...", "build_ch": true}
    """
    op = step.get("op")
    if op == "download":
        download(step["output"], step["url"], step.get("format"))
    elif op == "download_kml":
        download_kml(
            step["output"],
            step["url"],
            _bounds_from_step(step),
            bool(step.get("require_all_points", False)),
        )
    elif op == "clip":
        osmconvert(step["input"], step["poly"], step["output"])
    elif op == "raw_to_map":
        timer = Timer(f"raw_to_map {step['name']}")
        raw_to_map(step["name"], bool(step.get("build_ch", True)), timer)
        timer.done()
    else:
        raise PreconditionError(f"Unknown batch op {op!r}")


def load_batch(manifest_path: str) -> List[Dict]:
    with open(manifest_path, "r") as f:
        steps = json.load(f)
    if not isinstance(steps, list):
        raise PreconditionError(f"{manifest_path}: expected a JSON list of steps")
    return steps


def dispatch(args: argparse.Namespace) -> None:
    if args.command == "download":
        download(args.output, args.url, args.format)
    elif args.command == "download-kml":
        if args.bbox is not None:
            bounds = bounds_from_bbox(*args.bbox)
        else:
            bounds = read_osmosis_polygon(paths.path(args.poly))
        download_kml(args.output, args.url, bounds, args.require_all_points)
    elif args.command == "clip":
        osmconvert(args.input, args.poly, args.output)
    elif args.command == "raw-to-map":
        timer = Timer(f"raw_to_map {args.name}")
        raw_to_map(args.name, not args.no_ch, timer)
        timer.done()
    elif args.command == "batch":
        steps = load_batch(args.manifest)
        for i, step in enumerate(steps, 1):
            logger.info("[batch] step %d/%d: %s", i, len(steps), step.get("op"))
            run_step(step)


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    try:
        dispatch(args)
    except KeyboardInterrupt:
        print("\n[cli] Interrupted.")
        return 130  # 128 + SIGINT
    except (ImporterError, OSError, ValueError) as e:
        print(f"[cli] Fatal error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
