"""Command line: print a stage sheet for a GPX route."""

import argparse
import logging
import sys
from typing import List, Optional

from .config import DEFAULT_CONFIG, load_config
from .gpx import GPXRouteLoader
from .pacenotes import format_note_line
from .pipeline import PaceNotePipeline

logger = logging.getLogger('rallynotes.cli')


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="rallynotes",
        description="Generate rally pace notes from a GPX route",
    )
    parser.add_argument("route", help="GPX file with a track or route")
    parser.add_argument(
        "--step",
        type=float,
        default=None,
        help="Resampling step in metres (default %.0f)" % DEFAULT_CONFIG.resample_step_m,
    )
    parser.add_argument("--config", help="JSON file of tuning overrides")
    parser.add_argument(
        "--no-merge",
        action="store_true",
        help="Do not merge close corners into chicane callouts",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {}
    if args.step is not None:
        overrides['resample_step_m'] = args.step
    if args.no_merge:
        overrides['chicane_merge_enabled'] = False
    try:
        config = load_config(args.config) if args.config else DEFAULT_CONFIG
        if overrides:
            config = config.with_overrides(**overrides)
    except (TypeError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    points = GPXRouteLoader(args.route).load()
    if not points:
        logger.error("Could not load a route from %s", args.route)
        return 1

    notes = PaceNotePipeline(config).run(points)
    for note in notes:
        print(format_note_line(note))
    return 0


if __name__ == "__main__":
    sys.exit(main())
