#!/usr/bin/env python3
"""
SafeStep - Safety-scored pedestrian turn-by-turn navigation

Usage:
    python -m safestep --origin LAT,LON --destination LAT,LON [options]

Options:
    --route N           Candidate route to navigate (default: 0)
    --preview           List candidate routes with safety scores and exit
    --simulate          Walk the chosen route virtually instead of using GPS
    --record FILE       Record GPS trace to JSON file for debugging
    --playback FILE     Playback GPS trace from JSON file
    --speed FACTOR      Playback/simulation speed multiplier (default: 1.0)
    --mute              Disable spoken instructions
    --no-compass        Don't read the magnetometer
    --heading-window S  Heading filter window in seconds
    --seed N            Seed for placeholder safety factors
    --log FILE          Log file path (default: safestep_TIMESTAMP.log)

The Google Directions API key is read from GOOGLE_API_KEY (environment or .env).
"""

import argparse
import os
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from .app import Navigator
from .directions import DirectionsClient
from .errors import OutOfRange
from .gps import GPSPlayback, GPSRecorder
from .models import Coordinate
from .safety import PlaceholderFactorSource


def parse_coordinate(value: str) -> Coordinate:
    """argparse type for 'LAT,LON'"""
    try:
        lat, lon = (float(part) for part in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LON, got {value!r}")
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        raise argparse.ArgumentTypeError(f"coordinate out of range: {value!r}")
    return Coordinate(lat, lon)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SafeStep - Safety-scored pedestrian turn-by-turn navigation"
    )
    parser.add_argument("--origin", type=parse_coordinate, required=True, metavar="LAT,LON",
                        help="Starting point")
    parser.add_argument("--destination", type=parse_coordinate, required=True, metavar="LAT,LON",
                        help="Destination")
    parser.add_argument("--route", type=int, default=0, metavar="N",
                        help="Candidate route to navigate (default: 0)")
    parser.add_argument("--preview", action="store_true",
                        help="List candidate routes with safety scores and exit")
    parser.add_argument("--simulate", action="store_true",
                        help="Walk the chosen route virtually instead of using GPS")
    parser.add_argument("--record", metavar="FILE",
                        help="Record GPS trace to JSON file")
    parser.add_argument("--playback", metavar="FILE",
                        help="Playback GPS trace from JSON file")
    parser.add_argument("--speed", type=float, default=1.0,
                        help="Playback/simulation speed multiplier (default: 1.0)")
    parser.add_argument("--mute", action="store_true",
                        help="Disable spoken instructions")
    parser.add_argument("--no-compass", action="store_true",
                        help="Don't read the magnetometer")
    parser.add_argument("--heading-window", type=float, metavar="S",
                        help="Heading filter window in seconds")
    parser.add_argument("--seed", type=int,
                        help="Seed for placeholder safety factors")
    parser.add_argument("--log", metavar="FILE",
                        help="Log file path (default: safestep_TIMESTAMP.log)")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.simulate and (args.playback or args.record):
        parser.error("--simulate can't be combined with --playback or --record")
    if args.playback and args.record:
        parser.error("--playback and --record are mutually exclusive")
    if args.playback and not Path(args.playback).exists():
        print(f"Playback file not found: {args.playback}")
        sys.exit(1)

    load_dotenv()
    api_key = os.environ.get("GOOGLE_API_KEY")
    if not api_key:
        print("GOOGLE_API_KEY is not set")
        sys.exit(1)

    log_path = args.log
    if not log_path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = f"safestep_{timestamp}.log"

    navigator = Navigator(
        directions=DirectionsClient(api_key),
        log_path=log_path,
        voice_enabled=not args.mute,
        heading_window=args.heading_window,
        factor_source=PlaceholderFactorSource(seed=args.seed),
        use_compass=not args.no_compass and not args.simulate,
    )

    if args.playback:
        navigator.set_gps_source(GPSPlayback(args.playback, args.speed))
    elif args.record:
        navigator.set_gps_source(GPSRecorder(navigator.gps, args.record))

    try:
        navigator.run(args.origin, args.destination, route_index=args.route,
                      preview=args.preview, simulate=args.simulate, speed=args.speed)
    except OutOfRange as e:
        print(e)
        sys.exit(2)


if __name__ == "__main__":
    main()
