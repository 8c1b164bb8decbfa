#!/usr/bin/env python3
"""
Catalog validation script

Loads the seed routes, runs every synthesis pass and reports how many routes
each step contributed. Exits non-zero when the data or templates are invalid,
so it can run in CI before a data change ships.

Usage:
    python -m routefinder.scripts.validate_catalog
    python -m routefinder.scripts.validate_catalog --routes-dir data/routes --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..config import get_settings
from ..exceptions import RouteFinderError
from ..services.catalog_service import load_seed_routes
from ..services.route_synthesizer import load_synthesis_passes, synthesize_catalog

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Validate the licensing route catalog")
    parser.add_argument("--routes-dir", type=Path, default=settings.routes_dir,
                        help="Directory of seed route YAML files")
    parser.add_argument("--synthesis-dir", type=Path, default=settings.synthesis_dir,
                        help="Directory of synthesis pass YAML files")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        seed = load_seed_routes(args.routes_dir)
        passes = load_synthesis_passes(args.synthesis_dir)
        result = synthesize_catalog(seed, passes)
    except RouteFinderError as e:
        logger.error(f"Catalog validation failed: {e.message}")
        for key, value in e.details.items():
            logger.error(f"  {key}: {value}")
        return 1

    report = {
        "seed": len(seed),
        "synthesized": result.generated,
        "total": len(result.routes),
        "maxId": max((route.id for route in result.routes), default=0),
    }

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print(f"Seed routes:  {report['seed']}")
        for name, count in result.generated.items():
            print(f"  + {name}: {count}")
        print(f"Total routes: {report['total']} (max id {report['maxId']})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
