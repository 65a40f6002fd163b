#!/usr/bin/env python3
"""Run one collection cycle by hand and print its summary."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from moltnet.config import Config
from moltnet.main import configure_logging
from moltnet.poller.collector import run_cleanup, run_collection_cycle, run_snapshot_cycle


async def main(args: argparse.Namespace) -> int:
    config = Config.from_env()
    configure_logging(config)

    if args.cleanup:
        result = await run_cleanup(config)
    else:
        config.validate()
        if args.snapshot:
            result = await run_snapshot_cycle(config)
        else:
            result = await run_collection_cycle(config)

    print(json.dumps(result, indent=2))
    return 0 if result["success"] else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--snapshot", action="store_true", help="record submolt and top-post snapshots instead")
    group.add_argument("--cleanup", action="store_true", help="prune stats snapshots of an empty database")
    sys.exit(asyncio.run(main(parser.parse_args())))
