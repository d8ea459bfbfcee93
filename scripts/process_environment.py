#!/usr/bin/env python3
"""
Run one scale-down crawl pass over environment snapshots.

The snapshot file holds either a single environment or a list of them,
plus an optional organization table:

    {
        "organizations": [{"name": "acme"}],
        "environments": [
            {"id": 1, "name": "prod", "path": "/acme/shop",
             "platforms": [{"id": 10, "name": "web", "path": "/acme/shop/bom/web/1"}]}
        ]
    }

Collaborator endpoints and plugin config come from the environment
(``THANOS_URL``, ``ONEOPS_URL``, ``SCALEDOWN_ES_*``, ``SCALEDOWN_PLUGIN_CONFIG``).
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import get_settings  # noqa: E402
from scaledown.core.errors import IndexProvisioningError  # noqa: E402
from scaledown.core.models import Environment, Organization  # noqa: E402
from scaledown.plugins.scaledown import ScaleDownPlugin  # noqa: E402
from scaledown.utils.logging import get_logger, setup_logging  # noqa: E402

logger = get_logger(__name__)


def load_snapshot(path: Path) -> tuple[list[Environment], dict[str, Organization]]:
    """Load environments and organizations from a snapshot file."""
    data = json.loads(path.read_text(encoding="utf-8"))

    if "environments" in data:
        raw_environments = data["environments"]
    else:
        raw_environments = [data]

    organizations = {
        org["name"]: Organization.from_dict(org) for org in data.get("organizations", [])
    }
    return [Environment.from_dict(e) for e in raw_environments], organizations


async def run(snapshot: Path) -> int:
    """Run one crawl pass; returns the process exit code."""
    settings = get_settings()
    environments, organizations = load_snapshot(snapshot)

    plugin = ScaleDownPlugin.from_settings(settings)
    try:
        await plugin.init()
    except IndexProvisioningError as e:
        logger.error("Plugin initialization failed", error=str(e))
        return 2

    failures = 0
    try:
        for environment in environments:
            outcomes = await plugin.process_environment(environment, organizations)
            failures += sum(1 for o in outcomes if o.is_failure)
            print(json.dumps([o.to_dict() for o in outcomes], indent=2, default=str))
    finally:
        await plugin.cleanup()

    return 1 if failures else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a scale-down crawl pass")
    parser.add_argument(
        "snapshot",
        type=Path,
        help="JSON file with the environment(s) to process",
    )

    args = parser.parse_args()

    setup_logging()
    sys.exit(asyncio.run(run(args.snapshot)))


if __name__ == "__main__":
    main()
