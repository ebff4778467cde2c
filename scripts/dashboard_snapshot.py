#!/usr/bin/env python3
"""
Load the dashboard from the configured backend and print the metrics as JSON.
Run from the project root: python -m scripts.dashboard_snapshot
or: PYTHONPATH=. python scripts/dashboard_snapshot.py
Exit code 1 when any of the five fetches failed.
"""
import asyncio
import json
import os
import sys

# project root on PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shopadmin.core.config import settings
from shopadmin.core.logging import configure_logging
from shopadmin.services.api.factory import ShopAdminClient
from shopadmin.services.dashboard.service import DashboardLoadError, DashboardService


async def run() -> int:
    async with ShopAdminClient.from_settings(settings) as client:
        result = await DashboardService(client).load()
    if not result.ok:
        error = result.error
        failures = error.failures if isinstance(error, DashboardLoadError) else {}
        print(f"Dashboard failed: {error.message}", file=sys.stderr)
        for name, e in failures.items():
            print(f"  {name}: {e.kind.value} {e.message}", file=sys.stderr)
        return 1
    print(json.dumps(result.value.to_dict(), indent=2, ensure_ascii=False))
    return 0


def main():
    configure_logging(settings)
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
