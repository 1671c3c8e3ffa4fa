#!/usr/bin/env python3
"""
Health check for the configured event sources.

Usage:
    python health_check.py [command] [config]

Commands:
    sources     - Fetch every source once and report records / failures (default)
    datasets    - Show configured datasets and their sources
    facilities  - List static facility links
"""

import asyncio
import os
import sys
import time
from typing import Any, Dict, Iterable, List

# Add project root to PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.aggregator import Aggregator
from core.config import build_from_file
from core.interfaces import SourceAdapter
from core.models import FailureReport


class Colors:
    """ANSI color codes for terminal output."""
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    BOLD = "\033[1m"
    END = "\033[0m"


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human readable."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    return f"{seconds / 60:.1f}m"


def format_status_indicator(status: str) -> str:
    """Format status with color indicator."""
    indicators = {
        "ok": f"{Colors.GREEN}●{Colors.END}",
        "degraded": f"{Colors.YELLOW}●{Colors.END}",
        "empty": f"{Colors.YELLOW}○{Colors.END}",
        "failed": f"{Colors.RED}●{Colors.END}",
    }
    return indicators.get(status, "●")


def unique_adapters(aggregator: Aggregator) -> List[SourceAdapter]:
    """Every adapter used by any dataset, once."""
    seen = {}
    for dataset in aggregator.datasets.values():
        for adapter in dataset.adapters:
            seen.setdefault(id(adapter), adapter)
    return list(seen.values())


async def check_sources(
    adapters: Iterable[SourceAdapter],
    failures: List[FailureReport],
) -> List[Dict[str, Any]]:
    """Fetch each adapter once and summarize the outcome.

    ``failures`` must be the list the adapters report into.
    """
    async def probe(adapter: SourceAdapter):
        started = time.monotonic()
        records = await adapter.fetch()
        return adapter, records, time.monotonic() - started

    results = await asyncio.gather(*(probe(a) for a in adapters))

    rows = []
    for adapter, records, elapsed in results:
        names = adapter.source_names()
        own = [f for f in failures if f.source in names]
        if own:
            status = "degraded" if records else "failed"
        else:
            status = "ok" if records else "empty"
        rows.append({
            "source": adapter.name,
            "status": status,
            "records": len(records),
            "failures": sorted({f.kind.value for f in own}),
            "messages": [f"{f.source}: {f.message}" for f in own],
            "seconds": elapsed,
        })
    return rows


async def show_sources(config_file: str):
    """Fetch every source once and print its health."""
    failures: List[FailureReport] = []
    aggregator = build_from_file(config_file, reporter=failures.append)

    async with aggregator:
        rows = await check_sources(unique_adapters(aggregator), failures)

    print(f"{Colors.BOLD}📡 Source Health{Colors.END}")
    print("=" * 60)
    for row in rows:
        print(f"{format_status_indicator(row['status'])} {Colors.BOLD}{row['source']}{Colors.END}")
        print(f"   Records: {Colors.WHITE}{row['records']}{Colors.END}")
        print(f"   Took: {Colors.CYAN}{format_duration(row['seconds'])}{Colors.END}")
        if row["failures"]:
            print(f"   Failures: {Colors.RED}{', '.join(row['failures'])}{Colors.END}")
            for message in row["messages"]:
                print(f"     - {message}")
        print()

    failed = [r for r in rows if r["status"] == "failed"]
    if not failed:
        print(f"{Colors.GREEN}✅ All sources responding{Colors.END}")
    else:
        print(f"{Colors.YELLOW}⚠️  {len(failed)} of {len(rows)} sources failing{Colors.END}")


async def show_datasets(config_file: str):
    """Show configured datasets."""
    aggregator = build_from_file(config_file)
    async with aggregator:
        info = aggregator.describe()

    print(f"{Colors.BOLD}📋 Datasets{Colors.END} (cache TTL {format_duration(info['cache_ttl'])})")
    print("=" * 60)
    for name, ds in info["datasets"].items():
        print(f"{Colors.BOLD}{name}{Colors.END} – max {ds['max_items']} items")
        if ds["description"]:
            print(f"   {ds['description']}")
        for source in ds["sources"]:
            print(f"   - {Colors.CYAN}{source}{Colors.END}")
        print()


async def show_facilities(config_file: str):
    """List static facility links."""
    aggregator = build_from_file(config_file)
    async with aggregator:
        links = aggregator.get_static_facility_links()

    print(f"{Colors.BOLD}🏢 Facilities{Colors.END}")
    print("=" * 60)
    if not links:
        print(f"{Colors.YELLOW}No facilities configured{Colors.END}")
    for link in links:
        print(f"{Colors.BOLD}{link.name}{Colors.END}  {Colors.BLUE}{link.link}{Colors.END}")
        if link.description:
            print(f"   {link.description}")


async def main():
    """Main entry point."""
    command = sys.argv[1] if len(sys.argv) > 1 else "sources"
    config_file = sys.argv[2] if len(sys.argv) > 2 else os.getenv("SOURCES_CONFIG", "sources.yml")

    commands = {
        "sources": show_sources,
        "datasets": show_datasets,
        "facilities": show_facilities,
    }

    if command not in commands:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(commands.keys())}")
        print()
        print(__doc__)
        sys.exit(1)

    try:
        await commands[command](config_file)
    except KeyboardInterrupt:
        print(f"\n{Colors.YELLOW}Interrupted{Colors.END}")
    except Exception as e:
        print(f"{Colors.RED}Error: {e}{Colors.END}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
