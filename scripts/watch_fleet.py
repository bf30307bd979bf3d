#!/usr/bin/env python3
"""Watch the live fleet from a terminal.

Polls the rider table, prints the riders table and activity feed after
each tick, and optionally writes the inline map as a Leaflet HTML page.

Usage
-----
Set environment variables and run::

    export FLEET_SUPABASE_URL="https://<project>.supabase.co"
    export FLEET_SUPABASE_KEY="<anon key>"
    python scripts/watch_fleet.py --ticks 3 --map fleet.html

Options::

    --ticks N            Stop after N ticks (default: run until Ctrl-C)
    --map FILE           Write the inline map to FILE after every tick
    --focus KEY          Focus the map on a rider (username or user id)
    --detail KEY         Print the rider detail (quota, streak, violations) and exit
    --weather            Add the weather overlay and print current conditions
    --json               Output machine-readable JSON instead of tables
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from fleettrack import (  # noqa: E402
    INLINE,
    TABULAR,
    DetailError,
    FleetClient,
    FleetConfig,
    FleetTracker,
    FoliumCanvas,
    TableCanvas,
)

# ── helpers ──────────────────────────────────────────────────


def _section(title: str) -> str:
    return f"\n{'═' * 60}\n  {title}\n{'═' * 60}"


def _fmt_coord(value: float | None) -> str:
    return f"{value:.5f}" if value is not None else "-"


def _riders_table(tracker: FleetTracker) -> list[str]:
    out = [_section("RIDERS")]
    out.append(f"  {'rider':<24} {'status':<9} {'lat':>10} {'lng':>11}  del/ong/dly/can")
    for row in tracker.session.overview():
        snap, agg = row.snapshot, row.aggregate
        out.append(
            f"  {snap.display_name[:24]:<24} {snap.status.value:<9} "
            f"{_fmt_coord(snap.lat):>10} {_fmt_coord(snap.lng):>11}  "
            f"{agg.delivered}/{agg.ongoing}/{agg.delayed}/{agg.cancelled}"
        )
    return out


def _feed_lines(tracker: FleetTracker, limit: int = 10) -> list[str]:
    out = [_section("ACTIVITY")]
    for row in tracker.session.feed()[:limit]:
        when = row.occurred_at.isoformat(timespec="seconds") if row.occurred_at else "-"
        out.append(f"  [{row.source.value:<8}] {when:<25} {row.rider_name} ({row.status.value})")
    return out


def _tick_payload(tracker: FleetTracker) -> dict[str, Any]:
    return {
        "tick": tracker.loop.sequence,
        "timestamp": datetime.now(UTC).isoformat(),
        "riders": [row.model_dump(mode="json") for row in tracker.session.overview()],
        "feed": [row.model_dump(mode="json") for row in tracker.session.feed()],
    }


async def _print_detail(tracker: FleetTracker, rider_key: str, json_mode: bool) -> int:
    view = tracker.detail_view()
    try:
        detail = await view.open(rider_key)
    except DetailError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    if detail is None:
        return 1
    if json_mode:
        print(json.dumps(detail.model_dump(mode="json", exclude={"rider": {"raw"}}), indent=2, ensure_ascii=False))
        return 0

    quota, aggregate = detail.quota, detail.aggregate
    out = [_section(f"RIDER {detail.rider.display_name}")]
    out.append(f"  status        : {detail.rider.status.value}")
    if quota is None or aggregate is None:
        out.append(f"  parcels       : {detail.parcels_error}")
    else:
        out.append(f"  delivered     : {aggregate.delivered} (today {quota.delivered_today}/{quota.daily_quota})")
        out.append(f"  monthly quota : {quota.monthly_quota} ({quota.progress_percent}%)")
        out.append(f"  streak        : {quota.streak_days} day(s)")
    out.append(_section("VIOLATIONS"))
    if detail.violations_error:
        out.append(f"  {detail.violations_error}")
    for log in detail.violations:
        when = log.date.isoformat(timespec="minutes") if log.date else "-"
        out.append(f"  {when:<17} {log.violation}")
    print("\n".join(out))
    return 0


async def main() -> int:
    parser = argparse.ArgumentParser(description="Watch live rider positions and activity.")
    parser.add_argument("--ticks", type=int, default=0, help="Stop after N ticks (default: until Ctrl-C)")
    parser.add_argument("--map", dest="map_path", help="Write the inline map to FILE after every tick")
    parser.add_argument("--focus", help="Focus the map on a rider key")
    parser.add_argument("--detail", help="Print the detail view for a rider key and exit")
    parser.add_argument("--weather", action="store_true", help="Show the weather overlay")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = FleetConfig.from_env(request_trace_enabled=args.verbose)

    async with FleetClient(config) as client, FleetTracker(client) as tracker:
        if args.detail:
            return await _print_detail(tracker, args.detail, args.json_mode)

        inline = tracker.add_surface(INLINE, FoliumCanvas.factory, container="inline")
        tracker.add_surface(TABULAR, TableCanvas.factory, container="table")
        if args.focus:
            tracker.focus(args.focus)
        if args.weather:
            if not tracker.show_weather():
                print("Weather overlay needs FLEET_WEATHER_API_KEY", file=sys.stderr)
            weather = await tracker.weather_at_center()
            if weather is not None and not args.json_mode:
                print(f"Weather in {weather.city}: {weather.temp}°C, {weather.description}")

        ticks = 0
        while not args.ticks or ticks < args.ticks:
            if ticks:
                await asyncio.sleep(tracker.loop.interval)
            await tracker.refresh()
            ticks += 1

            if args.json_mode:
                print(json.dumps(_tick_payload(tracker), ensure_ascii=False, default=str))
            else:
                print("\n".join(_riders_table(tracker) + _feed_lines(tracker)))
                result = inline.last_focus_result
                if result is not None and result.notice:
                    print(f"\n  {result.notice}")

            canvas = inline.canvas
            if args.map_path and isinstance(canvas, FoliumCanvas):
                canvas.save(args.map_path)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass
