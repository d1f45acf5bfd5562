"""CLI entry point for a static globe snapshot.

    uv run aqiglobe-snapshot --year 2030 --search seoul --elapsed 3600
"""

import argparse
import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

from aqiglobe.config import EngineConfig
from aqiglobe.context import Frame, SimulationContext
from aqiglobe.renderers.static import save_static_chart


async def build_frame(
    ctx: SimulationContext, year: int | None, search: str | None, elapsed: float
) -> Frame:
    """Run the same triggers the UI would, then advance the clock by ``elapsed`` seconds."""
    if search:
        await ctx.search_city(search)
    if year is None:
        await ctx.refresh()
    else:
        await ctx.select_year(year)
    return ctx.frame(elapsed)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Render AQI hotspots on a globe to PNG.")
    parser.add_argument("--year", type=int, default=None, help="Year to show (default: current)")
    parser.add_argument("--search", default=None, help="City to mark on the globe")
    parser.add_argument("--elapsed", type=float, default=0.0, help="Simulated seconds of spin")
    parser.add_argument("--output", type=Path, default=None, help="PNG path (default: results/)")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ctx = SimulationContext(EngineConfig.from_env())
    frame = asyncio.run(build_frame(ctx, args.year, args.search, args.elapsed))
    path = save_static_chart(
        frame.snapshot,
        frame.rotation,
        output_path=args.output,
        label=f"aqi_{ctx.selected_year}",
    )
    print(f"Saved: {path}")
    if ctx.last_search_error:
        print(f"Search failed: {ctx.last_search_error}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
