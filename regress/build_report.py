#!/usr/bin/env python3
"""Build per-map and per-checkpoint regression charts from a benchmark helper database."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .aggregate import ChainAggregate, aggregate_maps, standalone_series
from .config import DEFAULT_DB_PATH, RunConfig, apply_config, load_config
from .metadata import fetch_display_metadata, resolve_links
from .render import ChartRenderer, Slide, build_slide, reference_ticks, render_slides_html, write_series_csv
from .repository import SampleRepository
from .samples import build_sample_table

LOG = logging.getLogger("regress.build_report")

SLIDES_FILENAME = "slides.html"
SERIES_FILENAME = "series.csv"


@dataclass
class ReportArtifacts:
    charts: List[Path] = field(default_factory=list)
    slides_html: Optional[Path] = None
    series_csv: Optional[Path] = None


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Factorio regression test charts")
    parser.add_argument("db_path", nargs="?", default=None, help="Path to the regression test database.")
    parser.add_argument("--default", action="store_true", help=f"Use {DEFAULT_DB_PATH}.")
    parser.add_argument("--config", default=None, help="YAML config (bounds, output dir, metadata url).")
    parser.add_argument("--output-dir", dest="output_dir", default=None)
    parser.add_argument("--metadata-url", dest="metadata_url", default=None)
    parser.add_argument("--metadata-timeout-s", dest="metadata_timeout_s", type=float, default=None)
    parser.add_argument("--y-max-ms", dest="y_max_ms", type=float, default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_report(config: RunConfig) -> ReportArtifacts:
    """Fetch, aggregate and render. Nothing is written unless every step before rendering succeeds."""
    if config.db_path is None:
        raise ValueError("No regression database configured.")
    links = fetch_display_metadata(config.metadata_url, config.metadata_timeout_s)
    rows = SampleRepository(config.db_path).fetch_samples()
    table = build_sample_table(rows, config.bounds)
    if not table:
        LOG.warning("No samples found in %s", config.db_path)

    checkpoint_series = aggregate_maps(table)
    LOG.info(
        "Found %d checkpoints across %d maps: %s",
        len(checkpoint_series),
        len(table),
        ", ".join(str(agg.checkpoint) for agg in checkpoint_series),
    )
    # Single-map slides come first in the selection list.
    aggregates: List[ChainAggregate] = [*standalone_series(table), *checkpoint_series]
    map_links = resolve_links(table, links)
    ticks = [reference_ticks(agg.series, config.bounds) for agg in aggregates]

    config.output_dir.mkdir(parents=True, exist_ok=True)
    renderer = ChartRenderer(config.output_dir, y_max_ms=config.y_max_ms)
    artifacts = ReportArtifacts()
    slides: List[Slide] = []
    for aggregate, agg_ticks in zip(aggregates, ticks):
        svg = renderer.render(aggregate, agg_ticks)
        artifacts.charts.append(svg)
        slides.append(build_slide(aggregate, svg, map_links))

    slides_html = render_slides_html(slides)
    artifacts.slides_html = config.output_dir / SLIDES_FILENAME
    artifacts.slides_html.write_text(slides_html, encoding="utf-8")
    artifacts.series_csv = config.output_dir / SERIES_FILENAME
    write_series_csv(artifacts.series_csv, aggregates)
    sys.stderr.write(slides_html)
    return artifacts


def main() -> int:
    args = parse_args()
    configure_logging(args.log_level)
    try:
        config = apply_config(args, load_config(args.config))
    except (OSError, ValueError):
        LOG.exception("Invalid configuration.")
        return 1
    if config.db_path is None:
        print("Usage: python -m regress.build_report $PATH_TO_REGRESSION_DB", file=sys.stderr)
        print("python -m regress.build_report --default to use the below path", file=sys.stderr)
        print(f"Probably {DEFAULT_DB_PATH}", file=sys.stderr)
        return 0
    try:
        artifacts = build_report(config)
    except Exception:
        LOG.exception("Report run failed.")
        return 1
    LOG.info("Wrote %d charts to %s", len(artifacts.charts), config.output_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
