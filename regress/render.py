"""Chart, slide index and CSV output for aggregated version series."""

from __future__ import annotations

import csv
import html
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from .aggregate import ChainAggregate  # noqa: E402
from .config import AnalysisBounds  # noqa: E402
from .samples import OTHER_METRIC, SUB_PHASE_METRICS, TOTAL_METRIC, MapInfo, MetricSet  # noqa: E402
from .versions import FactorioVersion  # noqa: E402

LOG = logging.getLogger(__name__)

Tick = Tuple[FactorioVersion, str]

SEGMENT_COLORS: Dict[str, str] = {
    "entity_update": "#4e79a7",
    "circuit_network_update": "#f28e2b",
    "transport_lines_update": "#e15759",
    "fluids_update": "#76b7b2",
    "electric_network_update": "#59a14f",
    "logistic_manager_update": "#edc948",
    "trains": "#b07aa1",
    "train_path_finder": "#ff9da7",
    OTHER_METRIC: "#9c755f",
}
CHART_STYLE = {
    "font.family": "monospace",
    "font.monospace": ["Bitstream Vera Sans Mono", "DejaVu Sans Mono"],
    "svg.fonttype": "none",
}
CSV_HEADERS = ["series", "checkpoint", "factorio_version", "contributors", TOTAL_METRIC, *SUB_PHASE_METRICS, OTHER_METRIC]


def safe_name(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", value).strip("_")


def metric_breakdown(metrics: MetricSet) -> List[Tuple[str, float]]:
    return metrics.breakdown()


def reference_ticks(series: Dict[FactorioVersion, MetricSet], bounds: AnalysisBounds) -> List[Tick]:
    """Dense version axis restricted to the versions present in `series`."""
    axis = bounds.axis()
    ticks = [(version, str(version)) for version in axis if version in series]
    on_axis = set(axis)
    off_axis = [str(v) for v in series if v not in on_axis]
    if off_axis:
        LOG.warning("Versions missing from the reference axis (check terminal_patches): %s", ", ".join(off_axis))
    return ticks


def series_title(aggregate: ChainAggregate) -> str:
    if aggregate.is_standalone:
        return aggregate.cohort[0].map_name
    return f"Maps beginning in {aggregate.checkpoint}"


def selection_label(aggregate: ChainAggregate) -> str:
    if aggregate.is_standalone:
        return aggregate.cohort[0].label
    return f"Maps beginning with {aggregate.checkpoint}"


def chart_filename(aggregate: ChainAggregate) -> str:
    if aggregate.is_standalone:
        map_info = aggregate.cohort[0]
        return f"{safe_name(map_info.map_name)}_{map_info.sha256[:8]}.svg"
    return f"{aggregate.checkpoint}.svg"


class ChartRenderer:
    def __init__(self, output_dir: Path, *, y_max_ms: float = 20.0, width_in: float = 12.8, height_in: float = 6.4) -> None:
        self.output_dir = Path(output_dir)
        self.y_max_ms = y_max_ms
        self.width_in = width_in
        self.height_in = height_in

    def render(self, aggregate: ChainAggregate, ticks: Sequence[Tick]) -> Path:
        """Draw one stacked bar per tick, one segment per sub-phase plus `other`."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / chart_filename(aggregate)
        x = np.arange(len(ticks))
        names = [*SUB_PHASE_METRICS, OTHER_METRIC]
        breakdowns = [dict(metric_breakdown(aggregate.series[version])) for version, _ in ticks]
        values = {name: np.array([b[name] for b in breakdowns], dtype=float) for name in names}

        with plt.rc_context(CHART_STYLE):
            fig, ax = plt.subplots(figsize=(self.width_in, self.height_in))
            bottom = np.zeros(len(ticks))
            for name in names:
                bars = ax.bar(x, values[name], bottom=bottom, label=name, color=SEGMENT_COLORS[name], width=0.8)
                if len(ticks):
                    ax.bar_label(bars, fmt="%.1f", label_type="center", fontsize=6)
                bottom = bottom + values[name]
            ax.set_xticks(x)
            ax.set_xticklabels([label for _, label in ticks], rotation=30, ha="right")
            ax.set_ylim(0.0, self.y_max_ms)
            ax.set_ylabel("Average update time (ms)")
            ax.set_xlabel("Factorio Version")
            ax.set_title(series_title(aggregate))
            ax.legend(loc="center left", bbox_to_anchor=(1.0, 0.5))
            fig.tight_layout()
            fig.savefig(path, format="svg")
            plt.close(fig)
        LOG.info("Wrote %s", path)
        return path


@dataclass
class Slide:
    svg: Path
    sel_list_name: str
    ext_descr: List[Tuple[str, str]] = field(default_factory=list)  # (source link, map name)


def build_slide(aggregate: ChainAggregate, svg: Path, links: Dict[MapInfo, str]) -> Slide:
    return Slide(
        svg=svg,
        sel_list_name=selection_label(aggregate),
        ext_descr=[(links[m], m.map_name) for m in aggregate.cohort],
    )


def render_slides_html(slides: Iterable[Slide]) -> str:
    slides = list(slides)
    lines = ['<select class="selections">']
    for slide in slides:
        lines.append(f'    <option onclick = "setSlide()">{html.escape(slide.sel_list_name)}</option>')
    lines.append("</select>")
    lines.append('<div class = "slides">')
    for slide in slides:
        lines.append('    <div class = "slide">')
        lines.append(f'        <img src="images/{html.escape(slide.svg.name, quote=True)}"/>')
        if slide.ext_descr:
            lines.append("        <ul>")
            for link, desc in slide.ext_descr:
                lines.append(f'            <li><a href="{html.escape(link, quote=True)}">{html.escape(desc)}</a>')
            lines.append("        </ul>")
        lines.append("    </div>")
    lines.append("</div>")
    return "\n".join(lines) + "\n"


def write_series_csv(path: Path, aggregates: Iterable[ChainAggregate]) -> None:
    with path.open("w", encoding="utf-8", newline="") as out:
        writer = csv.DictWriter(out, fieldnames=CSV_HEADERS)
        writer.writeheader()
        for aggregate in aggregates:
            for version, metrics in aggregate.series.items():
                row: Dict[str, object] = {
                    "series": selection_label(aggregate),
                    "checkpoint": "" if aggregate.checkpoint is None else str(aggregate.checkpoint),
                    "factorio_version": str(version),
                    "contributors": aggregate.contributors[version],
                    TOTAL_METRIC: metrics.whole_update,
                }
                row.update(dict(metric_breakdown(metrics)))
                writer.writerow(row)
