#!/usr/bin/env python3
"""
XY Explorer - pick two columns of a CSV-like table, summarize them and plot them.

This module exposes the pure pipeline units shared by the CLI and the Gradio UI:
- load_raw_table()
- run_pipeline()
- render_outputs() / render_svg_text()
- assemble_text_report()

Each function takes explicit inputs and returns explicit outputs. Logging is kept for
internal diagnostics; nothing here prints except the CLI entry point.
"""

import io
import logging
import os
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Tuple, Union

# Select a non-interactive backend before pyplot is imported so rendering never tries
# to open a GUI window (headless servers, Gradio workers).
import matplotlib

matplotlib.use("Agg", force=True)
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.lines import Line2D

from .csv_processor import (
    CSVProcessingError,
    RawTable,
    describe_table,
    parse_raw_table,
    read_text_file,
)
from .samples import SAMPLES, get_sample
from .stats import (
    Points,
    Statistics,
    compute_statistics,
    error_bar_half_width,
    filter_by_x_range,
    mean_line,
    regression_diagnostics,
    to_points,
)
from .utils import (
    build_effective_parameters,
    canonical_json_hash,
    ensure_run_dir,
    normalize_abs_posix,
    utc_timestamp_seconds,
    write_manifest,
    write_text_report,
)

# Configure logging for debugging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Zero-based columns used when the user leaves a column field blank or invalid.
DEFAULT_X_COLUMN: int = 0
DEFAULT_Y_COLUMN: int = 1
DEFAULT_CONFIDENCE: float = 1.0

# Placeholder for derived values that are mathematically undefined.
UNDEFINED: str = "undefined"
# Placeholder for absent inputs / counts.
ABSENT: str = "-"


class Overlay(IntFlag):
    # Regression line between the two regression endpoints
    REGRESSION_LINE = 1 << 0
    # Horizontal line at mean y across the data's x values
    MEAN_LINE = 1 << 1
    # +/- confidence * std_y bars on each point (and a band around the mean line)
    ERROR_BARS = 1 << 2
    # Legend visibility
    LEGEND = 1 << 3

    # Presets
    NONE = 0
    DEFAULT = LEGEND
    ALL_LINES = REGRESSION_LINE | MEAN_LINE | LEGEND
    EVERYTHING = REGRESSION_LINE | MEAN_LINE | ERROR_BARS | LEGEND


# Canonical order of atomic overlay flags (UI checkbox order, filename suffixes)
OVERLAY_CHOICES: List[str] = ["REGRESSION_LINE", "MEAN_LINE", "ERROR_BARS", "LEGEND"]


class PlotKind(Enum):
    """How the data series itself is drawn. Exactly one kind is active."""

    SCATTER = "scatter"
    LINE = "line"


@dataclass
class LoadParams:
    """
    Where the raw text comes from. Exactly one of input_path / sample is used;
    input_path wins when both are set.
    """

    input_path: Optional[Path] = None
    sample: Optional[str] = None


@dataclass
class ViewParams:
    """
    User selections that drive the pipeline and the chart.

    Attributes:
        x_column / y_column: zero-based column indices; None means "use the default"
            (first and second column).
        x_label / y_label: axis labels; None means "use the header name".
        x_min / x_max: inclusive X filter bounds; None leaves that side open.
        confidence: error-bar multiplier on one standard deviation; None means 1.0.
        overlays: Overlay flags to draw on top of the data.
        plot_kind: scatter or line.
    """

    x_column: Optional[int] = DEFAULT_X_COLUMN
    y_column: Optional[int] = DEFAULT_Y_COLUMN
    x_label: Optional[str] = None
    y_label: Optional[str] = None
    x_min: Optional[float] = None
    x_max: Optional[float] = None
    confidence: Optional[float] = DEFAULT_CONFIDENCE
    overlays: Overlay = Overlay.DEFAULT
    plot_kind: PlotKind = PlotKind.SCATTER

    def effective_columns(self) -> Tuple[int, int]:
        x = DEFAULT_X_COLUMN if self.x_column is None else self.x_column
        y = DEFAULT_Y_COLUMN if self.y_column is None else self.y_column
        return x, y

    def effective_confidence(self) -> float:
        return DEFAULT_CONFIDENCE if self.confidence is None else self.confidence


@dataclass
class PipelineOutputs:
    table: Optional[RawTable]
    x_column: int
    y_column: int
    x_label: str
    y_label: str
    # All extracted points (None when extraction is impossible)
    points: Optional[Points]
    # Points left after the X-range filter
    visible_points: Points
    # Statistics over visible_points
    statistics: Optional[Statistics]
    # Statistics over all points; carries the original X range
    original_statistics: Optional[Statistics]
    error_half_width: Optional[float]
    mean_points: Points
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    @property
    def x_min_original(self) -> Optional[float]:
        return None if self.original_statistics is None else self.original_statistics.x_min

    @property
    def x_max_original(self) -> Optional[float]:
        return None if self.original_statistics is None else self.original_statistics.x_max


def column_label(table: Optional[RawTable], index: int, override: Optional[str]) -> str:
    """Axis label: explicit override, else the header name, else 'column N' (1-based)."""
    if override:
        return override
    if table is not None and 0 <= index < table.column_count and table.header[index]:
        return table.header[index]
    return f"column {index + 1}"


def load_raw_table(params: LoadParams) -> Tuple[Optional[RawTable], str]:
    """
    Read the requested source and parse it. Returns (table or None, source name).
    Raises on unreadable files or unknown samples; an unparseable text is not an error.
    """
    if params.input_path is not None:
        text = read_text_file(params.input_path)
        source_name = Path(params.input_path).name
    elif params.sample:
        text = get_sample(params.sample)
        if text is None:
            raise ValueError(
                f"Unknown sample {params.sample!r}; choose one of {sorted(SAMPLES)}"
            )
        source_name = params.sample.strip().lower()
    else:
        raise ValueError("Either an input file or a sample name is required")

    table = parse_raw_table(text)
    logger.info(f"Loaded {source_name}: {describe_table(table)}")
    return table, source_name


def run_pipeline(table: Optional[RawTable], view: ViewParams) -> PipelineOutputs:
    """
    Pure recompute: table -> points -> X filter -> statistics, error bars, mean line.

    Every stage degrades to an absent value instead of raising.
    """
    x_col, y_col = view.effective_columns()
    points = to_points(x_col, y_col, table)
    original_statistics = compute_statistics(points)
    visible = filter_by_x_range(points or (), view.x_min, view.x_max)
    statistics = compute_statistics(visible)
    half_width = error_bar_half_width(visible, view.effective_confidence())
    outputs = PipelineOutputs(
        table=table,
        x_column=x_col,
        y_column=y_col,
        x_label=column_label(table, x_col, view.x_label),
        y_label=column_label(table, y_col, view.y_label),
        points=points,
        visible_points=visible,
        statistics=statistics,
        original_statistics=original_statistics,
        error_half_width=half_width,
        mean_points=mean_line(visible),
        diagnostics=regression_diagnostics(visible),
    )
    logger.debug(
        f"run_pipeline: columns=({x_col}, {y_col}) "
        f"points={None if points is None else len(points)} visible={len(visible)}"
    )
    return outputs


def format_value(value: Optional[float], placeholder: str = UNDEFINED) -> str:
    """Compact numeric formatting; None renders as the placeholder (never 'nan')."""
    if value is None:
        return placeholder
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return str(int(value))
    return f"{float(value):.6g}"


STATISTICS_LABELS: List[str] = [
    "Count",
    "X range",
    "Y range",
    "Mean x",
    "Mean y",
    "Std dev x",
    "Std dev y",
    "Covariance",
    "Correlation",
    "Slope",
    "Intercept",
    "Regression line",
]


def statistics_rows(stats: Optional[Statistics]) -> List[Tuple[str, str]]:
    """(label, value) rows describing a Statistics value, with placeholders when absent."""
    if stats is None:
        return [(lbl, ABSENT) for lbl in STATISTICS_LABELS]

    if stats.has_regression:
        regression_line = (
            f"({format_value(stats.left_point.x)}, {format_value(stats.left_point.y)})"
            f" -> ({format_value(stats.right_point.x)}, {format_value(stats.right_point.y)})"
        )
    else:
        regression_line = UNDEFINED
    return [
        ("Count", format_value(stats.count)),
        ("X range", f"[{format_value(stats.x_min)}, {format_value(stats.x_max)}]"),
        ("Y range", f"[{format_value(stats.y_min)}, {format_value(stats.y_max)}]"),
        ("Mean x", format_value(stats.mean_x)),
        ("Mean y", format_value(stats.mean_y)),
        ("Std dev x", format_value(stats.std_x)),
        ("Std dev y", format_value(stats.std_y)),
        ("Covariance", format_value(stats.covariance)),
        ("Correlation", format_value(stats.correlation)),
        ("Slope", format_value(stats.slope)),
        ("Intercept", format_value(stats.intercept)),
        ("Regression line", regression_line),
    ]


def _align_rows(rows: List[Tuple[str, str]], indent: str = "  ") -> str:
    width = max((len(lbl) for lbl, _ in rows), default=0)
    return "\n".join(f"{indent}{lbl.ljust(width)} : {val}" for lbl, val in rows)


def build_summary_text(outputs: PipelineOutputs, view: ViewParams) -> str:
    """Short summary shown next to the chart (also the core of the text report)."""
    table = outputs.table
    parts: List[str] = []
    if table is None:
        parts.append("No header")
        parts.append(f"Rows: {ABSENT}")
    else:
        parts.append(f"Columns: {', '.join(table.header)}")
        parts.append(f"Rows: {table.row_count}")
    parts.append(
        f"X: [{outputs.x_column + 1}] {outputs.x_label}   "
        f"Y: [{outputs.y_column + 1}] {outputs.y_label}"
    )
    n_points = ABSENT if outputs.points is None else str(len(outputs.points))
    parts.append(f"Points: {n_points} (visible: {len(outputs.visible_points)})")
    parts.append(
        f"Original X range: [{format_value(outputs.x_min_original, ABSENT)}, "
        f"{format_value(outputs.x_max_original, ABSENT)}]"
    )
    parts.append(
        f"X filter: [{format_value(view.x_min, ABSENT)}, {format_value(view.x_max, ABSENT)}]"
    )
    parts.append("")
    parts.append(_align_rows(statistics_rows(outputs.statistics), indent=""))
    parts.append("")
    c = view.effective_confidence()
    parts.append(
        f"Error bars: ±{format_value(c)}σ = ±{format_value(outputs.error_half_width, ABSENT)}"
    )
    return "\n".join(parts)


def _diagnostics_rows(diag: Dict[str, Any]) -> List[Tuple[str, str]]:
    rows: List[Tuple[str, str]] = [("Fit", str(diag.get("fit_message", ABSENT)))]
    if diag.get("fit_message") != "ok":
        if "error" in diag:
            rows.append(("Error", str(diag["error"])))
        return rows
    for key in ("R-squared", "Adj. R-squared", "F-statistic", "p-value"):
        rows.append((key, format_value(diag.get(key))))
    for name, label in (("x", "slope"), ("const", "intercept")):
        se = diag["Standard Errors"][name]
        lo, hi = diag["Confidence Intervals"][name]
        rows.append((f"SE {label}", format_value(se)))
        rows.append((f"95% CI {label}", f"[{format_value(lo)}, {format_value(hi)}]"))
    return rows


def assemble_text_report(
    outputs: PipelineOutputs, view: ViewParams, source_name: str
) -> str:
    """
    Create a concise, readable report: source, preamble, data head/tail, points,
    statistics, error bars and the statsmodels fit diagnostics.
    """
    parts: List[str] = []

    def _fmt_head_tail(df: pd.DataFrame, n: int = 5) -> str:
        """Render head and tail without index; only head when rows <= 2n."""
        if df.empty:
            return "(no rows)"
        head_txt = df.head(n).to_string(index=False)
        if len(df) <= 2 * n:
            return head_txt
        return f"{head_txt}\n...\n{df.tail(n).to_string(index=False)}"

    parts.append(f"Source: {source_name}")
    parts.append(describe_table(outputs.table))
    if outputs.table is not None and outputs.table.metadata:
        parts.append("Metadata:")
        parts.extend(f"  {ln}" for ln in outputs.table.metadata)
    parts.append("")

    if outputs.table is not None:
        parts.append(f"Input data (head/tail):\n{_fmt_head_tail(outputs.table.to_frame())}")
        parts.append("")
    points_df = pd.DataFrame(
        list(outputs.visible_points), columns=[outputs.x_label, outputs.y_label]
    )
    parts.append(f"Visible points (head/tail):\n{_fmt_head_tail(points_df)}")
    parts.append("")

    parts.append(build_summary_text(outputs, view))
    parts.append("")
    parts.append("OLS diagnostics:")
    parts.append(_align_rows(_diagnostics_rows(outputs.diagnostics)))
    parts.append("")
    return "\n".join(parts)


def _overlays_suffix(flags: Overlay) -> str:
    """
    Stable, human-readable overlay description for filenames.

    Exact preset matches return the preset name; otherwise the set atomic flags are
    '+'-joined in canonical order.
    """
    for name in ("DEFAULT", "EVERYTHING", "ALL_LINES", "NONE"):
        if flags == getattr(Overlay, name):
            return name
    tokens = [name for name in OVERLAY_CHOICES if flags & getattr(Overlay, name)]
    return "+".join(tokens) if tokens else "NONE"


def _parse_overlays(spec: str) -> Overlay:
    """
    Parse an overlay specification: a preset name (e.g. 'EVERYTHING') or '+'-joined
    atomic names (e.g. 'REGRESSION_LINE+MEAN_LINE'), case-insensitive.
    """
    s = spec.strip().upper()
    if s and s in Overlay.__members__:
        return Overlay[s]
    flags = Overlay.NONE
    for token in s.split("+"):
        token = token.strip()
        if not token:
            continue
        if token not in Overlay.__members__:
            raise ValueError(f"Unknown overlay token: {token}")
        flags |= Overlay[token]
    return flags


def overlays_from_names(names: Optional[List[str]]) -> Overlay:
    """Combine a list of atomic overlay names (e.g. from a checkbox group)."""
    flags = Overlay.NONE
    for name in names or []:
        flags |= _parse_overlays(name)
    return flags


def overlay_names(flags: Overlay) -> List[str]:
    return [name for name in OVERLAY_CHOICES if flags & getattr(Overlay, name)]


def add_legend_extra_line(text, color=None, **legend_kwargs):
    """
    Append a marker-less text entry at the end of the current legend.

    Parameters:
        text (str): Text of the extra legend entry.
        color (str or tuple, optional): Text color; default legend color when None.
        **legend_kwargs: Passed through to ax.legend().

    Returns:
        matplotlib.legend.Legend: The updated legend instance.
    """
    ax = plt.gca()
    handles, labels = ax.get_legend_handles_labels()

    invisible_handle = Line2D([], [], linestyle="None", marker=None, label=text)
    handles.append(invisible_handle)
    labels.append(text)

    legend = ax.legend(handles=handles, labels=labels, **legend_kwargs)
    if color:
        legend.get_texts()[-1].set_color(color)
    return legend


def render_outputs(
    outputs: PipelineOutputs,
    view: ViewParams,
    output_svg: Union[str, Path, IO] = "plot.svg",
) -> Union[str, Path, IO]:
    """
    Draw the visible points and the requested overlays and save an SVG.

    Parameters:
      - outputs: PipelineOutputs for the current selections.
      - view: ViewParams; plot_kind picks scatter vs. line, overlays picks the layers,
              x_min/x_max also become the x-axis limits (one-sided limits allowed).
      - output_svg: target path or writable text stream.

    Layers that cannot be drawn (undefined regression, no error-bar width) are skipped.
    """
    flags = view.overlays
    pts = outputs.visible_points
    xs = np.array([p.x for p in pts], dtype=float)
    ys = np.array([p.y for p in pts], dtype=float)
    stats = outputs.statistics
    half_width = outputs.error_half_width

    plt.style.use("dark_background")
    plt.figure(figsize=(10, 6))

    if view.plot_kind is PlotKind.LINE:
        plt.plot(
            xs,
            ys,
            color="#00FFFF",
            linewidth=1.6,
            marker="o",
            markersize=3,
            label="Data",
        )
    else:
        plt.scatter(
            xs,
            ys,
            s=20,
            color="#00FFFF",  # cyan (bright) for dark bg
            edgecolors="#003A3A",
            linewidths=0.3,
            label="Data Points",
            alpha=0.8,
        )

    if (flags & Overlay.ERROR_BARS) and half_width is not None and len(pts):
        plt.errorbar(
            xs,
            ys,
            yerr=half_width,
            fmt="none",
            ecolor="#8E8E93",
            elinewidth=0.8,
            capsize=2,
            label=f"±{format_value(view.effective_confidence())}σ",
        )

    if (flags & Overlay.MEAN_LINE) and outputs.mean_points and stats is not None:
        mx = np.array([p.x for p in outputs.mean_points], dtype=float)
        order = np.argsort(mx)
        mx = mx[order]
        my = np.full_like(mx, stats.mean_y)
        plt.plot(
            mx,
            my,
            color="#FF9F0A",  # orange
            linestyle="--",
            linewidth=1.6,
            label=f"Mean ({format_value(stats.mean_y)})",
        )
        if (flags & Overlay.ERROR_BARS) and half_width is not None:
            plt.fill_between(
                mx,
                my - half_width,
                my + half_width,
                color="#FF9F0A",
                alpha=0.12,
                label="Mean ± error",
            )

    if (flags & Overlay.REGRESSION_LINE) and stats is not None and stats.has_regression:
        plt.plot(
            [stats.left_point.x, stats.right_point.x],
            [stats.left_point.y, stats.right_point.y],
            color="#FFD60A",  # bright yellow
            linewidth=2.2,
            label="Linear Regression (OLS)",
        )

    plt.xlabel(outputs.x_label)
    plt.ylabel(outputs.y_label)

    filtered = view.x_min is not None or view.x_max is not None
    if flags & Overlay.LEGEND:
        plt.legend()
        if filtered:
            add_legend_extra_line(
                f"x in [{format_value(view.x_min, ABSENT)}, {format_value(view.x_max, ABSENT)}]",
                color="orange",
            )

    plt.xlim(left=view.x_min, right=view.x_max)

    plt.savefig(output_svg, format="svg")
    plt.close()
    return output_svg


def render_svg_text(outputs: PipelineOutputs, view: ViewParams) -> str:
    """Render to an in-memory SVG string (for embedding in HTML)."""
    buf = io.StringIO()
    render_outputs(outputs, view, output_svg=buf)
    return buf.getvalue()


def get_default_params() -> Tuple[LoadParams, ViewParams]:
    """
    Policy defaults: no source selected; first column vs. second column, scatter,
    no overlays except the legend, confidence multiplier 1.0.
    """
    load = LoadParams(input_path=None, sample=None)
    view = ViewParams(
        x_column=DEFAULT_X_COLUMN,
        y_column=DEFAULT_Y_COLUMN,
        x_label=None,
        y_label=None,
        x_min=None,
        x_max=None,
        confidence=DEFAULT_CONFIDENCE,
        overlays=Overlay.DEFAULT,
        plot_kind=PlotKind.SCATTER,
    )
    return load, view


def build_run_identity(
    load: LoadParams, view: ViewParams
) -> Tuple[str, str, str, dict]:
    """
    Returns (source_id, short_hash, full_hash, effective_params).
    source_id is the absolute POSIX input path, or 'sample:<name>'.
    """
    if load.input_path is not None:
        source_id = normalize_abs_posix(load.input_path)
    else:
        source_id = f"sample:{(load.sample or '').strip().lower()}"
    effective_params = build_effective_parameters(load, view)
    canonical_payload = {
        "source": source_id,
        "effective_parameters": effective_params,
    }
    short_hash, full_hash = canonical_json_hash(canonical_payload)
    return source_id, short_hash, full_hash, effective_params


def build_manifest_dict(
    source_id: str,
    counts: dict,
    effective_params: dict,
    hashes: Tuple[str, str],
    artifact_paths: List[str],
) -> dict:
    short_hash, full_hash = hashes
    return {
        "version": "1",
        "timestamp_utc": utc_timestamp_seconds(),
        "source": source_id,
        "row_count": counts.get("row_count"),
        "skipped_lines": int(counts.get("skipped_lines", 0)),
        "point_count": counts.get("point_count"),
        "visible_point_count": int(counts.get("visible_point_count", 0)),
        "effective_parameters": effective_params,
        "canonical_hash": full_hash,
        "canonical_hash_short": short_hash,
        "artifacts": {"plot_svgs": artifact_paths},
    }


def _orchestrate(
    params_load: LoadParams,
    params_view: ViewParams,
    output_dir: Union[str, Path] = "output",
) -> Path:
    """
    Run the full pipeline for the CLI and write plot, report and manifest into a
    per-run directory. Returns the run directory.
    """
    source_id, short_hash, full_hash, effective_params = build_run_identity(
        params_load, params_view
    )
    table, source_name = load_raw_table(params_load)
    outputs = run_pipeline(table, params_view)

    run_dir = ensure_run_dir(base=Path(output_dir).parent, prefix=Path(output_dir).name)

    artifact_paths: List[str] = []
    if outputs.visible_points:
        plot_path = run_dir / f"plot-{short_hash}-{_overlays_suffix(params_view.overlays)}.svg"
        render_outputs(outputs, params_view, output_svg=str(plot_path))
        artifact_paths.append(str(plot_path))
    else:
        logger.warning("No numeric points to plot; chart skipped")

    counts = {
        "row_count": None if table is None else table.row_count,
        "skipped_lines": 0 if table is None else table.skipped_lines,
        "point_count": None if outputs.points is None else len(outputs.points),
        "visible_point_count": len(outputs.visible_points),
    }
    manifest = build_manifest_dict(
        source_id=source_id,
        counts=counts,
        effective_params=effective_params,
        hashes=(short_hash, full_hash),
        artifact_paths=artifact_paths,
    )
    write_manifest(run_dir / f"manifest-{short_hash}.json", manifest)

    report = assemble_text_report(outputs, params_view, source_name)
    write_text_report(report, run_dir, short_hash)

    print(report)
    return run_dir


def _build_cli_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="xy-explorer",
        description="XY Explorer (load -> extract -> summarize -> plot).",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--print-defaults",
        action="store_true",
        help="Print default parameter values and exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show debug logging and full tracebacks (also XY_EXPLORER_DEBUG=1).",
    )
    parser.add_argument(
        "--ui",
        action="store_true",
        help="Launch the Gradio web UI instead of a one-shot run.",
    )

    # LoadParams
    g_load = parser.add_argument_group("LoadParams")
    src = g_load.add_mutually_exclusive_group()
    src.add_argument("--input", type=str, help="Path to a CSV-like text file.")
    src.add_argument(
        "--sample",
        choices=sorted(SAMPLES),
        help="Use a built-in sample dataset instead of a file.",
    )

    # ViewParams
    g_view = parser.add_argument_group("ViewParams")
    g_view.add_argument("--x-col", type=int, help="1-based column index for X.")
    g_view.add_argument("--y-col", type=int, help="1-based column index for Y.")
    g_view.add_argument("--x-label", type=str, help="X axis label (default: header).")
    g_view.add_argument("--y-label", type=str, help="Y axis label (default: header).")
    g_view.add_argument("--x-min", type=float, help="Inclusive lower X bound.")
    g_view.add_argument("--x-max", type=float, help="Inclusive upper X bound.")
    g_view.add_argument(
        "--confidence",
        type=float,
        help="Error-bar multiplier on one standard deviation of y.",
    )
    g_view.add_argument(
        "--overlays",
        type=str,
        help="Overlay preset (DEFAULT, EVERYTHING, ALL_LINES, NONE) or '+'-joined "
        "flags from REGRESSION_LINE, MEAN_LINE, ERROR_BARS, LEGEND.",
    )
    g_view.add_argument(
        "--kind",
        choices=[k.value for k in PlotKind],
        help="Plot kind.",
    )

    g_out = parser.add_argument_group("Output")
    g_out.add_argument(
        "--output-dir",
        type=str,
        default="output",
        help="Directory receiving per-run subdirectories.",
    )
    return parser


def _args_to_params(args) -> Tuple[LoadParams, ViewParams]:
    """
    Merge CLI args over defaults. Only explicitly provided values override defaults.
    Column arguments are 1-based and converted to 0-based indices.
    """
    d_load, d_view = get_default_params()

    load = LoadParams(
        input_path=Path(args.input).resolve() if getattr(args, "input", None) else d_load.input_path,
        sample=getattr(args, "sample", None) or d_load.sample,
    )

    def _column(value: Optional[int], flag: str, default: Optional[int]) -> Optional[int]:
        if value is None:
            return default
        if value < 1:
            raise ValueError(f"{flag} must be a 1-based column index >= 1, got {value}")
        return value - 1

    overlays = d_view.overlays
    if getattr(args, "overlays", None):
        overlays = _parse_overlays(args.overlays)

    view = ViewParams(
        x_column=_column(getattr(args, "x_col", None), "--x-col", d_view.x_column),
        y_column=_column(getattr(args, "y_col", None), "--y-col", d_view.y_column),
        x_label=getattr(args, "x_label", None) or d_view.x_label,
        y_label=getattr(args, "y_label", None) or d_view.y_label,
        x_min=args.x_min if getattr(args, "x_min", None) is not None else d_view.x_min,
        x_max=args.x_max if getattr(args, "x_max", None) is not None else d_view.x_max,
        confidence=(
            args.confidence
            if getattr(args, "confidence", None) is not None
            else d_view.confidence
        ),
        overlays=overlays,
        plot_kind=PlotKind(args.kind) if getattr(args, "kind", None) else d_view.plot_kind,
    )
    return load, view


def _defaults_payload() -> dict:
    d_load, d_view = get_default_params()
    x_col, y_col = d_view.effective_columns()
    return {
        "LoadParams": {
            "input_path": None if d_load.input_path is None else str(d_load.input_path),
            "sample": d_load.sample,
        },
        "ViewParams": {
            "x_col": x_col + 1,
            "y_col": y_col + 1,
            "x_label": d_view.x_label,
            "y_label": d_view.y_label,
            "x_min": d_view.x_min,
            "x_max": d_view.x_max,
            "confidence": d_view.confidence,
            "overlays": _overlays_suffix(d_view.overlays),
            "plot_kind": d_view.plot_kind.value,
        },
    }


def main(argv: Optional[List[str]] = None) -> None:
    """
    CLI entry point. Parses arguments, builds parameter objects, then orchestrates.
    """
    import sys

    argv = sys.argv[1:] if argv is None else argv
    parser = _build_cli_parser()
    args = parser.parse_args(argv)

    if args.print_defaults:
        import json

        print(json.dumps(_defaults_payload(), indent=2))
        return

    debug_mode = bool(args.debug or os.getenv("XY_EXPLORER_DEBUG", "") == "1")
    if debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.ui:
        from .gradio_ui import _build_ui

        _build_ui().launch()
        return

    if not args.input and not args.sample:
        parser.error("one of --input or --sample is required (or use --ui)")

    try:
        params_load, params_view = _args_to_params(args)
        _orchestrate(params_load, params_view, output_dir=args.output_dir)
    except (FileNotFoundError, ValueError, CSVProcessingError) as e:
        # Concise, user-facing errors for common/user-correctable problems.
        logger.info("User-facing error: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:
        logger.exception("Unhandled exception during execution")
        if debug_mode:
            import traceback

            traceback.print_exc()
        else:
            print(f"Unexpected error: {e}", file=sys.stderr)
            print(
                "Run with --debug or set XY_EXPLORER_DEBUG=1 to see the full traceback.",
                file=sys.stderr,
            )
        sys.exit(1)


if __name__ == "__main__":
    main()
