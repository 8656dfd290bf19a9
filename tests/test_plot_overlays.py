import types
from pathlib import Path

import pytest

from xy_explorer.csv_processor import parse_raw_table
from xy_explorer.main import (
    Overlay,
    PlotKind,
    ViewParams,
    _overlays_suffix,
    _parse_overlays,
    overlay_names,
    overlays_from_names,
    render_outputs,
    render_svg_text,
    run_pipeline,
)


class CallCounter:
    def __init__(self):
        self.calls = []

    def __call__(self, *args, **kwargs):
        # Keep the label so assertions can tell the layers apart
        label = kwargs.get("label")
        entry = {
            "args": args,
            "kwargs": kwargs,
            "label": label,
        }
        self.calls.append(entry)
        return types.SimpleNamespace()


TABLE = parse_raw_table("x,y\n1,2.1\n2,3.9\n3,6.2\n4,7.8\n5,10.1\n")


def _patch(monkeypatch):
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    counters = {
        name: CallCounter()
        for name in ("scatter", "plot", "errorbar", "fill_between", "legend")
    }
    for name, cc in counters.items():
        monkeypatch.setattr(plt, name, cc)
    return counters


def test_default_overlays_draw_points_and_legend_only(monkeypatch, tmp_path: Path):
    cc = _patch(monkeypatch)
    view = ViewParams()
    outputs = run_pipeline(TABLE, view)

    out_path = tmp_path / "default.svg"
    render_outputs(outputs, view, output_svg=str(out_path))
    assert out_path.exists()

    assert len(cc["scatter"].calls) == 1
    assert cc["scatter"].calls[0]["label"] == "Data Points"
    assert cc["plot"].calls == []
    assert cc["errorbar"].calls == []
    assert len(cc["legend"].calls) == 1


def test_everything_draws_all_layers(monkeypatch, tmp_path: Path):
    cc = _patch(monkeypatch)
    view = ViewParams(overlays=Overlay.EVERYTHING, confidence=2.0)
    outputs = run_pipeline(TABLE, view)

    render_outputs(outputs, view, output_svg=str(tmp_path / "everything.svg"))

    labels = [c["label"] for c in cc["plot"].calls]
    assert "Linear Regression (OLS)" in labels
    assert any(lbl.startswith("Mean (") for lbl in labels)
    assert len(cc["errorbar"].calls) == 1
    assert cc["errorbar"].calls[0]["kwargs"]["yerr"] == pytest.approx(
        2.0 * outputs.statistics.std_y
    )
    assert cc["errorbar"].calls[0]["label"] == "±2σ"
    assert [c["label"] for c in cc["fill_between"].calls] == ["Mean ± error"]
    assert len(cc["legend"].calls) == 1


def test_regression_line_uses_endpoints(monkeypatch, tmp_path: Path):
    cc = _patch(monkeypatch)
    view = ViewParams(overlays=Overlay.REGRESSION_LINE)
    outputs = run_pipeline(TABLE, view)

    render_outputs(outputs, view, output_svg=str(tmp_path / "reg.svg"))

    (call,) = cc["plot"].calls
    xs, ys = call["args"]
    stats = outputs.statistics
    assert list(xs) == [stats.left_point.x, stats.right_point.x]
    assert list(ys) == [stats.left_point.y, stats.right_point.y]
    # No legend flag, no legend
    assert cc["legend"].calls == []


def test_undefined_regression_is_not_drawn(monkeypatch, tmp_path: Path):
    cc = _patch(monkeypatch)
    table = parse_raw_table("x,y\n2,1\n2,5\n2,9\n")
    view = ViewParams(overlays=Overlay.REGRESSION_LINE | Overlay.LEGEND)
    outputs = run_pipeline(table, view)
    assert outputs.statistics.slope is None

    render_outputs(outputs, view, output_svg=str(tmp_path / "flat.svg"))
    assert cc["plot"].calls == []
    assert len(cc["scatter"].calls) == 1


def test_line_kind_uses_plot_instead_of_scatter(monkeypatch, tmp_path: Path):
    cc = _patch(monkeypatch)
    view = ViewParams(plot_kind=PlotKind.LINE, overlays=Overlay.NONE)
    outputs = run_pipeline(TABLE, view)

    render_outputs(outputs, view, output_svg=str(tmp_path / "line.svg"))
    assert cc["scatter"].calls == []
    assert [c["label"] for c in cc["plot"].calls] == ["Data"]


def test_filtered_view_draws_only_visible_points(monkeypatch, tmp_path: Path):
    cc = _patch(monkeypatch)
    view = ViewParams(x_min=2.0, x_max=4.0, overlays=Overlay.NONE)
    outputs = run_pipeline(TABLE, view)

    render_outputs(outputs, view, output_svg=str(tmp_path / "filtered.svg"))
    xs, _ = cc["scatter"].calls[0]["args"]
    assert list(xs) == [2.0, 3.0, 4.0]


def test_render_svg_text_returns_svg_markup():
    view = ViewParams(overlays=Overlay.EVERYTHING, x_min=2.0)
    outputs = run_pipeline(TABLE, view)
    svg = render_svg_text(outputs, view)
    assert "<svg" in svg


def test_overlay_suffix_and_parsing():
    assert _overlays_suffix(Overlay.DEFAULT) == "DEFAULT"
    assert _overlays_suffix(Overlay.EVERYTHING) == "EVERYTHING"
    assert _overlays_suffix(Overlay.NONE) == "NONE"
    assert (
        _overlays_suffix(Overlay.REGRESSION_LINE | Overlay.ERROR_BARS)
        == "REGRESSION_LINE+ERROR_BARS"
    )

    assert _parse_overlays("everything") == Overlay.EVERYTHING
    assert _parse_overlays("mean_line+legend") == Overlay.MEAN_LINE | Overlay.LEGEND
    with pytest.raises(ValueError):
        _parse_overlays("REGRESSION_LINE+BOGUS")


def test_overlay_names_round_trip_through_checkbox_values():
    flags = Overlay.MEAN_LINE | Overlay.ERROR_BARS
    names = overlay_names(flags)
    assert names == ["MEAN_LINE", "ERROR_BARS"]
    assert overlays_from_names(names) == flags
    assert overlays_from_names(None) == Overlay.NONE
