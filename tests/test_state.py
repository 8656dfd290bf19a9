import pytest

from xy_explorer.main import Overlay, PlotKind
from xy_explorer.state import (
    AppState,
    LoadText,
    ResetRange,
    SelectSample,
    SetConfidence,
    SetOverlays,
    SetPlotKind,
    SetXColumn,
    SetXLabel,
    SetXMax,
    SetXMin,
    SetYColumn,
    ToggleOverlay,
    update,
)

TABLE_TEXT = "a,b,c\n1,2,10\n2,4,20\n3,6,30\n4,8,40\n"


def _loaded() -> AppState:
    return update(AppState.initial(), LoadText(text=TABLE_TEXT, source_name="t.csv"))


def test_initial_state_has_no_data():
    state = AppState.initial()
    assert state.table is None
    assert state.outputs is not None
    assert state.outputs.points is None
    assert state.outputs.visible_points == ()
    assert state.outputs.statistics is None


def test_load_text_recomputes_outputs():
    state = _loaded()
    assert state.source_name == "t.csv"
    assert state.table.header == ("a", "b", "c")
    assert len(state.outputs.points) == 4
    assert state.outputs.statistics.slope == pytest.approx(2.0)
    assert state.outputs.x_label == "a"
    assert state.outputs.y_label == "b"


def test_column_text_is_one_based():
    state = update(_loaded(), SetYColumn(raw="3"))
    assert state.view.y_column == 2
    assert state.outputs.y_label == "c"
    assert state.outputs.statistics.slope == pytest.approx(10.0)


@pytest.mark.parametrize("raw", ["", "0", "-1", "x", "1.5", None])
def test_invalid_column_text_falls_back_to_default(raw):
    state = update(_loaded(), SetXColumn(raw="3"))
    state = update(state, SetXColumn(raw=raw))
    assert state.view.x_column is None
    assert state.outputs.x_column == 0


def test_out_of_range_column_gives_no_points():
    state = update(_loaded(), SetXColumn(raw="9"))
    assert state.view.x_column == 8
    assert state.outputs.points is None
    assert state.outputs.statistics is None


def test_range_bounds_filter_and_reset():
    state = update(_loaded(), SetXMin(raw="2"))
    state = update(state, SetXMax(raw="3"))
    assert [p.x for p in state.outputs.visible_points] == [2.0, 3.0]
    assert len(state.outputs.points) == 4
    # Original range still reported from all points
    assert state.outputs.x_min_original == 1.0
    assert state.outputs.x_max_original == 4.0

    reset = update(state, ResetRange())
    assert reset.view.x_min is None and reset.view.x_max is None
    assert len(reset.outputs.visible_points) == 4


def test_unparseable_bound_clears_that_side():
    state = update(_loaded(), SetXMin(raw="3"))
    state = update(state, SetXMin(raw="abc"))
    assert state.view.x_min is None
    assert len(state.outputs.visible_points) == 4


def test_new_load_clears_bounds_but_keeps_view_choices():
    state = update(_loaded(), SetXMin(raw="2"))
    state = update(state, SetYColumn(raw="3"))
    state = update(state, SetXLabel(raw="time"))
    state = update(state, SetPlotKind(kind=PlotKind.LINE))

    reloaded = update(state, LoadText(text="p,q,r\n5,6,7\n8,9,10\n", source_name="u.csv"))
    assert reloaded.view.x_min is None
    assert reloaded.view.y_column == 2
    assert reloaded.view.x_label == "time"
    assert reloaded.view.plot_kind is PlotKind.LINE
    assert reloaded.outputs.y_label == "r"


def test_update_does_not_mutate_input_state():
    state = _loaded()
    before_view = state.view
    before_outputs = state.outputs
    new_state = update(state, SetXMin(raw="3"))
    assert new_state is not state
    assert state.view is before_view
    assert state.view.x_min is None
    assert state.outputs is before_outputs
    assert len(state.outputs.visible_points) == 4


def test_overlay_toggle_and_set():
    state = _loaded()
    assert state.view.overlays == Overlay.DEFAULT
    state = update(state, ToggleOverlay(overlay=Overlay.REGRESSION_LINE))
    assert state.view.overlays & Overlay.REGRESSION_LINE
    state = update(state, ToggleOverlay(overlay=Overlay.REGRESSION_LINE))
    assert not state.view.overlays & Overlay.REGRESSION_LINE

    state = update(state, SetOverlays(overlays=Overlay.EVERYTHING))
    assert state.view.overlays == Overlay.EVERYTHING


def test_confidence_scales_error_half_width():
    state = update(_loaded(), SetConfidence(raw="2"))
    std_y = state.outputs.statistics.std_y
    assert state.outputs.error_half_width == pytest.approx(2.0 * std_y)

    state = update(state, SetConfidence(raw=""))
    assert state.outputs.error_half_width == pytest.approx(std_y)


def test_select_sample_loads_table():
    state = update(AppState.initial(), SelectSample(name="hubble"))
    assert state.source_name == "hubble"
    assert state.table is not None
    assert state.outputs.statistics.count == 24


def test_unknown_sample_leaves_state_unchanged():
    state = _loaded()
    assert update(state, SelectSample(name="nope")) is state


def test_unparseable_text_gives_no_header_state():
    state = update(_loaded(), LoadText(text="", source_name="empty.csv"))
    assert state.table is None
    assert state.outputs.points is None
    assert state.outputs.visible_points == ()


def test_unsupported_action_raises():
    with pytest.raises(TypeError):
        update(AppState.initial(), object())
