"""
Application state for the single-page explorer.

The UI never edits state in place: every user action is a small dataclass, and
update(state, action) returns a new AppState with the pipeline fully recomputed from
the current RawTable. There is exactly one live state value per session.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Union

from .csv_processor import RawTable, parse_decimal, parse_raw_table
from .main import (
    Overlay,
    PipelineOutputs,
    PlotKind,
    ViewParams,
    get_default_params,
    run_pipeline,
)
from .samples import get_sample

logger = logging.getLogger(__name__)


def _parse_optional_column(raw: Optional[str]) -> Optional[int]:
    """
    1-based column text -> 0-based index. Blank, non-integer or < 1 gives None
    ("use the default column").
    """
    if raw is None:
        return None
    value = parse_decimal(str(raw))
    if value is None or not value.is_integer() or value < 1:
        return None
    return int(value) - 1


def _parse_optional_float(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    return parse_decimal(str(raw))


def _parse_optional_label(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    label = str(raw).strip()
    return label or None


# -------------------------
# Actions
# -------------------------
@dataclass(frozen=True)
class LoadText:
    text: str
    source_name: str = "file"


@dataclass(frozen=True)
class SelectSample:
    name: str


@dataclass(frozen=True)
class SetXColumn:
    raw: Optional[str]


@dataclass(frozen=True)
class SetYColumn:
    raw: Optional[str]


@dataclass(frozen=True)
class SetXLabel:
    raw: Optional[str]


@dataclass(frozen=True)
class SetYLabel:
    raw: Optional[str]


@dataclass(frozen=True)
class SetXMin:
    raw: Optional[str]


@dataclass(frozen=True)
class SetXMax:
    raw: Optional[str]


@dataclass(frozen=True)
class SetConfidence:
    raw: Optional[str]


@dataclass(frozen=True)
class ToggleOverlay:
    overlay: Overlay


@dataclass(frozen=True)
class SetOverlays:
    overlays: Overlay


@dataclass(frozen=True)
class SetPlotKind:
    kind: PlotKind


@dataclass(frozen=True)
class ResetRange:
    pass


Action = Union[
    LoadText,
    SelectSample,
    SetXColumn,
    SetYColumn,
    SetXLabel,
    SetYLabel,
    SetXMin,
    SetXMax,
    SetConfidence,
    ToggleOverlay,
    SetOverlays,
    SetPlotKind,
    ResetRange,
]


def _default_view() -> ViewParams:
    return get_default_params()[1]


@dataclass(frozen=True)
class AppState:
    """
    Everything the page shows. `outputs` is always the pipeline result for
    (table, view); it is recomputed by update() and never edited.
    """

    table: Optional[RawTable] = None
    source_name: Optional[str] = None
    view: ViewParams = field(default_factory=_default_view)
    outputs: Optional[PipelineOutputs] = None

    @classmethod
    def initial(cls) -> "AppState":
        state = cls()
        return replace(state, outputs=run_pipeline(state.table, state.view))


def _apply(state: AppState, action: Action) -> AppState:
    view = state.view
    if isinstance(action, LoadText):
        # A new table replaces the old one wholesale; the old X window no longer applies.
        return replace(
            state,
            table=parse_raw_table(action.text),
            source_name=action.source_name,
            view=replace(view, x_min=None, x_max=None),
        )
    if isinstance(action, SelectSample):
        text = get_sample(action.name)
        if text is None:
            logger.warning(f"Unknown sample {action.name!r}; state unchanged")
            return state
        return _apply(state, LoadText(text=text, source_name=action.name))
    if isinstance(action, SetXColumn):
        return replace(state, view=replace(view, x_column=_parse_optional_column(action.raw)))
    if isinstance(action, SetYColumn):
        return replace(state, view=replace(view, y_column=_parse_optional_column(action.raw)))
    if isinstance(action, SetXLabel):
        return replace(state, view=replace(view, x_label=_parse_optional_label(action.raw)))
    if isinstance(action, SetYLabel):
        return replace(state, view=replace(view, y_label=_parse_optional_label(action.raw)))
    if isinstance(action, SetXMin):
        return replace(state, view=replace(view, x_min=_parse_optional_float(action.raw)))
    if isinstance(action, SetXMax):
        return replace(state, view=replace(view, x_max=_parse_optional_float(action.raw)))
    if isinstance(action, SetConfidence):
        return replace(state, view=replace(view, confidence=_parse_optional_float(action.raw)))
    if isinstance(action, ToggleOverlay):
        return replace(state, view=replace(view, overlays=view.overlays ^ action.overlay))
    if isinstance(action, SetOverlays):
        return replace(state, view=replace(view, overlays=action.overlays))
    if isinstance(action, SetPlotKind):
        return replace(state, view=replace(view, plot_kind=action.kind))
    if isinstance(action, ResetRange):
        return replace(state, view=replace(view, x_min=None, x_max=None))
    raise TypeError(f"Unsupported action: {action!r}")


def update(state: AppState, action: Action) -> AppState:
    """
    Pure reducer: apply one action and recompute points and statistics from the
    RawTable. The input state is left untouched.
    """
    new_state = _apply(state, action)
    if new_state is state:
        return state
    outputs = run_pipeline(new_state.table, new_state.view)
    logger.debug(f"update({type(action).__name__}) -> view={new_state.view}")
    return replace(new_state, outputs=outputs)
