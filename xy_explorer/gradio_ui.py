"""Gradio UI for the XY explorer.

Single page: load a file or a sample, choose X/Y columns, and see the summary,
the chart and a preview of the parsed table. Each widget event becomes one action
applied to the session's AppState.
"""

import logging
from typing import List, Optional

import gradio as gr
import pandas as pd

from .csv_processor import FileAccessError, read_text_file
from .main import (
    OVERLAY_CHOICES,
    PlotKind,
    build_summary_text,
    overlay_names,
    overlays_from_names,
    render_svg_text,
)
from .samples import SAMPLE_TITLES, SAMPLES
from .state import (
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
    SetYLabel,
    update,
)

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 50
NO_DATA_HTML = "<p><em>No data to plot.</em></p>"


def _uploaded_path(file_obj) -> Optional[str]:
    # gr.File returns a path string, a dict with "name"/"path" or a tempfile wrapper depending on version
    if file_obj is None:
        return None
    if isinstance(file_obj, str):
        return file_obj
    if isinstance(file_obj, dict):
        return file_obj.get("path") or file_obj.get("name")
    return getattr(file_obj, "name", None)


def _plot_html(state: AppState) -> str:
    outputs = state.outputs
    if outputs is None or not outputs.visible_points:
        return NO_DATA_HTML
    svg = render_svg_text(outputs, state.view)
    return f"<div>{svg}</div>"


def _preview_frame(state: AppState) -> pd.DataFrame:
    if state.table is None:
        return pd.DataFrame()
    return state.table.to_frame().head(PREVIEW_ROWS)


def _summary(state: AppState) -> str:
    source = state.source_name or "-"
    if state.outputs is None:
        return f"Source: {source}\nNo header\nRows: -"
    return f"Source: {source}\n" + build_summary_text(state.outputs, state.view)


def _render(state: AppState):
    """State -> (state, summary text, chart html, table preview)."""
    return state, _summary(state), _plot_html(state), _preview_frame(state)


def _dispatch(state: Optional[AppState], action):
    if state is None:
        state = AppState.initial()
    new_state = update(state, action)
    logger.info(f"action={type(action).__name__}")
    return _render(new_state)


def _bound_boxes(state: AppState):
    # A load clears the X bounds in state; clear the matching text boxes too
    return tuple(
        "" if bound is None else gr.update() for bound in (state.view.x_min, state.view.x_max)
    )


def _with_bound_boxes(rendered):
    return rendered + _bound_boxes(rendered[0])


def _on_upload(file_obj, state: Optional[AppState]):
    path = _uploaded_path(file_obj)
    if not path:
        return _with_bound_boxes(_render(state or AppState.initial()))
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    try:
        text = read_text_file(path)
    except (FileNotFoundError, FileAccessError) as e:
        # Unreadable input degrades to the "No header" view
        logger.warning(f"Failed to read uploaded file {path!r}: {e}")
        text = ""
    return _with_bound_boxes(_dispatch(state, LoadText(text=text, source_name=name)))


def _on_sample(name: Optional[str], state: Optional[AppState]):
    if not name:
        return _with_bound_boxes(_render(state or AppState.initial()))
    return _with_bound_boxes(_dispatch(state, SelectSample(name=name)))


def _on_overlays(names: Optional[List[str]], state: Optional[AppState]):
    return _dispatch(state, SetOverlays(overlays=overlays_from_names(names)))


def _on_kind(kind: Optional[str], state: Optional[AppState]):
    plot_kind = PlotKind(kind) if kind else PlotKind.SCATTER
    return _dispatch(state, SetPlotKind(kind=plot_kind))


def _on_reset_range(state: Optional[AppState]):
    # Also clear the two bound text boxes
    new_state, summary, plot, preview = _dispatch(state, ResetRange())
    return new_state, summary, plot, preview, "", ""


def _build_ui():
    initial = AppState.initial()
    x_default, y_default = initial.view.effective_columns()

    with gr.Blocks() as demo:
        gr.Markdown("### XY Explorer: load a table, pick two columns, explore")
        gr.HTML("""
<style>
  #summary_box textarea {
    font-family: "SF Mono", "Menlo", "Monaco", "Consolas", "Liberation Mono", "Courier New", monospace;
    font-size: 13px;
    line-height: 1.3;
    resize: vertical;
    min-height: 200px;
  }
</style>
""")
        state = gr.State(initial)

        with gr.Row():
            file_input = gr.File(
                label="Load CSV file",
                file_types=[".csv", ".txt", ".dat", ".tsv"],
                type="filepath",
            )
            sample = gr.Dropdown(
                label="Sample dataset",
                choices=[(SAMPLE_TITLES[k], k) for k in SAMPLES],
                value=None,
            )
        with gr.Row():
            x_col = gr.Textbox(label="X column (1-based)", value=str(x_default + 1))
            y_col = gr.Textbox(label="Y column (1-based)", value=str(y_default + 1))
            x_label = gr.Textbox(label="X label", placeholder="header name")
            y_label = gr.Textbox(label="Y label", placeholder="header name")
        with gr.Row():
            x_min = gr.Textbox(label="X min", placeholder="no lower bound")
            x_max = gr.Textbox(label="X max", placeholder="no upper bound")
            confidence = gr.Textbox(
                label="Confidence (σ multiplier)",
                value=str(initial.view.effective_confidence()),
            )
            reset_range = gr.Button("Reset range")
        with gr.Row():
            overlays = gr.CheckboxGroup(
                label="Overlays",
                choices=OVERLAY_CHOICES,
                value=overlay_names(initial.view.overlays),
            )
            kind = gr.Radio(
                label="Plot kind",
                choices=[k.value for k in PlotKind],
                value=initial.view.plot_kind.value,
            )

        with gr.Row():
            summary = gr.Textbox(
                value=_summary(initial),
                lines=18,
                interactive=False,
                elem_id="summary_box",
                label="Statistics",
            )
            plot_html = gr.HTML(value=_plot_html(initial), label="Chart")
        preview = gr.Dataframe(label="Parsed table (first rows)", interactive=False)

        outputs = [state, summary, plot_html, preview]

        file_input.upload(
            _on_upload, inputs=[file_input, state], outputs=outputs + [x_min, x_max]
        )
        sample.change(
            _on_sample, inputs=[sample, state], outputs=outputs + [x_min, x_max]
        )

        for box, action_cls in (
            (x_col, SetXColumn),
            (y_col, SetYColumn),
            (x_label, SetXLabel),
            (y_label, SetYLabel),
            (x_min, SetXMin),
            (x_max, SetXMax),
            (confidence, SetConfidence),
        ):
            box.change(
                lambda raw, st, _cls=action_cls: _dispatch(st, _cls(raw=raw)),
                inputs=[box, state],
                outputs=outputs,
            )

        overlays.change(_on_overlays, inputs=[overlays, state], outputs=outputs)
        kind.change(_on_kind, inputs=[kind, state], outputs=outputs)
        reset_range.click(
            _on_reset_range, inputs=[state], outputs=outputs + [x_min, x_max]
        )

    return demo


if __name__ == "__main__":
    demo = _build_ui()
    demo.launch()
