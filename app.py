#!/usr/bin/env python3
"""
app.py - Hugging Face Spaces entrypoint for the XY Explorer Gradio app.

Spaces expects a top-level variable referencing the Gradio app. This file imports
the builder from xy_explorer/gradio_ui.py and exposes it as `demo`. Do NOT call
demo.launch() here.
"""

from xy_explorer.gradio_ui import _build_ui

demo = _build_ui()
