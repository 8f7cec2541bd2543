# components/display/__init__.py
"""
Front-panel readouts for the incubator.

Headless counterpart of the browser panel: element ids, readout text and
the buttons that drive the engine.
"""

from components.display.readout_panel import (
    ACTION_IDS,
    READOUT_IDS,
    ReadoutPanel,
    SceneState,
    format_readouts,
)

__all__ = [
    "ACTION_IDS",
    "READOUT_IDS",
    "ReadoutPanel",
    "SceneState",
    "format_readouts",
]
