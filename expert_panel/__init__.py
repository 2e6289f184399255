"""
Expert Panel - run a project through a team of AI expert personas.
"""

__version__ = "0.1.0"

from .ui import ui, PanelUI

__all__ = ["ui", "PanelUI", "__version__"]
