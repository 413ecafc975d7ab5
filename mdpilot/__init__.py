"""Top-level package for mdpilot.

This package applies natural-language editing commands to Markdown documents
through a structured operation batch, with Word and audio export. The main
orchestration entry point is `CommandPipeline`.
"""

from .pipeline import CommandPipeline

__all__ = ["CommandPipeline", "__version__"]

__version__ = "0.1.0"
