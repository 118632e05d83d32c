"""
tapewave Command-Line Interface
===============================

- **taptool**: List, inspect and render tape images

The tool is a Click application; see ``taptool --help``.
"""

__all__ = ["taptool"]
