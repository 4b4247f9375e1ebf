"""canvasdoc I/O helpers.

Includes candidate data-source loading in [`read_datasource_json()`](datasource.py:1).
"""

from __future__ import annotations

from .datasource import DataSourceValidationError, read_datasource_json

__all__ = [
    "DataSourceValidationError",
    "read_datasource_json",
]
