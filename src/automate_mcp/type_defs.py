"""Common type definitions used throughout the automate-mcp package.

This module contains globally-shared type aliases that are used across
multiple subpackages. It is named type_defs.py to avoid shadowing the
standard library types module.
"""

from typing import TypeAlias

from pydantic import JsonValue

JsonDict: TypeAlias = dict[str, JsonValue]

__all__ = ["JsonDict"]
