# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, db_base.py, or any mixin, to keep imports acyclic.
"""Typed return-value contracts for track core and API layers."""

from __future__ import annotations

from track.types.api import DependencyChange, ErrorCode, ErrorResponse, UpdateResult
from track.types.core import DependencyEdges, ISOTimestamp, ProjectConfig, TrackDetailsDict, TrackDict

__all__ = [
    "DependencyChange",
    "DependencyEdges",
    "ErrorCode",
    "ErrorResponse",
    "ISOTimestamp",
    "ProjectConfig",
    "TrackDetailsDict",
    "TrackDict",
    "UpdateResult",
]
