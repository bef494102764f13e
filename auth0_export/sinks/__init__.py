"""Sink implementations for rendered snapshots."""

from .file_sink import SnapshotSink

__all__ = ["SnapshotSink"]
