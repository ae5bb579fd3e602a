"""Graph persistence."""

from .json_store import JsonSnapshotStore, read_graph_file, write_graph_file

__all__ = ["JsonSnapshotStore", "read_graph_file", "write_graph_file"]
