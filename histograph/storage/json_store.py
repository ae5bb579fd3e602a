"""JSON file persistence for graph snapshots."""

import asyncio
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from ..errors import SnapshotError
from ..interfaces import GraphSnapshot, ISnapshotStore
from ..models import KnowledgeGraph

logger = logging.getLogger(__name__)

SNAPSHOT_ID = "current"


class JsonSnapshotStore(ISnapshotStore):
    """Keeps the single current snapshot in a JSON file.

    The file holds ``{"id": "current", "graph": <export>, "savedAt": <ms>}``
    and is replaced atomically on every save.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def save(self, graph: KnowledgeGraph) -> GraphSnapshot:
        """Persist the graph, stamping ``meta.last_saved``.

        Raises:
            SnapshotError: If the file cannot be written
        """
        saved_at = int(time.time() * 1000)
        stamped = graph.model_copy(
            update={"meta": graph.meta.model_copy(update={"last_saved": saved_at})}
        )
        record = {
            "id": SNAPSHOT_ID,
            "graph": stamped.to_export_dict(),
            "savedAt": saved_at,
        }

        await asyncio.to_thread(self._write, record)
        logger.info(
            f"Saved snapshot to {self.path} "
            f"({len(graph.nodes)} nodes, {len(graph.edges)} edges)"
        )
        return GraphSnapshot(graph=stamped, saved_at=saved_at)

    async def load(self) -> Optional[GraphSnapshot]:
        """Load the current snapshot.

        Returns:
            The snapshot, or None when no snapshot file exists

        Raises:
            SnapshotError: If the file is unreadable or invalid
        """
        if not self.path.exists():
            logger.debug(f"No snapshot at {self.path}")
            return None

        record = await asyncio.to_thread(self._read)
        return self._parse(record)

    async def delete(self) -> bool:
        """Remove the snapshot file. Returns False if there was none."""
        if not self.path.exists():
            return False
        try:
            await asyncio.to_thread(self.path.unlink)
        except OSError as e:
            raise SnapshotError(f"Could not delete snapshot: {e}", path=str(self.path), cause=e) from e
        logger.info(f"Deleted snapshot {self.path}")
        return True

    def _write(self, record: Dict[str, Any]) -> None:
        """Write to a temp file in the target directory, then replace."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(record, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise SnapshotError(f"Could not write snapshot: {e}", path=str(self.path), cause=e) from e

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SnapshotError(f"Could not read snapshot: {e}", path=str(self.path), cause=e) from e

    def _parse(self, record: Any) -> GraphSnapshot:
        if not isinstance(record, dict) or "graph" not in record:
            raise SnapshotError("Snapshot record has no graph", path=str(self.path))

        try:
            graph = KnowledgeGraph.from_export_dict(record["graph"])
        except (ValidationError, ValueError, TypeError, AttributeError) as e:
            raise SnapshotError(f"Invalid snapshot graph: {e}", path=str(self.path), cause=e) from e

        saved_at = record.get("savedAt")
        if not isinstance(saved_at, int):
            saved_at = graph.meta.last_saved or 0
        return GraphSnapshot(graph=graph, saved_at=saved_at)


def read_graph_file(path: Union[str, Path]) -> KnowledgeGraph:
    """Read a graph from an export file or a snapshot record.

    Raises:
        SnapshotError: If the file is missing, unreadable or invalid
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SnapshotError(f"Could not read graph file: {e}", path=str(path), cause=e) from e

    if isinstance(payload, dict) and isinstance(payload.get("graph"), dict):
        payload = payload["graph"]
    if not isinstance(payload, dict):
        raise SnapshotError("Graph file must contain a JSON object", path=str(path))

    try:
        return KnowledgeGraph.from_export_dict(payload)
    except (ValidationError, ValueError, TypeError, AttributeError) as e:
        raise SnapshotError(f"Invalid graph: {e}", path=str(path), cause=e) from e


def write_graph_file(graph: KnowledgeGraph, path: Union[str, Path]) -> None:
    """Write a graph in the export shape."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(graph.to_export_dict(), f, ensure_ascii=False, indent=2)
    except OSError as e:
        raise SnapshotError(f"Could not write graph file: {e}", path=str(path), cause=e) from e
