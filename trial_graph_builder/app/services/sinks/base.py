from __future__ import annotations
from typing import Any, Dict, Optional

from trial_graph_builder.app.models.graph import NodeRecord, EdgeRecord

class GraphSink:
    """
    Minimal upsert protocol of the graph store. Nodes are keyed on `uid` alone;
    edges are resolved by the uids of their endpoints.
    """

    def close(self) -> None:
        pass

    def upsert_node(self, node: NodeRecord) -> None:
        raise NotImplementedError

    def upsert_edge(self, edge: EdgeRecord) -> None:
        raise NotImplementedError

    def max_uid(self) -> Optional[int]:
        return None

class DebugStore:
    """Keeps the parsed document and its annotation record for inspection."""

    def close(self) -> None:
        pass

    def write(self, document_name: str, document_id: str, document: Any, annotations: Dict[str, Any]) -> None:
        raise NotImplementedError

class NullDebugStore(DebugStore):
    def write(self, document_name: str, document_id: str, document: Any, annotations: Dict[str, Any]) -> None:
        pass
