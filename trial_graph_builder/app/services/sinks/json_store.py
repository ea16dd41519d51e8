from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime

from trial_graph_builder.app.models.graph import NodeRecord, EdgeRecord
from trial_graph_builder.app.services.sinks.base import GraphSink, DebugStore

def jsonencoder(o: Any) -> Any:
    if isinstance(o, datetime):
        return o.isoformat()
    if isinstance(o, (set, frozenset)):
        return sorted(o)
    return str(o)

def jsonl_append(path: Path, obj: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(obj, ensure_ascii=False, default=jsonencoder) + "\n")

def jsonl_read(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        return []
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]

def write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, ensure_ascii=False, indent=2, default=jsonencoder), encoding="utf-8")

class JsonGraphSink(GraphSink):
    def __init__(self, out_dir: Path):
        self.path_nodes = out_dir / "graph_nodes.jsonl"
        self.path_edges = out_dir / "graph_edges.jsonl"
        self.snapshot_path = out_dir / "graph_snapshot.json"

        # In-memory snapshot for small scale debug
        self.nodes: Dict[int, Dict[str, Any]] = {}
        self.edges: Dict[Tuple[int, str, int], Dict[str, Any]] = {}

        # records of earlier runs in the same out_dir keep uids unique across runs
        for record in jsonl_read(self.path_nodes):
            self.nodes[record["uid"]] = record
        for record in jsonl_read(self.path_edges):
            self.edges[(record["from"], record["type"], record["to"])] = record

    def close(self) -> None:
        # Write snapshot at end
        write_json(self.snapshot_path, {
            "nodes": list(self.nodes.values()),
            "relationships": list(self.edges.values()),
        })

    def upsert_node(self, node: NodeRecord) -> None:
        if node.uid in self.nodes:
            return
        record = {"labels": sorted(node.labels), "uid": node.uid, "properties": node.all_properties()}
        self.nodes[node.uid] = record
        jsonl_append(self.path_nodes, record)

    def upsert_edge(self, edge: EdgeRecord) -> None:
        key = (edge.from_uid, edge.rel_type, edge.to_uid)
        if key in self.edges:
            return
        record = {"type": edge.rel_type, "from": edge.from_uid, "to": edge.to_uid}
        self.edges[key] = record
        jsonl_append(self.path_edges, record)

    def max_uid(self) -> Optional[int]:
        return max(self.nodes) if self.nodes else None

class JsonDebugStore(DebugStore):
    def __init__(self, debug_dir: Path):
        self.debug_dir = debug_dir

    def write(self, document_name: str, document_id: str, document: Any, annotations: Dict[str, Any]) -> None:
        write_json(self.debug_dir / f"{document_name}.json", document)
        write_json(self.debug_dir / f"annotated_{document_name}.json", annotations)
