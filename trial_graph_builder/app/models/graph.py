from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet

# Shared label carried by every node so that lookups by uid can use one index
BASE_LABEL = "GraphNode"

PARSE_NODE = "ParseNode"
TEXT_NODE = "TextNode"
WORD_NODE = "WordNode"

PARSE_EDGE = "ParseEdge"
ROOT_EDGE = "RootEdge"
DEPENDENCY_ROOT_EDGE = "root"

@dataclass(frozen=True)
class NodeRecord:
    uid: int
    labels: FrozenSet[str]
    properties: Dict[str, Any] = field(default_factory=dict, hash=False)

    def all_properties(self) -> Dict[str, Any]:
        return {**self.properties, "uid": self.uid}

@dataclass(frozen=True)
class EdgeRecord:
    rel_type: str
    from_uid: int
    to_uid: int
