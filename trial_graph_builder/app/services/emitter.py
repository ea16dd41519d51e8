"""Turns annotated sentences into parse-tree and dependency subgraphs.

Every node receives a fresh uid from the shared IdentifierAllocator and is
written through the GraphSink as its own upsert. Nothing is batched, so a
failure part way through a sentence leaves the nodes written so far in place.

Dependency edges point from the dependent (the edge *target*) to its governor
(the edge *source*). This follows the parser's native convention and
downstream queries rely on it; do not flip it to head -> dependent.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from trial_graph_builder.app.core.errors import AnnotationError
from trial_graph_builder.app.models.annotation import AnnotatedSentence, DependencyEdge, ParseTree, Token, WordRef
from trial_graph_builder.app.models.graph import (
    BASE_LABEL, DEPENDENCY_ROOT_EDGE, PARSE_EDGE, PARSE_NODE, ROOT_EDGE, TEXT_NODE, WORD_NODE,
    EdgeRecord, NodeRecord,
)
from trial_graph_builder.app.models.reports import WriteSummary
from trial_graph_builder.app.services.identifiers import IdentifierAllocator
from trial_graph_builder.app.services.sinks.base import GraphSink

logger = logging.getLogger(__name__)

ROOT_WORD = "ROOT"


class GraphEmitter:
    def __init__(self, sink: GraphSink, allocator: IdentifierAllocator, document_id: str):
        self.sink = sink
        self.allocator = allocator
        self.document_id = document_id
        self.summary = WriteSummary()

    def emit(self, sentence: AnnotatedSentence, section: str, sentence_index: int) -> None:
        if sentence.parse_tree is None:
            raise AnnotationError(f"Sentence {sentence_index} of '{section}' has no parse tree")
        self.build_tree(sentence.parse_tree, sentence.tokens, section, sentence_index)
        self.build_dependency(sentence.dependencies, section, sentence_index)

    # ------------------------------------------------------------------
    # Sink access
    # ------------------------------------------------------------------

    def _node(self, uid: int, labels: List[str], **properties) -> None:
        self.sink.upsert_node(NodeRecord(uid=uid, labels=frozenset([BASE_LABEL, *labels]), properties=properties))
        self.summary.nodes_upserted += 1

    def _edge(self, rel_type: str, from_uid: int, to_uid: int) -> None:
        self.sink.upsert_edge(EdgeRecord(rel_type=rel_type, from_uid=from_uid, to_uid=to_uid))
        self.summary.edges_upserted += 1

    # ------------------------------------------------------------------
    # Parse tree
    # ------------------------------------------------------------------

    def build_tree(self, root: ParseTree, tokens: List[Token], section: str, sentence_index: int) -> int:
        """
        Pre-order walk of the constituency tree. Returns the uid of the root.
        """
        root_uid = self.allocator.next()
        start, end = self._offsets(tokens, 0, root.leaf_count - 1)
        self._node(
            root_uid, [PARSE_NODE, root.label],
            start_offset=start, end_offset=end,
            section=section, sentence_index=sentence_index, document_id=self.document_id,
        )

        first_leaf = 0
        for child in root.children:
            self._visit(child, tokens, root_uid, ROOT_EDGE, first_leaf)
            first_leaf += child.leaf_count
        return root_uid

    def _visit(self, node: ParseTree, tokens: List[Token], parent_uid: int, edge_type: str, first_leaf: int) -> None:
        uid = self.allocator.next()
        start, end = self._offsets(tokens, first_leaf, first_leaf + node.leaf_count - 1)
        if node.is_leaf:
            self._node(uid, [TEXT_NODE], text=node.label, start_offset=start, end_offset=end)
        else:
            self._node(uid, [PARSE_NODE, node.label], start_offset=start, end_offset=end)
        self._edge(edge_type, parent_uid, uid)

        for child in node.children:
            self._visit(child, tokens, uid, PARSE_EDGE, first_leaf)
            first_leaf += child.leaf_count

    @staticmethod
    def _offsets(tokens: List[Token], first_leaf: int, last_leaf: int):
        # end offset is inclusive
        try:
            return tokens[first_leaf].begin, tokens[last_leaf].end - 1
        except IndexError:
            raise AnnotationError(
                f"Parse tree leaves {first_leaf}..{last_leaf} have no token offsets ({len(tokens)} tokens)"
            ) from None

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def build_dependency(self, edges: List[DependencyEdge], section: str, sentence_index: int) -> Dict[int, int]:
        """
        Emit one WordNode per token index and one relation edge per dependency.
        Returns the token index -> uid map used for this sentence.

        A sentence without edges gets no closing ROOT node.
        """
        uids: Dict[int, int] = {}
        last_source: Optional[WordRef] = None

        for edge in edges:
            for ref in (edge.source, edge.target):
                if ref.index not in uids:
                    uids[ref.index] = self.allocator.next()

            self._word(edge.target, uids[edge.target.index])
            self._word(edge.source, uids[edge.source.index])
            # dependent -> governor
            self._edge(edge.relation, uids[edge.target.index], uids[edge.source.index])
            last_source = edge.source

        if last_source is not None:
            root_uid = self.allocator.next()
            self._node(
                root_uid, [WORD_NODE],
                word=ROOT_WORD, idx=0,
                document_id=self.document_id, section=section, sentence_index=sentence_index,
            )
            self._edge(DEPENDENCY_ROOT_EDGE, uids[last_source.index], root_uid)

        return uids

    def _word(self, ref: WordRef, uid: int) -> None:
        self._node(uid, [WORD_NODE], word=ref.word, idx=ref.index)
