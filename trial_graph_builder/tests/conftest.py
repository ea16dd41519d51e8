from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from trial_graph_builder.app.core.settings import Settings
from trial_graph_builder.app.models.annotation import (
    AnnotatedSentence, Annotation, DependencyEdge, ParseTree, Token, WordRef
)
from trial_graph_builder.app.models.graph import EdgeRecord, NodeRecord
from trial_graph_builder.app.services.annotation.base import Annotator
from trial_graph_builder.app.services.sinks.base import GraphSink


class RecordingSink(GraphSink):
    def __init__(self):
        self.nodes: List[NodeRecord] = []
        self.edges: List[EdgeRecord] = []
        self.closed = False

    def upsert_node(self, node: NodeRecord) -> None:
        self.nodes.append(node)

    def upsert_edge(self, edge: EdgeRecord) -> None:
        self.edges.append(edge)

    def max_uid(self) -> Optional[int]:
        return max((n.uid for n in self.nodes), default=None)

    def close(self) -> None:
        self.closed = True

    def node(self, uid: int) -> NodeRecord:
        return next(n for n in self.nodes if n.uid == uid)

    def edges_of(self, rel_type: str) -> List[EdgeRecord]:
        return [e for e in self.edges if e.rel_type == rel_type]


def tokenize(text: str) -> List[Token]:
    tokens = []
    pos = 0
    for word in text.split():
        begin = text.index(word, pos)
        tokens.append(Token(text=word, begin=begin, end=begin + len(word)))
        pos = begin + len(word)
    return tokens


def make_sentence(text: str) -> AnnotatedSentence:
    """
    (ROOT (S (X w1) (X w2) ...)) with every later word depending on the first.
    """
    tokens = tokenize(text)
    tree = ParseTree("ROOT", [ParseTree("S", [ParseTree("X", [ParseTree(t.text)]) for t in tokens])])
    head = WordRef(1, tokens[0].text)
    deps = [
        DependencyEdge(source=head, target=WordRef(i + 1, t.text), relation="dep")
        for i, t in enumerate(tokens) if i > 0
    ]
    return AnnotatedSentence(parse_tree=tree, dependencies=deps, tokens=tokens)


class FakeAnnotator(Annotator):
    """One sentence per non-empty text; records every text it was given."""

    def __init__(self, results: Optional[Dict[str, Optional[Annotation]]] = None):
        self.results = results or {}
        self.calls: List[str] = []
        self.closed = False

    def annotate(self, text: str) -> Optional[Annotation]:
        self.calls.append(text)
        if text in self.results:
            return self.results[text]
        sentences = [make_sentence(text)] if text.split() else []
        return Annotation(text=text, sentences=sentences)

    def close(self) -> None:
        self.closed = True


STUDY_XML = """<?xml version="1.0" encoding="UTF-8"?>
<clinical_study>
  <id_info>
    <org_study_id>ABC-1</org_study_id>
    <nct_id>NCT00000001</nct_id>
  </id_info>
  <brief_summary>
    <textblock>Not part of the graph.</textblock>
  </brief_summary>
  <detailed_description>
    <textblock>Patients receive drug daily.</textblock>
  </detailed_description>
  <eligibility>
    <criteria>
      <textblock>
        Inclusion Criteria:

          - age over 18

        Exclusion Criteria:

          - pregnancy
      </textblock>
    </criteria>
  </eligibility>
</clinical_study>
"""


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def annotator() -> FakeAnnotator:
    return FakeAnnotator()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        graph_sink="json",
        debug_backend="json",
        out_dir=tmp_path / "out",
        run_id="test-run",
    )


@pytest.fixture
def study_file(tmp_path: Path) -> Path:
    path = tmp_path / "NCT00000001.xml"
    path.write_text(STUDY_XML, encoding="utf-8")
    return path
