from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Token:
    text: str
    begin: int
    end: int


@dataclass
class ParseTree:
    label: str
    children: List["ParseTree"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @cached_property
    def leaf_count(self) -> int:
        if self.is_leaf:
            return 1
        return sum(child.leaf_count for child in self.children)

    def __str__(self) -> str:
        if self.is_leaf:
            return self.label
        return "(" + " ".join([self.label] + [str(c) for c in self.children]) + ")"


@dataclass(frozen=True)
class WordRef:
    index: int  # 1-based position of the word in its sentence
    word: str


@dataclass(frozen=True)
class DependencyEdge:
    """
    Grammatical relation as reported by the parser: `source` is the governor
    (head), `target` the dependent.
    """
    source: WordRef
    target: WordRef
    relation: str


@dataclass
class AnnotatedSentence:
    parse_tree: Optional[ParseTree]
    dependencies: List[DependencyEdge]
    tokens: List[Token]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parse": str(self.parse_tree) if self.parse_tree is not None else None,
            "tokens": [{"text": t.text, "begin": t.begin, "end": t.end} for t in self.tokens],
            "dependencies": [
                {
                    "governor": e.source.index,
                    "governorGloss": e.source.word,
                    "dependent": e.target.index,
                    "dependentGloss": e.target.word,
                    "dep": e.relation,
                }
                for e in self.dependencies
            ],
        }


@dataclass
class Annotation:
    text: str
    sentences: List[AnnotatedSentence] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "sentences": [dict(index=i, **s.to_dict()) for i, s in enumerate(self.sentences)],
        }
