from __future__ import annotations

import logging
import re
from typing import Any, List, Optional, Tuple

from trial_graph_builder.app.core.errors import AnnotationError
from trial_graph_builder.app.core.settings import Settings
from trial_graph_builder.app.models.annotation import (
    AnnotatedSentence, Annotation, DependencyEdge, ParseTree, Token, WordRef
)
from trial_graph_builder.app.services.annotation.base import Annotator

logger = logging.getLogger(__name__)

CLAUSE_END_RE = re.compile(r";\s*")


def split_clauses(text: str) -> List[Tuple[int, str]]:
    """
    Cut text after every semicolon. Returns `(offset, chunk)` pairs; blank
    chunks are dropped.
    """
    chunks = []
    start = 0
    for m in CLAUSE_END_RE.finditer(text):
        chunks.append((start, text[start:m.start() + 1]))
        start = m.end()
    chunks.append((start, text[start:]))
    return [(offset, chunk) for offset, chunk in chunks if chunk.strip()]


def convert_tree(tree: Any) -> ParseTree:
    """Copy a stanza constituency tree into a ParseTree."""
    return ParseTree(label=str(tree.label), children=[convert_tree(c) for c in (tree.children or [])])


def convert_sentence(sentence: Any, offset: int = 0) -> AnnotatedSentence:
    """
    Convert one stanza sentence. Offsets come from the enclosing token, so a
    multi-word token shares its span across all of its words; `offset` shifts
    them from the annotated chunk into the full text.
    """
    tokens: List[Token] = []
    words = []
    for token in sentence.tokens:
        for word in token.words:
            tokens.append(Token(text=word.text, begin=token.start_char + offset, end=token.end_char + offset))
            words.append(word)

    by_id = {w.id: w for w in words}
    edges: List[DependencyEdge] = []
    for word in words:
        # the attachment to the virtual root (head 0) is not an edge between two words
        if not word.head:
            continue
        head = by_id.get(word.head)
        if head is None:
            raise AnnotationError(f"Dependency head {word.head} of word {word.id} is not in the sentence")
        edges.append(DependencyEdge(
            source=WordRef(index=head.id, word=head.text),
            target=WordRef(index=word.id, word=word.text),
            relation=word.deprel,
        ))
    edges.sort(key=lambda e: (e.source.index, e.target.index))

    tree = getattr(sentence, "constituency", None)
    return AnnotatedSentence(
        parse_tree=convert_tree(tree) if tree is not None else None,
        dependencies=edges,
        tokens=tokens,
    )


class StanzaAnnotator(Annotator):
    def __init__(self, lang: str = "en",
                 processors: str = "tokenize,pos,lemma,constituency,depparse",
                 use_gpu: bool = False, download: bool = False,
                 split_semicolons: bool = True):
        self.lang = lang
        self.processors = processors
        self.use_gpu = use_gpu
        self.download = download
        # sentences also end at ";"
        self.split_semicolons = split_semicolons
        self._nlp = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "StanzaAnnotator":
        return cls(
            lang=settings.stanza_lang,
            processors=settings.stanza_processors,
            use_gpu=settings.stanza_use_gpu,
            download=settings.stanza_download,
            split_semicolons=settings.stanza_split_semicolons,
        )

    def _get_nlp(self):
        """Lazy-load the stanza pipeline; raise a clear error if it is not available."""
        if self._nlp is not None:
            return self._nlp
        try:
            import stanza
        except ImportError as e:
            raise AnnotationError("stanza is required for annotation. Install it with `pip install stanza`.") from e

        if self.download:
            logger.info(f"Downloading stanza models for '{self.lang}' ({self.processors})")
            stanza.download(self.lang, processors=self.processors, verbose=False)
        try:
            self._nlp = stanza.Pipeline(
                lang=self.lang, processors=self.processors, use_gpu=self.use_gpu, verbose=False
            )
        except Exception as e:
            raise AnnotationError(
                f"Could not load stanza pipeline for '{self.lang}': {e}. "
                f"Run `python -c \"import stanza; stanza.download('{self.lang}')\"` or set STANZA_DOWNLOAD=true."
            ) from e
        return self._nlp

    def annotate(self, text: str) -> Optional[Annotation]:
        nlp = self._get_nlp()
        chunks = split_clauses(text) if self.split_semicolons else [(0, text)]

        sentences: List[AnnotatedSentence] = []
        for offset, chunk in chunks:
            try:
                doc = nlp(chunk)
                if doc is None:
                    return None
                sentences.extend(convert_sentence(s, offset) for s in doc.sentences)
            except AnnotationError:
                raise
            except Exception as e:
                raise AnnotationError(f"stanza failed to annotate text: {e}") from e
        return Annotation(text=text, sentences=sentences)

    def close(self) -> None:
        self._nlp = None
