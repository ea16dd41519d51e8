from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import singledispatchmethod
from typing import Any, Dict, Iterable, List, Optional

from trial_graph_builder.app.core.errors import AnnotationError
from trial_graph_builder.app.models.annotation import AnnotatedSentence
from trial_graph_builder.app.models.documents import TextSection
from trial_graph_builder.app.services.annotation.base import Annotator
from trial_graph_builder.app.services.emitter import GraphEmitter
from trial_graph_builder.app.services.segmenter import TextSegmenter

logger = logging.getLogger(__name__)


@dataclass
class ProcessedSection:
    label: str
    sentences: List[AnnotatedSentence]


class DocumentWalker:
    """
    Depth-first, pre-order traversal of a parsed document.

    Prose fields are segmented, annotated and handed to the emitter sentence
    by sentence. The raw annotation of every section is kept in `annotations`,
    keyed by the record label and then the section name.
    """

    def __init__(
        self,
        segmenter: TextSegmenter,
        annotator: Annotator,
        emitter: GraphEmitter,
        skip_keys: Iterable[str] = ("brief_summary",),
        criteria_key: str = "criteria",
        criteria_text_key: str = "textblock",
        prose_keys: Iterable[str] = ("textblock", "description"),
    ):
        self.segmenter = segmenter
        self.annotator = annotator
        self.emitter = emitter
        self.skip_keys = set(skip_keys)
        self.criteria_key = criteria_key
        self.criteria_text_key = criteria_text_key
        self.prose_keys = set(prose_keys)

        self.annotations: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
        self.sections: List[ProcessedSection] = []

    def walk(self, document: Any) -> List[ProcessedSection]:
        self.annotations = {}
        self.sections = []
        self._visit(document, None)
        return self.sections

    # ------------------------------------------------------------------
    # Dispatch over the node kinds of a parsed document
    # ------------------------------------------------------------------

    @singledispatchmethod
    def _visit(self, value: Any, key: Optional[str]) -> None:
        # scalars carry no prose outside of the recognised fields
        pass

    @_visit.register(dict)
    def _visit_object(self, value: dict, key: Optional[str]) -> None:
        for child_key, child in value.items():
            self._visit_field(child_key, child, key)

    @_visit.register(list)
    def _visit_array(self, value: list, key: Optional[str]) -> None:
        # elements inherit the array's key; the first non-object ends the array
        for item in value:
            if not isinstance(item, dict):
                return
            self._visit(item, key)

    def _visit_field(self, key: str, value: Any, parent_key: Optional[str]) -> None:
        if key in self.skip_keys:
            logger.debug(f"Skipping '{key}'")
            return

        if key == self.criteria_key and isinstance(value, dict) \
                and isinstance(value.get(self.criteria_text_key), str):
            sections = self.segmenter.split_criteria(value[self.criteria_text_key])
            if sections is None:
                self._visit(value, key)
                return
            for section in sections:
                self._process(key, section.label, section)
            return

        if key in self.prose_keys and isinstance(value, str):
            label = parent_key or key
            self._process(label, key, self.segmenter.prose_section(label, value))
            return

        self._visit(value, key)

    # ------------------------------------------------------------------

    def _process(self, record_label: str, record_name: str, section: TextSection) -> None:
        logger.info(f"Annotating section '{section.label}' ({len(section.text)} chars)")
        annotation = self.annotator.annotate(section.text)
        if annotation is None:
            raise AnnotationError(f"Annotator returned no result for section '{section.label}'")

        self.annotations.setdefault(record_label, {}).setdefault(record_name, []).append(annotation.to_dict())

        for index, sentence in enumerate(annotation.sentences):
            self.emitter.emit(sentence, section.label, index)
        self.sections.append(ProcessedSection(label=section.label, sentences=annotation.sentences))
