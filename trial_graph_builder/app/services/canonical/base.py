from __future__ import annotations
from abc import ABC, abstractmethod

from trial_graph_builder.app.models.documents import RawDocument, ParsedDocument

class DocumentAdapter(ABC):
    @abstractmethod
    def can_handle(self, raw_doc: RawDocument) -> bool:
        pass

    @abstractmethod
    def process(self, raw_doc: RawDocument) -> ParsedDocument:
        pass
