from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional

from trial_graph_builder.app.models.annotation import Annotation

class Annotator(ABC):
    @abstractmethod
    def annotate(self, text: str) -> Optional[Annotation]:
        """Split `text` into sentences and parse each one."""

    def close(self) -> None:
        pass
