from __future__ import annotations

import re
from typing import List, Optional

from trial_graph_builder.app.models.documents import TextSection

INCLUSION_LABEL = "Inclusion Criteria"
EXCLUSION_LABEL = "Exclusion Criteria"

# Glyphs the parser tokenizes badly, mapped to plain ASCII
REPLACEMENTS = [
    ("≦", "<="),
    ("≤", "<="),
    ("≧", ">="),
    ("≥", ">="),
    ("®", "(R)"),
    # list bullets lose their line breaks when whitespace is collapsed
    ("- ", "\n\n"),
]

def normalize_ws(s: str) -> str:
    return re.sub(r"\s+", " ", s).strip()

def _drop_prefix(text: str) -> str:
    colon = text.find(":")
    if colon == -1:
        return text.strip()
    return text[colon + 1:].strip()

class TextSegmenter:
    def __init__(self, exclusion_marker: str = EXCLUSION_LABEL):
        self.exclusion_marker = exclusion_marker

    def normalize(self, text: str) -> str:
        text = normalize_ws(text)
        for old, new in REPLACEMENTS:
            text = text.replace(old, new)
        return text.strip()

    def prose_section(self, label: str, text: str) -> TextSection:
        return TextSection(label=label, text=self.normalize(text))

    def split_criteria(self, text: str) -> Optional[List[TextSection]]:
        """
        Split an eligibility criteria block into inclusion and exclusion sections.

        Returns None when the block has no exclusion marker; such a block is not
        segmented here and should be traversed like any other field.
        """
        text = self.normalize(text)
        sep = text.find(self.exclusion_marker)
        if sep == -1:
            return None

        inclusion = _drop_prefix(text[:sep])
        exclusion = text[sep:]
        if ":" in exclusion:
            exclusion = _drop_prefix(exclusion)
        else:
            exclusion = exclusion[len(self.exclusion_marker):].strip()

        return [
            TextSection(label=INCLUSION_LABEL, text=inclusion),
            TextSection(label=EXCLUSION_LABEL, text=exclusion),
        ]
