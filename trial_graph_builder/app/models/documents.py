from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional

@dataclass
class RawDocument:
    file_path: str
    content_type: str
    raw_bytes: bytes
    encoding: str = "utf-8"
    content_hash: str = ""

@dataclass
class ParsedDocument:
    file_path: str
    content_type: str
    raw_hash: str
    data: Any
    parse_error: Optional[str] = None

@dataclass(frozen=True)
class TextSection:
    # label is the enclosing field key, or "Inclusion Criteria" / "Exclusion Criteria" after a split
    label: str
    text: str
