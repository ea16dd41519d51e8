from __future__ import annotations
from typing import Any, List
from pathlib import Path

from trial_graph_builder.app.core.errors import DocumentFormatError
from trial_graph_builder.app.models.documents import RawDocument, ParsedDocument
from trial_graph_builder.app.services.canonical.base import DocumentAdapter
from trial_graph_builder.app.services.canonical.adapter_json import JsonAdapter
from trial_graph_builder.app.services.canonical.adapter_xml import XmlAdapter
from trial_graph_builder.app.services.canonical.utils import sha256_bytes

def detect_content_type(file_path: str, raw: bytes) -> str:
    s = raw.lstrip()[:50]
    if s.startswith(b"{") or s.startswith(b"["):
        return "application/json"
    if s.startswith(b"<"):
        return "application/xml"

    lp = file_path.lower()
    if lp.endswith(".json"):
        return "application/json"
    if lp.endswith(".xml"):
        return "application/xml"

    return "application/octet-stream"

def read_raw_document(file_path: str) -> RawDocument:
    p = Path(file_path)
    try:
        raw = p.read_bytes()
    except OSError as e:
        raise DocumentFormatError(f"Cannot read {file_path}: {e}") from e
    ct = detect_content_type(str(p), raw)
    return RawDocument(
        file_path=str(p),
        content_type=ct,
        raw_bytes=raw,
        encoding="utf-8",
        content_hash=sha256_bytes(raw),
    )

def extract_document_id(data: Any, path: str) -> str:
    """
    Resolve a dotted path such as `clinical_study.id_info.nct_id` to a scalar.
    """
    node = data
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            raise DocumentFormatError(f"Document id not found at '{path}' (missing '{part}')")
        node = node[part]
    if node is None or isinstance(node, (dict, list)):
        raise DocumentFormatError(f"Document id at '{path}' is not a scalar value")
    return str(node)

class DocumentParser:
    def __init__(self):
        self.adapters: List[DocumentAdapter] = [
            JsonAdapter(),
            XmlAdapter(),
        ]

    def parse(self, raw_doc: RawDocument) -> ParsedDocument:
        for adapter in self.adapters:
            if adapter.can_handle(raw_doc):
                return adapter.process(raw_doc)

        # Fallback for unsupported types
        return ParsedDocument(
            file_path=raw_doc.file_path,
            content_type=raw_doc.content_type,
            raw_hash=raw_doc.content_hash or sha256_bytes(raw_doc.raw_bytes),
            data=None,
            parse_error=f"unsupported_content_type: {raw_doc.content_type}"
        )

    def parse_file(self, file_path: str) -> Any:
        parsed = self.parse(read_raw_document(file_path))
        if parsed.parse_error:
            raise DocumentFormatError(f"{file_path}: {parsed.parse_error}")
        return parsed.data
