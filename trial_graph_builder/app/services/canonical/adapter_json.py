from __future__ import annotations
import json
import re
from typing import Any, Optional

from trial_graph_builder.app.models.documents import RawDocument, ParsedDocument
from trial_graph_builder.app.services.canonical.base import DocumentAdapter
from trial_graph_builder.app.services.canonical.utils import sha256_bytes

class JsonAdapter(DocumentAdapter):
    def can_handle(self, raw_doc: RawDocument) -> bool:
        return raw_doc.content_type == "application/json"

    def process(self, raw_doc: RawDocument) -> ParsedDocument:
        raw_hash = raw_doc.content_hash or sha256_bytes(raw_doc.raw_bytes)

        parse_error: Optional[str] = None
        data: Any = None

        try:
            raw_str = raw_doc.raw_bytes.decode(raw_doc.encoding, errors="replace")
            # Cleanup trailing commas
            raw_str = re.sub(r',(\s*[\]}])', r'\1', raw_str)
            data = json.loads(raw_str)
        except (ValueError, RecursionError) as e:
            parse_error = f"json_parse_error: {e}"

        return ParsedDocument(
            file_path=raw_doc.file_path,
            content_type=raw_doc.content_type,
            raw_hash=raw_hash,
            data=data,
            parse_error=parse_error,
        )
