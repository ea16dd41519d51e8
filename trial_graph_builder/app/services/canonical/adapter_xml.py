from __future__ import annotations
from typing import Any, Dict, Optional
import lxml.etree as LET

from trial_graph_builder.app.models.documents import RawDocument, ParsedDocument
from trial_graph_builder.app.services.canonical.base import DocumentAdapter
from trial_graph_builder.app.services.canonical.utils import sha256_bytes, strip_list_markers

def _xml_to_dict(elem: LET._Element) -> Any:
    # comments and processing instructions are not fields
    children = [ch for ch in elem if isinstance(ch.tag, str)]
    if not children:
        # markers are matched on the raw text, indentation included
        txt = strip_list_markers(elem.text).strip() if elem.text else ""
        return txt or None
    grouped: Dict[str, Any] = {}
    for ch in children:
        key = LET.QName(ch).localname
        val = _xml_to_dict(ch)
        if key in grouped:
            if not isinstance(grouped[key], list):
                grouped[key] = [grouped[key]]
            grouped[key].append(val)
        else:
            grouped[key] = val
    return grouped

class XmlAdapter(DocumentAdapter):
    def can_handle(self, raw_doc: RawDocument) -> bool:
        return raw_doc.content_type == "application/xml"

    def process(self, raw_doc: RawDocument) -> ParsedDocument:
        raw_hash = raw_doc.content_hash or sha256_bytes(raw_doc.raw_bytes)

        parse_error: Optional[str] = None
        data: Any = None

        try:
            root = LET.fromstring(raw_doc.raw_bytes)
            data = {LET.QName(root).localname: _xml_to_dict(root)}
        except LET.XMLSyntaxError as e:
            parse_error = f"xml_parse_error: {e}"

        return ParsedDocument(
            file_path=raw_doc.file_path,
            content_type=raw_doc.content_type,
            raw_hash=raw_hash,
            data=data,
            parse_error=parse_error,
        )
