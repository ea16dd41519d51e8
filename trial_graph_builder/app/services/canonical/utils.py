from __future__ import annotations
import hashlib
import re

# " 1." style list numbering; a following digit means a decimal such as " 2.5"
LIST_MARKER_RE = re.compile(r"\s+[1-9]\.(?!\d)")

def sha256_bytes(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()

def strip_list_markers(s: str) -> str:
    return LIST_MARKER_RE.sub("", s)
