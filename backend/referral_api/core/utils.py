# backend/referral_api/core/utils.py
"""
Generic helpers used across the pipeline.

Includes:
- lightweight file readers (pdf/docx/txt)
- safe JSON extraction from LLM output
- string clipping
"""

from __future__ import annotations

import json
import re
import zipfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Any

# -------- File readers (pdf/docx/txt) ---------------------------------------

def read_pdf_pymupdf(path: str) -> str:
    """Fast+robust PDF text via LangChain's PyMuPDFLoader."""
    from langchain_community.document_loaders import PyMuPDFLoader
    loader = PyMuPDFLoader(path)
    docs = loader.load()
    return "\n".join((d.page_content or "") for d in docs)

def read_docx_quick(path: str) -> str:
    """Tiny docx reader (no external deps) that extracts paragraph text."""
    with zipfile.ZipFile(path) as z:
        xml_bytes = z.read("word/document.xml")
    root = ET.fromstring(xml_bytes)
    ns = {"w": "http://schemas.openxmlformats.org/wordprocessingml/2006/main"}
    lines: List[str] = []
    for p in root.findall(".//w:p", ns):
        txt = "".join((t.text or "") for t in p.findall(".//w:t", ns)).strip()
        if txt:
            lines.append(txt)
    return "\n".join(lines)

def read_text_file(path: str) -> str:
    return Path(path).read_text(encoding="utf-8", errors="ignore")

def sniff_kind(path: str, filename: Optional[str] = None) -> str:
    """
    Guess 'pdf' | 'docx' | 'txt' from the original filename, then magic bytes.
    Uploads are stored under an opaque id, so the suffix is often missing.
    """
    ext = Path(filename or path).suffix.lower()
    if ext in (".pdf", ".docx", ".txt", ".md"):
        return "txt" if ext == ".md" else ext[1:]
    with open(path, "rb") as f:
        head = f.read(4)
    if head.startswith(b"%PDF"):
        return "pdf"
    if head.startswith(b"PK\x03\x04"):
        return "docx"
    return "txt"

# -------- JSON + strings -----------------------------------------------------

_FENCE_RE = re.compile(r"^```[\w-]*\s*|\s*```$")

def json_loose(s: str) -> Any:
    """
    Parse an LLM response and return the first valid JSON object/array.
    Strips ``` fences; does not repair malformed JSON.
    """
    s = _FENCE_RE.sub("", (s or "").strip()).strip()
    try:
        return json.loads(s)
    except Exception:
        m = re.search(r"\{.*\}|\[.*\]", s, flags=re.S)
        if m:
            return json.loads(m.group(0))
        raise

def clip(s: Optional[str], n: int = 1200) -> str:
    if not s:
        return ""
    s = str(s)
    return s if len(s) <= n else s[:n]


__all__ = [
    # readers
    "read_pdf_pymupdf", "read_docx_quick", "read_text_file", "sniff_kind",
    # json/string utils
    "json_loose", "clip",
]
