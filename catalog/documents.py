"""Reading product text documents (.docx, .pdf, .doc) from foods/."""

import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from docx import Document
from pypdf import PdfReader

from catalog.logging_config import get_logger
from catalog.text_utils import normalize_numbers, normalize_spaces

__all__ = [
    "DocumentParseError",
    "parse_document",
    "extract_document_info",
    "split_paragraphs",
    "dedupe_paragraphs",
]

logger = get_logger("documents")

# Shell-out timeout for antiword/soffice
CONVERT_TIMEOUT = 30

COMPOSITION_MARKERS = ("состав", "ingredients")
NUTRITION_MARKERS = ("пищевая ценность", "nutrition", "энергетическая")
PACKAGING_MARKERS = ("упаковка", "packaging", "box", "carton")


class DocumentParseError(Exception):
    """No available method could read a document."""


def dedupe_paragraphs(paragraphs: List[str]) -> List[str]:
    """Drop repeated paragraphs (case-insensitive) and ones of 10 chars or less."""
    seen = set()
    unique = []
    for para in paragraphs:
        key = normalize_spaces(para).lower()
        if len(key) > 10 and key not in seen:
            seen.add(key)
            unique.append(para)
    return unique


def split_paragraphs(text: str) -> List[str]:
    text = normalize_numbers(text)
    paragraphs = [p for p in text.splitlines() if p.strip()]
    return dedupe_paragraphs(paragraphs)


def _parse_docx(path: Path) -> List[str]:
    document = Document(str(path))
    return split_paragraphs("\n".join(p.text for p in document.paragraphs))


def _parse_pdf(path: Path) -> List[str]:
    reader = PdfReader(str(path))
    pages = [page.extract_text() or "" for page in reader.pages]
    return split_paragraphs("\n".join(pages))


def _doc_via_antiword(path: Path) -> Optional[str]:
    if not shutil.which("antiword"):
        return None
    result = subprocess.run(
        ["antiword", str(path)],
        capture_output=True,
        timeout=CONVERT_TIMEOUT,
        check=True,
    )
    return result.stdout.decode("utf-8", errors="replace")


def _doc_via_soffice(path: Path) -> Optional[str]:
    soffice = shutil.which("soffice") or shutil.which("libreoffice")
    if not soffice:
        return None
    with tempfile.TemporaryDirectory() as tmp_dir:
        subprocess.run(
            [soffice, "--headless", "--convert-to", "txt", "--outdir", tmp_dir, str(path)],
            capture_output=True,
            timeout=CONVERT_TIMEOUT,
            check=True,
        )
        txt_file = Path(tmp_dir) / f"{path.stem}.txt"
        if not txt_file.exists():
            return None
        return txt_file.read_text(encoding="utf-8", errors="replace")


def _parse_doc(path: Path) -> List[str]:
    """Legacy Word files need an external converter: antiword, then LibreOffice."""
    for method in (_doc_via_antiword, _doc_via_soffice):
        try:
            text = method(path)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"{method.__name__} failed for {path.name}: {e}")
            continue
        if text is not None:
            return split_paragraphs(text)
    raise DocumentParseError(f"No method could read {path.name}")


def parse_document(path) -> Optional[List[str]]:
    """Parse a document into de-duplicated paragraphs.

    Returns:
        Paragraphs; ``[]`` when a .docx/.pdf fails to parse (logged);
        None when a .doc could not be read by any method
    """
    path = Path(path)
    ext = path.suffix.lower()

    try:
        if ext == ".docx":
            return _parse_docx(path)
        if ext == ".pdf":
            return _parse_pdf(path)
        if ext == ".doc":
            return _parse_doc(path)
    except DocumentParseError as e:
        logger.warning(str(e))
        return None
    except Exception as e:
        logger.warning(f"Failed to parse {path}: {e}")
        return []

    return []


def extract_document_info(paragraphs: List[str]) -> Dict[str, Any]:
    """Split paragraphs into composition / nutrition / packaging sections.

    A paragraph containing a section keyword starts that section; following
    paragraphs longer than 5 chars belong to it.

    Returns:
        Dict with ``composition``, ``nutrition``, ``packaging`` (lists or None)
        and ``full_text``
    """
    sections: Dict[str, List[str]] = {"composition": [], "nutrition": [], "packaging": []}
    current: Optional[str] = None

    for para in paragraphs:
        lower = para.lower()
        if any(marker in lower for marker in COMPOSITION_MARKERS):
            current = "composition"
            continue
        if any(marker in lower for marker in NUTRITION_MARKERS):
            current = "nutrition"
            continue
        if any(marker in lower for marker in PACKAGING_MARKERS):
            current = "packaging"
            continue

        stripped = para.strip()
        if current and len(stripped) > 5:
            sections[current].append(stripped)

    return {
        "composition": sections["composition"] or None,
        "nutrition": sections["nutrition"] or None,
        "packaging": sections["packaging"] or None,
        "full_text": "\n".join(paragraphs),
    }
