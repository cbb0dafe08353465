"""Resume text extraction from PDF and DOCX files with degrading fallbacks."""
from typing import List, Optional
import os
import re
import zlib

from loguru import logger

from ..core.models import ExtractedText
from ..utils.text_cleaner import count_words

MIN_PDF_TEXT_LENGTH = 50

_STREAM_RE = re.compile(rb"stream\r?\n(.*?)endstream", re.DOTALL)
_TEXT_OBJECT_RE = re.compile(r"(?<![A-Za-z])BT\b(.*?)\bET(?![A-Za-z])", re.DOTALL)
_SHOW_TEXT_RE = re.compile(r"\(((?:\\.|[^\\)])*)\)\s*Tj|\[((?:\\.|[^\]])*)\]\s*TJ", re.DOTALL)
_STRING_RE = re.compile(r"\(((?:\\.|[^\\)])*)\)", re.DOTALL)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_ESCAPE_RE = re.compile(r"\\([0-7]{1,3}|.)", re.DOTALL)
_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "b": "\b", "f": "\f"}


def _result(text: str, success: bool, error: Optional[str] = None) -> ExtractedText:
    return ExtractedText(text=text, success=success, error=error, word_count=count_words(text))


def _extract_pdf_text(data: bytes) -> str:
    """
    Extract text from the PDF text layer using PyMuPDF (fitz).

    Args:
        data: PDF file bytes

    Returns:
        Extracted text string
    """
    try:
        import fitz  # PyMuPDF
    except ImportError:
        raise ImportError("PyMuPDF (fitz) is required for PDF extraction. Install with: pip install PyMuPDF")

    text_parts = []
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        for page in doc:
            text_parts.append(page.get_text())
    finally:
        doc.close()
    return "\n".join(text_parts)


def _unescape_pdf_string(raw: str) -> str:
    def _replace(match: "re.Match[str]") -> str:
        token = match.group(1)
        if token[0] in "01234567":
            return chr(int(token, 8) & 0xFF)
        if token in "\r\n":
            return ""
        return _ESCAPES.get(token, token)

    return _ESCAPE_RE.sub(_replace, raw)


def _content_segments(data: bytes) -> List[str]:
    """The raw file plus every content stream that inflates with zlib."""
    segments = [data.decode("latin-1")]
    for match in _STREAM_RE.finditer(data):
        try:
            segments.append(zlib.decompressobj().decompress(match.group(1)).decode("latin-1"))
        except zlib.error:
            continue
    return segments


def _extract_pdf_raw_text(data: bytes) -> str:
    """
    Scan text objects (BT ... ET) for Tj/TJ string operands.

    Works on uncompressed content and on Flate streams that inflate cleanly.
    Fragments of 3 characters or fewer are discarded.
    """
    fragments = []
    for segment in _content_segments(data):
        for text_object in _TEXT_OBJECT_RE.finditer(segment):
            for shown in _SHOW_TEXT_RE.finditer(text_object.group(1)):
                if shown.group(1) is not None:
                    piece = _unescape_pdf_string(shown.group(1))
                else:
                    piece = "".join(_unescape_pdf_string(s) for s in _STRING_RE.findall(shown.group(2)))
                cleaned = _CONTROL_CHARS_RE.sub(" ", piece)
                cleaned = re.sub(r"\s+", " ", cleaned).strip()
                if len(cleaned) > 3:
                    fragments.append(cleaned)
    return " ".join(fragments)


def _extract_from_pdf(file_path: str) -> ExtractedText:
    errors = []

    try:
        with open(file_path, "rb") as fh:
            data = fh.read()
    except OSError as e:
        logger.error("Could not read PDF {}: {}", file_path, e)
        return _result("", False, f"Complete PDF extraction failure: {e}")

    # Method 1: PDF text layer
    try:
        text = _extract_pdf_text(data).strip()
        if len(text) > MIN_PDF_TEXT_LENGTH:
            logger.info("PDF extraction successful with PyMuPDF: {} characters", len(text))
            return _result(text, True)
        errors.append(f"PyMuPDF extracted only {len(text)} characters")
    except Exception as e:
        errors.append(f"PyMuPDF failed: {e}")
        logger.warning("PyMuPDF extraction failed for {}: {}", file_path, e)

    # Method 2: raw content stream scan
    try:
        text = _extract_pdf_raw_text(data).strip()
        if len(text) > MIN_PDF_TEXT_LENGTH:
            logger.info("PDF extraction successful with raw text scan: {} characters", len(text))
            return _result(text, True)
        errors.append(f"Raw extraction: {len(text)} characters")
    except Exception as e:
        errors.append(f"Raw extraction failed: {e}")
        logger.warning("Raw PDF text scan failed for {}: {}", file_path, e)

    # Method 3: diagnostic placeholder
    last_error = " | ".join(errors)
    filename = os.path.basename(file_path)
    placeholder = (
        f"[PDF EXTRACTION FAILED] Resume file: {filename}, Size: {len(data) / 1024:.1f}KB. "
        "Manual review required - text extraction unsuccessful."
    )
    logger.warning("All PDF extraction methods failed for {}, returning placeholder", filename)
    return _result(placeholder, False, last_error)


def _extract_from_docx(file_path: str) -> ExtractedText:
    try:
        import docx2txt
    except ImportError:
        raise ImportError("docx2txt is required for DOCX extraction. Install with: pip install docx2txt")

    try:
        text = (docx2txt.process(file_path) or "").strip()
    except Exception as e:
        logger.error("DOCX extraction failed for {}: {}", file_path, e)
        message = str(e) or "Unknown DOCX extraction error"
        placeholder = (
            f"[DOCX EXTRACTION FAILED] Resume file: {os.path.basename(file_path)}. "
            "Manual review required - text extraction unsuccessful."
        )
        return _result(placeholder, False, message)
    return _result(text, True)


def _extract_from_doc(file_path: str) -> ExtractedText:
    message = "DOC files are not fully supported. Please convert to DOCX or PDF format."
    placeholder = f"[DOC FORMAT UNSUPPORTED] Resume file: {os.path.basename(file_path)}. {message}"
    return _result(placeholder, False, message)


def extract_text_from_file(file_path: Optional[str]) -> ExtractedText:
    """
    Extract text from a resume file, dispatching on its extension.

    Args:
        file_path: Path of the uploaded resume, or None when none was uploaded

    Returns:
        ExtractedText. Failures never raise; ``text`` is empty only when the
        file is missing or its format is unsupported.
    """
    if not file_path or not os.path.isfile(file_path):
        return ExtractedText(text="", success=False, error="File not found")

    extension = os.path.splitext(file_path)[1].lower()
    if extension == ".pdf":
        return _extract_from_pdf(file_path)
    if extension == ".docx":
        return _extract_from_docx(file_path)
    if extension == ".doc":
        return _extract_from_doc(file_path)
    return ExtractedText(text="", success=False, error=f"Unsupported file format: {extension}")
