import zipfile
import zlib
from unittest.mock import patch

import pytest

from resume_brain.resume_parser import resume_extractor
from resume_brain.resume_parser.resume_extractor import extract_text_from_file

DOCX_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

RAW_PDF = (
    b"%PDF-1.4\n1 0 obj\n<< /Length 90 >>\nstream\n"
    b"BT /F1 12 Tf 72 712 Td (Jane Doe - Finance intern with audit experience and budget skills) Tj ET\n"
    b"endstream\nendobj\ntrailer\n<< >>\n%%EOF\n"
)


def _write_docx(path, paragraphs):
    body = "".join(f"<w:p><w:r><w:t>{text}</w:t></w:r></w:p>" for text in paragraphs)
    document = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<w:document xmlns:w="{DOCX_NS}"><w:body>{body}</w:body></w:document>'
    )
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("word/document.xml", document)


class TestMissingAndUnsupported:
    def test_missing_file(self, tmp_path):
        result = extract_text_from_file(str(tmp_path / "missing.pdf"))
        assert result.success is False
        assert result.text == ""
        assert result.error == "File not found"

    def test_no_path(self):
        result = extract_text_from_file(None)
        assert result.error == "File not found"
        assert result.text == ""

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "resume.txt"
        path.write_text("plain text resume")
        result = extract_text_from_file(str(path))
        assert result.success is False
        assert result.text == ""
        assert result.error == "Unsupported file format: .txt"


class TestWordDocuments:
    def test_docx(self, tmp_path):
        path = tmp_path / "resume.docx"
        _write_docx(path, ["Jane Doe", "Education: MBA Finance", "Experience: audit intern"])
        result = extract_text_from_file(str(path))
        assert result.success is True
        assert "Jane Doe" in result.text
        assert "audit intern" in result.text
        assert result.word_count == 8

    def test_corrupt_docx_returns_placeholder(self, tmp_path):
        path = tmp_path / "broken.docx"
        path.write_bytes(b"not a zip archive")
        result = extract_text_from_file(str(path))
        assert result.success is False
        assert result.text.startswith("[DOCX EXTRACTION FAILED]")
        assert "broken.docx" in result.text
        assert result.error

    def test_legacy_doc_is_reported_unsupported(self, tmp_path):
        path = tmp_path / "resume.doc"
        path.write_bytes(b"\xd0\xcf\x11\xe0legacy")
        result = extract_text_from_file(str(path))
        assert result.success is False
        assert result.text.startswith("[DOC FORMAT UNSUPPORTED]")
        assert "convert to DOCX or PDF" in result.error


class TestPdf:
    def test_text_layer(self, tmp_path):
        fitz = pytest.importorskip("fitz")
        path = tmp_path / "resume.pdf"
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text(
            (72, 72),
            "Jane Doe\nEducation: MBA Finance, Delhi University\nExperience: audit and budget intern",
            fontsize=11,
        )
        doc.save(str(path))
        doc.close()

        result = extract_text_from_file(str(path))
        assert result.success is True
        assert "Delhi University" in result.text
        assert result.word_count > 5

    def test_raw_scan_used_when_text_layer_fails(self, tmp_path):
        path = tmp_path / "scan.pdf"
        path.write_bytes(RAW_PDF)
        with patch.object(resume_extractor, "_extract_pdf_text", side_effect=RuntimeError("broken xref")):
            result = extract_text_from_file(str(path))
        assert result.success is True
        assert result.text == "Jane Doe - Finance intern with audit experience and budget skills"

    def test_corrupt_pdf_returns_placeholder(self, tmp_path):
        path = tmp_path / "corrupt.pdf"
        path.write_bytes(b"this is not a pdf at all")
        result = extract_text_from_file(str(path))
        assert result.success is False
        assert result.text.startswith("[PDF EXTRACTION FAILED]")
        assert "corrupt.pdf" in result.text
        assert "Manual review required" in result.text
        assert "PyMuPDF" in result.error
        assert "Raw extraction" in result.error


class TestRawTextScan:
    def test_reads_flate_streams(self):
        content = b"BT /F1 11 Tf (Compressed resume text for the scan) Tj ET"
        data = b"%PDF-1.4\nstream\n" + zlib.compress(content) + b"\nendstream\n%%EOF"
        assert "Compressed resume text for the scan" in resume_extractor._extract_pdf_raw_text(data)

    def test_joins_tj_arrays_and_unescapes(self):
        data = b"BT [(Portfolio) -250 (\\(risk\\) analysis)] TJ (ok) Tj ET"
        assert resume_extractor._extract_pdf_raw_text(data) == "Portfolio(risk) analysis"

    def test_ignores_text_outside_text_objects(self):
        assert resume_extractor._extract_pdf_raw_text(b"(Not shown text) Tj") == ""
