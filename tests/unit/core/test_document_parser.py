"""Tests for document text extraction."""

import pytest
from io import BytesIO
from docx import Document

from core.parsers import document_parser as dp_module
from tests.conftest import _create_minimal_pdf, _create_test_docx


@pytest.mark.asyncio
async def test_extract_text_from_pdf_stream_with_simple_pdf():
    """Test PDF text extraction from a simple BytesIO stream."""
    pdf_data = _create_minimal_pdf("Hello World")
    stream = BytesIO(pdf_data)

    result = await dp_module.extract_text_from_pdf_stream(stream)
    assert isinstance(result, str)
    assert "Hello" in result or len(result) > 0


@pytest.mark.asyncio
async def test_extract_text_from_pdf_stream_empty_pdf():
    """Test extraction from empty PDF returns empty string."""
    pdf_data = _create_minimal_pdf("")
    result = await dp_module.extract_text_from_pdf_stream(pdf_data)
    assert result == ""


@pytest.mark.asyncio
async def test_extract_text_from_pdf_stream_closed_stream():
    """Test extraction fails with closed stream."""
    stream = BytesIO(b"test")
    stream.close()

    with pytest.raises(ValueError, match="file_stream is closed"):
        await dp_module.extract_text_from_pdf_stream(stream)


@pytest.mark.asyncio
async def test_extract_text_from_docx_stream_simple():
    """Test DOCX text extraction with simple paragraphs."""
    docx_stream = _create_test_docx("Hello", "World", paragraphs_only=True)

    result = await dp_module.extract_text_from_docx_stream(docx_stream)
    assert "Hello" in result
    assert "World" in result


@pytest.mark.asyncio
async def test_extract_text_from_docx_stream_with_tables():
    """Test DOCX extraction includes table cells."""
    docx_stream = _create_test_docx("Paragraph", "Table Cell", paragraphs_only=False)

    result = await dp_module.extract_text_from_docx_stream(docx_stream)
    assert "Paragraph" in result
    assert "Table Cell" in result


@pytest.mark.asyncio
async def test_extract_text_from_docx_empty():
    """Test extraction from empty DOCX returns empty string."""
    stream = BytesIO()
    Document().save(stream)

    result = await dp_module.extract_text_from_docx_stream(stream.getvalue())
    assert result == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("file_type", ["docx", ".DOCX", "doc"])
async def test_extract_text_dispatches_word_types(file_type):
    """Legacy .doc uploads are read with the DOCX reader."""
    data = _create_test_docx("Resume body").getvalue()
    result = await dp_module.extract_text(data, file_type)
    assert result == "Resume body"


@pytest.mark.asyncio
async def test_extract_text_rejects_unsupported_type():
    with pytest.raises(dp_module.UnsupportedDocumentType):
        await dp_module.extract_text(b"plain text", "txt")


@pytest.mark.asyncio
async def test_extract_text_from_corrupt_docx_raises():
    with pytest.raises(Exception):
        await dp_module.extract_text(b"not a zip archive", "docx")


@pytest.mark.parametrize(
    "declared,expected",
    [
        ("pdf", "pdf"),
        (".PDF", "pdf"),
        ("application/pdf", "pdf"),
        ("application/msword", "doc"),
        ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", "docx"),
    ],
)
def test_normalize_file_type(declared, expected):
    assert dp_module.normalize_file_type(declared) == expected


@pytest.mark.parametrize("declared", ["", "txt", "image/png", None])
def test_normalize_file_type_unsupported(declared):
    with pytest.raises(dp_module.UnsupportedDocumentType):
        dp_module.normalize_file_type(declared)


def test_normalize_text_basic():
    """Test whitespace normalization."""
    chunks = ["Hello", "  World  ", "Test"]
    result = dp_module._normalize_text(chunks)
    assert result == "Hello\nWorld\nTest"


def test_normalize_text_collapses_inline_whitespace():
    assert dp_module._normalize_text(["Python \t  SQL"]) == "Python SQL"


def test_normalize_text_empty():
    """Test normalization with empty input."""
    assert dp_module._normalize_text([]) == ""
    assert dp_module._normalize_text(["", "   "]) == ""


def test_prepare_stream_with_bytes():
    """Test stream preparation converts bytes to BytesIO."""
    data = b"test data"
    stream = dp_module._prepare_stream(data)
    assert isinstance(stream, BytesIO)
    assert stream.tell() == 0
    assert stream.read() == data


def test_prepare_stream_with_bytesio():
    """Test stream preparation leaves BytesIO as-is."""
    original = BytesIO(b"test")
    original.seek(3)
    stream = dp_module._prepare_stream(original)
    assert stream is original
    assert stream.tell() == 0


def test_prepare_stream_closed_stream():
    """Test stream preparation raises on closed stream."""
    stream = BytesIO(b"test")
    stream.close()
    with pytest.raises(ValueError, match="file_stream is closed"):
        dp_module._prepare_stream(stream)
