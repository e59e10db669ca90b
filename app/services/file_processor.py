"""
File processor service for extracting plain text from uploaded documents.
Supports: PDF, Word (.docx) and PowerPoint (.pptx).
"""

import io
import re
import zipfile
from pathlib import Path

import PyPDF2
from docx import Document as WordDocument
from fastapi import status
from lxml import etree

from app.core.config import settings
from app.core.exceptions import ValidationFailure
from app.core.logging_config import get_logger

SUPPORTED_EXTENSIONS = {'.pdf', '.docx', '.pptx'}

EMPTY_PRESENTATION_TEXT = "No readable text found"

# Slide parts inside a .pptx package: ppt/slides/slide1.xml, slide2.xml, ...
SLIDE_PART_PATTERN = re.compile(r"^ppt/slides/slide(\d+)\.xml$")

PPTX_NAMESPACES = {
    "p": "http://schemas.openxmlformats.org/presentationml/2006/main",
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
}

logger = get_logger(__name__)


class FileProcessingError(ValidationFailure):
    """The upload has a supported type but its content could not be read."""
    detail = "Failed to extract text from file"


class UnsupportedFileType(ValidationFailure):
    detail = "Unsupported file format"


class FileTooLarge(FileProcessingError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    detail = "File too large"


def max_file_size() -> int:
    return settings.max_upload_size_mb * 1024 * 1024


def get_extension(filename: str) -> str:
    return Path(filename).suffix.lower()


def validate_file(file_content: bytes, filename: str) -> str:
    """Check size and extension; return the normalized extension."""
    ext = get_extension(filename)
    if ext not in SUPPORTED_EXTENSIONS:
        logger.warning(f"Unsupported file type: {ext!r} for file {filename}")
        raise UnsupportedFileType(
            f"Unsupported file format. Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    file_size_mb = len(file_content) / (1024 * 1024)
    logger.debug(f"Validating file: {filename}, size: {file_size_mb:.2f} MB")
    if len(file_content) > max_file_size():
        logger.warning(f"File too large: {filename} ({file_size_mb:.2f} MB)")
        raise FileTooLarge(
            f"File size exceeds maximum allowed size of {settings.max_upload_size_mb} MB"
        )
    return ext


def extract_text_from_pdf(file_content: bytes) -> str:
    try:
        pdf_reader = PyPDF2.PdfReader(io.BytesIO(file_content))
        text_parts = []
        logger.debug(f"Processing PDF with {len(pdf_reader.pages)} pages")
        for page in pdf_reader.pages:
            text = page.extract_text()
            if text:
                text_parts.append(text)
        logger.debug(f"Extracted text from {len(text_parts)} pages")
        return "\n\n".join(text_parts)
    except Exception as e:
        logger.error(f"PDF extraction failed: {str(e)}")
        raise FileProcessingError(f"Failed to extract text from PDF: {str(e)}")


def extract_text_from_docx(file_content: bytes) -> str:
    """Raw paragraph text of a Word document, one paragraph per line."""
    try:
        doc = WordDocument(io.BytesIO(file_content))
        return "\n".join(paragraph.text for paragraph in doc.paragraphs)
    except Exception as e:
        logger.error(f"DOCX extraction failed: {str(e)}")
        raise FileProcessingError(f"Failed to extract text from Word document: {str(e)}")


def _shape_text_lines(shape) -> list[str]:
    """Text of one p:sp element, one entry per non-empty paragraph."""
    tx_body = shape.find("p:txBody", PPTX_NAMESPACES)
    if tx_body is None:
        return []
    lines = []
    for paragraph in tx_body.findall("a:p", PPTX_NAMESPACES):
        runs = paragraph.findall("a:r/a:t", PPTX_NAMESPACES)
        line = "".join(run.text or "" for run in runs)
        if line:
            lines.append(line)
    return lines


def _slide_text_lines(xml_bytes: bytes, part_name: str) -> list[str]:
    root = etree.fromstring(xml_bytes)
    sp_tree = root.find("p:cSld/p:spTree", PPTX_NAMESPACES)
    if sp_tree is None:
        return []

    lines = []
    for shape in sp_tree.findall("p:sp", PPTX_NAMESPACES):
        # Lossy on purpose: a shape we cannot read is skipped, the slide is kept.
        try:
            lines.extend(_shape_text_lines(shape))
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug(f"Skipping unreadable shape in {part_name}: {e}")
    return lines


def extract_text_from_pptx(file_content: bytes) -> str:
    """
    Walk the slide XML parts of a .pptx archive and collect text runs.

    Returns EMPTY_PRESENTATION_TEXT when no slide carries any text.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(file_content), 'r') as archive:
            slide_parts = []
            for name in archive.namelist():
                match = SLIDE_PART_PATTERN.match(name)
                if match:
                    slide_parts.append((int(match.group(1)), name))
            slide_parts.sort()
            logger.debug(f"Processing PPTX with {len(slide_parts)} slides")

            lines = []
            for _, name in slide_parts:
                try:
                    lines.extend(_slide_text_lines(archive.read(name), name))
                except etree.XMLSyntaxError as e:
                    logger.warning(f"Skipping malformed slide part {name}: {e}")
    except zipfile.BadZipFile:
        logger.error("Invalid PPTX archive")
        raise FileProcessingError("Invalid or corrupted PowerPoint file")

    if not lines:
        return EMPTY_PRESENTATION_TEXT
    return "\n".join(lines)


def process_file(file_content: bytes, filename: str) -> str:
    """
    Extract the text content of an uploaded file.

    Args:
        file_content: Raw bytes of the file
        filename: Original filename (used to determine file type)

    Returns:
        Extracted text content

    Raises:
        UnsupportedFileType: extension is not .pdf, .docx or .pptx
        FileProcessingError: file is too large or cannot be read
    """
    logger.info(f"Processing file: {filename}")
    ext = validate_file(file_content, filename)

    if ext == '.pdf':
        return extract_text_from_pdf(file_content)
    elif ext == '.docx':
        return extract_text_from_docx(file_content)
    else:
        return extract_text_from_pptx(file_content)


def get_supported_formats() -> dict:
    return {
        "extensions": sorted(SUPPORTED_EXTENSIONS),
        "max_file_size_mb": settings.max_upload_size_mb,
    }
