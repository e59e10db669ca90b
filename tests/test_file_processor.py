"""Tests for text extraction from PDF, DOCX and PPTX uploads."""
import pytest

from conftest import (
    make_docx,
    make_pdf,
    make_pptx,
    make_slide_archive,
    slide_xml,
    text_shape,
)
from app.services.file_processor import (
    EMPTY_PRESENTATION_TEXT,
    FileProcessingError,
    FileTooLarge,
    UnsupportedFileType,
    extract_text_from_pptx,
    get_supported_formats,
    process_file,
)


class TestDispatch:
    def test_pdf(self):
        text = process_file(make_pdf("Photosynthesis converts light"), "biology.pdf")
        assert "Photosynthesis" in text

    def test_docx(self):
        text = process_file(make_docx("First paragraph.", "Second paragraph."), "notes.docx")
        assert "First paragraph." in text
        assert "Second paragraph." in text
        assert text.index("First") < text.index("Second")

    def test_pptx(self):
        content = make_pptx(("Cell Biology", "Mitochondria produce ATP"), ("Summary", "Cells are small"))
        text = process_file(content, "lecture.pptx")
        lines = text.split("\n")
        assert lines == ["Cell Biology", "Mitochondria produce ATP", "Summary", "Cells are small"]

    def test_extension_is_case_insensitive(self):
        text = process_file(make_pdf("Uppercase extension"), "REPORT.PDF")
        assert "Uppercase" in text

    @pytest.mark.parametrize("name", ["notes.txt", "sheet.xlsx", "old.doc", "slides.ppt", "no_extension"])
    def test_unsupported_extension(self, name):
        with pytest.raises(UnsupportedFileType) as exc_info:
            process_file(b"whatever", name)
        assert exc_info.value.status_code == 400

    def test_file_too_large(self, monkeypatch):
        from app.core.config import settings

        monkeypatch.setattr(settings, "max_upload_size_mb", 0)
        with pytest.raises(FileTooLarge) as exc_info:
            process_file(make_pdf("big"), "big.pdf")
        assert exc_info.value.status_code == 413

    def test_corrupt_pdf(self):
        with pytest.raises(FileProcessingError):
            process_file(b"%PDF-1.4 this is not really a pdf", "broken.pdf")

    def test_corrupt_docx(self):
        with pytest.raises(FileProcessingError):
            process_file(b"not a zip archive", "broken.docx")

    def test_supported_formats(self):
        formats = get_supported_formats()
        assert formats["extensions"] == [".docx", ".pdf", ".pptx"]


class TestPresentationWalker:
    def test_blank_presentation_gives_placeholder(self):
        assert extract_text_from_pptx(make_pptx()) == EMPTY_PRESENTATION_TEXT

    def test_slides_read_in_numeric_order(self):
        content = make_slide_archive({
            "ppt/slides/slide10.xml": slide_xml(text_shape("tenth")),
            "ppt/slides/slide2.xml": slide_xml(text_shape("second")),
            "ppt/slides/slide1.xml": slide_xml(text_shape("first")),
        })
        assert extract_text_from_pptx(content) == "first\nsecond\ntenth"

    def test_only_slide_parts_are_read(self):
        content = make_slide_archive({
            "ppt/slides/slide1.xml": slide_xml(text_shape("on the slide")),
            "ppt/slides/_rels/slide1.xml.rels": "<Relationships/>",
            "ppt/slideLayouts/slideLayout1.xml": slide_xml(text_shape("layout text")),
            "ppt/notesSlides/notesSlide1.xml": slide_xml(text_shape("speaker notes")),
        })
        assert extract_text_from_pptx(content) == "on the slide"

    def test_every_paragraph_of_a_shape(self):
        content = make_slide_archive({
            "ppt/slides/slide1.xml": slide_xml(text_shape("one", "two", "three")),
        })
        assert extract_text_from_pptx(content) == "one\ntwo\nthree"

    def test_shapes_without_text_are_skipped(self):
        content = make_slide_archive({
            "ppt/slides/slide1.xml": slide_xml(
                "<p:sp><p:nvSpPr/></p:sp>",
                "<p:sp><p:txBody><a:p/></p:txBody></p:sp>",
                text_shape("kept"),
            ),
        })
        assert extract_text_from_pptx(content) == "kept"

    def test_malformed_slide_is_skipped(self):
        content = make_slide_archive({
            "ppt/slides/slide1.xml": "<p:sld><unclosed>",
            "ppt/slides/slide2.xml": slide_xml(text_shape("survivor")),
        })
        assert extract_text_from_pptx(content) == "survivor"

    def test_slide_without_shape_tree(self):
        content = make_slide_archive({
            "ppt/slides/slide1.xml": '<p:sld xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main"/>',
        })
        assert extract_text_from_pptx(content) == EMPTY_PRESENTATION_TEXT

    def test_not_an_archive(self):
        with pytest.raises(FileProcessingError):
            extract_text_from_pptx(b"plain bytes")
