"""Tests for document loading."""

import logging

import docx
import pytest

from originality.document_loader import DocumentLoader


@pytest.fixture
def loader():
    return DocumentLoader()


@pytest.fixture
def docx_file(tmp_path):
    document = docx.Document()
    document.core_properties.title = "Thesis draft"
    document.add_paragraph("First paragraph of the thesis.")
    document.add_paragraph("")
    document.add_paragraph("Second paragraph of the thesis.")
    path = tmp_path / "thesis.docx"
    document.save(str(path))
    return path


def test_read_text_file(loader, tmp_path):
    path = tmp_path / "essay.txt"
    path.write_text("Plain text essay.", encoding="utf-8")

    assert loader.read_text(path) == "Plain text essay."


def test_read_docx_joins_paragraphs(loader, docx_file):
    assert loader.read_text(docx_file) == (
        "First paragraph of the thesis.\n\nSecond paragraph of the thesis."
    )


def test_load_docx_uses_core_title(loader, docx_file):
    document = loader.load(docx_file)

    assert document.id == "thesis.docx"
    assert document.title == "Thesis draft"
    assert document.created_at


def test_load_text_file_titled_by_stem(loader, tmp_path):
    path = tmp_path / "notes.md"
    path.write_text("# Notes", encoding="utf-8")

    document = loader.load(path)

    assert document.title == "notes"
    assert document.content == "# Notes"


def test_unsupported_extension(loader, tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a,b", encoding="utf-8")

    with pytest.raises(ValueError):
        loader.read_text(path)


def test_load_directory(loader, tmp_path, docx_file):
    (tmp_path / "b.txt").write_text("Second essay.", encoding="utf-8")
    (tmp_path / "a.md").write_text("First essay.", encoding="utf-8")
    (tmp_path / "ignored.csv").write_text("x", encoding="utf-8")
    (tmp_path / "sub").mkdir()

    documents = loader.load_directory(tmp_path)

    assert [d.id for d in documents] == ["a.md", "b.txt", "thesis.docx"]


def test_load_missing_directory(loader, tmp_path):
    with pytest.raises(ValueError):
        loader.load_directory(tmp_path / "missing")


def test_corrupt_docx_raises_value_error(loader, tmp_path):
    path = tmp_path / "broken.docx"
    path.write_bytes(b"this is not a zip archive")

    with pytest.raises(ValueError, match="broken.docx"):
        loader.load(path)


def test_load_directory_skips_corrupt_docx(loader, tmp_path, caplog):
    (tmp_path / "broken.docx").write_bytes(b"this is not a zip archive")
    (tmp_path / "essay.txt").write_text("A readable essay.", encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="originality.document_loader"):
        documents = loader.load_directory(tmp_path)

    assert [d.id for d in documents] == ["essay.txt"]
    assert "Skipping broken.docx" in caplog.text
