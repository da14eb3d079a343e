"""Shared fixtures for the originality test suite."""

import pytest

from originality.config import UserDocument


SHARED_PHRASE = "the mitochondria is the powerhouse of the cell and produces energy"


@pytest.fixture
def shared_phrase():
    return SHARED_PHRASE


@pytest.fixture
def query_text():
    """19 words, 11 of them shared with ``source_text``"""
    return f"Intro words go first. {SHARED_PHRASE} Closing remarks end it."


@pytest.fixture
def source_text():
    return f"Different opening sentence here. {SHARED_PHRASE} and more source text."


@pytest.fixture
def user_documents(source_text):
    return [
        UserDocument(
            id="doc2",
            title="Biology notes",
            content=source_text,
            created_at="2024-01-15T10:00:00+00:00",
        ),
        UserDocument(
            id="doc3",
            title="Unrelated essay",
            content="A completely unrelated essay about medieval castles and their moats.",
        ),
    ]


@pytest.fixture
def long_text():
    """600 distinct words"""
    return " ".join(f"word{i}" for i in range(600))
