"""Tests for lexicon module."""

import dataclasses
import logging

import pytest

from audiobook_annotator.lexicon import (
    Lexicon,
    LexiconLoadError,
    LexiconService,
    primary_language,
    read_word_list,
)


def test_bundled_lexicon_loads():
    """Bundled Spanish list knows common words."""
    lexicon = LexiconService().load("es")
    assert "que" in lexicon
    assert lexicon.contains("CASA")


def test_bundled_english_lexicon():
    """Bundled English list loads too."""
    assert "the" in LexiconService().load("en")


def test_load_is_memoized(lexicons):
    """Second load returns the same snapshot."""
    first = lexicons.load("es")
    assert lexicons.load("es") is first
    assert lexicons.is_loaded("es")


def test_locale_tag_reduced(lexicons):
    """es_ES and es-MX share the es lexicon."""
    assert lexicons.load("es_ES") is lexicons.load("es")
    assert lexicons.load("es-MX") is lexicons.load("es")
    assert primary_language("EN-gb") == "en"


def test_missing_language_raises(lexicons):
    """Unknown language raises LexiconLoadError."""
    with pytest.raises(LexiconLoadError):
        lexicons.load("xx")
    assert not lexicons.is_loaded("xx")


def test_get_missing_returns_none(lexicons, caplog):
    """get() degrades to None and logs a warning."""
    with caplog.at_level(logging.WARNING):
        assert lexicons.get("xx") is None
    assert "xx" in caplog.text


def test_read_word_list_first_token(tmp_path):
    """Comments and blanks skipped, first token lowercased."""
    path = tmp_path / "words.txt"
    path.write_text("# comment\nHola 123\n\nmundo\n", encoding="utf-8")
    assert read_word_list(str(path)) == frozenset({"hola", "mundo"})


def test_lexicon_is_immutable():
    """Lexicon snapshots can't be reassigned."""
    lexicon = Lexicon("es", frozenset({"casa"}))
    with pytest.raises(dataclasses.FrozenInstanceError):
        lexicon.words = frozenset()
    assert len(lexicon) == 1
