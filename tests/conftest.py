"""Shared fixtures for audiobook annotator tests."""

import pytest

from audiobook_annotator.characters import CharacterRegistry
from audiobook_annotator.lexicon import LexiconService


@pytest.fixture
def lexicon_dir(tmp_path):
    """Small Spanish and English word lists in a temp directory."""
    directory = tmp_path / "lexicons"
    directory.mkdir()
    (directory / "es.txt").write_text(
        "# test words\n" + "\n".join([
            "y", "e", "o", "que", "de", "la", "el", "en", "dijo", "no",
            "casa", "extraordinario", "noche", "era", "una", "pan",
            "ella", "él", "me", "aquí",
        ]),
        encoding="utf-8",
    )
    (directory / "en.txt").write_text("\n".join(["and", "the", "house", "said"]), encoding="utf-8")
    return str(directory)


@pytest.fixture
def lexicons(lexicon_dir):
    """LexiconService over the temp word lists."""
    return LexiconService(lexicon_dir)


@pytest.fixture
def registry():
    return CharacterRegistry()


@pytest.fixture
def long_sentence():
    """A 21-word Spanish sentence with a connective in the middle."""
    return (
        "El caballero caminó por el sendero oscuro del bosque antiguo y "
        "miró hacia el cielo donde las estrellas brillaban con fuerza."
    )
