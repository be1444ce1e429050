"""Per-language word lists, loaded lazily and cached."""

import logging
import os
import threading
from dataclasses import dataclass

from audiobook_annotator.constants import LEXICON_DIR

logger = logging.getLogger(__name__)


class LexiconLoadError(Exception):
    """Raised when a language's word list can't be read."""


def primary_language(language: str) -> str:
    """Reduce a locale tag to its primary subtag: "es_ES" → "es"."""
    return language.replace("_", "-").split("-")[0].strip().lower()


@dataclass(frozen=True)
class Lexicon:
    """Immutable snapshot of one language's known words."""

    language: str
    words: frozenset

    def contains(self, word: str) -> bool:
        return word.lower() in self.words

    def __contains__(self, word: str) -> bool:
        return self.contains(word)

    def __len__(self) -> int:
        return len(self.words)


def read_word_list(path: str) -> frozenset:
    """Read a word list: first token of each line, lowercased, # comments skipped."""
    words = set()
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            words.add(line.split()[0].lower())
    return frozenset(words)


class LexiconService:
    """Read-through cache of lexicons, one load per language.

    Lexicons are never mutated after loading, so one service can be shared
    between book sessions.
    """

    def __init__(self, directory: str = LEXICON_DIR):
        self.directory = directory
        self._cache: dict[str, Lexicon] = {}
        self._lock = threading.Lock()

    def load(self, language: str) -> Lexicon:
        """Return the lexicon for language, loading it on first use.

        Raises LexiconLoadError if the word list is missing or unreadable.
        """
        code = primary_language(language)
        with self._lock:
            if code in self._cache:
                return self._cache[code]
            path = os.path.join(self.directory, f"{code}.txt")
            try:
                words = read_word_list(path)
            except (OSError, UnicodeDecodeError) as e:
                raise LexiconLoadError(f"Could not load lexicon for '{code}': {e}") from e
            lexicon = Lexicon(language=code, words=words)
            self._cache[code] = lexicon
            logger.debug("Loaded %d words for lexicon '%s'", len(words), code)
            return lexicon

    def get(self, language: str) -> Lexicon | None:
        """Like load(), but logs and returns None on failure."""
        try:
            return self.load(language)
        except LexiconLoadError as e:
            logger.warning("%s; stuck-word repair disabled", e)
            return None

    def is_loaded(self, language: str) -> bool:
        return primary_language(language) in self._cache
