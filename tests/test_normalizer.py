"""Tests for normalizer module (Layer 1)."""

import pytest

from audiobook_annotator.lexicon import Lexicon, LexiconService
from audiobook_annotator.normalizer import (
    heal_lines,
    is_chapter_indicator,
    is_dialogue_led,
    normalize_text,
    repair_text,
    split_stuck_words,
)


def _lexicon(*words):
    return Lexicon("es", frozenset(words))


# --- Line healing ---


def test_joins_soft_wrap():
    """A line without terminal punctuation continues on the next."""
    text = "El antiguo castillo se alzaba\nmajestuoso sobre la colina."
    assert normalize_text(text) == "El antiguo castillo se alzaba majestuoso sobre la colina."


def test_terminal_punctuation_starts_paragraph():
    """A sentence ending at a line end becomes a paragraph break."""
    assert normalize_text("Primera frase.\nSegunda frase.") == "Primera frase.\n\nSegunda frase."


def test_dialogue_lines_stay_separate():
    """Each dash-led turn keeps its own line."""
    text = "Arturo asintió lentamente.\n—Tienes razón, viejo amigo.\n—Incluso cuando la lluvia cae."
    assert normalize_text(text) == text


def test_numbered_list_preserved():
    """Lines starting with a digit are never joined."""
    text = "Pasos a seguir:\n1. Lavar las manos\n2. Cortar el pan"
    assert normalize_text(text) == text


def test_chapter_numeral_not_joined():
    """A bare numeral keeps its line."""
    assert normalize_text("I\nEra una noche oscura") == "I\nEra una noche oscura"


def test_blank_line_paragraph_kept():
    """An existing paragraph break survives."""
    assert normalize_text("Uno dos tres\n\nCuatro cinco") == "Uno dos tres\n\nCuatro cinco"


def test_title_block_lines_not_joined():
    """Lines inside a title block stay apart; the block ends a paragraph."""
    text = "[TITLE_L]El brujo\nde Rivia[/TITLE_L]\nEl viento soplaba fuerte"
    assert normalize_text(text) == "[TITLE_L]El brujo\nde Rivia[/TITLE_L]\n\nEl viento soplaba fuerte"


def test_heal_lines_single_line():
    """Text without newlines passes through."""
    assert heal_lines("Una sola línea") == "Una sola línea"


# --- Character-level repairs ---


def test_missing_space_after_period():
    """lowercase.Uppercase gets its space back."""
    assert normalize_text("Era una prueba.La siguiente") == "Era una prueba. La siguiente"


def test_decimal_untouched():
    """Digits around a period are left alone."""
    assert normalize_text("El valor es 3.14 exacto") == "El valor es 3.14 exacto"


def test_collapses_spaces_and_tabs():
    """Runs of spaces and tabs become one space."""
    assert normalize_text("Hola    mundo\t  feliz") == "Hola mundo feliz"


def test_crlf_line_endings():
    """Windows line endings heal like plain newlines."""
    assert normalize_text("Línea uno que sigue\r\ncontinúa aquí") == "Línea uno que sigue continúa aquí"


def test_spaced_capitals_joined():
    """Letter-spaced headings are rejoined."""
    assert normalize_text("Entonces A N D R E Z habló") == "Entonces ANDREZ habló"


# --- Hyphenation ---


def test_dehyphenate_without_lexicon():
    """Without a lexicon the split word is always rejoined."""
    assert normalize_text("Era algo extraor-\ndinario de ver") == "Era algo extraordinario de ver"


def test_dehyphenate_known_word():
    """The lexicon confirms the merged word."""
    text = "Era algo extraor-\ndinario de ver"
    assert normalize_text(text, _lexicon("extraordinario")) == "Era algo extraordinario de ver"


def test_real_hyphen_kept():
    """Two known words that don't merge into a known one keep their hyphen."""
    text = "Una palabra bien-\nconocida aquí"
    assert normalize_text(text, _lexicon("bien", "conocida")) == "Una palabra bien-conocida aquí"


def test_known_compound_keeps_hyphen():
    text = "Un gesto franco-\nalemán de paz"
    lexicon = _lexicon("franco-alemán", "francoalemán")
    assert normalize_text(text, lexicon) == "Un gesto franco-alemán de paz"


def test_unknown_halves_rejoined():
    """A lexicon that knows neither half doesn't stop the rejoin."""
    text = "Una palabra bien-\nconocida aquí"
    assert normalize_text(text, _lexicon("casa")) == "Una palabra bienconocida aquí"


def test_dehyphenate_with_bundled_lexicon():
    """Ordinary words broken at a line end heal with the shipped word list."""
    lexicon = LexiconService().load("es")
    text = "El caballero recorrió la monta-\nña entera sin descanso."
    assert normalize_text(text, lexicon) == "El caballero recorrió la montaña entera sin descanso."


# --- Stuck words ---


def test_split_stuck_words():
    """A merged connective is split when both halves are known."""
    lexicon = _lexicon("y", "que", "dijo", "el")
    assert split_stuck_words("Él dijo yque no", lexicon) == "Él dijo y que no"


def test_stuck_words_need_lexicon():
    """Without a lexicon nothing is split."""
    assert normalize_text("dijo yque no") == "dijo yque no"


def test_stuck_words_skip_known_and_short():
    """Known words and short tokens are not split."""
    lexicon = _lexicon("y", "que", "casa", "ca", "sa")
    assert split_stuck_words("casa yq", lexicon) == "casa yq"


def test_stuck_words_skip_bracketed():
    """Sentinel markers are never touched."""
    lexicon = _lexicon("y", "que")
    assert split_stuck_words("[IMAGE_REF: yque]", lexicon) == "[IMAGE_REF: yque]"


def test_stuck_words_only_known_merges():
    """Words built from two known words stay whole unless the merge is listed."""
    lexicon = _lexicon("si", "no", "sino", "era", "oro", "plata")
    assert split_stuck_words("No era oro sino plata.", lexicon) == "No era oro sino plata."
    assert split_stuck_words("los sino", _lexicon("si", "no")) == "los sino"


def test_stuck_words_per_language():
    """English merges apply to an English lexicon only."""
    english = Lexicon("en", frozenset({"of", "the"}))
    assert split_stuck_words("the end ofthe road", english) == "the end of the road"
    assert split_stuck_words("ofthe", _lexicon("of", "the")) == "ofthe"


def test_bundled_lexicon_leaves_prose_alone():
    """Ordinary prose passes through the shipped word lists unchanged."""
    lexicons = LexiconService()
    english = "However, today she went outside and became someone else."
    assert normalize_text(english, lexicons.load("en")) == english
    spanish = "No era oro sino plata."
    assert normalize_text(spanish, lexicons.load("es")) == spanish


def test_bundled_lexicon_splits_merged_connective():
    lexicon = LexiconService().load("es")
    assert normalize_text("Él dijo yque no vendría.", lexicon) == "Él dijo y que no vendría."


# --- Idempotence ---


IDEMPOTENCE_SAMPLES = [
    "El antiguo castillo se alzaba\nmajestuoso sobre la colina.",
    "Primera frase.\nSegunda frase.",
    "Pasos a seguir:\n1. Lavar las manos\n2. Cortar el pan",
    "  Capítulo\nIV\n\nEl caballero caminó por el\nsendero.El bosque era\noscuro y frío.\n"
    "—¿Quién anda ahí? —preguntó.\n-No lo sé\n1. Uno\n2. Dos\n\n\n\nFin de la pá-\ngina",
    "[TITLE_L]El brujo\nde Rivia[/TITLE_L]\nEl viento soplaba fuerte",
    "Leyenda del reino A B\nC D del norte",
    "Una palabra bien-\nconocida y una extraor-\ndinaria noche dela casa",
]


@pytest.mark.parametrize("text", IDEMPOTENCE_SAMPLES)
def test_normalize_idempotent(text):
    """Normalizing twice changes nothing."""
    once = normalize_text(text)
    assert normalize_text(once) == once


@pytest.mark.parametrize("text", IDEMPOTENCE_SAMPLES)
def test_normalize_idempotent_with_lexicon(text, lexicons):
    once = normalize_text(text, lexicons.load("es"))
    assert normalize_text(once, lexicons.load("es")) == once


def test_spaced_capitals_across_wrap():
    """Letter-spaced capitals split by a line wrap collapse in one pass."""
    assert normalize_text("Leyenda del reino A B\nC D del norte") == "Leyenda del reino ABCD del norte"


def test_messy_page():
    """A page with every kind of break heals as expected."""
    assert normalize_text(IDEMPOTENCE_SAMPLES[3]) == (
        "Capítulo\nIV\n\n"
        "El caballero caminó por el sendero. El bosque era oscuro y frío.\n"
        "—¿Quién anda ahí? —preguntó.\n"
        "-No lo sé\n"
        "1. Uno\n"
        "2. Dos\n\n"
        "Fin de la página"
    )


# --- Repair ---


def test_repair_collapses_whitespace():
    """Spaces around newlines are trimmed."""
    assert repair_text("  Hola   mundo \t\n  adiós  ") == "Hola mundo\nadiós"


def test_repair_leaves_text():
    """Only whitespace is touched."""
    assert repair_text("¡Hola!—dijo.") == "¡Hola!—dijo."


# --- Predicates ---


@pytest.mark.parametrize("line", ["IV", "xii.", "7)", "12", " III "])
def test_chapter_indicator_true(line):
    assert is_chapter_indicator(line)


@pytest.mark.parametrize("line", ["1. Paso uno", "Capítulo 1", "", "Vida"])
def test_chapter_indicator_false(line):
    assert not is_chapter_indicator(line)


def test_dialogue_led():
    """Dashes and opening quotes lead dialogue; a list hyphen does not."""
    assert is_dialogue_led("—Hola")
    assert is_dialogue_led("-Hola")
    assert is_dialogue_led("«Sí»")
    assert not is_dialogue_led("- Lista")
    assert not is_dialogue_led("Hola")
