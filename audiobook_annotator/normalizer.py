"""Line healing and whitespace repair for extracted page text.

normalize_text() turns PDF/EPUB line wraps into paragraphs (separated by a
blank line) while keeping the single line breaks that carry meaning:
dialogue turns, numbered lists, chapter numerals, verse and titles.
Running it twice gives the same result as running it once.
"""

import re

from audiobook_annotator.constants import (
    BLOCK_SEPARATOR,
    CLOSING_QUOTES,
    DIALOGUE_MARKERS,
    GEOMETRIC_TITLE_CLOSE,
    GEOMETRIC_TITLE_MARKER,
    LINE_BLOCK_MARKERS,
    PAIRED_MARKERS,
    SHORT_LINE_CHARS,
    TERMINAL_PUNCTUATION,
)
from audiobook_annotator.lexicon import Lexicon

_SPACES_RE = re.compile(r"[ \t\u00a0]+")
_MISSING_SPACE_RE = re.compile(r"([a-záéíóúüñ])\.([A-ZÁÉÍÓÚÜÑ])")
_SPACED_CAPS_RE = re.compile(r"\b(?:[A-ZÁÉÍÓÚÜÑ] ){3,}[A-ZÁÉÍÓÚÜÑ]\b")
_EXTRA_NEWLINES_RE = re.compile(r"\n{3,}")
_LINE_BLOCK_RE = re.compile(
    r"\[(%s)\].*?\[/\1\]" % "|".join(LINE_BLOCK_MARKERS), re.DOTALL
)
_BRACKETED_RE = re.compile(r"(\[[^\]\n]*\])")
_WORD_RE = re.compile(r"[^\W\d_]+")

_ROMAN_RE = re.compile(r"^[IVXLCDM]+[.)]?$", re.IGNORECASE)
_DIGIT_RE = re.compile(r"^\d+[.)]?$")

_OPENING_MARKERS = tuple(f"[{m}]" for m in PAIRED_MARKERS) + (GEOMETRIC_TITLE_MARKER,)
_CLOSING_MARKERS = tuple(f"[/{m}]" for m in PAIRED_MARKERS) + (GEOMETRIC_TITLE_CLOSE,)

# Function-word pairs that PDF extraction is known to glue together.
# Anything else is left as written: "sino" or "today" must never split.
STUCK_WORD_MERGES = {
    "es": {
        "yque": ("y", "que"),
        "dela": ("de", "la"),
        "delos": ("de", "los"),
        "delas": ("de", "las"),
        "enel": ("en", "el"),
        "enla": ("en", "la"),
        "quela": ("que", "la"),
        "quese": ("que", "se"),
        "alos": ("a", "los"),
        "porel": ("por", "el"),
        "conel": ("con", "el"),
        "ylos": ("y", "los"),
        "ylas": ("y", "las"),
    },
    "en": {
        "ofthe": ("of", "the"),
        "inthe": ("in", "the"),
        "tothe": ("to", "the"),
        "andthe": ("and", "the"),
        "onthe": ("on", "the"),
        "atthe": ("at", "the"),
        "itwas": ("it", "was"),
    },
}

PARAGRAPH_BREAK = "\n\n"
LINE_BREAK = "\n"
DEHYPHENATE = ""


def is_chapter_indicator(line: str) -> bool:
    """True for a line holding only a chapter number: "IV", "xii.", "7)"."""
    line = line.strip()
    return bool(_ROMAN_RE.match(line) or _DIGIT_RE.match(line))


def is_dialogue_led(line: str) -> bool:
    """True when a line opens with a speech delimiter."""
    line = line.lstrip()
    if not line:
        return False
    if line[0] in "—―«“\"":
        return True
    return line[0] == "-" and len(line) > 1 and not line[1].isspace()


def _ends_sentence(line: str) -> bool:
    return line.rstrip("".join(CLOSING_QUOTES)).endswith(TERMINAL_PUNCTUATION)


def _joint(current: str, nxt: str, inside_block: bool) -> str:
    """Decide what goes between the accumulated line and the next raw line."""
    if not current or not nxt:
        return LINE_BREAK
    if inside_block:
        return LINE_BREAK
    if (
        nxt.startswith(_OPENING_MARKERS)
        or current.endswith(_CLOSING_MARKERS)
        or current.startswith(GEOMETRIC_TITLE_MARKER)
    ):
        return PARAGRAPH_BREAK
    if current.endswith(BLOCK_SEPARATOR) or nxt.startswith(BLOCK_SEPARATOR):
        return LINE_BREAK
    if nxt.startswith(DIALOGUE_MARKERS):
        return LINE_BREAK
    if nxt[0].isdigit():
        return LINE_BREAK
    if len(current) < SHORT_LINE_CHARS:
        return LINE_BREAK
    if is_chapter_indicator(current) or is_chapter_indicator(nxt):
        return LINE_BREAK
    if current.endswith("-") and len(current) > 1 and current[-2].isalpha() and nxt[0].islower():
        return DEHYPHENATE
    if _ends_sentence(current):
        return PARAGRAPH_BREAK
    return " "


def _dehyphenate(current: str, nxt: str, lexicon: Lexicon | None) -> str:
    """Rejoin a word split across lines.

    The hyphen is dropped unless the lexicon knows the hyphenated compound,
    or knows both halves but not the joined word ("bien-" + "conocida").
    """
    head = current[:-1]
    left = re.search(r"[^\W\d_]+$", head)
    right = _WORD_RE.match(nxt)
    if lexicon is None or not len(lexicon) or not (left and right):
        return head + nxt
    left, right = left.group(0), right.group(0)
    if lexicon.contains(f"{left}-{right}"):
        return current + nxt
    if lexicon.contains(left) and lexicon.contains(right) and not lexicon.contains(left + right):
        return current + nxt
    return head + nxt


def heal_lines(text: str, lexicon: Lexicon | None = None) -> str:
    """Join soft-wrapped lines, keeping structural breaks."""
    lines = text.split("\n")
    spans = [(m.start(), m.end()) for m in _LINE_BLOCK_RE.finditer(text)]

    parts = []
    current = lines[0]
    offset = len(lines[0])  # index of the newline after the current raw line
    for nxt in lines[1:]:
        inside = any(start < offset < end for start, end in spans)
        joint = _joint(current, nxt, inside)
        if joint == " ":
            current = f"{current} {nxt}"
        elif joint == DEHYPHENATE:
            current = _dehyphenate(current, nxt, lexicon)
        else:
            parts.append(current)
            parts.append(joint)
            current = nxt
        offset += len(nxt) + 1
    parts.append(current)
    return "".join(parts)


def _split_word(word: str, merges: dict, lexicon: Lexicon) -> str:
    if not word.islower() or word in lexicon:
        return word
    pair = merges.get(word)
    if pair is None or not all(part in lexicon for part in pair):
        return word
    return " ".join(pair)


def split_stuck_words(text: str, lexicon: Lexicon) -> str:
    """Separate words merged by extraction: "yque" → "y que".

    Only the known merges for the lexicon's language are undone, and only
    when the lexicon knows both words but not the merged token. Bracketed
    sentinels are left alone.
    """
    merges = STUCK_WORD_MERGES.get(lexicon.language)
    if not merges:
        return text
    pieces = _BRACKETED_RE.split(text)
    for i, piece in enumerate(pieces):
        if i % 2:
            continue
        pieces[i] = _WORD_RE.sub(lambda m: _split_word(m.group(0), merges, lexicon), piece)
    return "".join(pieces)


def normalize_text(text: str, lexicon: Lexicon | None = None) -> str:
    """Heal raw page text into normalized paragraphs.

    Paragraphs end up separated by a blank line; a single newline marks a
    break that must not be joined (dialogue turn, list item, numeral, verse).
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = "\n".join(_SPACES_RE.sub(" ", line).strip() for line in text.split("\n"))
    text = _MISSING_SPACE_RE.sub(r"\1. \2", text)
    text = heal_lines(text, lexicon)
    # spaced capitals may straddle a healed wrap
    text = _SPACED_CAPS_RE.sub(lambda m: m.group(0).replace(" ", ""), text)
    if lexicon is not None and len(lexicon):
        text = split_stuck_words(text, lexicon)
    text = _EXTRA_NEWLINES_RE.sub("\n\n", text)
    return text.strip()


def repair_text(text: str) -> str:
    """Collapse stray spaces and tabs and trim. Touches nothing but whitespace."""
    text = _SPACES_RE.sub(" ", text)
    text = re.sub(r" *\n *", "\n", text)
    return text.strip()
