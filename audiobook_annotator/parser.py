"""Split normalized page text into narration, dialogue, title and image segments."""

import re

from audiobook_annotator.constants import (
    BLOCK_SEPARATOR,
    BREATH_EDGE_CHARS,
    BREATH_WORD_THRESHOLD,
    DEFAULT_LANGUAGE,
    GEOMETRIC_TITLE_CLOSE,
    GEOMETRIC_TITLE_MARKER,
    GEOMETRIC_TITLE_MAX_WORDS,
)
from audiobook_annotator.lexicon import primary_language
from audiobook_annotator.models import Dialogue, Image, Narration, NarrationStyle, TextSegment
from audiobook_annotator.normalizer import is_chapter_indicator, is_dialogue_led

# Connectives where an overlong sentence may take a breath
BREATH_CONNECTIVES = {
    "es": frozenset({"y", "e", "ni", "pero", "que"}),
    "en": frozenset({"and", "but", "that"}),
}
_ALL_CONNECTIVES = frozenset().union(*BREATH_CONNECTIVES.values())

# Words that don't count towards a layout title's length
TITLE_STOPWORDS = frozenset({
    "y", "e", "o", "u", "el", "la", "los", "las", "un", "una", "unos", "unas",
    "de", "del", "a", "al", "en", "por", "para", "con", "sin", "ante", "tras",
    "mi", "tu", "su", "sus", "que",
    "the", "a", "an", "of", "and", "or", "in", "on", "to", "for", "with",
})

_BLOCK_SPLIT_RE = re.compile(r"(\s*%s\s*|\n{2,})" % re.escape(BLOCK_SEPARATOR))
_STRUCTURE_RE = re.compile(
    r"\[(?P<tag>TITLE_L|TITLE_M|QUOTE|POEM)\](?P<body>.*?)\[/(?P=tag)\]"
    r"|\[IMAGE_REF:\s*(?P<ref>[^\]]*?)\s*\]",
    re.DOTALL,
)
_INLINE_RE = re.compile(
    r"“[^”]*”|«[^»]*»|\"[^\"\n]*\"|\*[^*\n]+\*|(?<!\w)'[^'\n]+'(?!\w)"
)
_QUOTED_SPEECH_RE = re.compile(r"“[^”]*”|«[^»]*»|\"[^\"\n]*\"")
_DASH_BREAK_RE = re.compile(r"(\s+)(?=[—―])")
_HYPHEN_BREAK_RE = re.compile(r"(\s+)(?=[—―]|-\S)")
# Narrator aside closed by a second dash: "—dijo Juan—. ¿Vienes?"
_INCISO_CLOSE_RE = re.compile(r"^([—―-][^—―]*?[—―][.,;:]?)(\s*)(.*)$", re.DOTALL)
_WORD_RE = re.compile(r"[^\W\d_]+")
_BREATH_RE = re.compile(r"(?<=\s)(\S+)(\s+)(?=\S)")

_TITLE_STYLES = {
    "TITLE_L": NarrationStyle.TITLE_LARGE,
    "TITLE_M": NarrationStyle.TITLE_MEDIUM,
}


def has_dialogue(line: str) -> bool:
    """True when a line carries unambiguous speech delimiters."""
    return is_dialogue_led(line) or bool(_QUOTED_SPEECH_RE.search(line))


def significant_words(text: str) -> list[str]:
    return [w for w in _WORD_RE.findall(text) if w.lower() not in TITLE_STOPWORDS]


def breath_split(text: str, language: str = DEFAULT_LANGUAGE) -> list[tuple[str, str]]:
    """Split an overlong sentence once, after its first usable connective.

    Returns (text, following whitespace) pairs. The connective stays at the
    end of the first part; the second part starts at the next word.
    """
    if len(text.split()) < BREATH_WORD_THRESHOLD:
        return [(text, "")]
    connectives = BREATH_CONNECTIVES.get(primary_language(language), _ALL_CONNECTIVES)
    for m in _BREATH_RE.finditer(text):
        if m.group(1).lower() not in connectives:
            continue
        if m.start(1) <= BREATH_EDGE_CHARS or len(text) - m.end(1) <= BREATH_EDGE_CHARS:
            continue
        return [(text[:m.end(1)], m.group(2)), (text[m.end():], "")]
    return [(text, "")]


class _SegmentBuilder:
    """Collects segments in order, attaching whitespace to the segment before it."""

    def __init__(self, language: str):
        self.language = language
        self.segments: list[TextSegment] = []

    def gap(self, whitespace: str) -> None:
        if self.segments and whitespace:
            self.segments[-1].separator += whitespace

    def _emit(self, raw: str, make) -> None:
        body = raw.strip()
        if not body:
            self.gap(raw)
            return
        self.gap(raw[: len(raw) - len(raw.lstrip())])
        self.segments.append(make(body))
        self.gap(raw[len(raw.rstrip()):])

    def dialogue(self, raw: str) -> None:
        self._emit(raw, Dialogue)

    def image(self, reference: str) -> None:
        reference = re.sub(r"\s+", "", reference)
        if reference:
            self.segments.append(Image(reference))

    def narration(self, raw: str, style: NarrationStyle = NarrationStyle.NEUTRAL) -> None:
        body = raw.strip()
        if not body:
            self.gap(raw)
            return
        if style not in (NarrationStyle.NEUTRAL, NarrationStyle.THOUGHT):
            self._emit(raw, lambda text: Narration(text, style))
            return
        self.gap(raw[: len(raw) - len(raw.lstrip())])
        for text, whitespace in breath_split(body, self.language):
            self.segments.append(Narration(text, style))
            self.gap(whitespace)
        self.gap(raw[len(raw.rstrip()):])

    # --- Block structure ---

    def block(self, block: str) -> None:
        pos = 0
        for m in _STRUCTURE_RE.finditer(block):
            self.content(block[pos:m.start()])
            if m.group("ref") is not None:
                self.image(m.group("ref"))
            elif m.group("tag") in _TITLE_STYLES:
                self.title(m.group("body"), _TITLE_STYLES[m.group("tag")])
            else:
                self.content(m.group("body"))
            pos = m.end()
        self.content(block[pos:])

    def title(self, body: str, style: NarrationStyle) -> None:
        for i, line in enumerate(re.split(r"(\n)", body)):
            if i % 2:
                self.gap(line)
            elif has_dialogue(line):
                self.line(line)
            else:
                self.narration(line, style)

    def content(self, text: str) -> None:
        for i, line in enumerate(re.split(r"(\n)", text)):
            if i % 2:
                self.gap(line)
                continue
            stripped = line.strip()
            self.gap(line[: len(line) - len(line.lstrip())])
            if stripped:
                self.line(stripped)
            self.gap(line[len(line.rstrip()):])

    # --- Single lines ---

    def line(self, line: str) -> None:
        line = line.strip()
        if not line:
            return
        if line.startswith(GEOMETRIC_TITLE_MARKER):
            self.geometric_title(line[len(GEOMETRIC_TITLE_MARKER):])
        elif is_chapter_indicator(line):
            self.segments.append(Narration(line, NarrationStyle.CHAPTER_INDICATOR))
        elif line[0] in "—―" or (line[0] == "-" and is_dialogue_led(line)):
            self.dash_dialogue(line)
        else:
            self.inline(line)

    def geometric_title(self, content: str) -> None:
        content = content.replace(GEOMETRIC_TITLE_CLOSE, "").strip()
        if not content:
            return
        if is_chapter_indicator(content):
            self.segments.append(Narration(content, NarrationStyle.CHAPTER_INDICATOR))
        elif not has_dialogue(content) and len(significant_words(content)) <= GEOMETRIC_TITLE_MAX_WORDS:
            self.segments.append(Narration(content, NarrationStyle.TITLE_LARGE))
        else:
            self.line(content)

    def dash_dialogue(self, line: str) -> None:
        """Dash-led speech with narrator asides: "—Geralt —dijo ella."."""
        splitter = _HYPHEN_BREAK_RE if line[0] == "-" else _DASH_BREAK_RE
        pieces = splitter.split(line)
        self.dialogue(pieces[0])
        speaking = True
        for i in range(1, len(pieces), 2):
            self.gap(pieces[i])
            piece = pieces[i + 1]
            if not speaking:
                self.dialogue(piece)
                speaking = True
                continue
            m = _INCISO_CLOSE_RE.match(piece)
            if m and m.group(3).strip():
                self.narration(m.group(1))
                self.gap(m.group(2))
                self.dialogue(m.group(3))
            else:
                self.narration(piece)
                speaking = False

    def inline(self, line: str) -> None:
        pos = 0
        for m in _INLINE_RE.finditer(line):
            span = m.group(0)
            if not span[1:-1].strip():
                continue
            self.narration(line[pos:m.start()])
            if span[0] == "*":
                self.narration(span[1:-1], NarrationStyle.THOUGHT)
            elif span[0] == "'":
                self.narration(span, NarrationStyle.THOUGHT)
            else:
                self.dialogue(span)
            pos = m.end()
        self.narration(line[pos:])


def parse_page(text: str, language: str = DEFAULT_LANGUAGE) -> list[TextSegment]:
    """Classify normalized page text into ordered segments.

    Blocks are split on the block separator token or blank lines. Speech
    delimiters win over structural markers: a title-wrapped line that opens
    with a dash or carries quotes is treated as dialogue.
    """
    builder = _SegmentBuilder(language)
    for i, piece in enumerate(_BLOCK_SPLIT_RE.split(text)):
        if i % 2:
            builder.gap("\n\n" if BLOCK_SEPARATOR in piece else piece)
        else:
            builder.block(piece)
    return builder.segments


def join_segments(segments: list[TextSegment]) -> str:
    """Rebuild text from segments and the whitespace recorded between them."""
    return "".join(s.text + s.separator for s in segments)
