"""Dialogue attribution from the narration around a line of speech.

Looks for a diction verb ("dijo", "said", ...) and takes the nearest
capitalized name after it, or before it when nothing follows. The same
window gives heuristic gender, age and voice-quality hints.
"""

import re
from dataclasses import dataclass, field

from audiobook_annotator.constants import MAX_NAME_TOKENS
from audiobook_annotator.lexicon import primary_language
from audiobook_annotator.models import AgeRange, Gender

DICTION_VERBS = {
    "es": frozenset({
        "dijo", "respondió", "preguntó", "exclamó", "susurró", "gritó",
        "añadió", "contestó", "murmuró", "replicó", "masculló", "musitó",
        "explicó", "insistió", "suplicó", "ordenó", "bramó", "rugió",
        "espetó", "sollozó", "repuso", "terminó",
    }),
    "en": frozenset({
        "said", "replied", "asked", "exclaimed", "whispered", "shouted",
        "added", "answered", "muttered", "murmured", "cried", "yelled",
        "called", "snapped", "roared", "sobbed", "hissed",
    }),
}

GENDER_MARKERS = {
    "es": {
        Gender.MALE: frozenset({
            "él", "señor", "niño", "hombre", "ronco", "grueso", "caballero",
            "rey", "padre", "hermano", "anciano", "muchacho", "don",
        }),
        Gender.FEMALE: frozenset({
            "ella", "señora", "niña", "mujer", "dama", "reina", "madre",
            "hermana", "anciana", "muchacha", "doña",
        }),
    },
    "en": {
        Gender.MALE: frozenset({
            "he", "him", "his", "himself", "man", "boy", "mister", "sir",
            "king", "father", "brother", "lord",
        }),
        Gender.FEMALE: frozenset({
            "she", "her", "hers", "herself", "woman", "girl", "lady", "madam",
            "queen", "mother", "sister",
        }),
    },
}

AGE_MARKERS = {
    "es": {
        AgeRange.CHILD: frozenset({"niño", "niña", "crío", "cría", "chiquillo", "chiquilla", "pequeño", "pequeña"}),
        AgeRange.YOUNG: frozenset({"joven", "muchacho", "muchacha", "chico", "chica", "mozo", "moza"}),
        AgeRange.ELDERLY: frozenset({"anciano", "anciana", "abuelo", "abuela", "viejo", "vieja"}),
    },
    "en": {
        AgeRange.CHILD: frozenset({"child", "kid", "little", "toddler"}),
        AgeRange.YOUNG: frozenset({"young", "youth", "lad", "lass", "teenager"}),
        AgeRange.ELDERLY: frozenset({"old", "elderly", "grandfather", "grandmother", "aged"}),
    },
}

# Words describing a voice; stored on the character for timbre shaping
VOICE_TRAITS = {
    "es": frozenset({
        "ronca", "ronco", "grave", "profunda", "profundo", "aguda", "agudo",
        "suave", "clara", "claro", "quebrada", "áspera", "áspero",
        "gigante", "enorme", "colosal", "ogro",
    }),
    "en": frozenset({
        "hoarse", "deep", "gravelly", "husky", "soft", "high", "shrill",
        "gentle", "raspy", "giant", "huge",
    }),
}

NAME_STOPWORDS = frozenset({
    "el", "la", "los", "las", "un", "una", "de", "en", "a", "y", "pero",
    "entonces", "luego", "después", "cuando", "mientras", "yo", "tú", "él",
    "ella", "ellos", "ellas", "nosotros", "usted", "sí", "no", "eso", "esto",
    "aquel", "aquella", "se", "lo", "le", "su", "sus", "mi", "tu", "ya",
    "the", "he", "she", "it", "they", "we", "you", "i", "and", "but", "then",
    "so", "when", "while", "his", "her", "their", "my", "our", "its", "this",
    "that", "there", "here", "yes", "oh", "ah", "well",
})

NAME_PARTICLES = frozenset({"de", "del", "la", "von", "van", "der", "di", "da", "le"})
HONORIFICS = frozenset({
    "don", "doña", "sr", "sra", "señor", "señora", "sir", "lady", "lord",
    "mr", "mrs", "ms", "dr", "capitán", "captain",
})

_TOKEN_RE = re.compile(r"\S+")
_EDGE_PUNCT_RE = re.compile(r"^\W+|\W+$")
_NAME_TOKEN_RE = re.compile(r"[^\W\d_][\w'’-]*")


def _for_language(table: dict, language: str | None):
    """Pick one language's entry, or merge every language when unknown."""
    code = primary_language(language) if language else None
    if code in table:
        return table[code]
    first = next(iter(table.values()))
    if isinstance(first, frozenset):
        return frozenset().union(*table.values())
    merged = {}
    for entry in table.values():
        for key, words in entry.items():
            merged[key] = merged.get(key, frozenset()) | words
    return merged


@dataclass
class SpeakerGuess:
    name: str
    gender: Gender = Gender.UNKNOWN
    age_range: AgeRange = AgeRange.ADULT
    traits: frozenset = field(default_factory=frozenset)


@dataclass
class _Token:
    raw: str
    clean: str

    @property
    def closes_phrase(self) -> bool:
        """Trailing punctuation ends a name: "Juan," or "Rivia."."""
        return bool(self.raw) and not self.raw[-1].isalnum()


def _tokenize(text: str) -> list[_Token]:
    return [_Token(raw, _EDGE_PUNCT_RE.sub("", raw)) for raw in _TOKEN_RE.findall(text)]


def _is_name_token(token: _Token) -> bool:
    clean = token.clean
    return (
        len(clean) > 1
        and clean[0].isupper()
        and bool(_NAME_TOKEN_RE.fullmatch(clean))
        and clean.lower() not in NAME_STOPWORDS
    )


def _is_honorific(token: _Token) -> bool:
    return token.clean.lower() in HONORIFICS


def _name_after(tokens: list[_Token], start: int) -> str | None:
    if start >= len(tokens) or not _is_name_token(tokens[start]):
        return None
    parts = [tokens[start]]
    k = start + 1
    while len(parts) < MAX_NAME_TOKENS and k < len(tokens):
        last = parts[-1]
        if last.closes_phrase and not _is_honorific(last):
            break
        token = tokens[k]
        if _is_name_token(token):
            parts.append(token)
            k += 1
        elif (
            token.clean.lower() in NAME_PARTICLES
            and not token.closes_phrase
            and k + 1 < len(tokens)
            and _is_name_token(tokens[k + 1])
        ):
            parts.extend([token, tokens[k + 1]])
            k += 2
        else:
            break
    if len(parts) == 1 and _is_honorific(parts[0]):
        return None
    return " ".join(t.clean for t in parts)


def _name_before(tokens: list[_Token], end: int) -> str | None:
    if end < 0 or not _is_name_token(tokens[end]):
        return None
    if tokens[end].raw[-1] in ".!?…":
        return None
    parts = [tokens[end]]
    k = end - 1
    while len(parts) < MAX_NAME_TOKENS and k >= 0:
        token = tokens[k]
        if token.closes_phrase:
            break
        if _is_name_token(token):
            parts.insert(0, token)
            k -= 1
        elif token.clean.lower() in NAME_PARTICLES and k > 0 and _is_name_token(tokens[k - 1]) \
                and not tokens[k - 1].closes_phrase:
            parts[:0] = [tokens[k - 1], token]
            k -= 2
        else:
            break
    return " ".join(t.clean for t in parts)


def find_speaker_name(context: str, language: str | None = None) -> str | None:
    """Name attached to the first diction verb in context that has one."""
    verbs = _for_language(DICTION_VERBS, language)
    tokens = _tokenize(context)
    for i, token in enumerate(tokens):
        if token.clean.lower() not in verbs:
            continue
        name = _name_after(tokens, i + 1) or _name_before(tokens, i - 1)
        if name:
            return name
    return None


def _words(text: str) -> list[str]:
    return [t.clean.lower() for t in _tokenize(text) if t.clean]


def infer_gender(context: str, language: str | None = None) -> Gender:
    """Majority of male vs. female markers in context; a tie is Unknown."""
    markers = _for_language(GENDER_MARKERS, language)
    words = _words(context)
    male = sum(1 for w in words if w in markers[Gender.MALE])
    female = sum(1 for w in words if w in markers[Gender.FEMALE])
    if male > female:
        return Gender.MALE
    if female > male:
        return Gender.FEMALE
    return Gender.UNKNOWN


def infer_age_range(context: str, language: str | None = None) -> AgeRange:
    markers = _for_language(AGE_MARKERS, language)
    words = _words(context)
    best, best_count = AgeRange.ADULT, 0
    for age_range in (AgeRange.CHILD, AgeRange.YOUNG, AgeRange.ELDERLY):
        count = sum(1 for w in words if w in markers[age_range])
        if count > best_count:
            best, best_count = age_range, count
    return best


def extract_traits(context: str, language: str | None = None) -> frozenset:
    traits = _for_language(VOICE_TRAITS, language)
    return frozenset(w for w in _words(context) if w in traits)


def detect_speaker(context: str, language: str | None = None) -> SpeakerGuess | None:
    """Guess who speaks from the narration around a dialogue line.

    Returns None when no diction verb with a usable name is found.
    """
    if not context or not context.strip():
        return None
    name = find_speaker_name(context, language)
    if name is None:
        return None
    return SpeakerGuess(
        name=name,
        gender=infer_gender(context, language),
        age_range=infer_age_range(context, language),
        traits=extract_traits(context, language),
    )
