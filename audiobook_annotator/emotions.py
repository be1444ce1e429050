"""Emotion scoring and prosodic intention from lexical and punctuation cues.

Each language has its own rule tables. Rules are plain data so a new
language is a new table entry, not new control flow.
"""

import re
from dataclasses import dataclass
from typing import NamedTuple

from audiobook_annotator.constants import (
    ADRENALINE_MAX_CHARS,
    ADVERB_BONUS,
    DEFAULT_LANGUAGE,
    EMOTION_INTENTION_THRESHOLD,
)
from audiobook_annotator.lexicon import primary_language
from audiobook_annotator.models import Emotion, ProsodyIntention


@dataclass(frozen=True)
class KeywordRule:
    keyword: str
    emotion: Emotion
    weight: float


@dataclass(frozen=True)
class PunctuationRule:
    """Fires when pattern matches the dialogue (and, if all_caps, it is shouted)."""

    pattern: str
    emotion: Emotion
    score: float
    all_caps: bool = False

    def matches(self, text: str) -> bool:
        if not re.search(self.pattern, text):
            return False
        return not self.all_caps or _is_all_caps(text)


@dataclass(frozen=True)
class LanguageRules:
    keywords: tuple
    adverbs: dict
    punctuation: tuple


class EmotionScore(NamedTuple):
    emotion: Emotion
    intensity: float


def _is_all_caps(text: str) -> bool:
    letters = [c for c in text if c.isalpha()]
    return len(letters) >= 2 and all(c.isupper() for c in letters)


# First matching rule wins
PUNCTUATION_RULES = (
    PunctuationRule(r"\?!|!\?", Emotion.SURPRISE, 1.0),
    PunctuationRule(r"!", Emotion.ANGER, 1.0, all_caps=True),
    PunctuationRule(r"!", Emotion.SURPRISE, 0.5),
    PunctuationRule(r"\.\.\.|…", Emotion.SADNESS, 0.3),
)

EMOTION_RULES = {
    "es": LanguageRules(
        keywords=(
            KeywordRule("gritó", Emotion.ANGER, 0.8),
            KeywordRule("bramó", Emotion.ANGER, 1.0),
            KeywordRule("rugió", Emotion.ANGER, 1.0),
            KeywordRule("espetó", Emotion.ANGER, 0.7),
            KeywordRule("furioso", Emotion.ANGER, 1.0),
            KeywordRule("enojado", Emotion.ANGER, 0.8),
            KeywordRule("ira", Emotion.ANGER, 0.9),
            KeywordRule("molesto", Emotion.ANGER, 0.4),
            KeywordRule("rió", Emotion.JOY, 0.8),
            KeywordRule("sonrió", Emotion.JOY, 0.6),
            KeywordRule("carcajada", Emotion.JOY, 1.0),
            KeywordRule("feliz", Emotion.JOY, 0.8),
            KeywordRule("alegre", Emotion.JOY, 0.7),
            KeywordRule("entusiasmo", Emotion.JOY, 0.6),
            KeywordRule("lloró", Emotion.SADNESS, 1.0),
            KeywordRule("sollozó", Emotion.SADNESS, 1.0),
            KeywordRule("gimió", Emotion.SADNESS, 0.8),
            KeywordRule("triste", Emotion.SADNESS, 0.8),
            KeywordRule("lágrimas", Emotion.SADNESS, 0.9),
            KeywordRule("pena", Emotion.SADNESS, 0.7),
            KeywordRule("susurró", Emotion.WHISPER, 1.0),
            KeywordRule("murmuró", Emotion.WHISPER, 0.8),
            KeywordRule("musitó", Emotion.WHISPER, 0.8),
            KeywordRule("bajo", Emotion.WHISPER, 0.5),
            KeywordRule("oído", Emotion.WHISPER, 0.6),
            KeywordRule("tembló", Emotion.FEAR, 0.8),
            KeywordRule("miedo", Emotion.FEAR, 0.9),
            KeywordRule("pánico", Emotion.FEAR, 1.0),
            KeywordRule("terror", Emotion.FEAR, 1.0),
            KeywordRule("asustado", Emotion.FEAR, 0.8),
            KeywordRule("deprisa", Emotion.URGENCY, 0.8),
            KeywordRule("ahora mismo", Emotion.URGENCY, 0.7),
            KeywordRule("misterio", Emotion.MYSTERY, 0.8),
            KeywordRule("secreto", Emotion.MYSTERY, 0.6),
            KeywordRule("ternura", Emotion.TENDERNESS, 0.9),
            KeywordRule("cariño", Emotion.TENDERNESS, 0.7),
            KeywordRule("agotado", Emotion.EXHAUSTION, 0.8),
            KeywordRule("jadeó", Emotion.EXHAUSTION, 0.7),
        ),
        adverbs={
            "tristemente": Emotion.SADNESS,
            "alegremente": Emotion.JOY,
            "furiosamente": Emotion.ANGER,
            "tímidamente": Emotion.FEAR,
            "suavemente": Emotion.WHISPER,
            "bruscamente": Emotion.ANGER,
            "dulcemente": Emotion.TENDERNESS,
            "orgullosamente": Emotion.PRIDE,
        },
        punctuation=PUNCTUATION_RULES,
    ),
    "en": LanguageRules(
        keywords=(
            KeywordRule("shouted", Emotion.ANGER, 0.8),
            KeywordRule("yelled", Emotion.ANGER, 0.9),
            KeywordRule("roared", Emotion.ANGER, 1.0),
            KeywordRule("snapped", Emotion.ANGER, 0.7),
            KeywordRule("furious", Emotion.ANGER, 1.0),
            KeywordRule("angry", Emotion.ANGER, 0.8),
            KeywordRule("rage", Emotion.ANGER, 0.9),
            KeywordRule("annoyed", Emotion.ANGER, 0.4),
            KeywordRule("laughed", Emotion.JOY, 0.8),
            KeywordRule("smiled", Emotion.JOY, 0.6),
            KeywordRule("chuckled", Emotion.JOY, 0.7),
            KeywordRule("happy", Emotion.JOY, 0.8),
            KeywordRule("cheerful", Emotion.JOY, 0.7),
            KeywordRule("excited", Emotion.JOY, 0.8),
            KeywordRule("cried", Emotion.SADNESS, 1.0),
            KeywordRule("sobbed", Emotion.SADNESS, 1.0),
            KeywordRule("wept", Emotion.SADNESS, 1.0),
            KeywordRule("sad", Emotion.SADNESS, 0.8),
            KeywordRule("tears", Emotion.SADNESS, 0.9),
            KeywordRule("grief", Emotion.SADNESS, 0.9),
            KeywordRule("whispered", Emotion.WHISPER, 1.0),
            KeywordRule("muttered", Emotion.WHISPER, 0.8),
            KeywordRule("murmured", Emotion.WHISPER, 0.8),
            KeywordRule("softly", Emotion.WHISPER, 0.7),
            KeywordRule("trembled", Emotion.FEAR, 0.8),
            KeywordRule("scared", Emotion.FEAR, 0.9),
            KeywordRule("fear", Emotion.FEAR, 0.9),
            KeywordRule("panic", Emotion.FEAR, 1.0),
            KeywordRule("terrified", Emotion.FEAR, 1.0),
            KeywordRule("hurry", Emotion.URGENCY, 0.8),
            KeywordRule("mystery", Emotion.MYSTERY, 0.8),
            KeywordRule("secret", Emotion.MYSTERY, 0.6),
            KeywordRule("darling", Emotion.TENDERNESS, 0.7),
            KeywordRule("exhausted", Emotion.EXHAUSTION, 0.8),
            KeywordRule("panted", Emotion.EXHAUSTION, 0.7),
        ),
        adverbs={
            "sadly": Emotion.SADNESS,
            "happily": Emotion.JOY,
            "angrily": Emotion.ANGER,
            "shyly": Emotion.FEAR,
            "softly": Emotion.WHISPER,
            "sharply": Emotion.ANGER,
            "tenderly": Emotion.TENDERNESS,
            "proudly": Emotion.PRIDE,
        },
        punctuation=PUNCTUATION_RULES,
    ),
}

# Dialogue emotion → how it should be voiced
EMOTION_TO_INTENTION = {
    Emotion.ANGER: ProsodyIntention.SHOUT,
    Emotion.WHISPER: ProsodyIntention.WHISPER,
    Emotion.FEAR: ProsodyIntention.TENSION,
    Emotion.SURPRISE: ProsodyIntention.EMPHASIS,
    Emotion.URGENCY: ProsodyIntention.ADRENALINE,
    Emotion.MYSTERY: ProsodyIntention.SUSPENSE,
    Emotion.PRIDE: ProsodyIntention.SOLEMN,
    Emotion.SADNESS: ProsodyIntention.SOLEMN,
    Emotion.TENDERNESS: ProsodyIntention.WHISPER,
}

INTENTION_KEYWORDS = {
    "es": {
        ProsodyIntention.SHOUT: frozenset({"gritó", "exclamó", "vociferó", "bramó", "rugió", "chilló"}),
        ProsodyIntention.WHISPER: frozenset({"susurró", "murmuró", "musitó", "cuchicheó", "silbó"}),
        ProsodyIntention.ADRENALINE: frozenset({"corrió", "saltó", "golpeó", "disparó", "huyó", "escapó"}),
        ProsodyIntention.SOLEMN: frozenset({"declaró", "proclamó", "decretó", "rezó", "oró", "juró"}),
    },
    "en": {
        ProsodyIntention.SHOUT: frozenset({"shouted", "exclaimed", "yelled", "roared", "screamed"}),
        ProsodyIntention.WHISPER: frozenset({"whispered", "muttered", "murmured", "hissed"}),
        ProsodyIntention.ADRENALINE: frozenset({"ran", "jumped", "struck", "fired", "fled", "escaped"}),
        ProsodyIntention.SOLEMN: frozenset({"declared", "proclaimed", "decreed", "prayed", "swore"}),
    },
}

_WORD_RE = re.compile(r"[^\W\d_]+")


def rules_for(language: str) -> LanguageRules:
    """Rule table for language, falling back to Spanish."""
    return EMOTION_RULES.get(primary_language(language), EMOTION_RULES[DEFAULT_LANGUAGE])


def detect_emotion(dialogue: str, context: str | None = None, language: str = DEFAULT_LANGUAGE) -> EmotionScore:
    """Score dialogue plus its surrounding narration and pick the dominant emotion.

    Keywords and adverbs match anywhere in dialogue + context; punctuation
    only looks at the dialogue. Ties go to the emotion declared first.
    """
    rules = rules_for(language)
    combined = f"{dialogue} {context or ''}".lower()

    scores: dict[Emotion, float] = {}
    for rule in rules.keywords:
        if rule.keyword in combined:
            scores[rule.emotion] = scores.get(rule.emotion, 0.0) + rule.weight
    for adverb, emotion in rules.adverbs.items():
        if adverb in combined:
            scores[emotion] = scores.get(emotion, 0.0) + ADVERB_BONUS
    for rule in rules.punctuation:
        if rule.matches(dialogue):
            scores[rule.emotion] = scores.get(rule.emotion, 0.0) + rule.score
            break

    best, best_score = Emotion.NEUTRAL, 0.0
    for emotion in Emotion:
        if scores.get(emotion, 0.0) > best_score:
            best, best_score = emotion, scores[emotion]
    if best_score <= 0.0:
        return EmotionScore(Emotion.NEUTRAL, 0.0)
    return EmotionScore(best, min(best_score, 1.0))


def _intention_keywords(language: str | None) -> dict:
    code = primary_language(language) if language else None
    if code in INTENTION_KEYWORDS:
        return INTENTION_KEYWORDS[code]
    merged = {}
    for table in INTENTION_KEYWORDS.values():
        for intention, words in table.items():
            merged[intention] = merged.get(intention, frozenset()) | words
    return merged


def identify_intention(text: str, language: str | None = None) -> ProsodyIntention:
    """Lightweight intention for text without dialogue context (narration)."""
    keywords = _intention_keywords(language)
    words = set(_WORD_RE.findall(text.lower()))
    stripped = text.rstrip()

    if text.count("!") >= 2 or words & keywords[ProsodyIntention.SHOUT]:
        return ProsodyIntention.SHOUT
    if words & keywords[ProsodyIntention.WHISPER]:
        return ProsodyIntention.WHISPER
    if stripped.endswith(("...", "…")):
        return ProsodyIntention.SUSPENSE
    if len(stripped) < ADRENALINE_MAX_CHARS and words & keywords[ProsodyIntention.ADRENALINE]:
        return ProsodyIntention.ADRENALINE
    if words & keywords[ProsodyIntention.SOLEMN]:
        return ProsodyIntention.SOLEMN
    return ProsodyIntention.NEUTRAL


def dialogue_intention(score: EmotionScore, dialogue: str, language: str | None = None) -> ProsodyIntention:
    """Intention for a dialogue line: strong emotions decide, else the lightweight rules."""
    if score.intensity >= EMOTION_INTENTION_THRESHOLD:
        intention = EMOTION_TO_INTENTION.get(score.emotion, ProsodyIntention.NEUTRAL)
        if intention != ProsodyIntention.NEUTRAL:
            return intention
    return identify_intention(dialogue, language)
