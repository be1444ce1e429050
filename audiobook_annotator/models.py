"""Data models for segments, characters, and synthesis parameters."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class NarrationStyle(str, Enum):
    NEUTRAL = "neutral"
    CHAPTER_INDICATOR = "chapter_indicator"
    THOUGHT = "thought"
    TITLE_LARGE = "title_large"
    TITLE_MEDIUM = "title_medium"


class ProsodyIntention(str, Enum):
    NEUTRAL = "neutral"
    WHISPER = "whisper"
    SHOUT = "shout"
    SUSPENSE = "suspense"
    TENSION = "tension"
    THOUGHT = "thought"
    ADRENALINE = "adrenaline"
    SOLEMN = "solemn"
    EMPHASIS = "emphasis"


class Emotion(str, Enum):
    """Closed set of emotions. Declaration order is the scoring tie-break."""

    NEUTRAL = "neutral"
    JOY = "joy"
    SADNESS = "sadness"
    ANGER = "anger"
    FEAR = "fear"
    SURPRISE = "surprise"
    URGENCY = "urgency"
    WHISPER = "whisper"
    MYSTERY = "mystery"
    SARCASM = "sarcasm"
    PRIDE = "pride"
    DISGUST = "disgust"
    EXHAUSTION = "exhaustion"
    CONFUSION = "confusion"
    TENDERNESS = "tenderness"


class BookCategory(str, Enum):
    FICTION = "fiction"
    TECHNICAL = "technical"
    LEGAL = "legal"
    EPIC = "epic"
    CHILDREN = "children"
    PHILOSOPHY = "philosophy"
    COOKING = "cooking"
    JOURNALISM = "journalism"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"


class AgeRange(str, Enum):
    CHILD = "child"
    YOUNG = "young"
    ADULT = "adult"
    ELDERLY = "elderly"


# --- Segments ---
# `separator` holds the whitespace that followed the segment in the
# normalized text, so join_segments() can rebuild it exactly.

@dataclass
class Narration:
    text: str
    style: NarrationStyle = NarrationStyle.NEUTRAL
    separator: str = ""

    @property
    def kind(self) -> str:
        return "narration"


@dataclass
class Dialogue:
    text: str
    separator: str = ""
    style = None

    @property
    def kind(self) -> str:
        return "dialogue"


@dataclass
class Image:
    reference: str
    separator: str = ""
    style = None

    @property
    def kind(self) -> str:
        return "image"

    @property
    def text(self) -> str:
        return self.reference


TextSegment = Union[Narration, Dialogue, Image]


@dataclass
class Character:
    """A speaking character, owned by a CharacterRegistry."""

    id: str
    name: str
    gender: Gender = Gender.UNKNOWN
    age_range: AgeRange = AgeRange.ADULT
    aliases: set[str] = field(default_factory=set)
    traits: set[str] = field(default_factory=set)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "gender": self.gender.value,
            "age_range": self.age_range.value,
            "aliases": sorted(self.aliases),
            "traits": sorted(self.traits),
        }


@dataclass(frozen=True)
class ProsodyInstruction:
    """Synthesis parameters for one segment.

    Multipliers are centered on 1.0, arousal/dominance on 0.5, valence on 0.0.
    """

    pause_pre_ms: int = 0
    pause_post_ms: int = 200
    speed_multiplier: float = 1.0
    pitch_multiplier: float = 1.0
    volume_multiplier: float = 1.0
    arousal: float = 0.5
    valence: float = 0.0
    dominance: float = 0.5


@dataclass(frozen=True)
class TimbreProfile:
    pitch_shift: float = 1.0
    low_gain_db: float = 0.0
    mid_gain_db: float = 0.0
    high_gain_db: float = 0.0


NEUTRAL_PROFILE = TimbreProfile()
