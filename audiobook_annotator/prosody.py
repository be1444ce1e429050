"""Map segment style, intention and book category to synthesis parameters."""

from dataclasses import dataclass, replace

from audiobook_annotator.constants import (
    BASE_PAUSE_POST_MS,
    CHAPTER_PAUSE_POST_MS,
    CHAPTER_SPEED,
    CHAPTER_VOLUME,
    LONG_SEGMENT_CHARS,
    LONG_SEGMENT_EXTRA_PAUSE_MS,
    LONG_SEGMENT_SPEED,
)
from audiobook_annotator.models import (
    BookCategory,
    NarrationStyle,
    ProsodyInstruction,
    ProsodyIntention,
)


@dataclass(frozen=True)
class Override:
    """Absolute values an intention imposes; None leaves the field alone."""

    pause_pre_ms: int | None = None
    pause_post_ms: int | None = None
    speed: float | None = None
    pitch: float | None = None
    volume: float | None = None
    arousal: float | None = None
    valence: float | None = None
    dominance: float | None = None


# (speed, pitch) multipliers per category; missing categories are neutral
CATEGORY_BASELINES = {
    BookCategory.TECHNICAL: (0.90, 0.95),
    BookCategory.LEGAL: (0.85, 0.90),
    BookCategory.EPIC: (1.08, 1.05),
    BookCategory.CHILDREN: (0.82, 1.15),
    BookCategory.PHILOSOPHY: (0.94, 0.97),
    BookCategory.COOKING: (1.02, 1.0),
}

INTENTION_OVERRIDES = {
    ProsodyIntention.SHOUT: Override(speed=1.1, pitch=1.15, arousal=0.9, valence=-0.2),
    ProsodyIntention.WHISPER: Override(speed=0.85, pitch=0.9, arousal=0.2, valence=0.1),
    ProsodyIntention.SUSPENSE: Override(pause_post_ms=500, speed=0.9, arousal=0.6),
    ProsodyIntention.ADRENALINE: Override(speed=1.15, arousal=0.85),
    ProsodyIntention.TENSION: Override(speed=0.95, pause_pre_ms=100, arousal=0.7),
    ProsodyIntention.EMPHASIS: Override(speed=0.92, pitch=1.05, arousal=0.65),
    ProsodyIntention.THOUGHT: Override(pitch=1.05, volume=0.9, arousal=0.4),
    ProsodyIntention.SOLEMN: Override(speed=0.9, pitch=0.95, arousal=0.4, dominance=0.7),
}

# Structural styles: (extra pre-pause, minimum post-pause)
TITLE_PAUSES = {
    NarrationStyle.TITLE_LARGE: (600, 1200),
    NarrationStyle.TITLE_MEDIUM: (400, 800),
}


def _apply_override(instruction: ProsodyInstruction, override: Override, master_speed: float) -> ProsodyInstruction:
    changes = {}
    if override.pause_pre_ms is not None:
        changes["pause_pre_ms"] = override.pause_pre_ms
    if override.pause_post_ms is not None:
        changes["pause_post_ms"] = override.pause_post_ms
    if override.speed is not None:
        changes["speed_multiplier"] = override.speed * master_speed
    if override.pitch is not None:
        changes["pitch_multiplier"] = override.pitch
    if override.volume is not None:
        changes["volume_multiplier"] = override.volume
    if override.arousal is not None:
        changes["arousal"] = override.arousal
    if override.valence is not None:
        changes["valence"] = override.valence
    if override.dominance is not None:
        changes["dominance"] = override.dominance
    return replace(instruction, **changes)


def compute_prosody(
    style: NarrationStyle | None,
    intention: ProsodyIntention = ProsodyIntention.NEUTRAL,
    category: BookCategory = BookCategory.FICTION,
    master_speed: float = 1.0,
    text: str = "",
) -> ProsodyInstruction:
    """Build the ProsodyInstruction for one segment.

    style is None for dialogue. Category baselines apply first; an intention
    override replaces the values it names rather than stacking on them.
    Chapter numbers always get a long pause and a slower, louder reading.
    """
    speed_factor, pitch_factor = CATEGORY_BASELINES.get(category, (1.0, 1.0))
    instruction = ProsodyInstruction(
        pause_post_ms=BASE_PAUSE_POST_MS,
        speed_multiplier=speed_factor * master_speed,
        pitch_multiplier=pitch_factor,
    )

    if style is not None and len(text) > LONG_SEGMENT_CHARS:
        instruction = replace(
            instruction,
            pause_post_ms=instruction.pause_post_ms + LONG_SEGMENT_EXTRA_PAUSE_MS,
            speed_multiplier=instruction.speed_multiplier * LONG_SEGMENT_SPEED,
        )

    override = INTENTION_OVERRIDES.get(intention)
    if override is not None:
        instruction = _apply_override(instruction, override, master_speed)

    if style == NarrationStyle.CHAPTER_INDICATOR:
        instruction = replace(
            instruction,
            pause_post_ms=CHAPTER_PAUSE_POST_MS,
            speed_multiplier=instruction.speed_multiplier * CHAPTER_SPEED,
            volume_multiplier=instruction.volume_multiplier * CHAPTER_VOLUME,
        )
    elif style in TITLE_PAUSES:
        pre, post = TITLE_PAUSES[style]
        instruction = replace(
            instruction,
            pause_pre_ms=instruction.pause_pre_ms + pre,
            pause_post_ms=max(instruction.pause_post_ms, post),
        )
    return instruction


def neutral_prosody(master_speed: float = 1.0) -> ProsodyInstruction:
    """Plain narration parameters, used when a page falls back to raw text."""
    return ProsodyInstruction(pause_post_ms=BASE_PAUSE_POST_MS, speed_multiplier=master_speed)
