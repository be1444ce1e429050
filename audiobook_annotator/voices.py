"""Per-character timbre profiles and cast sidecar loading."""

import hashlib
import json
import logging
import os
from dataclasses import dataclass

import numpy as np

from audiobook_annotator.constants import JITTER_EQ_DB, JITTER_MID_DB, JITTER_PITCH
from audiobook_annotator.models import (
    NEUTRAL_PROFILE,
    AgeRange,
    Character,
    Gender,
    TimbreProfile,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimbreAdjustment:
    pitch: float = 0.0
    low_db: float = 0.0
    mid_db: float = 0.0
    high_db: float = 0.0


GENDER_BASE = {
    Gender.MALE: TimbreProfile(pitch_shift=0.88, low_gain_db=1.5),
    Gender.FEMALE: TimbreProfile(pitch_shift=1.12, high_gain_db=1.0),
    Gender.UNKNOWN: NEUTRAL_PROFILE,
}

# Voice descriptors → adjustment; each rule applies at most once
TRAIT_RULES = (
    (frozenset({"ronca", "ronco", "grave", "profunda", "profundo", "áspera", "áspero",
                "hoarse", "deep", "gravelly", "husky", "raspy"}),
     TimbreAdjustment(pitch=-0.05, low_db=2.0)),
    (frozenset({"aguda", "agudo", "suave", "clara", "claro", "soft", "high", "shrill", "gentle"}),
     TimbreAdjustment(pitch=0.05, high_db=1.5)),
    (frozenset({"gigante", "enorme", "colosal", "ogro", "giant", "huge"}),
     TimbreAdjustment(pitch=-0.08, low_db=3.0)),
    (frozenset({"quebrada"}),
     TimbreAdjustment(mid_db=-1.0)),
)

AGE_ADJUSTMENTS = {
    AgeRange.CHILD: TimbreAdjustment(pitch=0.15, high_db=1.0),
    AgeRange.YOUNG: TimbreAdjustment(pitch=0.03),
    AgeRange.ELDERLY: TimbreAdjustment(pitch=-0.06, mid_db=-1.0),
}


def load_cast(book_path: str) -> dict:
    """Load .cast.json sidecar file if it exists.

    Returns cast dict or empty dict if not found or malformed.
    """
    base = os.path.splitext(book_path)[0]
    cast_path = base + ".cast.json"
    if not os.path.exists(cast_path):
        return {}
    try:
        with open(cast_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError:
        logger.warning("Malformed cast file: %s, ignoring it", cast_path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Cast file %s is not a JSON object, ignoring it", cast_path)
        return {}
    return data


def stable_seed(name: str) -> int:
    """Seed derived from the canonical name via sha256; identical across runs."""
    h = hashlib.sha256(name.strip().lower().encode()).hexdigest()
    return int(h, 16) % (2 ** 32)


def _adjust(profile: TimbreProfile, adjustment: TimbreAdjustment) -> TimbreProfile:
    return TimbreProfile(
        pitch_shift=profile.pitch_shift + adjustment.pitch,
        low_gain_db=profile.low_gain_db + adjustment.low_db,
        mid_gain_db=profile.mid_gain_db + adjustment.mid_db,
        high_gain_db=profile.high_gain_db + adjustment.high_db,
    )


def build_profile(character: Character) -> TimbreProfile:
    """Gender base, refined by traits and age, then a name-seeded jitter."""
    profile = GENDER_BASE[character.gender]
    traits = {t.lower() for t in character.traits}
    for words, adjustment in TRAIT_RULES:
        if traits & words:
            profile = _adjust(profile, adjustment)
    if character.age_range in AGE_ADJUSTMENTS:
        profile = _adjust(profile, AGE_ADJUSTMENTS[character.age_range])

    rng = np.random.default_rng(stable_seed(character.name))
    pitch_jitter = rng.uniform(-JITTER_PITCH, JITTER_PITCH)
    eq_jitter = rng.uniform(-JITTER_EQ_DB, JITTER_EQ_DB)
    mid_jitter = rng.uniform(-JITTER_MID_DB, JITTER_MID_DB)

    return TimbreProfile(
        pitch_shift=round(float(profile.pitch_shift + pitch_jitter), 4),
        low_gain_db=round(float(profile.low_gain_db + eq_jitter), 4),
        mid_gain_db=round(float(profile.mid_gain_db + mid_jitter), 4),
        high_gain_db=round(float(profile.high_gain_db - eq_jitter), 4),
    )


class TimbreAssigner:
    """Hands out one timbre per character, fixed at first request."""

    def __init__(self):
        self._profiles: dict[str, TimbreProfile] = {}

    def profile_for(self, character: Character | None) -> TimbreProfile:
        if character is None:
            return NEUTRAL_PROFILE
        if character.id not in self._profiles:
            self._profiles[character.id] = build_profile(character)
        return self._profiles[character.id]
