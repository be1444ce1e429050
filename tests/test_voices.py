"""Tests for voices module (Layer 3)."""

import json
import logging

import pytest

from audiobook_annotator.models import NEUTRAL_PROFILE, AgeRange, Character, Gender
from audiobook_annotator.voices import (
    TimbreAssigner,
    build_profile,
    load_cast,
    stable_seed,
)


def _character(name, gender=Gender.UNKNOWN, **kwargs):
    return Character(id=f"char_{name.lower()}", name=name, gender=gender, **kwargs)


# --- Profiles ---


def test_unattributed_gets_neutral():
    assert TimbreAssigner().profile_for(None) == NEUTRAL_PROFILE


def test_profile_deterministic():
    """Same name, same profile, across assigners."""
    a = TimbreAssigner().profile_for(_character("Pedro", Gender.MALE))
    b = TimbreAssigner().profile_for(_character("Pedro", Gender.MALE))
    assert a == b


def test_profile_fixed_at_first_request():
    assigner = TimbreAssigner()
    character = _character("Pedro", Gender.MALE)
    first = assigner.profile_for(character)
    character.traits.add("ronca")
    assert assigner.profile_for(character) == first


def test_gender_base():
    male = build_profile(_character("Pedro", Gender.MALE))
    female = build_profile(_character("Lucía", Gender.FEMALE))
    assert male.pitch_shift < 1.0 < female.pitch_shift
    assert male.low_gain_db > 0.9


def test_deep_trait_lowers_pitch():
    """Traits shift the gender base; jitter is the same for the same name."""
    plain = build_profile(_character("Pedro", Gender.MALE))
    deep = build_profile(_character("Pedro", Gender.MALE, traits={"ronca"}))
    assert deep.pitch_shift == pytest.approx(plain.pitch_shift - 0.05, abs=1e-3)
    assert deep.low_gain_db == pytest.approx(plain.low_gain_db + 2.0, abs=1e-3)


def test_child_higher_pitch():
    adult = build_profile(_character("Tito"))
    child = build_profile(_character("Tito", age_range=AgeRange.CHILD))
    assert child.pitch_shift == pytest.approx(adult.pitch_shift + 0.15, abs=1e-3)


def test_names_get_distinct_profiles():
    ana = build_profile(_character("Ana", Gender.FEMALE))
    beatriz = build_profile(_character("Beatriz", Gender.FEMALE))
    assert ana != beatriz


def test_jitter_bounded():
    """Unknown gender stays near neutral."""
    for name in ("Sam", "Alex", "Robin", "Kim"):
        profile = build_profile(_character(name))
        assert abs(profile.pitch_shift - 1.0) <= 0.03 + 1e-9
        assert abs(profile.low_gain_db) <= 0.5 + 1e-9
        assert abs(profile.mid_gain_db) <= 0.3 + 1e-9
        assert profile.high_gain_db == pytest.approx(-profile.low_gain_db, abs=1e-3)


def test_stable_seed():
    assert stable_seed("Pedro") == stable_seed(" pedro")
    assert 0 <= stable_seed("Pedro") < 2 ** 32


# --- Cast sidecar ---


def test_load_cast_missing(tmp_path):
    assert load_cast(str(tmp_path / "book.txt")) == {}


def test_load_cast(tmp_path):
    cast = {"characters": {"Geralt": {"gender": "male"}}}
    (tmp_path / "book.cast.json").write_text(json.dumps(cast), encoding="utf-8")
    assert load_cast(str(tmp_path / "book.txt")) == cast


def test_load_cast_malformed(tmp_path, caplog):
    (tmp_path / "book.cast.json").write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        assert load_cast(str(tmp_path / "book.txt")) == {}
    assert "Malformed" in caplog.text


def test_load_cast_not_object(tmp_path):
    (tmp_path / "book.cast.json").write_text("[1, 2]", encoding="utf-8")
    assert load_cast(str(tmp_path / "book.txt")) == {}
