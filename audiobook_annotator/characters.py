"""Book-scoped character registry with nickname and alias resolution."""

import hashlib
import logging
import re

from audiobook_annotator.constants import MIN_CONTAINMENT_CHARS
from audiobook_annotator.models import AgeRange, Character, Gender

logger = logging.getLogger(__name__)

# Diminutive → canonical name (lowercase)
NICKNAMES = {
    "pepe": "josé",
    "paco": "francisco",
    "pancho": "francisco",
    "lola": "dolores",
    "liz": "elizabeth",
    "beth": "elizabeth",
    "tony": "antonio",
    "toño": "antonio",
    "dani": "daniel",
    "alex": "alejandro",
    "leo": "leonardo",
    "nacho": "ignacio",
    "manolo": "manuel",
    "quique": "enrique",
    "charo": "rosario",
    "lupe": "guadalupe",
    "bob": "robert",
    "bill": "william",
    "will": "william",
    "jim": "james",
    "mike": "michael",
    "kate": "katherine",
}


def make_character_id(name: str) -> str:
    """Stable id from the canonical name, same across runs."""
    digest = hashlib.sha256(name.strip().lower().encode()).hexdigest()
    return f"char_{digest[:12]}"


def _contains_word(haystack: str, needle: str) -> bool:
    return re.search(r"(?<!\w)%s(?!\w)" % re.escape(needle), haystack) is not None


class CharacterRegistry:
    """Owns every Character of one book session, keyed by id.

    Lookups go through a secondary alias index. Characters are never removed
    or merged; matching a new spelling only adds it as an alias.
    """

    def __init__(self, nicknames: dict | None = None):
        self._characters: dict[str, Character] = {}
        self._alias_index: dict[str, str] = {}
        self.nicknames = dict(NICKNAMES)
        if nicknames:
            self.nicknames.update({k.lower(): v.lower() for k, v in nicknames.items()})

    def __len__(self) -> int:
        return len(self._characters)

    def __iter__(self):
        return iter(list(self._characters.values()))

    def __contains__(self, character_id: str) -> bool:
        return character_id in self._characters

    def get(self, character_id: str) -> Character | None:
        return self._characters.get(character_id)

    def _index(self, character: Character, alias: str) -> None:
        self._alias_index.setdefault(alias.lower(), character.id)

    def register(self, character: Character) -> Character:
        """Add a fully-formed character (e.g. from a cast file or snapshot)."""
        if character.id in self._characters:
            raise ValueError(f"Duplicate character id: {character.id}")
        character.aliases.add(character.name)
        self._characters[character.id] = character
        for alias in character.aliases:
            self._index(character, alias)
        return character

    def _by_name(self, key: str) -> Character | None:
        for character in self._characters.values():
            if character.name.lower() == key:
                return character
        return None

    def _by_alias(self, key: str) -> Character | None:
        character_id = self._alias_index.get(key)
        return self._characters.get(character_id) if character_id else None

    def _by_nickname(self, key: str) -> Character | None:
        canonical = self.nicknames.get(key)
        if canonical:
            found = self._by_name(canonical) or self._by_alias(canonical)
            if found:
                return found
        # Reverse direction: "Elizabeth" after only "Liz" was seen
        for alias, character_id in self._alias_index.items():
            if self.nicknames.get(alias) == key:
                return self._characters[character_id]
        return None

    def _by_containment(self, key: str) -> Character | None:
        if len(key) < MIN_CONTAINMENT_CHARS:
            return None
        for character in self._characters.values():
            for known in [character.name, *sorted(character.aliases)]:
                known = known.lower()
                if len(known) < MIN_CONTAINMENT_CHARS:
                    continue
                if _contains_word(known, key) or _contains_word(key, known):
                    return character
        return None

    def resolve(self, name: str) -> Character | None:
        """Find an existing character for name without creating one.

        Order: canonical name, nickname table, exact alias, containment.
        """
        key = name.strip().lower()
        if not key:
            return None
        return (
            self._by_name(key)
            or self._by_nickname(key)
            or self._by_alias(key)
            or self._by_containment(key)
        )

    def get_or_create(
        self,
        name: str,
        gender: Gender = Gender.UNKNOWN,
        age_range: AgeRange | None = None,
        traits=(),
    ) -> Character:
        """Resolve name to a character, creating it on first sight.

        A match learns the new spelling as an alias and fills in a gender
        that was still unknown.
        """
        name = name.strip()
        if not name:
            raise ValueError("Character name must not be empty")

        character = self.resolve(name)
        if character is None:
            character_id = make_character_id(name)
            if character_id in self._characters:
                character_id = f"{character_id}_{len(self._characters)}"
            character = self.register(Character(
                id=character_id,
                name=name,
                gender=gender,
                age_range=age_range or AgeRange.ADULT,
                aliases={name},
                traits=set(traits),
            ))
            logger.debug("New character %s (%s, %s)", name, character.id, gender.value)
            return character

        if name not in character.aliases:
            character.aliases.add(name)
            self._index(character, name)
            logger.debug("Alias %s → %s", name, character.name)
        if character.gender == Gender.UNKNOWN and gender != Gender.UNKNOWN:
            character.gender = gender
        if character.age_range == AgeRange.ADULT and age_range and age_range != AgeRange.ADULT:
            character.age_range = age_range
        character.traits.update(traits)
        return character

    def seed(self, cast: dict) -> None:
        """Preload characters and nicknames from cast sidecar data.

        Expected shape: {"characters": {name: {"gender", "age_range",
        "aliases", "traits"}}, "nicknames": {diminutive: canonical}}.
        """
        for short, canonical in cast.get("nicknames", {}).items():
            self.nicknames[short.lower()] = canonical.lower()
        for name, info in cast.get("characters", {}).items():
            info = info or {}
            if not isinstance(info, dict):
                logger.warning("Skipping cast entry %r: expected an object, got %r", name, info)
                continue
            try:
                gender = Gender(info.get("gender", Gender.UNKNOWN.value))
                age_range = AgeRange(info.get("age_range", AgeRange.ADULT.value))
            except ValueError as e:
                logger.warning("Skipping cast entry %r: %s", name, e)
                continue
            character = self.get_or_create(
                name,
                gender=gender,
                age_range=age_range,
                traits=[t.lower() for t in info.get("traits", [])],
            )
            for alias in info.get("aliases", []):
                character.aliases.add(alias)
                self._index(character, alias)

    def to_dict(self) -> dict:
        return {"characters": [c.to_dict() for c in self._characters.values()]}

    @classmethod
    def from_dict(cls, data: dict) -> "CharacterRegistry":
        registry = cls()
        for entry in data.get("characters", []):
            registry.register(Character(
                id=entry["id"],
                name=entry["name"],
                gender=Gender(entry.get("gender", Gender.UNKNOWN.value)),
                age_range=AgeRange(entry.get("age_range", AgeRange.ADULT.value)),
                aliases=set(entry.get("aliases", [])),
                traits=set(entry.get("traits", [])),
            ))
        return registry
