"""Book processing: pages in, annotated segment records out.

One BookSession per book. Pages must be fed in document order because the
character registry and the consistency monitor carry state from one
segment to the next.
"""

import logging
import re
from collections import Counter
from dataclasses import asdict, dataclass, field, replace

from audiobook_annotator.characters import CharacterRegistry
from audiobook_annotator.consistency import ConsistencyMonitor
from audiobook_annotator.constants import (
    CONTEXT_WINDOW_CHARS,
    DEFAULT_BATCH_SIZE,
    DEFAULT_LANGUAGE,
    MONITOR_MAX_DEVIATION,
    MONITOR_WINDOW,
    NOISE_MIN_CHARS,
    NOISE_MIN_PAGES,
    NOISE_PAGE_RATIO,
)
from audiobook_annotator.emotions import (
    EmotionScore,
    detect_emotion,
    dialogue_intention,
    identify_intention,
)
from audiobook_annotator.lexicon import LexiconService
from audiobook_annotator.models import (
    BookCategory,
    Dialogue,
    Emotion,
    Image,
    Narration,
    NarrationStyle,
    ProsodyInstruction,
    ProsodyIntention,
    TextSegment,
)
from audiobook_annotator.normalizer import normalize_text, repair_text
from audiobook_annotator.parser import parse_page
from audiobook_annotator.prosody import compute_prosody, neutral_prosody
from audiobook_annotator.speakers import detect_speaker
from audiobook_annotator.voices import TimbreAssigner

logger = logging.getLogger(__name__)

# Styles that start a new section; smoothing history is dropped there
_SECTION_STYLES = (NarrationStyle.CHAPTER_INDICATOR, NarrationStyle.TITLE_LARGE)


@dataclass
class PipelineConfig:
    language: str = DEFAULT_LANGUAGE
    category: BookCategory = BookCategory.FICTION
    master_speed: float = 1.0
    batch_size: int = DEFAULT_BATCH_SIZE
    strip_noise: bool = True
    window_size: int = MONITOR_WINDOW
    max_deviation: float = MONITOR_MAX_DEVIATION

    def to_dict(self) -> dict:
        data = asdict(self)
        data["category"] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PipelineConfig":
        data = dict(data)
        if "category" in data:
            data["category"] = BookCategory(data["category"])
        return cls(**data)


@dataclass
class AnalyzedSegment:
    segment: TextSegment
    instruction: ProsodyInstruction
    speaker_id: str | None = None
    intention: ProsodyIntention = ProsodyIntention.NEUTRAL
    emotion: Emotion = Emotion.NEUTRAL
    emotion_intensity: float = 0.0

    def to_record(self, book_id: str, page_index: int, segment_index: int) -> dict:
        """Flat row for persistence: one per segment."""
        record = {
            "book_id": book_id,
            "page_index": page_index,
            "segment_index": segment_index,
            "kind": self.segment.kind,
            "text": self.segment.text,
            "style": self.segment.style.value if self.segment.style else None,
            "speaker_id": self.speaker_id,
            "intention": self.intention.value,
            "emotion": self.emotion.value,
            "emotion_intensity": round(self.emotion_intensity, 4),
        }
        for key, value in asdict(self.instruction).items():
            record[key] = round(value, 4) if isinstance(value, float) else value
        return record


@dataclass
class BookResult:
    book_id: str
    records: list[dict] = field(default_factory=list)
    pages_processed: int = 0
    cancelled: bool = False
    noise_lines: list[str] = field(default_factory=list)
    characters: list[dict] = field(default_factory=list)


def detect_noise_lines(pages: list[str]) -> set[str]:
    """Running headers/footers: edge lines repeated on more than 30% of pages.

    Only the first two and last two non-empty lines of each page are
    candidates.
    """
    if len(pages) < NOISE_MIN_PAGES:
        return set()
    counts = Counter()
    for page in pages:
        lines = [line.strip() for line in page.splitlines() if line.strip()]
        candidates = {lines[i] for i in (0, 1, -2, -1) if -len(lines) <= i < len(lines)}
        counts.update(c for c in candidates if len(c) > NOISE_MIN_CHARS)
    threshold = len(pages) * NOISE_PAGE_RATIO
    return {line for line, count in counts.items() if count > threshold}


def strip_noise_lines(page: str, noise: set[str]) -> str:
    return "\n".join(line for line in page.split("\n") if line.strip() not in noise)


def dialogue_context(segments: list[TextSegment], index: int) -> str:
    """Narration next to a dialogue line: the following tag first, then what came before.

    Preceding narration that is itself the tag of an earlier line is skipped.
    """
    parts = []
    if index + 1 < len(segments) and isinstance(segments[index + 1], Narration):
        parts.append(segments[index + 1].text[:CONTEXT_WINDOW_CHARS])
    if (
        index > 0
        and isinstance(segments[index - 1], Narration)
        and not (index > 1 and isinstance(segments[index - 2], Dialogue))
    ):
        parts.append(segments[index - 1].text[-CONTEXT_WINDOW_CHARS:])
    return " | ".join(parts)


class BookSession:
    """State for processing one book: registry, smoothing history, timbres."""

    def __init__(
        self,
        config: PipelineConfig | None = None,
        lexicons: LexiconService | None = None,
        registry: CharacterRegistry | None = None,
    ):
        self.config = config or PipelineConfig()
        self.lexicons = lexicons or LexiconService()
        self.registry = registry if registry is not None else CharacterRegistry()
        self.monitor = ConsistencyMonitor(self.config.window_size, self.config.max_deviation)
        self.timbres = TimbreAssigner()
        self.lexicon = self.lexicons.get(self.config.language)

    def segment_page(self, text: str) -> list[TextSegment]:
        normalized = repair_text(normalize_text(text, self.lexicon))
        return parse_page(normalized, self.config.language)

    def _fallback(self, text: str) -> list[AnalyzedSegment]:
        body = re.sub(r"\s+", " ", text).strip()
        if not body:
            return []
        return [AnalyzedSegment(Narration(body), neutral_prosody(self.config.master_speed))]

    def _attribute(self, context: str, page_index: int) -> str | None:
        try:
            guess = detect_speaker(context, self.config.language)
            if guess is None:
                return None
            character = self.registry.get_or_create(
                guess.name, guess.gender, guess.age_range, guess.traits
            )
        except Exception:
            logger.exception("Speaker detection failed on page %d; line left unattributed", page_index)
            return None
        return character.id

    def _annotate(self, segments: list[TextSegment], index: int, page_index: int) -> AnalyzedSegment:
        segment = segments[index]
        language = self.config.language

        if isinstance(segment, Image):
            return AnalyzedSegment(segment, neutral_prosody(self.config.master_speed))

        speaker_id = None
        score = EmotionScore(Emotion.NEUTRAL, 0.0)
        if isinstance(segment, Dialogue):
            context = dialogue_context(segments, index)
            speaker_id = self._attribute(context, page_index)
            score = detect_emotion(segment.text, context, language)
            intention = dialogue_intention(score, segment.text, language)
        elif segment.style == NarrationStyle.THOUGHT:
            intention = ProsodyIntention.THOUGHT
        elif segment.style == NarrationStyle.NEUTRAL:
            intention = identify_intention(segment.text, language)
        else:
            intention = ProsodyIntention.NEUTRAL

        if segment.style in _SECTION_STYLES:
            self.monitor.reset()
        instruction = compute_prosody(
            segment.style, intention, self.config.category, self.config.master_speed, segment.text
        )
        speed, pitch = self.monitor.validate_and_adjust(
            instruction.speed_multiplier, instruction.pitch_multiplier
        )
        instruction = replace(instruction, speed_multiplier=speed, pitch_multiplier=pitch)
        return AnalyzedSegment(segment, instruction, speaker_id, intention, score.emotion, score.intensity)

    def process_page(self, text: str, page_index: int = 0) -> list[AnalyzedSegment]:
        """Annotate one page. A segmentation error degrades to one plain narration segment."""
        try:
            segments = self.segment_page(text)
        except Exception:
            logger.exception("Segmentation failed on page %d; reading it as plain narration", page_index)
            return self._fallback(text)
        return [self._annotate(segments, i, page_index) for i in range(len(segments))]

    def process_book(self, pages, book_id: str = "book", on_batch=None, should_cancel=None) -> BookResult:
        """Annotate pages in order, reporting records every batch_size pages.

        on_batch(batch_index, records) is called after each batch.
        should_cancel() is polled before every page; on cancellation the
        pages already processed are kept in the result.
        """
        pages = list(pages)
        result = BookResult(book_id=book_id)
        noise = detect_noise_lines(pages) if self.config.strip_noise else set()
        if noise:
            logger.info("Stripping %d running header/footer lines", len(noise))
        result.noise_lines = sorted(noise)

        self.monitor.reset()
        batch, batch_pages, batch_index = [], 0, 0
        for page_index, page in enumerate(pages):
            if should_cancel is not None and should_cancel():
                logger.info("Cancelled before page %d of %d", page_index, len(pages))
                result.cancelled = True
                break
            if noise:
                page = strip_noise_lines(page, noise)
            for segment_index, analyzed in enumerate(self.process_page(page, page_index)):
                batch.append(analyzed.to_record(book_id, page_index, segment_index))
            result.pages_processed += 1
            batch_pages += 1
            if batch_pages == self.config.batch_size:
                self._flush(result, batch, batch_index, on_batch)
                batch, batch_pages, batch_index = [], 0, batch_index + 1
        if batch_pages:
            self._flush(result, batch, batch_index, on_batch)

        result.characters = self.cast()
        return result

    def _flush(self, result: BookResult, batch: list[dict], batch_index: int, on_batch) -> None:
        result.records.extend(batch)
        logger.debug("Batch %d: %d records", batch_index, len(batch))
        if on_batch is not None:
            on_batch(batch_index, batch)

    def cast(self) -> list[dict]:
        """Characters seen so far with their timbre profiles."""
        cast = []
        for character in self.registry:
            entry = character.to_dict()
            entry["timbre"] = asdict(self.timbres.profile_for(character))
            cast.append(entry)
        return cast
