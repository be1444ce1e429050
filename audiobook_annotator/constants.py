"""All magic numbers and configuration constants."""

import os

# Normalizer
SHORT_LINE_CHARS = 4                # lines shorter than this are never joined to the next
DIALOGUE_MARKERS = ("—", "―", "-", "¿", "«", "“", '"')   # line openers that start a new speech turn
TERMINAL_PUNCTUATION = (".", "!", "?", "…", "—")        # line endings that close a paragraph
CLOSING_QUOTES = ('"', "»", "”", "’")                   # may trail terminal punctuation

# Structural sentinels inserted by the extraction layer
BLOCK_SEPARATOR = "[BLOCK_SEPARATOR]"
GEOMETRIC_TITLE_MARKER = "[GEOMETRIC_TITLE]"
GEOMETRIC_TITLE_CLOSE = "[/GEOMETRIC_TITLE]"
PAIRED_MARKERS = ("TITLE_L", "TITLE_M", "QUOTE", "POEM")  # [X]...[/X]
LINE_BLOCK_MARKERS = ("TITLE_L", "TITLE_M", "POEM")        # keep their inner line breaks

# Segment classifier
GEOMETRIC_TITLE_MAX_WORDS = 6       # significant words allowed in a layout-detected title
BREATH_WORD_THRESHOLD = 20          # narration with at least this many words may be split
BREATH_EDGE_CHARS = 10              # connective must sit further than this from either end

# Speaker detection
CONTEXT_WINDOW_CHARS = 160          # narration chars examined on each side of a dialogue
MIN_CONTAINMENT_CHARS = 3           # shortest name allowed to match by containment
MAX_NAME_TOKENS = 4                 # longest multiword name accepted

# Emotion scoring
ADVERB_BONUS = 0.5                  # added per matching manner adverb
EMOTION_INTENTION_THRESHOLD = 0.5   # weaker dialogue emotions fall back to lightweight intention
ADRENALINE_MAX_CHARS = 100          # adrenaline verbs only count in short action lines

# Prosody
BASE_PAUSE_POST_MS = 200            # post-pause for an ordinary segment
LONG_SEGMENT_CHARS = 100            # narration longer than this gets breathing room
LONG_SEGMENT_EXTRA_PAUSE_MS = 150   # added post-pause for long narration
LONG_SEGMENT_SPEED = 0.98           # slowdown for long narration
CHAPTER_PAUSE_POST_MS = 1500        # silence after a chapter number
CHAPTER_SPEED = 0.9                 # chapter numbers are read slower
CHAPTER_VOLUME = 1.1                # and slightly louder

# Consistency monitor
MONITOR_WINDOW = 3                  # recent values averaged per parameter
MONITOR_MAX_DEVIATION = 0.08        # max relative jump from the moving average

# Timbre jitter ranges (uniform, centered on zero)
JITTER_PITCH = 0.03                 # pitch shift jitter
JITTER_EQ_DB = 0.5                  # low/high band jitter, mirrored
JITTER_MID_DB = 0.3                 # mid band jitter

# Book processing
DEFAULT_LANGUAGE = "es"
DEFAULT_BATCH_SIZE = 75             # pages per persisted batch
NOISE_MIN_PAGES = 3                 # books shorter than this skip header/footer detection
NOISE_PAGE_RATIO = 0.3              # a line repeating on more than this share of pages is noise
NOISE_MIN_CHARS = 3                 # ignore very short repeated lines (page numbers vary anyway)
PAGE_SEPARATOR = "\f"               # form feed between pages in plain-text input

LEXICON_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "lexicons")
OUTPUT_DIR = "output"
VERSION = "0.1.0"
