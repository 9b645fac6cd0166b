"""OCR text cleanup and script-based language detection.

Raw OCR output from manuscript photographs carries repeated lines (the same
header picked up twice), Unicode replacement characters from undecodable
glyphs, runs of punctuation, and ragged whitespace.  ``clean_text`` removes
that noise before the text reaches the AI analysis prompt.

``detect_language_from_text`` is a heuristic fallback used only when the OCR
engine does not report a locale.  It inspects Unicode blocks in a fixed
priority order, so mixed Devanagari/Latin text reports the Indic script.
"""

import re

_REPLACEMENT_CHAR = re.compile("\ufffd")
_WHITESPACE = re.compile(r"\s+")
_REPEATED_PUNCTUATION = re.compile(r"([.!?])\1+")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_LATIN_LETTER = re.compile(r"[a-zA-Z]")
_PARAGRAPH_BREAK = re.compile(r"\n\n+")

# Checked in order; the first block present in the text wins.
_SCRIPT_RANGES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"[\u0900-\u097F]"), "Hindi/Sanskrit (Devanagari)"),
    (re.compile(r"[\u0B80-\u0BFF]"), "Tamil"),
    (re.compile(r"[\u0C00-\u0C7F]"), "Telugu"),
    (re.compile(r"[\u0D00-\u0D7F]"), "Malayalam"),
    (re.compile(r"[\u0600-\u06FF]"), "Arabic/Urdu"),
    (re.compile(r"[\u4E00-\u9FFF]"), "Chinese"),
    (_LATIN_LETTER, "English/Latin"),
]

UNKNOWN_LANGUAGE = "unknown"


def clean_text(text: str) -> str:
    """Strip duplicate lines, replacement characters and punctuation runs.

    Whitespace (including newlines) is collapsed to single spaces, so the
    result is a single normalised line.  A result of three characters or
    fewer with no Latin letter is treated as a page number and dropped.
    """
    if not text:
        return ""

    unique_lines: list[str] = []
    previous = ""
    for line in text.split("\n"):
        stripped = line.strip()
        if stripped and stripped != previous:
            unique_lines.append(line)
            previous = stripped

    cleaned = "\n".join(unique_lines)
    cleaned = _REPLACEMENT_CHAR.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    cleaned = _REPEATED_PUNCTUATION.sub(r"\1", cleaned)
    cleaned = cleaned.strip()

    kept = [
        line
        for line in cleaned.split("\n")
        if len(line.strip()) > 3 or _LATIN_LETTER.search(line.strip())
    ]
    cleaned = "\n".join(kept)
    cleaned = _EXCESS_NEWLINES.sub("\n\n", cleaned)
    return cleaned.strip()


def detect_language_from_text(text: str) -> str:
    """Guess the language/script of *text* from its Unicode ranges."""
    if not text:
        return UNKNOWN_LANGUAGE

    for pattern, language in _SCRIPT_RANGES:
        if pattern.search(text):
            return language
    return UNKNOWN_LANGUAGE


def split_paragraphs(text: str) -> list[str]:
    """Split OCR text on blank lines, dropping empty paragraphs."""
    if not text:
        return []
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]
