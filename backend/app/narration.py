import re

from app.core.config import settings
from app.models import NarrationScript, Reflection

_MARKDOWN_MARKERS = re.compile(r"[*#`]+")
_LIST_PREFIX = re.compile(r"^[ \t]*(?:[-+>]|\d+[.)])[ \t]+", re.MULTILINE)
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_WHITESPACE = re.compile(r"\s+")
# Sentence punctuation that is not already part of an ellipsis
_SENTENCE_END = re.compile(r"(?<!\.)([.!?])(?!\.)\s+")
# Words whose trailing period does not end a sentence
_ABBREVIATIONS = frozenset(
    {"dr", "mr", "mrs", "ms", "prof", "st", "mt", "ft", "e.g", "i.e", "vs", "cf", "ca", "approx"}
)


def _is_abbreviation(preceding: str) -> bool:
    words = preceding.rsplit(None, 1)
    return bool(words) and words[-1].lstrip("(\"'").lower() in _ABBREVIATIONS


def _pause_after_sentences(paragraph: str) -> str:
    def repl(match: re.Match) -> str:
        mark = match.group(1)
        if mark == "." and _is_abbreviation(paragraph[: match.start()]):
            return match.group(0)
        return "... " if mark == "." else f"{mark}... "

    return _SENTENCE_END.sub(repl, paragraph)


def _pause_at_paragraph_end(paragraph: str) -> str:
    if paragraph.endswith("..."):
        return paragraph
    if paragraph.endswith("."):
        return paragraph + ".."
    return paragraph + "..."


def prepare_narration_text(text: str | None) -> str:
    """
    Clean text for the browser's speech synthesiser and insert ellipses so the
    voice pauses between sentences and paragraphs.
    """
    if not text or not text.strip():
        return ""

    normalized = text.replace("\r\n", "\n").replace("\r", "\n").replace("…", "...")
    normalized = _LIST_PREFIX.sub("", normalized)
    normalized = _MARKDOWN_MARKERS.sub("", normalized)

    paragraphs = [
        _WHITESPACE.sub(" ", p).strip() for p in _PARAGRAPH_BREAK.split(normalized)
    ]
    paragraphs = [_pause_after_sentences(p) for p in paragraphs if p]
    if not paragraphs:
        return ""

    spoken = [_pause_at_paragraph_end(p) for p in paragraphs[:-1]]
    spoken.append(paragraphs[-1])
    return " ".join(spoken)


def build_narration_script(reflection: Reflection) -> NarrationScript:
    """Narration payload for a reflection: the interpretation, or the reflection itself."""
    source = reflection.interpretation or reflection.text
    return NarrationScript(
        reflection_id=reflection.id,
        text=prepare_narration_text(source),
        lang=settings.NARRATION_LANG,
        rate=settings.NARRATION_RATE,
        pitch=settings.NARRATION_PITCH,
    )
