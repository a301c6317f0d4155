"""
TruncationEngine: full text -> preview text + metadata. Pure, no I/O.

Preview size is 65% of the words capped at 1000 (both from config). The cut is
snapped back to a paragraph break (last 20% of the cut) or a sentence end
(last 30%) so the preview does not stop mid-sentence, then the upgrade banner
is appended. The banner is never counted as body words.
"""
from __future__ import annotations

import math
import re

from app.paywall.config import get_preview_max_words, get_preview_ratio, get_upgrade_price_text
from app.paywall.models import TruncationResult

BANNER_RULE = "━" * 40
BANNER_MARKER = "PREVIEW ENDS HERE"

PARAGRAPH_WINDOW = 0.20
SENTENCE_WINDOW = 0.30

_WORD_RE = re.compile(r"\S+")
_PARAGRAPH_RE = re.compile(r"\n[ \t]*\n")
# Sentence end: . ! ? optionally followed by closing quotes/brackets, then whitespace or end
_SENTENCE_END_RE = re.compile(r"[.!?][\"'”’)\]]*(?=\s|$)")


def count_words(text: str) -> int:
    """Whitespace word count; str.split() drops empty tokens, so runs of separators count once."""
    return len(text.split())


def preview_word_limit(
    total_words: int,
    ratio: float | None = None,
    max_words: int | None = None,
) -> int:
    """min(max_words, floor(ratio * total)), at least one word for non-empty text."""
    if total_words <= 0:
        return 0
    ratio = get_preview_ratio() if ratio is None else ratio
    max_words = get_preview_max_words() if max_words is None else max_words
    limit = min(max_words, math.floor(ratio * total_words))
    return max(1, min(limit, total_words))


def strip_banner(preview_text: str) -> str:
    """Body part of a preview (everything before the banner rule)."""
    return preview_text.split(BANNER_RULE, 1)[0].rstrip()


def build_banner(shown_words: int, total_words: int, price_text: str | None = None) -> str:
    price_text = get_upgrade_price_text() if price_text is None else price_text
    percent = round(shown_words * 100 / total_words) if total_words else 100
    remaining = max(0, total_words - shown_words)
    return (
        f"\n\n{BANNER_RULE}\n"
        f"{BANNER_MARKER}: you are viewing about {percent}% of this output.\n"
        f"About {remaining:,} more words are in the full version.\n"
        f"\n"
        f"UNLOCK FULL ACCESS for {price_text}. Upgrade to Pro to read the complete text.\n"
        f"{BANNER_RULE}"
    )


def _snap_to_boundary(head: str) -> str:
    length = len(head)
    paragraph = None
    for paragraph in _PARAGRAPH_RE.finditer(head):
        pass
    if paragraph is not None and paragraph.start() >= length * (1 - PARAGRAPH_WINDOW):
        return head[: paragraph.start()]

    sentence = None
    for sentence in _SENTENCE_END_RE.finditer(head):
        pass
    if sentence is not None and sentence.end() >= length * (1 - SENTENCE_WINDOW):
        return head[: sentence.end()]

    return head


def truncate(
    full_text: str,
    *,
    ratio: float | None = None,
    max_words: int | None = None,
    price_text: str | None = None,
    source_word_count: int | None = None,
) -> TruncationResult:
    """
    Build the preview for full_text.

    Empty/whitespace-only input -> empty preview, not truncated.
    The text itself is never trusted to say whether it is a preview. A caller
    re-running the engine on a preview body passes source_word_count (the
    full_word_count of the first run) so the limit is taken from the original
    text and the body is not cut a second time.
    """
    total = count_words(full_text)
    if total == 0:
        return TruncationResult(preview_text="", is_truncated=False, preview_word_count=0, full_word_count=0)

    limit_base = max(total, source_word_count or 0)
    limit = preview_word_limit(limit_base, ratio=ratio, max_words=max_words)
    if total <= limit:
        return TruncationResult(
            preview_text=full_text,
            is_truncated=False,
            preview_word_count=total,
            full_word_count=total,
        )

    cut_end = 0
    for index, match in enumerate(_WORD_RE.finditer(full_text), start=1):
        cut_end = match.end()
        if index == limit:
            break
    body = _snap_to_boundary(full_text[:cut_end]).rstrip()
    shown = count_words(body)

    return TruncationResult(
        preview_text=body + build_banner(shown, total, price_text),
        is_truncated=True,
        preview_word_count=shown,
        full_word_count=total,
    )
