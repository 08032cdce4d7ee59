"""Checks that decide whether a clipboard capture is real meeting content."""

import re
from typing import Optional

MIN_SUMMARY_LENGTH = 100
MIN_TRANSCRIPT_LENGTH = 1000

# Copying before the page has rendered can leave a chunk of the button's own
# markup on the clipboard.
_MARKUP_PATTERN = re.compile(r'<\s*(button|div|span|svg|a|p)\b', re.IGNORECASE)


def looks_like_markup(text: str) -> bool:
    """True if the text contains a raw HTML fragment."""
    return bool(_MARKUP_PATTERN.search(text))


def is_valid_summary(candidate: Optional[str], previous: Optional[str] = None) -> bool:
    """A summary is more than 100 characters of text that isn't markup."""
    if not candidate:
        return False
    return len(candidate) > MIN_SUMMARY_LENGTH and not looks_like_markup(candidate)


def is_valid_transcript(candidate: Optional[str], previous: Optional[str] = None) -> bool:
    """A transcript is more than 1000 characters and differs from the summary still on the clipboard."""
    if not candidate:
        return False
    if previous is not None and candidate == previous:
        return False
    return len(candidate) > MIN_TRANSCRIPT_LENGTH
