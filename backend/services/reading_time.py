"""Estimated reading time for a post body."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from backend.cms.richtext import as_text

if TYPE_CHECKING:
    from collections.abc import Sequence

    from backend.schemas.post import ContentBlock

WORDS_PER_MINUTE = 200


def count_words(content: Sequence[ContentBlock]) -> int:
    """Count whitespace-delimited words across all bodies and headings."""
    body_text = as_text(node for block in content for node in block.body)
    heading_words = sum(len(block.heading.split()) for block in content if block.heading)
    return len(body_text.split()) + heading_words


def estimate_minutes(content: Sequence[ContentBlock]) -> int:
    """Estimate minutes to read, rounded up and never below 1."""
    return max(1, math.ceil(count_words(content) / WORDS_PER_MINUTE))
