"""Status language that never reveals how full the organizer's calendar is.

The conversational layer says "that works" or "that one's gone" using these
phrases rather than describing the calendar. Swap the provider (or its
phrase table) to audit or change that behaviour without touching scheduling.
"""

from __future__ import annotations

import random
from collections.abc import Mapping, Sequence

PHRASES: dict[str, tuple[str, ...]] = {
    "available": (
        "That works perfectly",
        "That's available",
        "Perfect, that works",
        "Great, that time is free",
        "Lovely, that works",
    ),
    "busy": (
        "They're in back-to-back meetings then",
        "That slot's already taken I'm afraid",
        "The diary is packed at that time",
        "That one's gone unfortunately",
    ),
    "alternative": (
        "How about",
        "I could do",
        "There's a slot at",
        "There's a gap at",
    ),
}


class PhraseProvider:
    def __init__(
        self,
        phrases: Mapping[str, Sequence[str]] = PHRASES,
        rng: random.Random | None = None,
    ):
        self.phrases = phrases
        self._rng = rng or random.Random()

    @property
    def categories(self) -> list[str]:
        return sorted(self.phrases)

    def random_phrase(self, category: str) -> str:
        options = self.phrases.get(category)
        if not options:
            raise ValueError(f"Unknown phrase category: {category}. Available: {self.categories}")
        return self._rng.choice(list(options))


_default_provider = PhraseProvider()


def random_phrase(category: str) -> str:
    return _default_provider.random_phrase(category)
