#intents.py

from dataclasses import dataclass
from enum import Enum


class Intent(str, Enum):
    """Intent tags. Declaration order doubles as the tie-break order."""

    PRODUCT = "product"
    FAQ = "faq"
    BENEFITS = "benefits"
    GREETING = "greeting"
    GENERAL = "general"

    @classmethod
    def parse(cls, value: str) -> "Intent":
        """Map a free-form label to an Intent, unknown labels become GENERAL"""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.GENERAL


@dataclass(frozen=True)
class Classification:
    intent: Intent
    confidence: float


DEFAULT_CLASSIFICATION = Classification(Intent.GENERAL, 0.5)
