#lexical.py

from typing import Dict, Iterable, List, Optional, Tuple

from amethyst.intents import Classification, Intent
from amethyst.knowledge import LEGACY_PRODUCTS

weights: Dict[str, float] = {
    "produk": 0.8,
    "harga": 0.7,
    "beli": 0.9,
    "efek": 0.6,
    "manfaat": 0.8,
    "cara": 0.7,
    "kombucha": 0.9,
    "teh": 0.8,
    "hijau": 0.7,
    "hitam": 0.7,
    "kelor": 0.8,
    "telang": 0.8,
    "amarant": 0.8,
    "kopi": 0.7,
}

# (phrases, increment); a group counts once when any phrase is present
faq_phrases: Tuple[Tuple[Tuple[str, ...], float], ...] = (
    (("apa itu", "bagaimana", "cara"), 0.8),
    (("harga", "berapa"), 0.9),
    (("beli", "dimana"), 0.9),
    (("efek", "samping"), 0.8),
)


class LexicalScorer:
    """Bag-of-words scorer over a fixed term-weight table.

    Scores are not normalised by message length, so long messages saturate
    the confidence at 1.
    """

    def __init__(
        self,
        term_weights: Optional[Dict[str, float]] = None,
        product_keys: Optional[Iterable[str]] = None,
    ):
        self.term_weights = dict(weights if term_weights is None else term_weights)
        self.product_keys = list(LEGACY_PRODUCTS if product_keys is None else product_keys)

    def product_score(self, tokens: List[str]) -> float:
        score = 0.0
        for token in tokens:
            score += self.term_weights.get(token, 0.0)
            if any(token in key for key in self.product_keys):
                score += 1
        return score

    def faq_score(self, text: str) -> float:
        score = 0.0
        for phrases, increment in faq_phrases:
            if any(phrase in text for phrase in phrases):
                score += increment
        return score

    def score(self, text: str) -> Classification:
        message = text.lower()
        tokens = message.split()

        max_score = 0.0
        best_intent = Intent.GENERAL

        # Strict comparisons: on a tie the earlier candidate keeps the slot
        for intent, intent_score in (
            (Intent.PRODUCT, self.product_score(tokens)),
            (Intent.FAQ, self.faq_score(message)),
        ):
            if intent_score > max_score:
                max_score = intent_score
                best_intent = intent

        return Classification(best_intent, min(max_score, 1.0))
