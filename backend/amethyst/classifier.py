import json
import logging
import os
import re
import threading
from typing import Dict, FrozenSet, List, Optional, Tuple

from amethyst.intents import Classification, Intent

logger = logging.getLogger(__name__)

current_dir = os.path.dirname(os.path.abspath(__file__))
examples_path = os.path.join(current_dir, "data", "intent_examples.json")

TOKEN_RE = re.compile(r"[a-z0-9]+")


def tokenize(text: str) -> FrozenSet[str]:
    return frozenset(TOKEN_RE.findall(text.lower()))


def load_examples(path: str = examples_path) -> Dict[str, List[str]]:
    """Load labelled example utterances keyed by intent"""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class TrainedIntentClassifier:
    """Nearest-example intent classifier.

    Every labelled example is tokenised once at construction. A message is
    compared to each example by Jaccard similarity of token sets; an intent
    scores its best example and the confidence is that similarity.
    """

    def __init__(self, examples: Dict[str, List[str]]):
        self._index: List[Tuple[Intent, FrozenSet[str]]] = []
        for intent in Intent:
            for utterance in examples.get(intent.value, []):
                tokens = tokenize(utterance)
                if tokens:
                    self._index.append((intent, tokens))
        logger.info(f"Trained intent classifier with {len(self._index)} examples")

    def scores(self, text: str) -> Dict[Intent, float]:
        query = tokenize(text)
        result = {intent: 0.0 for intent in Intent}
        if not query:
            return result
        for intent, tokens in self._index:
            similarity = len(query & tokens) / len(query | tokens)
            if similarity > result[intent]:
                result[intent] = similarity
        return result

    def classify(self, text: str) -> Classification:
        best_intent = Intent.GENERAL
        best_score = 0.0
        # Intent declaration order settles ties
        for intent, score in self.scores(text).items():
            if score > best_score:
                best_intent, best_score = intent, score
        return Classification(best_intent, best_score)


def create_trained_classifier() -> TrainedIntentClassifier:
    return TrainedIntentClassifier(load_examples())


_classifier: Optional[TrainedIntentClassifier] = None
_classifier_lock = threading.Lock()


def get_classifier() -> TrainedIntentClassifier:
    """Process-wide classifier, built exactly once"""
    global _classifier
    if _classifier is None:
        with _classifier_lock:
            if _classifier is None:
                _classifier = create_trained_classifier()
    return _classifier
