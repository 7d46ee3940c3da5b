import logging
from dataclasses import dataclass
from typing import Callable, Optional

from amethyst.classifier import TrainedIntentClassifier, get_classifier
from amethyst.composer import ResponseComposer
from amethyst.gemini import GeminiAI
from amethyst.intents import DEFAULT_CLASSIFICATION, Classification, Intent
from amethyst.lexical import LexicalScorer

logger = logging.getLogger(__name__)

LOW_CONFIDENCE = 0.6

GEMINI = "gemini"
HYBRID = "hybrid"
LOCAL = "local"

INTENT_CONTEXT = {
    Intent.PRODUCT: "Pelanggan bertanya tentang produk. Berikan informasi detail dan relevan.",
    Intent.FAQ: "Pelanggan bertanya FAQ. Berikan jawaban langsung dan praktis.",
    Intent.BENEFITS: "Pelanggan ingin tahu manfaat. Jelaskan manfaat kesehatan dengan faktual.",
}


@dataclass(frozen=True)
class ChatResult:
    response: str
    classification: Classification
    ai_provider: str


class ChatbotEngine:
    """Picks the reply source for a message.

    Gemini is used when it is configured and answers; otherwise the trained
    classifier decides the intent, the lexical scorer gets a vote when the
    confidence is low, and the composer writes the reply.
    """

    def __init__(
        self,
        composer: ResponseComposer,
        gemini: Optional[GeminiAI] = None,
        classifier_provider: Callable[[], TrainedIntentClassifier] = get_classifier,
        lexical_scorer: Optional[LexicalScorer] = None,
    ):
        self.composer = composer
        self.gemini = gemini
        self.classifier_provider = classifier_provider
        self.lexical_scorer = lexical_scorer or LexicalScorer()

    def generate_response(self, message: str) -> ChatResult:
        classification = DEFAULT_CLASSIFICATION
        ai_provider = LOCAL

        if self.gemini is not None and self.gemini.is_available():
            try:
                gemini_classification = self.gemini.classify_intent(message)
                context = INTENT_CONTEXT.get(gemini_classification.intent, "")
                reply = self.gemini.generate_response(message, context, "", gemini_classification.intent)
                confidence = max(gemini_classification.confidence, reply.confidence)
                return ChatResult(
                    response=reply.text,
                    classification=Classification(gemini_classification.intent, confidence),
                    ai_provider=GEMINI,
                )
            except Exception as e:
                logger.error(f"Gemini AI error, falling back to local model: {e}")
                ai_provider = HYBRID

        local_classification = self.classifier_provider().classify(message)
        if ai_provider == HYBRID or local_classification.confidence > classification.confidence:
            classification = local_classification

        if classification.confidence < LOW_CONFIDENCE:
            lexical_classification = self.lexical_scorer.score(message)
            if lexical_classification.confidence > classification.confidence:
                classification = lexical_classification

        response = self.composer.compose(message, classification.intent)
        return ChatResult(response=response, classification=classification, ai_provider=ai_provider)
