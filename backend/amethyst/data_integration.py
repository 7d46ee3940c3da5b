from difflib import get_close_matches
import logging

from amethyst.intents import Intent
from amethyst.knowledge import KnowledgeBase

logger = logging.getLogger(__name__)

PRICE_WORDS = ("harga", "berapa")
INGREDIENT_WORDS = ("bahan", "komposisi", "kandungan")
FAQ_MATCH_CUTOFF = 0.6


def format_price(price: int) -> str:
    return f"{price:,}"


def _product_answer(lower_message: str, knowledge: KnowledgeBase) -> str:
    product = knowledge.find_product(lower_message)
    if product is None:
        return ""
    if any(word in lower_message for word in PRICE_WORDS):
        return f"Harga {product.name} adalah Rp {format_price(product.price)} per botol ({product.volume})."
    if product.ingredients and any(word in lower_message for word in INGREDIENT_WORDS):
        return f"{product.name} dibuat dari {', '.join(product.ingredients)}."
    return ""


def _faq_answer(lower_message: str, knowledge: KnowledgeBase) -> str:
    questions = [entry.question.lower().strip() for entry in knowledge.faqs]
    match = get_close_matches(lower_message.strip(), questions, n=1, cutoff=FAQ_MATCH_CUTOFF)
    if match:
        for entry in knowledge.faqs:
            if entry.question.lower().strip() == match[0]:
                return entry.answer
    return ""


def _benefit_answer(lower_message: str, knowledge: KnowledgeBase) -> str:
    for benefit in knowledge.benefits:
        if any(keyword in lower_message for keyword in benefit.keywords):
            return f"{benefit.title}: {benefit.detail}"
    return ""


def generate_response_with_data(message: str, intent: Intent, knowledge: KnowledgeBase) -> str:
    """
    Answer from the product catalog and FAQ data

    Args:
        message (str): User's message
        intent (Intent): Classified intent
        knowledge (KnowledgeBase): Loaded knowledge base

    Returns:
        str: Templated answer, or an empty string when the data has none
    """
    lower_message = message.lower()
    if intent == Intent.PRODUCT:
        answer = _product_answer(lower_message, knowledge)
    elif intent == Intent.FAQ:
        answer = _faq_answer(lower_message, knowledge)
    elif intent == Intent.BENEFITS:
        answer = _benefit_answer(lower_message, knowledge)
    else:
        answer = ""

    if answer:
        logger.debug(f"Data-integrated answer for intent {intent.value}")
    return answer
