"""Google Gemini integration through LangChain.

The chatbot treats Gemini as a text-in/text-out collaborator: one call to
classify the intent of a message and one call to write the reply. Each call
is a single attempt; any failure is left to the caller to fall back on.
"""
import json
import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Optional

from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from amethyst.config import Settings
from amethyst.data_integration import format_price
from amethyst.intents import Classification, Intent
from amethyst.knowledge import KnowledgeBase

logger = logging.getLogger(__name__)

REPLY_CONFIDENCE = 0.85
JSON_OBJECT_RE = re.compile(r"\{.*?\}", re.DOTALL)

INTENT_PROMPT = ChatPromptTemplate.from_template(
    """Classify the customer's message for a kombucha shop into exactly ONE of these intents:

- product: asking about a kombucha variant or the product range
- faq: price, purchase, delivery, storage, how to drink, side effects
- benefits: health benefits of kombucha
- greeting: greetings or small talk openers
- general: anything else

Message:
"{text}"

Reply ONLY with JSON like {{"intent": "faq", "confidence": 0.9}}.
"""
)

RESPONSE_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "system",
            "Anda adalah asisten customer service Amethyst Kombucha. Jawab dalam bahasa Indonesia "
            "dengan ramah, singkat, dan faktual. Jangan mengarang produk atau harga di luar katalog.\n\n"
            "Katalog produk:\n{catalog}\n\n"
            "Intent pelanggan: {intent}\n"
            "{context}\n"
            "{extra}",
        ),
        ("human", "{message}"),
    ]
)


class GeminiError(RuntimeError):
    """Gemini returned something the chatbot cannot use"""


@dataclass(frozen=True)
class GeneratedReply:
    text: str
    confidence: float


def parse_classification(raw: str) -> Classification:
    match = JSON_OBJECT_RE.search(raw)
    if not match:
        raise GeminiError(f"Unparseable intent classification: {raw!r}")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise GeminiError(f"Invalid intent classification JSON: {raw!r}") from e

    intent = Intent.parse(str(data.get("intent", "")))
    try:
        confidence = float(data.get("confidence", 0.0))
    except (TypeError, ValueError):
        confidence = 0.0
    return Classification(intent, max(0.0, min(confidence, 1.0)))


def _message_text(message: Any) -> str:
    content = getattr(message, "content", message)
    if isinstance(content, list):
        content = "".join(part.get("text", "") if isinstance(part, dict) else str(part) for part in content)
    return str(content).strip()


class GeminiAI:
    def __init__(self, settings: Settings, knowledge: Optional[KnowledgeBase] = None, llm: Any = None):
        self.settings = settings
        self.knowledge = knowledge
        self._llm = llm
        self._llm_lock = threading.Lock()

    def is_available(self) -> bool:
        return self._llm is not None or bool(self.settings.gemini_api_key)

    def _get_llm(self) -> Any:
        if self._llm is None:
            with self._llm_lock:
                if self._llm is None:
                    if not self.settings.gemini_api_key:
                        raise GeminiError("Gemini API key is not configured")
                    self._llm = ChatGoogleGenerativeAI(
                        model=self.settings.gemini_model,
                        google_api_key=self.settings.gemini_api_key,
                        temperature=self.settings.gemini_temperature,
                        max_output_tokens=self.settings.gemini_max_tokens,
                        timeout=self.settings.gemini_timeout,
                        max_retries=1,  # single attempt
                    )
                    logger.info(f"Gemini model ready: {self.settings.gemini_model}")
        return self._llm

    def _catalog(self) -> str:
        if self.knowledge is None or not self.knowledge.products:
            return "-"
        return "\n".join(
            f"- {product.name}: Rp {format_price(product.price)} ({product.volume}). {product.description}"
            for product in self.knowledge.products
        )

    def classify_intent(self, text: str) -> Classification:
        messages = INTENT_PROMPT.format_messages(text=text)
        raw = _message_text(self._get_llm().invoke(messages))
        return parse_classification(raw)

    def generate_response(
        self,
        text: str,
        context: str = "",
        extra: str = "",
        intent_hint: Optional[Intent] = None,
    ) -> GeneratedReply:
        messages = RESPONSE_PROMPT.format_messages(
            catalog=self._catalog(),
            intent=intent_hint.value if intent_hint else "-",
            context=context,
            extra=extra,
            message=text,
        )
        reply = _message_text(self._get_llm().invoke(messages))
        if not reply:
            raise GeminiError("Gemini returned an empty reply")
        return GeneratedReply(text=reply, confidence=REPLY_CONFIDENCE)
