from typing import Callable, Optional

from amethyst.data_integration import format_price, generate_response_with_data
from amethyst.intents import Intent
from amethyst.knowledge import KnowledgeBase

FAQ_PROMPT = "Silakan bertanya tentang harga, cara pembelian, cara konsumsi, atau efek samping kombucha."
GREETING = "Halo! Selamat datang di Amethyst Kombucha. Ada yang bisa saya bantu mengenai produk kombucha kami?"
NOT_UNDERSTOOD = (
    "Maaf, saya belum sepenuhnya memahami pertanyaan Anda. Anda bisa bertanya tentang produk kombucha kami, "
    "manfaat, harga, atau cara pembelian. Ada yang spesifik yang ingin Anda ketahui?"
)

DataResponder = Callable[[str, Intent, KnowledgeBase], str]


class ResponseComposer:
    """Builds a reply from the data templates, then the legacy knowledge, then a fixed fallback"""

    def __init__(self, knowledge: KnowledgeBase, data_responder: Optional[DataResponder] = None):
        self.knowledge = knowledge
        self.data_responder = data_responder or generate_response_with_data

    def compose(self, message: str, intent: Intent) -> str:
        data_response = self.data_responder(message, intent, self.knowledge)
        if data_response:
            return data_response

        lower_message = message.lower()

        if intent == Intent.PRODUCT:
            return self._product_reply(lower_message)
        if intent == Intent.FAQ:
            return self._faq_reply(lower_message)
        if intent == Intent.BENEFITS or "manfaat" in lower_message or "khasiat" in lower_message:
            benefits_list = ", ".join(self.knowledge.benefit_titles())
            return f"Kombucha memiliki banyak manfaat: {benefits_list}. Ingin tahu lebih detail tentang manfaat tertentu?"
        if intent == Intent.GREETING or any(word in lower_message for word in ("halo", "hai", "hello")):
            return GREETING
        return NOT_UNDERSTOOD

    def _product_reply(self, lower_message: str) -> str:
        for product in self.knowledge.products:
            if product.name.lower() in lower_message:
                return (
                    f"{product.description} Harga: Rp {format_price(product.price)}. "
                    f"Manfaat utama: {' dan '.join(product.benefits[:2])}. "
                    "Ada yang ingin ditanyakan lebih lanjut?"
                )

        for key, description in self.knowledge.legacy_products.items():
            if key in lower_message:
                return f"{description} Apakah ada yang ingin Anda ketahui lebih lanjut tentang kombucha {key}?"

        product_list = ", ".join(self.knowledge.product_names())
        return f"Kami memiliki berbagai varian kombucha: {product_list}. Varian mana yang ingin Anda ketahui?"

    def _faq_reply(self, lower_message: str) -> str:
        for question, answer in self.knowledge.legacy_faq.items():
            if (
                question.split(" ")[0] in lower_message
                or ("harga" in question and "harga" in lower_message)
                or ("beli" in question and ("beli" in lower_message or "dimana" in lower_message))
                or ("efek" in question and "efek" in lower_message)
            ):
                return answer
        return FAQ_PROMPT
