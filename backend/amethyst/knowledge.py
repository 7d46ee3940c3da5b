import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Data files live next to this module
current_dir = os.path.dirname(os.path.abspath(__file__))
data_dir = os.path.join(current_dir, "data")

# Legacy knowledge, used when the dynamic catalog has no match
LEGACY_PRODUCTS: Dict[str, str] = {
    "teh hijau": "Kombucha Teh Hijau kaya akan antioksidan dan membantu meningkatkan metabolisme. Memiliki rasa yang segar dan ringan.",
    "teh hitam": "Kombucha Teh Hitam memiliki rasa yang lebih kuat dan bold. Mengandung kafein alami dan probiotik yang baik untuk pencernaan.",
    "bunga telang": "Kombucha Bunga Telang memiliki warna biru alami yang cantik dan kaya akan antosianin. Baik untuk kesehatan mata dan kulit.",
    "daun kelor": "Kombucha Daun Kelor kaya akan vitamin A, C, dan zat besi. Sangat baik untuk meningkatkan sistem imun.",
    "bunga amarant": "Kombucha Bunga Amarant memiliki kandungan protein tinggi dan antioksidan. Membantu menjaga kesehatan jantung.",
    "kopi": "Kombucha Kopi memberikan energi alami dengan kandungan probiotik. Kombinasi sempurna untuk para pecinta kopi.",
}

# Insertion order is the match order
LEGACY_FAQ: Dict[str, str] = {
    "apa itu kombucha": "Kombucha adalah minuman fermentasi yang dibuat dari teh yang difermentasi dengan SCOBY (Symbiotic Culture of Bacteria and Yeast). Minuman ini kaya akan probiotik dan antioksidan.",
    "bagaimana cara minum": "Kombucha sebaiknya diminum 1-2 gelas per hari, idealnya 30 menit sebelum atau sesudah makan. Mulai dengan porsi kecil jika baru pertama kali mencoba.",
    "efek samping": "Kombucha umumnya aman dikonsumsi. Namun, beberapa orang mungkin mengalami gangguan pencernaan ringan di awal konsumsi. Mulai dengan porsi kecil.",
    "berapa harga": "Harga kombucha kami bervariasi mulai dari Rp 25.000 hingga Rp 45.000 per botol, tergantung varian dan ukuran.",
    "dimana beli": "Anda bisa membeli produk kami melalui website ini atau menghubungi customer service kami untuk informasi toko terdekat.",
}


@dataclass(frozen=True)
class Product:
    name: str
    description: str
    price: int
    benefits: Tuple[str, ...] = ()
    volume: str = ""
    ingredients: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()

    def is_mentioned_in(self, lower_message: str) -> bool:
        """True when the product name or one of its aliases appears in the message"""
        if self.name.lower() in lower_message:
            return True
        return any(alias in lower_message for alias in self.aliases)


@dataclass(frozen=True)
class FAQEntry:
    question: str
    answer: str


@dataclass(frozen=True)
class Benefit:
    title: str
    detail: str
    keywords: Tuple[str, ...] = ()


@dataclass(frozen=True)
class KnowledgeBase:
    """Product catalog, FAQ and benefit data plus the legacy lookup tables"""

    products: Tuple[Product, ...] = ()
    faqs: Tuple[FAQEntry, ...] = ()
    benefits: Tuple[Benefit, ...] = ()
    legacy_products: Dict[str, str] = field(default_factory=lambda: dict(LEGACY_PRODUCTS))
    legacy_faq: Dict[str, str] = field(default_factory=lambda: dict(LEGACY_FAQ))

    def find_product(self, lower_message: str) -> Optional[Product]:
        for product in self.products:
            if product.is_mentioned_in(lower_message):
                return product
        return None

    def product_names(self) -> List[str]:
        return [product.name for product in self.products]

    def benefit_titles(self) -> List[str]:
        return [benefit.title for benefit in self.benefits]


def _load_json(filename: str) -> list:
    """Load a list from a JSON data file, empty list when missing or broken"""
    path = os.path.join(data_dir, filename)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        logger.error(f"Knowledge file not found at: {path}")
        return []
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON in knowledge file: {path}")
        return []


def load_products() -> List[Product]:
    return [
        Product(
            name=item["name"],
            description=item["description"],
            price=int(item["price"]),
            benefits=tuple(item.get("benefits", [])),
            volume=item.get("volume", ""),
            ingredients=tuple(item.get("ingredients", [])),
            aliases=tuple(alias.lower() for alias in item.get("aliases", [])),
        )
        for item in _load_json("products.json")
    ]


def load_faqs() -> List[FAQEntry]:
    return [FAQEntry(question=item["question"], answer=item["answer"]) for item in _load_json("faqs.json")]


def load_benefits() -> List[Benefit]:
    return [
        Benefit(
            title=item["title"],
            detail=item["detail"],
            keywords=tuple(keyword.lower() for keyword in item.get("keywords", [])),
        )
        for item in _load_json("benefits.json")
    ]


def build_knowledge_base() -> KnowledgeBase:
    """Assemble the knowledge base from the packaged data files"""
    knowledge = KnowledgeBase(
        products=tuple(load_products()),
        faqs=tuple(load_faqs()),
        benefits=tuple(load_benefits()),
    )
    logger.info(
        f"Knowledge base loaded: {len(knowledge.products)} products, "
        f"{len(knowledge.faqs)} FAQs, {len(knowledge.benefits)} benefits"
    )
    return knowledge
