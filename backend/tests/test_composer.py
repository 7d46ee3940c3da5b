import pytest

from amethyst.composer import FAQ_PROMPT, GREETING, NOT_UNDERSTOOD, ResponseComposer
from amethyst.intents import Intent
from amethyst.knowledge import LEGACY_FAQ, LEGACY_PRODUCTS, KnowledgeBase


def no_data(message, intent, knowledge):
    return ""


@pytest.fixture
def legacy_only():
    """Composer with an empty dynamic catalog and no data templates"""
    return ResponseComposer(KnowledgeBase(), data_responder=no_data)


def test_data_template_wins_when_it_answers(composer) -> None:
    reply = composer.compose("berapa harga kombucha teh hijau?", Intent.PRODUCT)

    assert reply == "Harga Kombucha Teh Hijau adalah Rp 25,000 per botol (250 ml)."


def test_dynamic_product_reply_lists_price_and_two_benefits(composer, knowledge) -> None:
    product = knowledge.find_product("kombucha bunga telang")

    reply = composer.compose("Ceritakan Kombucha Bunga Telang dong", Intent.PRODUCT)

    assert reply == (
        f"{product.description} Harga: Rp 35,000. "
        "Manfaat utama: Menjaga kesehatan mata dan Merawat kesehatan kulit. "
        "Ada yang ingin ditanyakan lebih lanjut?"
    )


def test_legacy_product_reply_when_catalog_has_no_match(legacy_only) -> None:
    reply = legacy_only.compose("berapa harga kombucha teh hijau?", Intent.PRODUCT)

    assert reply == (
        f"{LEGACY_PRODUCTS['teh hijau']} Apakah ada yang ingin Anda ketahui lebih lanjut tentang kombucha teh hijau?"
    )


def test_same_pricing_question_routed_as_faq_hits_first_faq_entry(legacy_only) -> None:
    # "berapa" contains "apa", the first word of the first FAQ key
    reply = legacy_only.compose("berapa harga kombucha teh hijau?", Intent.FAQ)

    assert reply == LEGACY_FAQ["apa itu kombucha"]


def test_product_list_when_nothing_is_named(composer) -> None:
    reply = composer.compose("ada varian apa?", Intent.PRODUCT)

    assert reply == (
        "Kami memiliki berbagai varian kombucha: Kombucha Teh Hijau, Kombucha Teh Hitam, "
        "Kombucha Bunga Telang, Kombucha Daun Kelor, Kombucha Bunga Amarant, Kombucha Kopi. "
        "Varian mana yang ingin Anda ketahui?"
    )


def test_faq_purchase_keywords(legacy_only) -> None:
    assert legacy_only.compose("dimana saya bisa beli?", Intent.FAQ) == LEGACY_FAQ["dimana beli"]
    assert legacy_only.compose("EFEK nya gimana", Intent.FAQ) == LEGACY_FAQ["efek samping"]


def test_faq_without_match_prompts_for_topics(legacy_only) -> None:
    assert legacy_only.compose("zzz", Intent.FAQ) == FAQ_PROMPT


def test_benefit_keyword_overrides_general_intent(composer) -> None:
    reply = composer.compose("Manfaatnya apa saja?", Intent.GENERAL)

    assert reply == (
        "Kombucha memiliki banyak manfaat: Meningkatkan sistem imun, Melancarkan pencernaan, "
        "Kaya akan probiotik, Tinggi antioksidan, Membantu detoksifikasi, Meningkatkan metabolisme. "
        "Ingin tahu lebih detail tentang manfaat tertentu?"
    )


def test_specific_benefit_uses_data_template(composer) -> None:
    reply = composer.compose("apakah bagus untuk imun?", Intent.BENEFITS)

    assert reply.startswith("Meningkatkan sistem imun: ")


def test_greeting_by_intent_or_keyword(composer) -> None:
    assert composer.compose("selamat pagi", Intent.GREETING) == GREETING
    assert composer.compose("hai kak", Intent.GENERAL) == GREETING


def test_unknown_message_gets_fallback(composer) -> None:
    assert composer.compose("zzz", Intent.GENERAL) == NOT_UNDERSTOOD


@pytest.mark.parametrize("intent", list(Intent))
@pytest.mark.parametrize("message", ["", "zzz", "halo", "berapa harga?", "manfaat", "kombucha kopi"])
def test_reply_is_never_empty(intent, message, composer, legacy_only) -> None:
    assert composer.compose(message, intent)
    assert legacy_only.compose(message, intent)
