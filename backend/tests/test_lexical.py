import pytest

from amethyst.intents import Classification, Intent
from amethyst.lexical import LexicalScorer


def test_pricing_question_naming_a_product_scores_as_product() -> None:
    # "harga" alone gives the FAQ group 0.9, but the product terms outweigh it
    result = LexicalScorer().score("berapa harga kombucha teh hijau?")

    assert result == Classification(Intent.PRODUCT, 1.0)


def test_faq_phrase_beats_weaker_product_terms() -> None:
    scorer = LexicalScorer()

    assert scorer.product_score("bagaimana cara pesan?".split()) == pytest.approx(0.7)
    assert scorer.faq_score("bagaimana cara pesan?") == pytest.approx(0.8)
    assert scorer.score("Bagaimana cara pesan?") == Classification(Intent.FAQ, 0.8)


def test_unknown_words_stay_general_with_zero_confidence() -> None:
    assert LexicalScorer().score("halo") == Classification(Intent.GENERAL, 0.0)
    assert LexicalScorer().score("") == Classification(Intent.GENERAL, 0.0)


def test_token_inside_a_product_key_adds_one_once() -> None:
    scorer = LexicalScorer(term_weights={})

    # "teh" is part of both "teh hijau" and "teh hitam"
    assert scorer.product_score(["teh"]) == 1
    assert scorer.product_score(["ko"]) == 1
    assert scorer.product_score(["xyz"]) == 0


def test_faq_groups_match_on_raw_text_not_tokens() -> None:
    scorer = LexicalScorer()

    assert scorer.faq_score("apa itu scoby") == pytest.approx(0.8)
    assert scorer.faq_score("dimana beli dan berapa") == pytest.approx(1.8)
    assert scorer.faq_score("efek samping") == pytest.approx(0.8)


def test_tie_keeps_the_earlier_intent() -> None:
    scorer = LexicalScorer(term_weights={"efek": 0.8}, product_keys=[])

    assert scorer.score("efek") == Classification(Intent.PRODUCT, 0.8)


@pytest.mark.parametrize(
    "message",
    [
        "",
        "halo",
        "kombucha teh hijau kombucha teh hitam kombucha kopi",
        "apa itu kombucha dan berapa harga dan dimana beli dan efek samping",
        "cara",
        "manfaat",
    ],
)
def test_confidence_is_raw_score_capped_at_one(message: str) -> None:
    scorer = LexicalScorer()
    raw = max(scorer.product_score(message.lower().split()), scorer.faq_score(message.lower()), 0.0)

    confidence = scorer.score(message).confidence

    assert 0.0 <= confidence <= 1.0
    assert confidence == min(raw, 1.0)
