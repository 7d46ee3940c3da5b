import threading
import time

import pytest

from amethyst import classifier as classifier_module
from amethyst.classifier import TrainedIntentClassifier, create_trained_classifier, get_classifier, tokenize
from amethyst.intents import Classification, Intent


@pytest.fixture(scope="module")
def trained():
    return create_trained_classifier()


def test_tokenize_drops_punctuation_and_case() -> None:
    assert tokenize("Berapa HARGA kombucha?!") == frozenset({"berapa", "harga", "kombucha"})


def test_exact_example_gives_full_confidence(trained) -> None:
    assert trained.classify("halo") == Classification(Intent.GREETING, 1.0)
    assert trained.classify("Apa itu kombucha?") == Classification(Intent.FAQ, 1.0)
    assert trained.classify("khasiat kombucha") == Classification(Intent.BENEFITS, 1.0)


def test_unrelated_text_is_general_with_zero_confidence(trained) -> None:
    assert trained.classify("zzz qwerty") == Classification(Intent.GENERAL, 0.0)
    assert trained.classify("") == Classification(Intent.GENERAL, 0.0)


def test_pricing_question_ties_between_product_and_faq(trained) -> None:
    scores = trained.scores("berapa harga kombucha teh hijau?")

    assert scores[Intent.PRODUCT] == pytest.approx(0.6)
    assert scores[Intent.FAQ] == pytest.approx(0.6)
    assert trained.classify("berapa harga kombucha teh hijau?").intent == Intent.PRODUCT


def test_ties_follow_intent_declaration_order() -> None:
    model = TrainedIntentClassifier({"faq": ["harga kombucha"], "product": ["harga kombucha"]})

    assert model.classify("harga kombucha") == Classification(Intent.PRODUCT, 1.0)


def test_get_classifier_builds_once_under_concurrency(monkeypatch) -> None:
    calls = []

    def slow_factory():
        calls.append(1)
        time.sleep(0.05)
        return TrainedIntentClassifier({"greeting": ["halo"]})

    monkeypatch.setattr(classifier_module, "_classifier", None)
    monkeypatch.setattr(classifier_module, "create_trained_classifier", slow_factory)

    barrier = threading.Barrier(8)
    results = []

    def worker():
        barrier.wait()
        results.append(get_classifier())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calls) == 1
    assert len(results) == 8
    assert all(result is results[0] for result in results)
    assert get_classifier() is results[0]
