#!/usr/bin/env python3
"""
Tests for the keyword event classifier.
"""

import pytest

from core.classifier import DEFAULT_KEYWORDS, EventClassifier
from conftest import make_record


@pytest.fixture
def classifier():
    return EventClassifier()


@pytest.mark.parametrize("text", [
    "Summer Festival campaign",
    "GRAND OPENING this Saturday",
    "期間限定のポップアップストアがオープン",
    "新作スニーカーが登場",
    "Limited Edition sneakers drop",
])
def test_event_texts_match(classifier, text):
    assert classifier.is_event_related(text) is True


@pytest.mark.parametrize("text", [
    "Quarterly financial report",
    "決算短信のお知らせ",
    "Board of directors changes",
])
def test_non_event_texts_do_not_match(classifier, text):
    assert classifier.is_event_related(text) is False


@pytest.mark.parametrize("text", ["", None, "   ", "🎉🎉", "\x00​"])
def test_degenerate_input_is_false_and_never_raises(classifier, text):
    assert classifier.is_event_related(text) is False


def test_custom_keywords_replace_defaults():
    classifier = EventClassifier(["Concert", " ", ""])
    assert classifier.keywords == ("concert",)
    assert classifier.is_event_related("Live CONCERT tonight")
    assert not classifier.is_event_related("Summer Festival campaign")


def test_default_keywords_are_bilingual():
    assert "イベント" in DEFAULT_KEYWORDS
    assert "exhibition" in DEFAULT_KEYWORDS


def test_classify_returns_flagged_copy(classifier):
    record = make_record(1, title="Museum exhibition opens")
    flagged = classifier.classify(record)

    assert flagged.is_event_related is True
    assert record.is_event_related is False
    assert flagged.id == record.id


def test_classify_uses_description(classifier):
    record = make_record(1, title="Notice").model_copy(update={"description": "Spring sale starts"})
    assert classifier.classify(record).is_event_related is True
