import dataclasses
import json
from datetime import datetime, timezone

import pytest

from app.services import card_expansion
from app.services.card_expansion import card_id_for, expand_topic
from app.services.llm.client import GenerationError
from app.services.outline import Topic

from conftest import FakeTextClient

BASE = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _card_json(title="Photosynthesis"):
    return json.dumps(
        {
            "title": title,
            "category": "Biology",
            "difficulty": "Easy",
            "body": "Plants turn light, water and CO2 into glucose and oxygen. " * 6,
            "flashcard": {"question": "What does photosynthesis produce?", "answer": "Glucose and oxygen."},
        }
    )


@pytest.fixture()
def sleeps(monkeypatch):
    calls: list[float] = []
    monkeypatch.setattr(card_expansion.time, "sleep", lambda s: calls.append(s))
    return calls


def _expand(client, mode="standard", index=0, topic=None):
    return expand_topic(
        client,
        topic or Topic(title="Photosynthesis", category="Biology", difficulty="Easy"),
        "Source text about plants.",
        mode,
        index,
        job_id="job1",
        collection_id="bio-101",
        base_time=BASE,
    )


def test_successful_card_has_metadata(sleeps):
    card = _expand(FakeTextClient(lambda p: _card_json()), index=2)

    assert card is not None
    assert card.id == "job1_0002"
    assert card.collection_id == "bio-101"
    assert card.is_custom_generated is True
    assert card.created_at == datetime(2026, 1, 1, 12, 0, 2, tzinfo=timezone.utc)
    assert sleeps == []

    d = card.to_dict()
    assert d["flashcard"] == {"question": "What does photosynthesis produce?", "answer": "Glucose and oxygen."}
    assert d["collectionId"] == "bio-101"
    assert d["isCustomGenerated"] is True
    page = d["presentation"]["pages"][0]
    assert page["content"] == d["body"]
    assert page["question"] == d["flashcard"]["question"]
    assert page["contentFormat"] == "plain"


def test_prompt_contains_topic_and_bounded_excerpt(sleeps, monkeypatch):
    monkeypatch.setattr(card_expansion, "settings", dataclasses.replace(card_expansion.settings, card_content_max_chars=10))
    client = FakeTextClient(lambda p: _card_json())
    expand_topic(
        client,
        Topic(title="Cells", category="Biology", difficulty="Medium"),
        "0123456789ABCDEFGHIJ",
        "standard",
        0,
        job_id="j",
        collection_id=None,
        base_time=BASE,
    )
    prompt = client.prompts[0]
    assert "Topic: Cells\n" in prompt
    assert "0123456789" in prompt
    assert "ABCDEFGHIJ" not in prompt


def test_retries_then_succeeds(sleeps):
    replies = iter(["not json at all", _card_json()])
    client = FakeTextClient(lambda p: next(replies))

    card = _expand(client)

    assert card is not None
    assert len(client.prompts) == 2
    assert sleeps == [card_expansion.settings.card_retry_backoff_sec]


def test_all_attempts_fail_yields_no_card(sleeps):
    def boom(prompt):
        raise GenerationError("model overloaded")

    client = FakeTextClient(boom)
    assert _expand(client) is None
    assert len(client.prompts) == 3
    # backoff between attempts, not after the last one
    assert len(sleeps) == 2


def test_malformed_output_uses_same_retry_budget(sleeps):
    client = FakeTextClient(lambda p: "Here are some thoughts, but no JSON.")
    assert _expand(client) is None
    assert len(client.prompts) == 3


def test_card_missing_flashcard_is_a_parse_failure(sleeps):
    incomplete = json.dumps({"title": "X", "body": "Some body"})
    client = FakeTextClient(lambda p: incomplete)
    assert _expand(client) is None
    assert len(client.prompts) == 3


def test_unexpected_client_exception_does_not_escape(sleeps):
    def broken(prompt):
        raise ConnectionResetError("socket closed")

    assert _expand(FakeTextClient(broken)) is None


def test_dialogue_mode_prompt_and_content_format(sleeps):
    client = FakeTextClient(lambda p: _card_json())
    card = _expand(client, mode="dialogue")

    prompt = client.prompts[0]
    assert "strictly alternate" in prompt
    assert "must NOT merely acknowledge" in prompt
    assert card.to_dict()["presentation"]["pages"][0]["contentFormat"] == "dialogue"


@pytest.mark.parametrize(
    "mode, marker",
    [
        ("simplified", "analogy"),
        ("rigorous", "Do NOT use analogies"),
        ("standard", "structured explanation"),
    ],
)
def test_modes_change_style_but_not_contract(sleeps, mode, marker):
    client = FakeTextClient(lambda p: _card_json())
    card = _expand(client, mode=mode)
    assert marker in client.prompts[0]
    assert '"flashcard": {"question": "...", "answer": "..."}' in client.prompts[0]
    assert card.content_format == "plain"


def test_ids_and_timestamps_follow_generation_order(sleeps):
    client = FakeTextClient(lambda p: _card_json())
    cards = [_expand(client, index=i) for i in range(12)]

    assert len({c.id for c in cards}) == 12
    by_time = sorted(cards, key=lambda c: c.created_at)
    assert [c.id for c in by_time] == [card_id_for("job1", i) for i in range(12)]
    assert sorted(c.id for c in cards) == [c.id for c in by_time]
