from __future__ import annotations

import json

from wirechat.client.stream import StreamAggregator, classify_payload
from wirechat.client.thinking import ThinkingSignal
from wirechat.client.transcript import Transcript

from tests.utils import FakeClock, RecordingView


def _make() -> tuple[StreamAggregator, Transcript, ThinkingSignal, RecordingView]:
    view = RecordingView()
    transcript = Transcript(view=view)
    thinking = ThinkingSignal(loop=FakeClock())
    return StreamAggregator(transcript, thinking), transcript, thinking, view


def _chunk(text: str | None) -> str:
    return json.dumps({"content": text})


def test_chunks_accumulate_into_one_entry() -> None:
    aggregator, transcript, thinking, view = _make()

    aggregator.feed(_chunk("Hel"))
    aggregator.feed(_chunk("lo"))

    assert [(e.kind, e.text) for e in transcript.entries] == [("assistant", "Hello")]
    assert aggregator.buffer is not None
    assert aggregator.buffer.accumulated_text == "Hello"
    assert view.deltas == ["lo"]
    assert thinking.active is True


def test_plain_text_is_a_complete_message() -> None:
    aggregator, transcript, thinking, _view = _make()
    thinking.mark_active()

    aggregator.feed("plain text")

    assert [(e.kind, e.text) for e in transcript.entries] == [("assistant", "plain text")]
    assert aggregator.buffer is None
    assert thinking.active is False


def test_complete_message_is_a_new_entry() -> None:
    aggregator, transcript, _thinking, _view = _make()

    aggregator.feed(_chunk("partial"))
    aggregator.feed("done")

    assert [e.text for e in transcript.entries] == ["partial", "done"]


def test_chunk_after_complete_message_extends_it() -> None:
    aggregator, transcript, _thinking, view = _make()

    transcript.begin_turn()
    aggregator.feed("Working on it:")
    aggregator.feed(_chunk(" step 1"))

    assert [e.text for e in transcript.entries] == ["Working on it: step 1"]
    assert aggregator.buffer is not None
    assert aggregator.buffer.accumulated_text == "Working on it: step 1"
    assert view.deltas == [" step 1"]


def test_chunk_after_closed_buffer_extends_latest_reply() -> None:
    aggregator, transcript, _thinking, _view = _make()

    aggregator.feed(_chunk("Hel"))
    aggregator.close()
    aggregator.feed(_chunk("lo"))

    assert [e.text for e in transcript.entries] == ["Hello"]


def test_previous_turn_reply_is_not_extended() -> None:
    aggregator, transcript, _thinking, _view = _make()

    transcript.begin_turn()
    aggregator.feed("old answer")
    transcript.begin_turn()
    transcript.add("user", "next question")
    aggregator.feed(_chunk("new"))

    assert [e.text for e in transcript.entries] == ["old answer", "next question", "new"]


def test_mixed_lines_keep_only_content_objects() -> None:
    payload = "\n".join([_chunk("a"), "not json", '{"x": 1}', "{broken}", f"  {_chunk('b')}  "])

    result = classify_payload(payload)

    assert result.is_chunk is True
    assert result.content == "ab"


def test_json_without_content_is_a_complete_message() -> None:
    payload = '{"status": "ok"}'

    result = classify_payload(payload)

    assert result.is_chunk is False
    assert result.content == payload


def test_null_and_structured_content() -> None:
    assert classify_payload(_chunk(None)).content == "null"
    assert classify_payload(json.dumps({"content": {"k": 1}})).content == '{"k": 1}'


def test_new_turn_starts_a_new_entry() -> None:
    aggregator, transcript, _thinking, _view = _make()

    transcript.begin_turn()
    aggregator.feed(_chunk("first"))
    transcript.begin_turn()
    aggregator.feed(_chunk("second"))

    assert [e.text for e in transcript.entries] == ["first", "second"]


def test_interleaved_system_entries_do_not_break_the_stream() -> None:
    aggregator, transcript, _thinking, _view = _make()

    aggregator.feed(_chunk("Hel"))
    transcript.system("Session resumed (2 messages in history).")
    aggregator.feed(_chunk("lo"))

    assert [e.text for e in transcript.entries] == ["Hello", "Session resumed (2 messages in history)."]


def test_cleared_transcript_drops_the_buffer() -> None:
    aggregator, transcript, _thinking, _view = _make()

    aggregator.feed(_chunk("old"))
    transcript.clear()
    aggregator.feed(_chunk("new"))

    assert [e.text for e in transcript.entries] == ["new"]
