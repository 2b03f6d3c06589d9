from __future__ import annotations

import json

import httpx
import pytest

from border_explorer.errors import LabelServiceError
from border_explorer.labels import CategoryLabels, LabelResolver, WikidataLabelClient


def _client(handler) -> WikidataLabelClient:
    return WikidataLabelClient("https://example.test/v1", transport=httpx.MockTransport(handler))


def test_cached_labels_need_no_request(store) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request {request.url}")

    store.insert_entity(515, "city", "ville")
    resolver = LabelResolver(store, _client(handler))
    assert resolver.resolve(515) == CategoryLabels(en="city", fr="ville")
    assert resolver.fetched == 0


def test_missing_labels_are_fetched_once_and_cached(store) -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"en": "commune of France", "fr": "commune française", "de": "Gemeinde"})

    resolver = LabelResolver(store, _client(handler))
    assert resolver.resolve(484170) == CategoryLabels(en="commune of France", fr="commune française")
    assert resolver.resolve(484170).fr == "commune française"
    assert len(seen) == 1
    assert seen[0].url.path == "/v1/entities/items/Q484170/labels"
    assert seen[0].headers["user-agent"].startswith("border-explorer v")
    assert store.get_labels(484170) == ("commune of France", "commune française")


def test_missing_french_label_is_recorded_empty(store) -> None:
    resolver = LabelResolver(store, _client(lambda r: httpx.Response(200, json={"mul": "Mont Blanc"})))
    assert resolver.resolve(583) == CategoryLabels(en="Mont Blanc", fr="")
    assert store.get_labels(583) == ("Mont Blanc", "")


def test_http_failure_is_fatal(store) -> None:
    resolver = LabelResolver(store, _client(lambda r: httpx.Response(404, json={"code": "item-not-found"})))
    with pytest.raises(LabelServiceError):
        resolver.resolve(1)
    assert store.get_labels(1) is None


def test_unexpected_payload_is_fatal(store) -> None:
    resolver = LabelResolver(store, _client(lambda r: httpx.Response(200, content=json.dumps(["en"]))))
    with pytest.raises(LabelServiceError):
        resolver.resolve(2)


def test_label_map_prefers_english_over_mul() -> None:
    assert CategoryLabels.from_label_map({"en": "a", "mul": "b"}).en == "a"
    assert CategoryLabels.from_label_map({}) == CategoryLabels(en="", fr="")


@pytest.fixture
def no_backoff(monkeypatch) -> None:
    monkeypatch.setattr(WikidataLabelClient._get.retry, "sleep", lambda seconds: None)


def test_network_errors_are_retried(store, no_backoff) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"en": "canton", "fr": "canton"})

    resolver = LabelResolver(store, _client(handler))
    assert resolver.resolve(184188) == CategoryLabels(en="canton", fr="canton")
    assert len(calls) == 3


def test_retries_give_up_after_five_attempts(store, no_backoff) -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    resolver = LabelResolver(store, _client(handler))
    with pytest.raises(LabelServiceError):
        resolver.resolve(3)
    assert len(calls) == 5
    assert store.get_labels(3) is None
    assert resolver.fetched == 0
