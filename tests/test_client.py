import gzip
import threading
from unittest.mock import Mock, patch

import pytest

from insights_events.client import InsightsClient, new_client
from insights_events.config import InsightsConfig
from insights_events.errors import (
    EncodingError,
    InvalidInputError,
    RemoteRejectedError,
    TransportError,
)

FOO = '{"a":1,"eventType":"Foo"}'
BAR = '{"b":2,"eventType":"Bar"}'


@pytest.fixture
def client(poster):
    return InsightsClient("12345", "secret-key", poster=poster)


@pytest.mark.unit
class TestRecordEvent:

    def test_appends_serialized_record(self, client):
        client.record_event("Foo", {"a": 1})

        assert client.pending_events == 1
        assert client.pending_bytes == len(FOO)

    def test_second_record_is_comma_separated(self, client):
        client.record_event("Foo", {"a": 1})
        client.record_event("Bar", {"b": 2})

        assert client.pending_events == 2
        assert client.pending_bytes == len(f"{FOO},{BAR}")

    def test_each_call_adds_exactly_one_record(self, client, poster):
        for index in range(25):
            client.record_event("Tick", {"index": index})
            assert client.pending_events == index + 1

        client.sync()
        assert [event["index"] for event in poster.bodies[0]] == list(range(25))

    def test_empty_name_rejected_without_mutation(self, client, poster):
        client.record_event("Foo", {"a": 1})

        with pytest.raises(InvalidInputError):
            client.record_event("", {"a": 1})

        assert client.pending_events == 1
        assert poster.requests == []

    def test_none_record_rejected_without_mutation(self, client):
        with pytest.raises(InvalidInputError):
            client.record_event("Foo", None)

        assert client.pending_events == 0
        assert client.pending_bytes == 0

    def test_encoding_error_leaves_buffer_unmodified(self, client, poster):
        client.record_event("Foo", {"a": 1})

        with pytest.raises(EncodingError):
            client.record_event("Bad", {"value": {1, 2}})

        assert client.pending_events == 1
        client.sync()
        assert poster.bodies == [[{"a": 1, "eventType": "Foo"}]]

    def test_threshold_triggers_exactly_one_flush(self, poster):
        client = InsightsClient("12345", "key", poster=poster, max_buffer_size=40)

        client.record_event("Foo", {"a": 1})
        assert poster.requests == []

        client.record_event("Bar", {"b": 2})

        assert len(poster.requests) == 1
        assert poster.bodies[0] == [
            {"a": 1, "eventType": "Foo"},
            {"b": 2, "eventType": "Bar"},
        ]
        assert client.pending_events == 0
        assert client.pending_bytes == 0

    def test_rejected_threshold_flush_drops_batch(self, make_poster):
        poster = make_poster(error=RemoteRejectedError(500, "Server Error"))
        client = InsightsClient("12345", "key", poster=poster, max_buffer_size=40)

        client.record_event("Foo", {"a": 1})
        with pytest.raises(RemoteRejectedError) as exc_info:
            client.record_event("Bar", {"b": 2})

        assert exc_info.value.status_code == 500
        assert exc_info.value.reason == "Server Error"
        assert client.pending_events == 0
        assert len(poster.requests) == 1

        # Nothing is re-sent on the next flush
        poster.error = None
        client.sync()
        assert poster.bodies[-1] == []

    def test_transport_failure_drops_batch(self, make_poster):
        poster = make_poster(error=TransportError(reason="connection refused"))
        client = InsightsClient("12345", "key", poster=poster, max_buffer_size=10)

        with pytest.raises(TransportError):
            client.record_event("Foo", {"a": 1})

        assert client.pending_events == 0

    def test_generations_posted_in_insertion_order(self, poster):
        client = InsightsClient("12345", "key", poster=poster, max_buffer_size=100)

        for index in range(50):
            client.record_event("Tick", {"index": index})
        client.sync()

        posted = [event["index"] for body in poster.bodies for event in body]
        assert posted == list(range(50))
        assert len(poster.bodies) > 2


@pytest.mark.unit
class TestSync:

    def test_scenario_two_records(self, client, poster):
        client.record_event("Foo", {"a": 1})
        client.record_event("Bar", {"b": 2})

        client.sync()

        assert poster.bodies == [
            [{"a": 1, "eventType": "Foo"}, {"b": 2, "eventType": "Bar"}]
        ]
        assert client.pending_events == 0

    def test_posts_raw_document(self, client, poster):
        client.record_event("Foo", {"a": 1})
        client.record_event("Bar", {"b": 2})
        client.sync()

        assert gzip.decompress(poster.requests[0].content).decode() == f"[{FOO},{BAR}]"

    def test_empty_buffer_posts_empty_array(self, client, poster):
        client.sync()

        assert poster.bodies == [[]]

    def test_request_shape(self, client, poster):
        client.sync()

        request = poster.requests[0]
        assert request.method == "POST"
        assert str(request.url) == (
            "https://insights-collector.newrelic.com/v1/accounts/12345/events"
        )
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Content-Encoding"] == "gzip"
        assert request.headers["X-Insert-Key"] == "secret-key"

    def test_failure_is_raised_and_buffer_reset(self, make_poster):
        poster = make_poster(error=TransportError(reason="timed out"))
        client = InsightsClient("12345", "key", poster=poster)
        client.record_event("Foo", {"a": 1})

        with pytest.raises(TransportError):
            client.sync()

        assert client.pending_events == 0


@pytest.mark.unit
class TestConcurrency:

    def _produce(self, client, workers=8, per_worker=150):
        barrier = threading.Barrier(workers)
        errors = []

        def worker(worker_id):
            barrier.wait()
            try:
                for seq in range(per_worker):
                    client.record_event("Tick", {"worker": worker_id, "seq": seq})
            except Exception as e:  # surfaced through the assertion below
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        return {(w, s) for w in range(workers) for s in range(per_worker)}

    def test_concurrent_appends_keep_buffer_valid(self, client, poster):
        expected = self._produce(client)

        assert client.pending_events == len(expected)
        client.sync()

        body = poster.bodies[0]
        assert len(body) == len(expected)
        assert {(e["worker"], e["seq"]) for e in body} == expected

    def test_concurrent_appends_with_threshold_flushes(self, poster):
        client = InsightsClient("12345", "key", poster=poster, max_buffer_size=2000)
        expected = self._produce(client)
        client.sync()

        posted = [(e["worker"], e["seq"]) for body in poster.bodies for e in body]
        assert len(posted) == len(expected)
        assert set(posted) == expected

        # Within one producer, order survives across generations
        for worker_id in range(8):
            seqs = [seq for w, seq in posted if w == worker_id]
            assert seqs == sorted(seqs)


@pytest.mark.unit
class TestLifecycle:

    def test_default_url(self):
        client = new_client("777", "key", poster=Mock())
        assert client.url == "https://insights-collector.newrelic.com/v1/accounts/777/events"
        assert client.account_id == "777"

    @patch("insights_events.client.StandardPoster")
    def test_close_syncs_and_closes_owned_poster(self, mock_poster_cls):
        client = InsightsClient("12345", "key")
        client.record_event("Foo", {"a": 1})

        client.close()

        poster = mock_poster_cls.return_value
        poster.assert_called_once()
        poster.close.assert_called_once()

    def test_close_leaves_injected_poster_open(self):
        poster = Mock()
        with InsightsClient("12345", "key", poster=poster) as client:
            client.record_event("Foo", {"a": 1})

        poster.assert_called_once()
        poster.close.assert_not_called()

    def test_from_config_uses_config_url(self):
        config = InsightsConfig(
            account_id="42", insert_key="key", collector_host="collector.example.com"
        )
        poster = Mock()
        client = InsightsClient.from_config(config, poster=poster)

        assert client.url == "https://collector.example.com/v1/accounts/42/events"
        client.close()
        poster.close.assert_not_called()

    @patch("insights_events.client.StandardPoster")
    def test_from_config_builds_owned_poster(self, mock_poster_cls):
        config = InsightsConfig(account_id="42", insert_key="key", timeout=5)
        client = InsightsClient.from_config(config)

        assert client.poster is mock_poster_cls.return_value
        assert mock_poster_cls.call_args.kwargs["timeout"] == 5
        client.close()
        mock_poster_cls.return_value.close.assert_called_once()
