"""Tests for trace record normalization."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from firehose.errors import NormalizeError
from firehose.models import TraceAction
from firehose.trace_source import decode_body, normalize_message, normalize_trace, split_routing_key


class TestSplitRoutingKey:
    """Tests for routing key splitting."""

    def test_publish_with_target(self):
        """Test that publish.<exchange> yields the exchange as target."""
        assert split_routing_key("publish.my-exchange") == (TraceAction.PUBLISH, "my-exchange")

    def test_deliver_without_target(self):
        """Test that a missing second segment yields the unknown target."""
        assert split_routing_key("deliver") == (TraceAction.DELIVER, "unknown")

    def test_target_is_second_segment(self):
        """Test that the target is the second segment, further segments ignored."""
        assert split_routing_key("publish.amq.direct") == (TraceAction.PUBLISH, "amq")
        assert split_routing_key("deliver.orders.eu.v1") == (TraceAction.DELIVER, "orders")

    @pytest.mark.parametrize("routing_key", ["publish.", "deliver..orders"])
    def test_empty_second_segment(self, routing_key):
        """Test that an empty second segment yields the unknown target."""
        assert split_routing_key(routing_key)[1] == "unknown"

    @pytest.mark.parametrize("routing_key", [None, ""])
    def test_missing_routing_key(self, routing_key):
        """Test that an absent routing key is a normalize error."""
        with pytest.raises(NormalizeError):
            split_routing_key(routing_key)

    def test_unknown_action(self):
        """Test that an unrecognized action is a normalize error."""
        with pytest.raises(NormalizeError, match="Unrecognized trace action"):
            split_routing_key("consume.orders")


class TestDecodeBody:
    """Tests for payload decoding."""

    def test_json_object(self):
        """Test that JSON payloads are decoded."""
        assert decode_body(b'{"order": 42, "items": ["a"]}') == {"order": 42, "items": ["a"]}

    def test_plain_text(self):
        """Test that non-JSON payloads come back as text."""
        assert decode_body(b"hello {not json") == "hello {not json"

    def test_invalid_utf8(self):
        """Test that undecodable bytes never raise."""
        assert isinstance(decode_body(b"\xff\xfe\x00garbage"), str)

    def test_empty(self):
        """Test that an empty payload is the empty string."""
        assert decode_body(b"") == ""


class TestNormalizeTrace:
    """Tests for normalize_trace."""

    def test_full_record(self):
        """Test building a TraceEvent from every field."""
        ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        event = normalize_trace(
            routing_key="publish.orders",
            exchange_name="amq.rabbitmq.trace",
            body=b'{"id": 1}',
            headers={"exchange_name": b"orders", "routing_keys": [b"order.created"]},
            content_type="application/json",
            message_id="m-1",
            correlation_id="c-1",
            occurred_at=ts,
        )

        assert event.occurred_at == ts
        assert event.action is TraceAction.PUBLISH
        assert event.target == "orders"
        assert event.routing_key == "publish.orders"
        assert event.exchange_name == "amq.rabbitmq.trace"
        assert event.body_size == 9
        assert event.body == {"id": 1}
        assert event.headers == {"exchange_name": "orders", "routing_keys": ["order.created"]}
        assert event.content_type == "application/json"
        assert event.message_id == "m-1"
        assert event.correlation_id == "c-1"

    def test_malformed_body_is_raw_text(self):
        """Test that a malformed payload is kept as raw text without raising."""
        event = normalize_trace("deliver.jobs", "amq.rabbitmq.trace", b"{broken")

        assert event.body == "{broken"
        assert event.body_size == 7
        assert event.headers == {}
        assert event.occurred_at.tzinfo is not None

    def test_missing_routing_key_raises(self):
        """Test that a record without routing key raises NormalizeError."""
        with pytest.raises(NormalizeError):
            normalize_trace(None, "amq.rabbitmq.trace", b"{}")


class TestNormalizeMessage:
    """Tests for the aio-pika message adapter."""

    def test_reads_message_attributes(self):
        """Test that attributes of an incoming message are mapped."""
        message = Mock(
            routing_key="deliver.jobs",
            exchange="amq.rabbitmq.trace",
            body=b"plain",
            headers=None,
            content_type=None,
            message_id=None,
            correlation_id="corr",
        )

        event = normalize_message(message)

        assert event.action is TraceAction.DELIVER
        assert event.target == "jobs"
        assert event.body == "plain"
        assert event.headers == {}
        assert event.correlation_id == "corr"
