"""Routing-key filters for the firehose trace exchange."""

from dataclasses import dataclass

from ..errors import ConfigError


@dataclass(frozen=True)
class TraceFilter:
    """Binding pattern handed to the broker when subscribing to traces."""

    routing_key: str

    @classmethod
    def all(cls) -> "TraceFilter":
        return cls("#")

    @classmethod
    def publish_only(cls) -> "TraceFilter":
        return cls("publish.#")

    @classmethod
    def deliver_only(cls) -> "TraceFilter":
        return cls("deliver.#")

    @classmethod
    def exchange(cls, name: str) -> "TraceFilter":
        """Publishes into a single exchange."""
        return cls(f"publish.{name}")

    @classmethod
    def queue(cls, name: str) -> "TraceFilter":
        """Deliveries out of a single queue."""
        return cls(f"deliver.{name}")

    @classmethod
    def parse(cls, text: str) -> "TraceFilter":
        """
        Parse a configuration string.

        Accepted forms: "all", "publish", "deliver", "exchange:<name>",
        "queue:<name>".

        Raises:
            ConfigError: If the string is not one of the accepted forms.
        """
        value = text.strip()
        kind, _, name = value.partition(":")
        kind = kind.lower()

        if kind in ("", "all") and not name:
            return cls.all()
        if kind == "publish" and not name:
            return cls.publish_only()
        if kind == "deliver" and not name:
            return cls.deliver_only()
        if kind == "exchange" and name:
            return cls.exchange(name)
        if kind == "queue" and name:
            return cls.queue(name)

        raise ConfigError(f"Unknown trace filter: {text!r}")
