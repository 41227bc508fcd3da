"""Error taxonomy for the firehose bridge."""


class FirehoseError(Exception):
    """Base class for all bridge errors."""


class ConfigError(FirehoseError):
    """Invalid configuration value."""


class ConnectError(FirehoseError):
    """Broker cannot be reached."""


class SubscribeError(FirehoseError):
    """Connected, but the trace subscription could not be established."""


class NormalizeError(FirehoseError):
    """A single trace record is malformed. Isolated to that record."""


class StopError(FirehoseError):
    """Teardown of the subscription or connection failed. Never fatal."""
