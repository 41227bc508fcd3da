"""Tests for PresenceRegistry."""

from firehose.presence import PresenceChange, PresenceRegistry


class TestPresenceRegistry:
    """Tests for viewer counting and edge detection."""

    def test_connect_edges(self):
        """Test that only the first connect reports a transition."""
        registry = PresenceRegistry()

        assert registry.on_connect() == PresenceChange(count=1, transitioned=True)
        assert registry.on_connect() == PresenceChange(count=2, transitioned=False)
        assert registry.count == 2

    def test_disconnect_edges(self):
        """Test that only the last disconnect reports a transition."""
        registry = PresenceRegistry()
        registry.on_connect()
        registry.on_connect()

        assert registry.on_disconnect() == PresenceChange(count=1, transitioned=False)
        assert registry.on_disconnect() == PresenceChange(count=0, transitioned=True)

    def test_unmatched_disconnect_never_negative(self):
        """Test that a disconnect at zero stays at zero without an edge."""
        registry = PresenceRegistry()

        assert registry.on_disconnect() == PresenceChange(count=0, transitioned=False)
        assert registry.on_connect() == PresenceChange(count=1, transitioned=True)
