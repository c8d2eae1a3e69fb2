"""
Process-wide play announcements.

Independent playback sessions never hold references to each other. When
one starts producing sound it publishes the track id on a channel, and
every other subscriber decides whether to pause itself.
"""

from typing import Callable, NamedTuple, Optional

from loguru import logger


class PlayAnnouncement(NamedTuple):
    """A session just started playing track_id.

    origin is the publishing session's id, or None for external publishers.
    """

    track_id: str
    origin: Optional[str] = None


Handler = Callable[[PlayAnnouncement], None]


class BroadcastChannel:
    """Fire-and-forget publish/subscribe of play announcements."""

    def __init__(self, name: str = "playback"):
        self.name = name
        self._handlers: list[Handler] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register handler and return a function that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(handler)

        return unsubscribe

    def unsubscribe(self, handler: Handler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, track_id: str, origin: Optional[str] = None) -> None:
        """Deliver an announcement to every current subscriber.

        A failing handler is logged and skipped; the rest still receive it.
        """
        announcement = PlayAnnouncement(track_id=track_id, origin=origin)
        logger.debug(
            f"[{self.name}] publish track={track_id} origin={origin} "
            f"subscribers={len(self._handlers)}"
        )

        # Snapshot: handlers may unsubscribe (or subscribe) while we deliver
        for handler in list(self._handlers):
            try:
                handler(announcement)
            except Exception:
                logger.exception(f"[{self.name}] announcement handler failed: {handler!r}")


# Singleton instance
playback_channel = BroadcastChannel()
