"""Notice feed registry.

Defaults to the in-memory feed; an email or messaging integration plugs in
through set_feed().
"""

from checkout.notices.port import NoticeFeedPort, StatusNotice

__all__ = ["StatusNotice", "get_feed", "set_feed", "reset_feed"]

_current_feed: NoticeFeedPort | None = None


def get_feed() -> NoticeFeedPort:
    global _current_feed
    if _current_feed is None:
        from checkout.notices.memory_feed import InMemoryNoticeFeed

        _current_feed = InMemoryNoticeFeed()
    return _current_feed


def set_feed(feed: NoticeFeedPort) -> None:
    global _current_feed
    _current_feed = feed


def reset_feed() -> None:
    global _current_feed
    _current_feed = None
