"""MQTT topic filter matching and subscription dispatch."""

from dataclasses import dataclass
from typing import Any, Callable, List

MessageCallback = Callable[[Any, str, bytes], Any]


class InvalidTopicError(ValueError):
    """A subscription filter or topic name is malformed."""


def _at(text: str, index: int) -> str:
    return text[index] if index < len(text) else ""


def _check_no_wildcards(topic: str, start: int) -> None:
    if any(char in "+#" for char in topic[start:]):
        raise InvalidTopicError(f"wildcard in topic: {topic!r}")


def topic_matches_sub(sub: str, topic: str) -> bool:
    """Whether ``topic`` matches the subscription filter ``sub``.

    Raises InvalidTopicError if either argument is empty or malformed.
    """
    if not sub or not topic:
        raise InvalidTopicError("empty subscription or topic")

    if (sub[0] == "$") != (topic[0] == "$"):
        return False

    si = ti = 0
    while _at(sub, si):
        tc = _at(topic, ti)
        if tc in ("+", "#"):
            raise InvalidTopicError(f"wildcard in topic: {topic!r}")
        sc = sub[si]
        if sc != tc or not tc:
            if sc == "+":
                if si > 0 and sub[si - 1] != "/":
                    raise InvalidTopicError(f"bad '+' in subscription: {sub!r}")
                if _at(sub, si + 1) not in ("", "/"):
                    raise InvalidTopicError(f"bad '+' in subscription: {sub!r}")
                si += 1
                while _at(topic, ti) not in ("", "/"):
                    if topic[ti] in "+#":
                        raise InvalidTopicError(f"wildcard in topic: {topic!r}")
                    ti += 1
                if not _at(topic, ti) and not _at(sub, si):
                    return True
            elif sc == "#":
                if si > 0 and sub[si - 1] != "/":
                    raise InvalidTopicError(f"bad '#' in subscription: {sub!r}")
                if _at(sub, si + 1):
                    raise InvalidTopicError(f"'#' not last in subscription: {sub!r}")
                _check_no_wildcards(topic, ti)
                return True
            else:
                if (
                    not tc
                    and si > 0
                    and sub[si - 1] == "+"
                    and sc == "/"
                    and _at(sub, si + 1) == "#"
                ):
                    return True
                while _at(sub, si):
                    if sub[si] == "#" and _at(sub, si + 1):
                        raise InvalidTopicError(
                            f"'#' not last in subscription: {sub!r}"
                        )
                    si += 1
                return False
        else:
            if not _at(topic, ti + 1):
                if (
                    _at(sub, si + 1) == "/"
                    and _at(sub, si + 2) == "#"
                    and not _at(sub, si + 3)
                ):
                    return True
            si += 1
            ti += 1
            if not _at(sub, si) and not _at(topic, ti):
                return True
            if not _at(topic, ti) and _at(sub, si) == "+" and not _at(sub, si + 1):
                if si > 0 and sub[si - 1] != "/":
                    raise InvalidTopicError(f"bad '+' in subscription: {sub!r}")
                return True

    _check_no_wildcards(topic, ti)
    return False


@dataclass
class Subscription:
    """A registered topic filter with its QoS and callback."""

    topic: str
    qos: int
    callback: MessageCallback


class SubscribeParser:
    """Dispatches incoming messages to the callbacks whose filters match."""

    def __init__(self) -> None:
        self._subscriptions: List[Subscription] = []

    def register_callback(self, topic: str, qos: int, callback: MessageCallback) -> None:
        """Add a callback for messages matching ``topic``."""
        self._subscriptions.append(Subscription(topic, qos, callback))

    def unregister_callback(self, topic: str) -> None:
        """Remove every callback registered under exactly ``topic``."""
        self._subscriptions = [s for s in self._subscriptions if s.topic != topic]

    def handle_message(self, properties: Any, topic: str, payload: bytes) -> None:
        """Call every callback whose filter matches ``topic``."""
        for subscription in list(self._subscriptions):
            try:
                matched = topic_matches_sub(subscription.topic, topic)
            except InvalidTopicError:
                continue
            if matched:
                subscription.callback(properties, topic, payload)

    def subscriptions(self) -> List[Subscription]:
        """A copy of the registered subscriptions, in registration order."""
        return list(self._subscriptions)