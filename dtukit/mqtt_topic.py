"""MQTT topic filter matching and dispatch of messages to subscribers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

MessageCallback = Callable[[Any, str, bytes, int, int], None]

_WILDCARDS = ("+", "#")


class InvalidTopicError(ValueError):
    """A topic or subscription filter is malformed."""


@dataclass
class CallbackFilter:
    """A subscription filter with the callback to run on a match."""

    topic: str
    qos: int
    callback: MessageCallback


def _char(text: str, index: int) -> str:
    return text[index] if index < len(text) else ""


def _check_topic_rest(topic: str, t: int) -> None:
    if any(c in _WILDCARDS for c in topic[t:]):
        raise InvalidTopicError(f"wildcard in topic {topic!r}")


def topic_matches_sub(sub: str, topic: str) -> bool:
    """Tell whether ``topic`` matches the subscription filter ``sub``.

    Raises InvalidTopicError for an empty or malformed filter or topic.
    """
    if not sub or not topic:
        raise InvalidTopicError("empty topic or subscription")

    if (sub[0] == "$") != (topic[0] == "$"):
        return False

    s = 0
    t = 0
    while s < len(sub):
        if _char(topic, t) in _WILDCARDS:
            raise InvalidTopicError(f"wildcard in topic {topic!r}")

        if t >= len(topic) or sub[s] != topic[t]:
            if sub[s] == "+":
                if s > 0 and sub[s - 1] != "/":
                    raise InvalidTopicError(f"bad '+' in {sub!r}")
                if _char(sub, s + 1) not in ("", "/"):
                    raise InvalidTopicError(f"bad '+' in {sub!r}")
                s += 1
                while t < len(topic) and topic[t] != "/":
                    if topic[t] in _WILDCARDS:
                        raise InvalidTopicError(f"wildcard in topic {topic!r}")
                    t += 1
                if t >= len(topic) and s >= len(sub):
                    return True
            elif sub[s] == "#":
                if s > 0 and sub[s - 1] != "/":
                    raise InvalidTopicError(f"bad '#' in {sub!r}")
                if s + 1 < len(sub):
                    raise InvalidTopicError(f"'#' not last in {sub!r}")
                _check_topic_rest(topic, t)
                return True
            else:
                # e.g. foo/bar matching foo/+/#
                if (
                    t >= len(topic)
                    and s > 0
                    and sub[s - 1] == "+"
                    and sub[s] == "/"
                    and _char(sub, s + 1) == "#"
                ):
                    return True
                for i in range(s, len(sub)):
                    if sub[i] == "#" and i + 1 < len(sub):
                        raise InvalidTopicError(f"'#' not last in {sub!r}")
                return False
        else:
            if t + 1 >= len(topic):
                # e.g. foo matching foo/#
                if _char(sub, s + 1) == "/" and _char(sub, s + 2) == "#" and s + 3 >= len(sub):
                    return True
            s += 1
            t += 1
            if s >= len(sub) and t >= len(topic):
                return True
            if t >= len(topic) and sub[s] == "+" and s + 1 >= len(sub):
                if s > 0 and sub[s - 1] != "/":
                    raise InvalidTopicError(f"bad '+' in {sub!r}")
                return True

    _check_topic_rest(topic, t)
    return False


class MqttSubscribeParser:
    """Dispatches incoming messages to callbacks whose filters match."""

    def __init__(self) -> None:
        self._callbacks: list[CallbackFilter] = []

    @property
    def callbacks(self) -> list[CallbackFilter]:
        """A copy of the registered filters, in registration order."""
        return list(self._callbacks)

    def register_callback(self, topic: str, qos: int, callback: MessageCallback) -> None:
        """Add a callback for messages matching the filter ``topic``."""
        self._callbacks.append(CallbackFilter(topic, qos, callback))

    def unregister_callback(self, topic: str) -> None:
        """Remove every callback registered for exactly this filter."""
        self._callbacks = [cb for cb in self._callbacks if cb.topic != topic]

    def handle_message(
        self, properties: Any, topic: str, payload: bytes, index: int, total: int
    ) -> None:
        """Run each callback whose filter matches; malformed filters are skipped."""
        for cb in list(self._callbacks):
            try:
                matched = topic_matches_sub(cb.topic, topic)
            except InvalidTopicError:
                continue
            if matched:
                cb.callback(properties, topic, payload, index, total)