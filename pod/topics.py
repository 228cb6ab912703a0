"""Closed sets of topics and publish modes."""

from __future__ import annotations

from enum import Enum

from .errors import InvalidTopic


class Topic(str, Enum):
    GENERAL = "general"
    BEAUTY = "beauty"
    FOOD = "food"
    TRAVEL = "travel"
    SPORTS = "sports"
    ENTERTAINMENT = "entertainment"

    @classmethod
    def parse(cls, value: str | Topic | None) -> Topic:
        """Return the matching topic or raise ``InvalidTopic``."""
        if isinstance(value, Topic):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidTopic(invalid_topic_message()) from None


class Mode(str, Enum):
    LIGHT = "light"
    NORMAL = "normal"
    HEAVY = "heavy"

    @classmethod
    def normalize(cls, value: str | Mode | None) -> Mode:
        """Map absent or unknown modes to ``NORMAL``."""
        if isinstance(value, Mode):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.NORMAL


DEFAULT_MODE = Mode.NORMAL


def invalid_topic_message() -> str:
    allowed = ",".join(topic.value for topic in Topic)
    return f"Invalid topic. Allowed topics on this server are : {allowed}"
