"""
Topic tracking.

TopicState is shared by both participants of one conversation. Every
participant also keeps TopicMetadata counters so moves can ask whether
*they* have already addressed a topic.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

logger = logging.getLogger(__name__)


@dataclass
class TopicFlags:
    introduced: bool = False
    addressed: bool = False


class TopicState:
    """Introduced/addressed flags per topic."""

    def __init__(self):
        self._topics: Dict[str, TopicFlags] = {}

    def _flags(self, topic: str) -> TopicFlags:
        flags = self._topics.get(topic)
        if flags is None:
            flags = TopicFlags()
            self._topics[topic] = flags
        return flags

    def is_introduced(self, topic: str) -> bool:
        flags = self._topics.get(topic)
        return flags is not None and flags.introduced

    def is_addressed(self, topic: str) -> bool:
        flags = self._topics.get(topic)
        return flags is not None and flags.addressed

    def can_be_introduced(self, topic: str) -> bool:
        return not self.is_introduced(topic)

    def can_be_addressed(self, topic: str) -> bool:
        return self.is_introduced(topic) and not self.is_addressed(topic)

    def introduce(self, topic: str):
        """Mark ``topic`` introduced. Introducing it again is logged, not raised."""
        flags = self._flags(topic)
        if flags.introduced:
            logger.warning("Topic %r was already introduced", topic)
        flags.introduced = True

    def address(self, topic: str):
        self._flags(topic).addressed = True

    def pending_topics(self) -> List[str]:
        """Topics that are introduced but not yet addressed, oldest first."""
        return [
            topic for topic, flags in self._topics.items()
            if flags.introduced and not flags.addressed
        ]

    def introduced_topics(self) -> List[str]:
        return [topic for topic, flags in self._topics.items() if flags.introduced]

    def addressed_topics(self) -> List[str]:
        return [topic for topic, flags in self._topics.items() if flags.addressed]

    def merge(self, other: "TopicState"):
        """Fold another state's flags into this one."""
        for topic, flags in other._topics.items():
            mine = self._flags(topic)
            mine.introduced = mine.introduced or flags.introduced
            mine.addressed = mine.addressed or flags.addressed

    def topics(self) -> List[str]:
        return list(self._topics)

    def __repr__(self) -> str:
        return f"TopicState({self._topics})"


@dataclass
class TopicMetadata:
    """How often one participant has introduced and addressed a topic."""
    times_introduced: int = 0
    times_addressed: int = 0


@dataclass
class TopicCounters:
    """Per-participant topic counters."""
    topics: Dict[str, TopicMetadata] = field(default_factory=dict)

    def get(self, topic: str) -> TopicMetadata:
        """Counters for ``topic``; an untouched topic reads as all zeros."""
        return self.topics.get(topic, TopicMetadata())

    def record(self, introduced: Iterable[str], addressed: Iterable[str]):
        for topic in introduced:
            self.topics.setdefault(topic, TopicMetadata()).times_introduced += 1
        for topic in addressed:
            self.topics.setdefault(topic, TopicMetadata()).times_addressed += 1
