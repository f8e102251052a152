"""
Conversation state.

A Conversation references two participant entities (it never owns them),
the shared topic state, each participant's obligations and topic
counters, the active goals and the append-only history.
"""

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Union

from ..knowledge.entity import Entity
from .goals import Goal
from .history import HistoricalMove
from .obligations import DEFAULT_TIME_TO_LIVE, ObligationQueue
from .topics import TopicCounters, TopicState


class Speaker(Enum):
    """Which of the two participants is meant."""
    PERSON0 = 0
    PERSON1 = 1

    @property
    def other(self) -> "Speaker":
        return Speaker.PERSON1 if self is Speaker.PERSON0 else Speaker.PERSON0

    @property
    def label(self) -> str:
        return f"person{self.value}"

    @classmethod
    def coerce(cls, flag: Union["Speaker", bool, int]) -> "Speaker":
        """
        Accept a Speaker, an index, or a boolean flag.

        A boolean flag of True means person 0 speaks first.
        """
        if isinstance(flag, Speaker):
            return flag
        if isinstance(flag, bool):
            return cls.PERSON0 if flag else cls.PERSON1
        return cls(flag)


@dataclass
class ParticipantState:
    """Per-participant state inside one conversation."""
    character: Entity
    obligations: ObligationQueue = field(default_factory=ObligationQueue)
    topics: TopicCounters = field(default_factory=TopicCounters)

    @property
    def name(self) -> str:
        return self.character.name


class Conversation:
    """One bounded exchange between two entities."""

    def __init__(
        self,
        initiator: Speaker,
        threshold: float,
        person0: Entity,
        person1: Entity,
        rng: Optional[random.Random] = None,
        default_urgency: int = 0,
        default_time_to_live: int = DEFAULT_TIME_TO_LIVE,
    ):
        self.initiator = initiator
        self.speaker = initiator
        self.threshold = max(0.0, min(1.0, threshold))
        self.person0 = ParticipantState(
            person0, ObligationQueue(default_urgency, default_time_to_live),
        )
        self.person1 = ParticipantState(
            person1, ObligationQueue(default_urgency, default_time_to_live),
        )
        self.topic_state = TopicState()
        self.goals: List[Goal] = []
        self.history: List[HistoricalMove] = []
        self.done = False
        self.turn = 0
        self.rng = rng or random.Random()

    def get_speaker_state(self, speaker: Speaker) -> ParticipantState:
        return self.person0 if speaker is Speaker.PERSON0 else self.person1

    def get_my_state(self) -> ParticipantState:
        """State of the participant whose turn it is."""
        return self.get_speaker_state(self.speaker)

    def get_others_state(self) -> ParticipantState:
        """State of the participant who is listening."""
        return self.get_speaker_state(self.speaker.other)

    def insert_goal(self, goal: Goal):
        self.goals.append(goal)

    def is_satisfied(self) -> bool:
        return all(goal.is_satisfied() for goal in self.goals)

    def history_iter(self) -> Iterator[HistoricalMove]:
        """Yield the moves made so far, oldest first. Each call restarts."""
        for hmove in self.history:
            yield hmove

    def last_move(self) -> Optional[HistoricalMove]:
        return self.history[-1] if self.history else None

    def __len__(self) -> int:
        return len(self.history)

    def __repr__(self) -> str:
        return (
            f"Conversation({self.person0.name!r}, {self.person1.name!r}, "
            f"turn={self.turn}, done={self.done})"
        )
