"""Dialog layer - obligations, topics, goals, move graph and the conversation engine."""

from .obligations import MoveObligations, Obligation, ObligationQueue, PushedObligation
from .topics import TopicCounters, TopicMetadata, TopicState
from .goals import (
    ConcatGoals,
    EagerGoalSequence,
    Goal,
    GoalMove,
    GoalSequence,
    PerformGoalMove,
    RepeatGoalMove,
)
from .history import HistoricalMove
from .moves import ExpansionTree, MoveDefinition, MoveGraph, join_parts, literal
from .conversation import Conversation, ParticipantState, Speaker
from .manager import DialogConfig, DialogManager

__all__ = [
    "MoveObligations",
    "Obligation",
    "ObligationQueue",
    "PushedObligation",
    "TopicCounters",
    "TopicMetadata",
    "TopicState",
    "ConcatGoals",
    "EagerGoalSequence",
    "Goal",
    "GoalMove",
    "GoalSequence",
    "PerformGoalMove",
    "RepeatGoalMove",
    "HistoricalMove",
    "ExpansionTree",
    "MoveDefinition",
    "MoveGraph",
    "join_parts",
    "literal",
    "Conversation",
    "ParticipantState",
    "Speaker",
    "DialogConfig",
    "DialogManager",
]
