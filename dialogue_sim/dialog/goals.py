"""
Conversation goals.

A goal is a standing objective for a whole conversation. The engine asks
each goal for a ``next_step`` when picking a move, tells it about every
move made via ``made_move``, and ends the conversation once every goal
``is_satisfied``.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .conversation import Conversation, Speaker
    from .history import HistoricalMove


@dataclass(frozen=True)
class GoalMove:
    """
    A move a goal wants made.

    ``pursuer`` restricts who may make it; None means either speaker.
    """
    dialog_move: str
    pursuer: Optional["Speaker"] = None

    def agrees_with(self, speaker: "Speaker") -> bool:
        return self.pursuer is None or self.pursuer == speaker

    def satisfied_by(self, history: "HistoricalMove") -> bool:
        return self.agrees_with(history.speaker) and history.was_move_satisfied(self.dialog_move)


class Goal:
    """
    Base class for goals.

    Both hooks receive the conversation as well: ``next_step(conversation)``
    and ``made_move(conversation, history)``, so a goal can look at who is
    speaking and at either participant's state rather than at the move alone.
    """

    def next_step(self, conversation: "Conversation") -> Optional[GoalMove]:
        """Propose the next move, or None if this goal has nothing to ask for."""
        raise NotImplementedError

    def made_move(self, conversation: "Conversation", history: "HistoricalMove"):
        """Update progress with a move that was just made."""
        raise NotImplementedError

    def is_satisfied(self) -> bool:
        raise NotImplementedError


class PerformGoalMove(Goal):
    """Satisfied once ``goal_move`` has been made a single time."""

    def __init__(self, goal_move: GoalMove):
        self.goal_move = goal_move
        self.satisfied = False

    def next_step(self, conversation):
        return None if self.satisfied else self.goal_move

    def made_move(self, conversation, history):
        if self.goal_move.satisfied_by(history):
            self.satisfied = True

    def is_satisfied(self) -> bool:
        return self.satisfied

    def __repr__(self) -> str:
        return f"PerformGoalMove({self.goal_move.dialog_move!r}, satisfied={self.satisfied})"


class RepeatGoalMove(Goal):
    """
    Keeps asking for ``goal_move`` until it has been made enough times.

    ``reps`` counts completions from zero and the goal is satisfied only once
    ``reps`` exceeds ``max_reps``, so ``max_reps + 1`` completions are needed.
    """

    def __init__(self, goal_move: GoalMove, max_reps: int):
        self.goal_move = goal_move
        self.reps = 0
        self.max_reps = max(0, max_reps)

    def next_step(self, conversation):
        return None if self.is_satisfied() else self.goal_move

    def made_move(self, conversation, history):
        if self.goal_move.satisfied_by(history):
            self.reps += 1

    def is_satisfied(self) -> bool:
        return self.reps > self.max_reps

    def __repr__(self) -> str:
        return (
            f"RepeatGoalMove({self.goal_move.dialog_move!r}, "
            f"reps={self.reps}, max_reps={self.max_reps})"
        )


class GoalSequence(Goal):
    """
    Works through a list of moves, always proposing the first one left.

    Any listed move that gets made is struck off, in order or not.
    """

    def __init__(self, sequence: List[GoalMove]):
        self.sequence = list(sequence)

    def next_step(self, conversation):
        return self.sequence[0] if self.sequence else None

    def made_move(self, conversation, history):
        self.sequence = [m for m in self.sequence if not m.satisfied_by(history)]

    def is_satisfied(self) -> bool:
        return not self.sequence


class EagerGoalSequence(GoalSequence):
    """A GoalSequence that is finished outright once its last move is made."""

    def made_move(self, conversation, history):
        if self.sequence and self.sequence[-1].satisfied_by(history):
            self.sequence = []
            return
        super().made_move(conversation, history)


class ConcatGoals(Goal):
    """Pursues ``first`` and then ``second``; satisfied when both are."""

    def __init__(self, first: Goal, second: Goal):
        self.first = first
        self.second = second

    def next_step(self, conversation):
        step = self.first.next_step(conversation)
        if step is None:
            step = self.second.next_step(conversation)
        return step

    def made_move(self, conversation, history):
        self.first.made_move(conversation, history)
        self.second.made_move(conversation, history)

    def is_satisfied(self) -> bool:
        return self.first.is_satisfied() and self.second.is_satisfied()
