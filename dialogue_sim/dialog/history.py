"""
Historical moves: the record of one realized turn.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Set

from .obligations import MoveObligations
from .topics import TopicState

if TYPE_CHECKING:
    from .conversation import Speaker


@dataclass
class HistoricalMove:
    """
    One turn of a conversation.

    While a move is being built its effects edit this record (obligations
    pushed and addressed per participant, topics introduced and addressed);
    the engine merges them into the conversation once the move is complete.
    """
    speaker: "Speaker"
    move_id: str
    dialog_move: Optional[str] = None
    utterance: str = ""
    turn: int = 0
    realized_moves: List[str] = field(default_factory=list)
    person0_obligations: MoveObligations = field(default_factory=MoveObligations)
    person1_obligations: MoveObligations = field(default_factory=MoveObligations)
    topic_state: TopicState = field(default_factory=TopicState)

    @property
    def words(self) -> str:
        return self.utterance

    def get_speaker_obligations(self, speaker: "Speaker") -> MoveObligations:
        if speaker.value == 0:
            return self.person0_obligations
        return self.person1_obligations

    def get_my_obligations(self) -> MoveObligations:
        """Obligation record of the participant who made this move."""
        return self.get_speaker_obligations(self.speaker)

    def get_others_obligations(self) -> MoveObligations:
        """Obligation record of the participant who did not make this move."""
        return self.get_speaker_obligations(self.speaker.other)

    def all_addressed_obligations(self) -> Set[str]:
        return self.person0_obligations.addressed | self.person1_obligations.addressed

    def was_move_satisfied(self, dialog_move: str) -> bool:
        """True if this move addressed ``dialog_move`` for either participant."""
        return dialog_move in self.all_addressed_obligations()

    def __str__(self) -> str:
        return f"{self.speaker.label}: {self.utterance}"
