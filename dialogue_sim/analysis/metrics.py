"""
Metrics collection for conversation analysis.

Collects per-turn counts while a conversation runs and aggregates them
into a ConversationMetrics record once it is over.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any
from datetime import datetime
from collections import defaultdict
import json
import uuid

from ..dialog.conversation import Conversation
from ..dialog.history import HistoricalMove
from ..knowledge.model import BeliefModel


@dataclass
class ConversationMetrics:
    """Aggregated metrics for one conversation."""
    conversation_id: str
    start_time: datetime
    end_time: Optional[datetime]
    participants: List[str]
    total_turns: int
    finished: bool

    # Activity
    moves_per_speaker: Dict[str, int] = field(default_factory=dict)
    moves_per_definition: Dict[str, int] = field(default_factory=dict)
    tags_addressed: Dict[str, int] = field(default_factory=dict)

    # Obligations and topics
    obligations_pushed: int = 0
    obligations_addressed: int = 0
    topics_introduced: List[str] = field(default_factory=list)
    topics_addressed: List[str] = field(default_factory=list)

    # Knowledge
    belief_accuracy: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "participants": list(self.participants),
            "total_turns": self.total_turns,
            "finished": self.finished,
            "moves_per_speaker": dict(self.moves_per_speaker),
            "moves_per_definition": dict(self.moves_per_definition),
            "tags_addressed": dict(self.tags_addressed),
            "obligations_pushed": self.obligations_pushed,
            "obligations_addressed": self.obligations_addressed,
            "topics_introduced": list(self.topics_introduced),
            "topics_addressed": list(self.topics_addressed),
            "belief_accuracy": dict(self.belief_accuracy),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def belief_accuracy(model: BeliefModel) -> float:
    """
    Fraction of facets whose strongest belief matches the truth.

    Facets with no strongest belief count as wrong. A model about an
    entity with no facets is vacuously accurate.
    """
    total = 0
    correct = 0
    for facet, summary in model.iter_facets():
        total += 1
        if summary.strongest is not None and summary.strongest == model.truth(facet):
            correct += 1
    return correct / total if total else 1.0


class MetricsCollector:
    """
    Collects metrics while a conversation runs.

    Register ``record_move`` with ``DialogManager.on_move`` or call it
    with each HistoricalMove yourself.
    """

    def __init__(self, conversation_id: Optional[str] = None):
        self.conversation_id = conversation_id or str(uuid.uuid4())[:8]
        self.start_time = datetime.now()
        self.end_time: Optional[datetime] = None

        self._turn_count = 0
        self._moves_per_speaker: Dict[str, int] = defaultdict(int)
        self._moves_per_definition: Dict[str, int] = defaultdict(int)
        self._tags_addressed: Dict[str, int] = defaultdict(int)
        self._obligations_pushed = 0
        self._obligations_addressed = 0
        self._topics_introduced: List[str] = []
        self._topics_addressed: List[str] = []
        self._timeline: List[Dict[str, Any]] = []

    def record_move(self, conversation: Conversation, hmove: HistoricalMove) -> None:
        """Record a single turn."""
        speaker_name = conversation.get_speaker_state(hmove.speaker).name
        self._turn_count += 1
        self._moves_per_speaker[speaker_name] += 1
        self._moves_per_definition[hmove.move_id] += 1

        for tag in hmove.all_addressed_obligations():
            self._tags_addressed[tag] += 1
        for record in (hmove.person0_obligations, hmove.person1_obligations):
            self._obligations_pushed += len(record.pushed)
            self._obligations_addressed += len(record.addressed)

        for topic in hmove.topic_state.introduced_topics():
            if topic not in self._topics_introduced:
                self._topics_introduced.append(topic)
        for topic in hmove.topic_state.addressed_topics():
            if topic not in self._topics_addressed:
                self._topics_addressed.append(topic)

        self._timeline.append({
            "turn": hmove.turn,
            "speaker": speaker_name,
            "move": hmove.move_id,
            "utterance": hmove.utterance,
        })

    def finalize(self, conversation: Conversation) -> ConversationMetrics:
        """Finalize metrics collection and return aggregated metrics."""
        self.end_time = datetime.now()

        accuracy: Dict[str, float] = {}
        for holder, other in (
            (conversation.person0.character, conversation.person1.character),
            (conversation.person1.character, conversation.person0.character),
        ):
            model = holder.get_model(other.name)
            if model is not None:
                accuracy[f"{holder.name}->{other.name}"] = belief_accuracy(model)

        return ConversationMetrics(
            conversation_id=self.conversation_id,
            start_time=self.start_time,
            end_time=self.end_time,
            participants=[conversation.person0.name, conversation.person1.name],
            total_turns=self._turn_count,
            finished=conversation.done,
            moves_per_speaker=dict(self._moves_per_speaker),
            moves_per_definition=dict(self._moves_per_definition),
            tags_addressed=dict(self._tags_addressed),
            obligations_pushed=self._obligations_pushed,
            obligations_addressed=self._obligations_addressed,
            topics_introduced=list(self._topics_introduced),
            topics_addressed=list(self._topics_addressed),
            belief_accuracy=accuracy,
        )

    def get_timeline(self) -> List[Dict[str, Any]]:
        """Get the per-turn timeline."""
        return self._timeline.copy()

    def get_top_moves(self, n: int = 10) -> List[tuple]:
        """Get the most frequently realized move definitions."""
        sorted_moves = sorted(
            self._moves_per_definition.items(),
            key=lambda x: x[1],
            reverse=True,
        )
        return sorted_moves[:n]

    def export_to_csv(self, filepath: str) -> None:
        """Export the timeline to CSV."""
        import csv

        if not self._timeline:
            return

        with open(filepath, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=self._timeline[0].keys())
            writer.writeheader()
            writer.writerows(self._timeline)

    def __repr__(self) -> str:
        return f"MetricsCollector(id={self.conversation_id}, turns={self._turn_count})"
