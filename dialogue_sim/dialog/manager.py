"""
Turn-based conversation engine.

Runs conversations between two entities over a MoveGraph. Each call to
``step_conversation`` makes exactly one move for the current speaker:

1. Obligations the speaker holds, most urgent first
2. Moves requested by goals, in goal order
3. Moves addressing topics that are introduced but not yet addressed
4. A weighted draw over every admissible top-level move

The first tier that yields an admissible move wins. The move's effects are
merged into the conversation, goals are updated, and the turn passes to the
other participant.
"""

import logging
import random
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Union

from ..errors import ConversationFinishedError, ConversationStalledError
from ..knowledge.entity import Entity
from .conversation import Conversation, Speaker
from .history import HistoricalMove
from .moves import ExpansionTree, MoveDefinition, MoveGraph
from .obligations import DEFAULT_TIME_TO_LIVE

logger = logging.getLogger(__name__)

Initializer = Callable[[Conversation], None]
MoveCallback = Callable[[Conversation, HistoricalMove], None]


@dataclass
class DialogConfig:
    """Configuration for a DialogManager."""
    # Random seed for reproducibility
    seed: Optional[int] = None

    # Weight given to free moves that do not match the requested tag
    default_threshold: float = 0.2

    # Urgency and lifetime of obligations queued without one
    default_urgency: int = 0
    default_time_to_live: int = DEFAULT_TIME_TO_LIVE

    def __post_init__(self):
        self.default_threshold = max(0.0, min(1.0, self.default_threshold))
        self.default_urgency = max(0, self.default_urgency)
        self.default_time_to_live = max(1, self.default_time_to_live)


class DialogManager:
    """
    Engine driving conversations over a set of move definitions.

    Initializers run against every new conversation and seed its
    obligations and goals.
    """

    def __init__(
        self,
        move_definitions: Union[MoveGraph, Iterable[MoveDefinition]],
        initializers: Sequence[Initializer] = (),
        config: Optional[DialogConfig] = None,
    ):
        self.config = config or DialogConfig()
        self._rng = random.Random(self.config.seed)
        if isinstance(move_definitions, MoveGraph):
            self.graph = move_definitions
        else:
            self.graph = MoveGraph(move_definitions)
        self.initializers: List[Initializer] = list(initializers)
        self._on_move: List[MoveCallback] = []

    # ------------------------------------------------------------------
    # Move graph editing
    # ------------------------------------------------------------------

    def insert_move(self, definition: MoveDefinition) -> Optional[MoveDefinition]:
        return self.graph.insert(definition)

    def remove_move(self, name: str) -> Optional[MoveDefinition]:
        return self.graph.remove(name)

    def get_move(self, name: str) -> Optional[MoveDefinition]:
        return self.graph.get(name)

    def add_initializer(self, initializer: Initializer):
        self.initializers.append(initializer)

    def on_move(self, callback: MoveCallback):
        """Register a callback run after every turn."""
        self._on_move.append(callback)

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def new_conversation(
        self,
        initiator: Union[Speaker, bool, int],
        threshold: Optional[float],
        person0: Entity,
        person1: Entity,
        rng: Optional[random.Random] = None,
    ) -> Conversation:
        """
        Start a conversation and run the initializers against it.

        Args:
            initiator: Who speaks first. A boolean flag of True means person 0.
            threshold: Weight of free moves that do not match the requested
                tag; None uses the configured default.
            person0: First participant.
            person1: Second participant.
            rng: Random source for this conversation; derived from the
                manager's own source when omitted.

        Returns:
            The new conversation.
        """
        if threshold is None:
            threshold = self.config.default_threshold
        if rng is None:
            rng = random.Random(self._rng.getrandbits(64))
        conversation = Conversation(
            Speaker.coerce(initiator), threshold, person0, person1, rng,
            self.config.default_urgency, self.config.default_time_to_live,
        )
        for initializer in self.initializers:
            initializer(conversation)
        logger.info(
            "Started conversation between %s and %s (%s speaks first, %d goals)",
            person0.name, person1.name, conversation.speaker.label, len(conversation.goals),
        )
        return conversation

    def step_conversation(
        self,
        conversation: Conversation,
        requested_move_tag: Optional[str] = None,
    ) -> HistoricalMove:
        """
        Make one move for the current speaker.

        Args:
            conversation: A conversation that is not done.
            requested_move_tag: Optional tag the free draw should favour.

        Returns:
            The move that was appended to the history.

        Raises:
            ConversationFinishedError: If the conversation is already done.
            ConversationStalledError: If the speaker has no admissible move.
        """
        if conversation.done:
            raise ConversationFinishedError(
                f"conversation between {conversation.person0.name} and "
                f"{conversation.person1.name} is already done"
            )

        speaker = conversation.speaker
        my_state = conversation.get_my_state()
        held_before = my_state.obligations.tags()

        selected = self._select_move(conversation, requested_move_tag)
        if selected is None:
            raise ConversationStalledError(
                f"{my_state.name} has no admissible move at turn {conversation.turn}"
            )
        tag, tree = selected

        hmove = self._realize(conversation, tree, tag)

        # Merge the move's effects into the conversation.
        conversation.topic_state.merge(hmove.topic_state)
        my_state.topics.record(
            hmove.topic_state.introduced_topics(),
            hmove.topic_state.addressed_topics(),
        )
        conversation.person0.obligations.merge(hmove.person0_obligations)
        conversation.person1.obligations.merge(hmove.person1_obligations)
        conversation.history.append(hmove)

        # Obligations re-pushed during this move start their lifetime afresh.
        repushed = hmove.get_my_obligations().pushed
        my_state.obligations.timestep(t for t in held_before if t not in repushed)

        for goal in conversation.goals:
            goal.made_move(conversation, hmove)
        conversation.done = conversation.is_satisfied()

        conversation.turn += 1
        conversation.speaker = speaker.other

        logger.debug("Turn %d: %s", hmove.turn, hmove)
        if conversation.done:
            logger.info(
                "Conversation between %s and %s finished after %d turns",
                conversation.person0.name, conversation.person1.name, len(conversation.history),
            )

        for callback in self._on_move:
            callback(conversation, hmove)
        return hmove

    def run_conversation(
        self,
        conversation: Conversation,
        requested_move_tag: Optional[str] = None,
        max_turns: int = 100,
    ) -> List[HistoricalMove]:
        """Step until done or ``max_turns`` moves were made; returns the new moves."""
        made = []
        while not conversation.done and len(made) < max_turns:
            made.append(self.step_conversation(conversation, requested_move_tag))
        if not conversation.done:
            logger.warning("Conversation stopped after %d turns without finishing", max_turns)
        return made

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _select_move(self, conversation, requested_move_tag):
        """Return ``(tag, tree)`` for the chosen move, or None."""
        speaker = conversation.speaker

        for obligation in conversation.get_my_state().obligations.ordered():
            tree = self.graph.expand_dialog_move(conversation, obligation.tag)
            if tree is not None:
                logger.debug("%s fulfils obligation %s", speaker.label, obligation.tag)
                return obligation.tag, tree

        for goal in conversation.goals:
            step = goal.next_step(conversation)
            if step is None or not step.agrees_with(speaker):
                continue
            tree = self.graph.expand_dialog_move(conversation, step.dialog_move)
            if tree is not None:
                logger.debug("%s pursues goal move %s", speaker.label, step.dialog_move)
                return step.dialog_move, tree

        pending = conversation.topic_state.pending_topics()
        conversation.rng.shuffle(pending)
        for topic in pending:
            tree = self.graph.expand_topic(conversation, topic)
            if tree is not None:
                logger.debug("%s addresses topic %s", speaker.label, topic)
                return None, tree

        return self._free_draw(conversation, requested_move_tag)

    def _free_draw(self, conversation, requested_move_tag):
        candidates: List[ExpansionTree] = []
        weights: List[float] = []
        for definition in self.graph.top_level_moves():
            if not definition.dialog_moves:
                continue
            tree = self.graph.expand_move(conversation, definition.name)
            if tree is None:
                continue
            if requested_move_tag is None or requested_move_tag in definition.dialog_moves:
                weight = 1.0
            else:
                weight = conversation.threshold
            candidates.append(tree)
            weights.append(weight)

        if not candidates or sum(weights) <= 0:
            return None
        tree = conversation.rng.choices(candidates, weights=weights, k=1)[0]
        logger.debug("%s draws free move %s", conversation.speaker.label, tree.name)
        tag = requested_move_tag if requested_move_tag in tree.definition.dialog_moves else None
        return tag, tree

    def _realize(self, conversation, tree, tag) -> HistoricalMove:
        hmove = HistoricalMove(
            speaker=conversation.speaker,
            move_id=tree.name,
            dialog_move=tag,
            turn=conversation.turn,
        )
        hmove.utterance = tree.create_utterance(conversation)
        tree.create_historical(conversation, hmove)
        return hmove
