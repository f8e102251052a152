"""
Dialog move definitions and the move graph.

A MoveDefinition is a node in a directed acyclic graph: its ``parts`` is a
sequence of alternative sets of other definitions, one of which is drawn per
part and rendered recursively. MoveGraph validates the graph, indexes it by
dialog-move tag and topic, and turns a request into an ExpansionTree:

- forward chaining fills in a node's parts top-down,
- backward chaining wraps a node that only appears as part of other nodes
  in an admissible parent, until a top-level node is reached.

Realizing a tree renders its utterance and then applies its effects to the
pending HistoricalMove, children before parents.
"""

import logging
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING, Callable, Dict, Iterable, Iterator, List, Optional, Set,
)

from ..errors import ConfigurationError, MoveCycleError

if TYPE_CHECKING:
    from .conversation import Conversation
    from .history import HistoricalMove

logger = logging.getLogger(__name__)

Precondition = Callable[["Conversation"], bool]
EditHistoricalMove = Callable[["Conversation", "HistoricalMove"], None]
Formatter = Callable[["Conversation", List[str]], str]


def literal(text: str) -> Formatter:
    """Formatter for a leaf that always says ``text``."""
    def format_literal(conversation, parts):
        return text
    return format_literal


def join_parts(conversation: "Conversation", parts: List[str]) -> str:
    """Formatter that joins rendered parts with spaces."""
    return " ".join(part for part in parts if part)


@dataclass
class MoveDefinition:
    """
    One selectable conversational act.

    Attributes:
        name: Unique identifier, used in other definitions' ``parts``.
        formatter: Builds the utterance from the rendered parts.
        dialog_moves: Tags this move can be selected under. Realizing it
            addresses these tags for the speaker.
        addressed_topics: Topics realizing this move addresses.
        precondition: Optional gate evaluated against the conversation.
        edit_historical_move: Optional effect applied to the pending move.
        parts: Ordered alternative sets of definition names.
    """
    name: str
    formatter: Formatter = join_parts
    dialog_moves: List[str] = field(default_factory=list)
    addressed_topics: List[str] = field(default_factory=list)
    precondition: Optional[Precondition] = None
    edit_historical_move: Optional[EditHistoricalMove] = None
    parts: List[List[str]] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.parts

    def check(self, conversation: "Conversation") -> bool:
        if self.precondition is None:
            return True
        return bool(self.precondition(conversation))


@dataclass
class ExpansionTree:
    """A move definition with every part resolved to a concrete sub-move."""
    definition: MoveDefinition
    parts: List["ExpansionTree"] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.definition.name

    def walk(self) -> Iterator["ExpansionTree"]:
        """Children first, then this node."""
        for part in self.parts:
            yield from part.walk()
        yield self

    def create_utterance(self, conversation: "Conversation") -> str:
        rendered = [part.create_utterance(conversation) for part in self.parts]
        return self.definition.formatter(conversation, rendered)

    def create_historical(self, conversation: "Conversation", hmove: "HistoricalMove"):
        """Apply this tree's effects to ``hmove``, children before parents."""
        for part in self.parts:
            part.create_historical(conversation, hmove)

        record = hmove.get_speaker_obligations(conversation.speaker)
        for tag in self.definition.dialog_moves:
            record.address(tag)
        for topic in self.definition.addressed_topics:
            hmove.topic_state.address(topic)
        hmove.realized_moves.append(self.definition.name)

        if self.definition.edit_historical_move is not None:
            self.definition.edit_historical_move(conversation, hmove)


class MoveGraph:
    """Validated, indexed collection of move definitions."""

    def __init__(self, definitions: Iterable[MoveDefinition] = ()):
        self._definitions: Dict[str, MoveDefinition] = {}
        self._by_move: Dict[str, List[str]] = {}
        self._by_topic: Dict[str, List[str]] = {}
        self._apart_of: Dict[str, List[str]] = {}
        for definition in definitions:
            if definition.name in self._definitions:
                raise ConfigurationError(f"duplicate move definition '{definition.name}'")
            self._definitions[definition.name] = definition
        self.build()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def build(self):
        """Validate the graph and rebuild the indexes."""
        self._validate()
        self._by_move = {}
        self._by_topic = {}
        self._apart_of = {}
        for name, definition in self._definitions.items():
            for tag in definition.dialog_moves:
                self._by_move.setdefault(tag, []).append(name)
            for topic in definition.addressed_topics:
                self._by_topic.setdefault(topic, []).append(name)
            for alternatives in definition.parts:
                for child in alternatives:
                    parents = self._apart_of.setdefault(child, [])
                    if name not in parents:
                        parents.append(name)
        logger.debug("Built move graph with %d definitions", len(self._definitions))

    def _validate(self):
        for name, definition in self._definitions.items():
            for index, alternatives in enumerate(definition.parts):
                if not alternatives:
                    raise ConfigurationError(
                        f"part {index} of move '{name}' has no alternatives"
                    )
                for child in alternatives:
                    if child not in self._definitions:
                        raise ConfigurationError(
                            f"move '{name}' refers to unknown move '{child}'"
                        )

        visiting: Set[str] = set()
        finished: Set[str] = set()

        def visit(name: str, path: List[str]):
            if name in finished:
                return
            if name in visiting:
                cycle = path[path.index(name):] + [name]
                raise ConfigurationError(f"cyclic move references: {' -> '.join(cycle)}")
            visiting.add(name)
            path.append(name)
            for alternatives in self._definitions[name].parts:
                for child in alternatives:
                    visit(child, path)
            path.pop()
            visiting.discard(name)
            finished.add(name)

        for name in self._definitions:
            visit(name, [])

    def insert(self, definition: MoveDefinition) -> Optional[MoveDefinition]:
        """
        Add or replace a definition, returning the one it replaced.

        The graph is restored if the result does not validate.
        """
        previous = self._definitions.get(definition.name)
        self._definitions[definition.name] = definition
        try:
            self.build()
        except ConfigurationError:
            if previous is None:
                del self._definitions[definition.name]
            else:
                self._definitions[definition.name] = previous
            raise
        return previous

    def remove(self, name: str) -> Optional[MoveDefinition]:
        """Remove a definition, returning it, or None if it was not present."""
        removed = self._definitions.pop(name, None)
        if removed is None:
            return None
        try:
            self.build()
        except ConfigurationError:
            self._definitions[name] = removed
            raise
        return removed

    def get(self, name: str) -> Optional[MoveDefinition]:
        return self._definitions.get(name)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def addressing_move(self, tag: str) -> List[str]:
        """Names of definitions selectable under ``tag``, in registration order."""
        return list(self._by_move.get(tag, []))

    def addressing_topic(self, topic: str) -> List[str]:
        return list(self._by_topic.get(topic, []))

    def parents_of(self, name: str) -> List[str]:
        return list(self._apart_of.get(name, []))

    def is_top_level(self, name: str) -> bool:
        return not self._apart_of.get(name)

    def top_level_moves(self) -> List[MoveDefinition]:
        return [d for name, d in self._definitions.items() if self.is_top_level(name)]

    def __contains__(self, name: str) -> bool:
        return name in self._definitions

    def __iter__(self) -> Iterator[MoveDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    # ------------------------------------------------------------------
    # Expansion
    # ------------------------------------------------------------------

    def expand_dialog_move(
        self, conversation: "Conversation", tag: str,
    ) -> Optional[ExpansionTree]:
        """Tree for a top-level move addressing ``tag``, or None."""
        return self._expand_satisfying(conversation, self.addressing_move(tag))

    def expand_topic(
        self, conversation: "Conversation", topic: str,
    ) -> Optional[ExpansionTree]:
        """Tree for a top-level move addressing ``topic``, or None."""
        return self._expand_satisfying(conversation, self.addressing_topic(topic))

    def expand_move(
        self, conversation: "Conversation", name: str,
    ) -> Optional[ExpansionTree]:
        """Tree rooted at the named definition if it is admissible, else None."""
        definition = self._definitions.get(name)
        if definition is None or not definition.check(conversation):
            return None
        tree = ExpansionTree(definition)
        if not self.forward_chain(conversation, tree, {name}):
            return None
        return tree

    def _expand_satisfying(
        self, conversation: "Conversation", names: List[str],
    ) -> Optional[ExpansionTree]:
        conversation.rng.shuffle(names)
        for name in names:
            tree = self.expand_move(conversation, name)
            if tree is None:
                continue
            tree = self.backward_chain(conversation, tree)
            if tree is not None:
                return tree
        return None

    def forward_chain(
        self,
        conversation: "Conversation",
        tree: ExpansionTree,
        path: Set[str],
        skip_part: Optional[int] = None,
    ) -> bool:
        """
        Resolve every part of ``tree`` (except ``skip_part``) in place.

        Alternatives are tried in random order; the first whose precondition
        holds and which itself expands is taken.

        Raises:
            MoveCycleError: If a sub-move is already on the expansion path.
        """
        for index, alternatives in enumerate(tree.definition.parts):
            if index == skip_part:
                continue
            choices = list(alternatives)
            conversation.rng.shuffle(choices)
            chosen = None
            for choice in choices:
                if choice in path:
                    raise MoveCycleError(
                        f"move '{choice}' reached again while expanding '{tree.name}'"
                    )
                definition = self._definitions[choice]
                if not definition.check(conversation):
                    continue
                subtree = ExpansionTree(definition)
                if self.forward_chain(conversation, subtree, path | {choice}):
                    chosen = subtree
                    break
            if chosen is None:
                return False
            tree.parts.append(chosen)
        return True

    def backward_chain(
        self, conversation: "Conversation", tree: ExpansionTree,
    ) -> Optional[ExpansionTree]:
        """Wrap ``tree`` in admissible parents until it is top-level, or None."""
        while not self.is_top_level(tree.name):
            wrapped = None
            parents = self.parents_of(tree.name)
            conversation.rng.shuffle(parents)
            for parent_name in parents:
                parent = self._definitions[parent_name]
                if not parent.check(conversation):
                    continue
                for index, alternatives in enumerate(parent.parts):
                    if tree.name not in alternatives:
                        continue
                    candidate = ExpansionTree(parent)
                    if self.forward_chain(conversation, candidate, {parent_name}, skip_part=index):
                        candidate.parts.insert(index, tree)
                        wrapped = candidate
                        break
                if wrapped is not None:
                    break
            if wrapped is None:
                return None
            tree = wrapped
        return tree
