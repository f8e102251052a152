"""
Conversational obligations.

Each participant owns an ObligationQueue: at most one live obligation per
dialog-move tag, each with an urgency and a remaining time to live counted
in the owner's own turns. Moves never touch the queues directly; their
effects are collected in a MoveObligations record that the engine merges
once the move is complete.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_TIME_TO_LIVE = 3


@dataclass
class Obligation:
    """A pending duty to perform a move under ``tag``."""
    tag: str
    urgency: int = 0
    time_to_live: int = DEFAULT_TIME_TO_LIVE
    times_pushed: int = 0

    def __post_init__(self):
        self.time_to_live = max(0, self.time_to_live)
        self.times_pushed = max(0, self.times_pushed)


@dataclass
class PushedObligation:
    """A request, recorded on a move, to (re)queue an obligation."""
    tag: str
    times_pushed: int = 1
    time_to_live: Optional[int] = None
    urgency: Optional[int] = None


class ObligationQueue:
    """
    Obligations of one participant, keyed by dialog-move tag.

    Iteration and ``ordered()`` follow urgency, highest first, with ties in
    the order the tags were first queued. An obligation given a time to live
    of zero or less is already expired and is never stored.

    Args:
        default_urgency: Urgency of obligations inserted without one.
        default_time_to_live: Lifetime of obligations inserted or pushed
            without one.
    """

    def __init__(
        self,
        default_urgency: int = 0,
        default_time_to_live: int = DEFAULT_TIME_TO_LIVE,
    ):
        self.default_urgency = default_urgency
        self.default_time_to_live = default_time_to_live
        self._obligations: Dict[str, Obligation] = {}

    def insert_obligation(
        self,
        tag: str,
        urgency: Optional[int] = None,
        time_to_live: Optional[int] = None,
        times_pushed: int = 0,
    ) -> Obligation:
        """Create or replace the obligation under ``tag``."""
        if urgency is None:
            urgency = self.default_urgency
        if time_to_live is None:
            time_to_live = self.default_time_to_live
        obligation = Obligation(tag, urgency, time_to_live, times_pushed)
        if obligation.time_to_live <= 0:
            self._expire(tag)
            return obligation
        self._obligations[tag] = obligation
        logger.debug("Inserted obligation %s", obligation)
        return obligation

    def push(
        self,
        tag: str,
        times_pushed: int = 1,
        time_to_live: Optional[int] = None,
        urgency: Optional[int] = None,
    ) -> Obligation:
        """
        Re-queue an obligation.

        A missing obligation is created first. ``times_pushed`` is added to
        the count, the time to live is reset and urgency only ever rises.
        A time to live of zero or less expires the obligation instead.

        Args:
            tag: Dialog-move tag the owner is obligated to perform.
            times_pushed: Amount added to the push counter.
            time_to_live: New remaining lifetime, in the owner's turns.
                Defaults to the queue's default time to live.
            urgency: Optional urgency; the larger of this and the current
                urgency is kept.

        Returns:
            The obligation, which is no longer queued if it expired.
        """
        if time_to_live is None:
            time_to_live = self.default_time_to_live
        obligation = self._obligations.get(tag)
        if obligation is None:
            start = self.default_urgency if urgency is None else urgency
            obligation = Obligation(tag, urgency=start, time_to_live=0)
        obligation.times_pushed += times_pushed
        obligation.time_to_live = max(0, time_to_live)
        if urgency is not None:
            obligation.urgency = max(obligation.urgency, urgency)
        if obligation.time_to_live <= 0:
            self._expire(tag)
        else:
            self._obligations[tag] = obligation
        return obligation

    def _expire(self, tag: str):
        self._obligations.pop(tag, None)
        logger.debug("Obligation %s expired on arrival", tag)

    def get_obligation(self, tag: str) -> Optional[Obligation]:
        return self._obligations.get(tag)

    def is_obligated(self, tag: str) -> bool:
        return self.get_obligation(tag) is not None

    def address(self, tag: str) -> bool:
        """Remove the obligation under ``tag``. Returns whether one existed."""
        removed = self._obligations.pop(tag, None)
        if removed is not None:
            logger.debug("Addressed obligation %s", tag)
        return removed is not None

    def timestep(self, tags: Optional[Iterable[str]] = None) -> List[str]:
        """
        Age obligations by one of the owner's turns.

        Only ``tags`` are aged when given (obligations pushed during the
        turn are not), otherwise every obligation is. Obligations whose time
        to live reaches zero expire silently.

        Returns:
            Tags that expired.
        """
        if tags is None:
            tags = list(self._obligations)
        expired = []
        for tag in tags:
            obligation = self._obligations.get(tag)
            if obligation is None:
                continue
            obligation.time_to_live -= 1
            if obligation.time_to_live <= 0:
                del self._obligations[tag]
                expired.append(tag)
        if expired:
            logger.debug("Obligations expired: %s", ", ".join(expired))
        return expired

    def ordered(self) -> List[Obligation]:
        """
        Live obligations, most urgent first.

        Equal urgencies keep the order in which each tag was first queued.
        Replacing a live tag with ``insert_obligation`` or ``push`` keeps its
        old position; only a tag that was addressed or expired in between
        moves to the back.
        """
        # sorted() is stable.
        return sorted(self._obligations.values(), key=lambda o: -o.urgency)

    def tags(self) -> List[str]:
        return list(self._obligations)

    def merge(self, record: "MoveObligations"):
        """Apply the addressed tags, then the pushes, of one move."""
        for tag in record.addressed:
            self.address(tag)
        for pushed in record.pushed.values():
            self.push(pushed.tag, pushed.times_pushed, pushed.time_to_live, pushed.urgency)

    def __contains__(self, tag: str) -> bool:
        return tag in self._obligations

    def __iter__(self):
        return iter(self.ordered())

    def __len__(self) -> int:
        return len(self._obligations)

    def __repr__(self) -> str:
        return f"ObligationQueue({list(self._obligations.values())})"


@dataclass
class MoveObligations:
    """Obligations one move pushed onto and addressed for one participant."""
    pushed: Dict[str, PushedObligation] = field(default_factory=dict)
    addressed: Set[str] = field(default_factory=set)

    def push(
        self,
        tag: str,
        times_pushed: int = 1,
        time_to_live: Optional[int] = None,
        urgency: Optional[int] = None,
    ):
        """
        Record a push; pushing the same tag twice in one move accumulates.

        A missing ``time_to_live`` falls back to the owning queue's default
        when the record is merged.
        """
        existing = self.pushed.get(tag)
        if existing is None:
            self.pushed[tag] = PushedObligation(tag, times_pushed, time_to_live, urgency)
            return
        existing.times_pushed += times_pushed
        if time_to_live is not None:
            existing.time_to_live = (
                time_to_live if existing.time_to_live is None
                else max(existing.time_to_live, time_to_live)
            )
        if urgency is not None:
            existing.urgency = urgency if existing.urgency is None else max(existing.urgency, urgency)

    def address(self, tag: str):
        self.addressed.add(tag)

    def was_pushed(self, tag: str) -> bool:
        return tag in self.pushed

    def was_addressed(self, tag: str) -> bool:
        return tag in self.addressed
