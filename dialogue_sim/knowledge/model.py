"""
Belief models.

A belief model is what one entity (the holder) has gathered about another
(the one it is regarding), organised as one EvidenceSet per facet. A
reflexive model is about its holder; an evidence model is about someone
else and can be misremembered over time.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from .entity import Entity
from .evidence import EvidenceItem, EvidenceKind, EvidenceSet
from .facets import Facet, Value

logger = logging.getLogger(__name__)


@dataclass
class FacetSummary:
    """Derived state of one facet: totals per value and the strongest value."""
    total_strength: Dict[Value, float]
    strongest: Optional[Value]


class BeliefModel:
    """
    Evidence held by ``holder`` about ``regarding``.

    Every facet relevant to ``regarding`` has an EvidenceSet from the start,
    possibly empty.
    """

    def __init__(self, holder: Entity, regarding: Entity):
        self.holder = holder
        self.regarding = regarding
        self.evidence: Dict[str, EvidenceSet] = {
            facet.name: EvidenceSet() for facet in regarding.relevant_facets()
        }

    @property
    def is_reflexive(self) -> bool:
        return self.holder is self.regarding

    def insert(self, evidence: EvidenceItem):
        """
        Append evidence to the set of the facet it asserts.

        Evidence for a facet the regarded entity does not have is kept in a
        set of its own and reported, but is never rejected.
        """
        facet_name = evidence.value.facet_name
        evidence_set = self.evidence.get(facet_name)
        if evidence_set is None:
            logger.warning(
                "%s inserted evidence about %s for facet %r, which is not relevant to them",
                self.holder.name, self.regarding.name, facet_name,
            )
            evidence_set = EvidenceSet()
            self.evidence[facet_name] = evidence_set
        evidence_set.insert(evidence)

    def recompute_total_strengths(self):
        for evidence_set in self.evidence.values():
            evidence_set.recompute_total_strengths()

    def recompute_strongest(self):
        for evidence_set in self.evidence.values():
            evidence_set.recompute_strongest()

    def recompute(self):
        """Refresh both caches."""
        self.recompute_total_strengths()
        self.recompute_strongest()

    def get_evidence(self, facet: Facet) -> Optional[EvidenceSet]:
        return self.evidence.get(facet.name)

    def get_strongest_belief(self, facet: Facet) -> Optional[Value]:
        """Cached strongest value for ``facet``, or None if unknown."""
        evidence_set = self.evidence.get(facet.name)
        if evidence_set is None:
            return None
        return evidence_set.strongest

    def truth(self, facet: Facet) -> Optional[Value]:
        """The regarded entity's actual value for ``facet``."""
        return self.regarding.facet_truth(facet)

    def iter_facets(self) -> Iterator[Tuple[Facet, FacetSummary]]:
        """
        Yield ``(facet, summary)`` for every facet relevant to ``regarding``.

        Each call starts a fresh pass over the regarded entity's facets.
        """
        for facet in self.regarding.relevant_facets():
            evidence_set = self.evidence[facet.name]
            yield facet, FacetSummary(
                total_strength=dict(evidence_set.total_strength),
                strongest=evidence_set.strongest,
            )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(holder={self.holder.name!r}, "
            f"regarding={self.regarding.name!r})"
        )


class ReflexiveModel(BeliefModel):
    """An entity's model of itself."""

    def __init__(self, entity: Entity):
        super().__init__(entity, entity)

    def seed_truths(self, strength: float = math.inf):
        """Record each of the entity's truths as a statement by itself."""
        for facet in self.holder.relevant_facets():
            self.insert(EvidenceItem.statement(
                self.holder.facet_truth(facet), strength, source=self.holder,
            ))
        self.recompute()

    def update_truths(self, strength: float = math.inf):
        """
        Bring the model in line with truths that have drifted.

        A facet whose strongest value no longer matches the entity's truth
        loses its earlier self-statements and gets a fresh one.
        """
        changed = False
        for facet in self.holder.relevant_facets():
            truth = self.holder.facet_truth(facet)
            if self.get_strongest_belief(facet) == truth:
                continue
            evidence_set = self.evidence[facet.name]
            evidence_set.items = [
                item for item in evidence_set.items
                if not (item.kind is EvidenceKind.STATEMENT and item.source is self.holder)
            ]
            evidence_set.insert(EvidenceItem.statement(truth, strength, source=self.holder))
            changed = True
        if changed:
            self.recompute()


class EvidenceModel(BeliefModel):
    """One entity's model of another."""

    def mutate(self, rng: random.Random, chance: float) -> int:
        """
        Misremember evidence.

        Each item is, with probability ``chance``, replaced by a mutation of
        itself asserting a different value of the same facet. Caches are left
        stale for the caller to recompute.

        Returns:
            Number of items that changed.
        """
        changed = 0
        for evidence_set in self.evidence.values():
            for index, item in enumerate(evidence_set.items):
                if rng.random() >= chance:
                    continue
                new_value = item.value.try_mutate(self.holder.name, index, rng)
                evidence_set.items[index] = item.mutated(new_value)
                changed += 1
        if changed:
            logger.debug("%s misremembered %d items about %s",
                         self.holder.name, changed, self.regarding.name)
        return changed
