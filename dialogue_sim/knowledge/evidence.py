"""
Evidence: weighted, sourced assertions about a facet's value.

An EvidenceSet keeps the evidence for one facet in insertion order
together with two caches, the per-value total strength and the strongest
value. The caches are only refreshed when ``recompute_total_strengths``
and ``recompute_strongest`` are called, so several inserts can share one
recomputation.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from .facets import Value

if TYPE_CHECKING:
    from .entity import Entity


class EvidenceKind(Enum):
    """How a piece of evidence came to be held."""
    STATEMENT = "statement"
    OVERHEARD = "overheard"
    OBSERVATION = "observation"
    TRANSFERENCE = "transference"
    CONFABULATION = "confabulation"
    LIE = "lie"
    IMPLANTATION = "implantation"
    DECLARATION = "declaration"
    MUTATION = "mutation"


@dataclass
class EvidenceItem:
    """
    A single assertion that a facet has ``value``.

    ``source`` is the asserting entity for statements, lies, declarations
    and overheard evidence. ``recipient`` is who the assertion was made to
    when that differs from the holder. ``previous`` links a mutated item to
    the item it was misremembered from.
    """
    value: Value
    kind: EvidenceKind
    strength: float
    data: Any = None
    source: Optional["Entity"] = None
    recipient: Optional["Entity"] = None
    location: Any = None
    reminded_of: Optional["Entity"] = None
    previous: Optional["EvidenceItem"] = None

    @classmethod
    def statement(cls, value: Value, strength: float, source: "Entity",
                  location: Any = None, data: Any = None) -> "EvidenceItem":
        return cls(value, EvidenceKind.STATEMENT, strength, data,
                   source=source, location=location)

    @classmethod
    def overheard(cls, value: Value, strength: float, source: "Entity",
                  recipient: "Entity", location: Any = None,
                  data: Any = None) -> "EvidenceItem":
        return cls(value, EvidenceKind.OVERHEARD, strength, data,
                   source=source, recipient=recipient, location=location)

    @classmethod
    def observation(cls, value: Value, strength: float, location: Any = None,
                    data: Any = None) -> "EvidenceItem":
        return cls(value, EvidenceKind.OBSERVATION, strength, data, location=location)

    @classmethod
    def transference(cls, value: Value, strength: float, reminded_of: "Entity",
                     data: Any = None) -> "EvidenceItem":
        return cls(value, EvidenceKind.TRANSFERENCE, strength, data,
                   reminded_of=reminded_of)

    @classmethod
    def confabulation(cls, value: Value, strength: float,
                      data: Any = None) -> "EvidenceItem":
        return cls(value, EvidenceKind.CONFABULATION, strength, data)

    @classmethod
    def lie(cls, value: Value, strength: float, recipient: "Entity",
            location: Any = None, data: Any = None) -> "EvidenceItem":
        return cls(value, EvidenceKind.LIE, strength, data,
                   recipient=recipient, location=location)

    @classmethod
    def implantation(cls, value: Value, strength: float,
                     data: Any = None) -> "EvidenceItem":
        return cls(value, EvidenceKind.IMPLANTATION, strength, data)

    @classmethod
    def declaration(cls, value: Value, strength: float, recipient: "Entity",
                    location: Any = None, data: Any = None) -> "EvidenceItem":
        return cls(value, EvidenceKind.DECLARATION, strength, data,
                   recipient=recipient, location=location)

    def mutated(self, new_value: Value) -> "EvidenceItem":
        """Copy of this item asserting ``new_value``, recorded as a mutation of it."""
        return replace(self, value=new_value, kind=EvidenceKind.MUTATION, previous=self)

    def principal_kind(self) -> EvidenceKind:
        """The kind this evidence had before any mutations."""
        item = self
        while item.kind is EvidenceKind.MUTATION and item.previous is not None:
            item = item.previous
        return item.kind


@dataclass
class EvidenceSet:
    """Evidence for one facet plus its derived caches."""
    items: List[EvidenceItem] = field(default_factory=list)
    total_strength: Dict[Value, float] = field(default_factory=dict)
    strongest: Optional[Value] = None

    def insert(self, evidence: EvidenceItem):
        self.items.append(evidence)

    def recompute_total_strengths(self):
        # Dict order follows first appearance, which the strongest tie-break uses.
        totals: Dict[Value, float] = {}
        for item in self.items:
            totals[item.value] = totals.get(item.value, 0.0) + item.strength
        self.total_strength = totals

    def recompute_strongest(self):
        """
        Select the value with the largest positive total.

        Ties go to the value whose first evidence was inserted earliest.
        A facet with no positive total has no strongest value.
        """
        best: Optional[Value] = None
        best_total = 0.0
        for value, total in self.total_strength.items():
            if total > best_total:
                best = value
                best_total = total
        self.strongest = best

    def __iter__(self) -> Iterator[EvidenceItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
