"""
Facets and facet values.

A facet is a named axis of identity (hair colour, favourite music genre).
Each facet owns a fixed set of values. Values are shared by reference
between entities and belief models and are compared by their
``facet × label`` identity.
"""

import logging
import random
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..errors import ConfigurationError, RandomnessExhaustedError
from ..utils import choose, has_key

logger = logging.getLogger(__name__)


class Value:
    """
    One possible setting of a facet.

    The transition rule (``transitions``) maps sibling labels to relative
    weights and is filled in by the owning Facet once all of its values
    exist, so values never reference siblings that have not been built yet.
    """

    def __init__(self, facet: "Facet", label: str):
        self.facet = facet
        self.label = label
        self.transitions: Dict[str, float] = {}

    @property
    def facet_name(self) -> str:
        return self.facet.name

    @property
    def text(self) -> str:
        return self.label

    @property
    def key(self) -> Tuple[str, str]:
        """Stable identity used for hashing and equality: (facet name, label)."""
        return (self.facet.name, self.label)

    def try_mutate(
        self,
        current_holder_id: str,
        evidence_id: int,
        rng: random.Random,
    ) -> "Value":
        """
        Pick a different value of the same facet.

        The draw is weighted by this value's transition rule and never
        returns this value. ``current_holder_id`` and ``evidence_id`` identify
        the belief being misremembered; they are logged but do not bias the
        stock rule.

        Raises:
            RandomnessExhaustedError: If the facet has no other value.
        """
        options: List[Value] = []
        weights: List[float] = []
        for label, weight in self.transitions.items():
            if label == self.label or weight <= 0:
                continue
            options.append(self.facet.values[label])
            weights.append(weight)

        if not options:
            raise RandomnessExhaustedError(
                f"facet '{self.facet.name}' has no value to mutate '{self.label}' into"
            )

        new_value = choose(rng, options, weights)
        logger.debug(
            "Mutated %s -> %s (holder=%s, evidence=%s)",
            repr(self), repr(new_value), current_holder_id, evidence_id,
        )
        return new_value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.label

    def __repr__(self) -> str:
        return f"Value({self.facet.name!r}, {self.label!r})"


class Facet:
    """A named facet and its ordered set of values."""

    def __init__(
        self,
        name: str,
        labels: Sequence[str],
        weights: Optional[Mapping[str, Mapping[str, float]]] = None,
    ):
        self.name = name
        self.values: Dict[str, Value] = {}

        for label in labels:
            if has_key(self.values, label):
                raise ConfigurationError(
                    f"duplicate value '{label}' in facet '{name}'"
                )
            self.values[label] = Value(self, label)

        # Second pass: every sibling now exists, so rules can refer to them.
        weights = weights or {}
        for label, value in self.values.items():
            rule = weights.get(label)
            if rule is None:
                rule = {other: 1.0 for other in self.values if other != label}
            for target in rule:
                if not has_key(self.values, target):
                    raise ConfigurationError(
                        f"transition from '{label}' names unknown value '{target}' "
                        f"in facet '{name}'"
                    )
            value.transitions = dict(rule)

    def get_value(self, label: str) -> Optional[Value]:
        return self.values.get(label)

    def __getitem__(self, label: str) -> Value:
        return self.values[label]

    def __iter__(self) -> Iterator[Value]:
        return iter(self.values.values())

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"Facet(name={self.name!r}, values={len(self.values)})"


class FacetCatalog:
    """
    Registry of every facet known to a simulation.

    Facet names and ``facet × label`` identities are unique across the
    catalog; duplicates are configuration errors.
    """

    def __init__(self):
        self._facets: Dict[str, Facet] = {}

    def add_facet(
        self,
        name: str,
        labels: Sequence[str],
        weights: Optional[Mapping[str, Mapping[str, float]]] = None,
    ) -> Facet:
        """Register a facet with its values and optional transition weights.

        Args:
            name: Facet name, unique within the catalog.
            labels: Value labels, unique within the facet.
            weights: Optional per-value transition rules, mapping a value's
                label to ``{sibling_label: weight}``. Values without a rule
                mutate uniformly to any sibling.

        Returns:
            The registered Facet.
        """
        if has_key(self._facets, name):
            raise ConfigurationError(f"facet '{name}' is already registered")
        facet = Facet(name, labels, weights)
        self._facets[name] = facet
        logger.debug("Registered facet %s with %d values", name, len(facet))
        return facet

    def get_facet(self, name: str) -> Optional[Facet]:
        return self._facets.get(name)

    def get_value(self, facet: str, label: str) -> Optional[Value]:
        found = self._facets.get(facet)
        if found is None:
            return None
        return found.get_value(label)

    def value(self, facet: str, label: str) -> Value:
        """Look up a value that must exist (setup-time helper)."""
        found = self.get_value(facet, label)
        if found is None:
            raise ConfigurationError(f"unknown value '{label}' of facet '{facet}'")
        return found

    @property
    def facets(self) -> List[Facet]:
        return list(self._facets.values())

    def __contains__(self, name: str) -> bool:
        return has_key(self._facets, name)

    def __iter__(self) -> Iterator[Facet]:
        return iter(self._facets.values())

    def __len__(self) -> int:
        return len(self._facets)

    def __repr__(self) -> str:
        return f"FacetCatalog(facets={len(self._facets)})"
