"""
Entities: simulated agents with ground-truth facets and belief models.
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence

from ..errors import ConfigurationError
from ..utils import contains, has_key
from .facets import Facet, Value

if TYPE_CHECKING:
    from .model import BeliefModel

logger = logging.getLogger(__name__)


class Entity:
    """
    An agent in the simulation.

    Entities are created once at setup. Their truths only change through
    ``set_truth``; belief models they hold are stored under the name of
    the entity each model is about.
    """

    def __init__(self, name: str, truths: Mapping[Facet, Value]):
        self.name = name
        self._facets: List[Facet] = []
        self.truths: Dict[str, Value] = {}
        self.models: Dict[str, "BeliefModel"] = {}

        for facet, value in truths.items():
            if contains(self._facets, facet):
                raise ConfigurationError(
                    f"entity '{name}' lists facet '{facet.name}' twice"
                )
            self._check_value(facet, value)
            self._facets.append(facet)
            self.truths[facet.name] = value

    def _check_value(self, facet: Facet, value: Value):
        if value.facet is not facet:
            raise ConfigurationError(
                f"value {value!r} does not belong to facet '{facet.name}' "
                f"(entity '{self.name}')"
            )

    def relevant_facets(self) -> List[Facet]:
        """Facets this entity has a truth for, in declaration order."""
        return list(self._facets)

    def is_facet_relevant(self, facet: Facet) -> bool:
        return contains(self._facets, facet)

    def facet_truth(self, facet: Facet) -> Optional[Value]:
        """Ground truth for ``facet``, or None if the facet is not relevant."""
        if not self.is_facet_relevant(facet):
            return None
        return self.truths[facet.name]

    def set_truth(self, facet: Facet, value: Value):
        """Change the ground truth of a relevant facet."""
        if not self.is_facet_relevant(facet):
            raise ConfigurationError(
                f"facet '{facet.name}' is not relevant to entity '{self.name}'"
            )
        self._check_value(facet, value)
        previous = self.truths[facet.name]
        self.truths[facet.name] = value
        logger.debug("%s truth for %s: %s -> %s", self.name, facet.name, previous, value)

    def add_model(self, model: "BeliefModel"):
        if model.holder is not self:
            raise ConfigurationError(
                f"entity '{self.name}' cannot hold a model held by '{model.holder.name}'"
            )
        self.models[model.regarding.name] = model

    def get_model(self, regarding: str) -> Optional["BeliefModel"]:
        return self.models.get(regarding)

    def has_model(self, regarding: str) -> bool:
        return has_key(self.models, regarding)

    def __repr__(self) -> str:
        return f"Entity(name={self.name!r}, facets={[f.name for f in self._facets]})"


def build_entities(entity_list: Sequence[Entity]) -> Dict[str, Entity]:
    """Index entities by name, rejecting duplicates."""
    entities: Dict[str, Entity] = {}
    for entity in entity_list:
        if has_key(entities, entity.name):
            raise ConfigurationError(f"duplicate entity name '{entity.name}'")
        entities[entity.name] = entity
    return entities
