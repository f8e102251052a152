"""Knowledge layer: facets, entities, evidence and belief models."""

from .facets import Facet, FacetCatalog, Value
from .entity import Entity, build_entities
from .evidence import EvidenceItem, EvidenceKind, EvidenceSet
from .model import BeliefModel, EvidenceModel, FacetSummary, ReflexiveModel

__all__ = [
    "Facet",
    "FacetCatalog",
    "Value",
    "Entity",
    "build_entities",
    "EvidenceItem",
    "EvidenceKind",
    "EvidenceSet",
    "BeliefModel",
    "EvidenceModel",
    "FacetSummary",
    "ReflexiveModel",
]
