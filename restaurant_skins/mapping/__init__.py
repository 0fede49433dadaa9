"""Mapping DSL: documents, bindings, conditions, loading and evaluation."""

from restaurant_skins.mapping.bindings import (
    FilterCall,
    ListBinding,
    Literal,
    ObjectBinding,
    PathRef,
    parse_binding,
    resolve_binding,
)
from restaurant_skins.mapping.conditions import Condition, ConditionSyntaxError, parse_condition
from restaurant_skins.mapping.document import (
    MappingEntry,
    SkinMapping,
    parse_entries,
    parse_mapping_document,
)
from restaurant_skins.mapping.paths import MISSING, parse_path, resolve_path
from restaurant_skins.mapping.evaluator import MappingEvaluator, evaluate
from restaurant_skins.mapping.loader import MappingLoader

__all__ = [
    # Bindings
    "FilterCall",
    "ListBinding",
    "Literal",
    "ObjectBinding",
    "PathRef",
    "parse_binding",
    "resolve_binding",
    # Conditions
    "Condition",
    "ConditionSyntaxError",
    "parse_condition",
    # Documents
    "MappingEntry",
    "SkinMapping",
    "parse_entries",
    "parse_mapping_document",
    # Paths
    "MISSING",
    "parse_path",
    "resolve_path",
    # Loading and evaluation
    "MappingEvaluator",
    "MappingLoader",
    "evaluate",
]
