"""
Classification rules and the categorization engine.
"""

from .categorizer import categorize, classify
from .rule_config import (
    ClassificationRules,
    ClassificationRulesBuilder,
    ClassificationRulesLoader,
    SubUnitRule,
    default_rules,
    load_rules,
)

__all__ = [
    "classify",
    "categorize",
    "ClassificationRules",
    "ClassificationRulesLoader",
    "ClassificationRulesBuilder",
    "SubUnitRule",
    "default_rules",
    "load_rules",
]
