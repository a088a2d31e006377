"""
Translation between the legacy, relational and dashboard record shapes.
"""

from .field_mapper import denormalize, normalize, to_legacy_updates
from .fields import FIELDS, FieldKind, FieldSpec, RecordShape, fold_key

__all__ = [
    "normalize",
    "denormalize",
    "to_legacy_updates",
    "RecordShape",
    "FieldKind",
    "FieldSpec",
    "FIELDS",
    "fold_key",
]
