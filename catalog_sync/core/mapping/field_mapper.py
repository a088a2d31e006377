"""
Field mapper: translation between the external record shapes and NormalizedProduct.

Reading accepts any shape (keys are folded, so "License Type", "license_type"
and "licenseType" are one key). Writing targets one shape:

- LEGACY: partial update of the spreadsheet row. Only non-null fields, and
  with a baseline only the fields that changed. The name key is always sent.
- RELATIONAL: full snake_case row, nulls preserved, lists native.
- VIEW: dashboard camelCase record with display placeholders.
"""

from typing import Any, Mapping

from pydantic import ValidationError

from catalog_sync.core.errors import MalformedRecordError
from catalog_sync.core.models.classification import Classification
from catalog_sync.core.models.product import NormalizedProduct

from .coercion import (
    coerce_bool,
    coerce_date,
    coerce_int,
    coerce_number,
    coerce_string_list,
    coerce_text,
    format_cost,
    is_placeholder,
    iso_date,
    joined_list,
    json_list,
    storage_number,
)
from .fields import FIELDS, FIELDS_BY_NAME, KEY_INDEX, FieldKind, FieldSpec, RecordShape, fold_key

_READERS = {
    FieldKind.TEXT: coerce_text,
    FieldKind.LIST: coerce_string_list,
    FieldKind.BOOL: coerce_bool,
    FieldKind.NUMBER: coerce_number,
    FieldKind.INT: coerce_int,
    FieldKind.DATE: coerce_date,
}


def _collect(record: Mapping[str, Any], shape: RecordShape | None) -> dict[str, Any]:
    """Pick one raw value per canonical field; the shape's own key wins over aliases."""
    raw: dict[str, Any] = {}
    preferred: set[str] = set()

    for key, value in record.items():
        spec = KEY_INDEX.get(fold_key(key))
        if spec is None:
            continue

        is_preferred = shape is not None and key == spec.key_for(shape)
        if spec.name in preferred:
            continue
        if is_preferred:
            raw[spec.name] = value
            preferred.add(spec.name)
        elif spec.name not in raw or (is_placeholder(raw[spec.name]) and not is_placeholder(value)):
            raw[spec.name] = value

    return raw


def normalize(record: Mapping[str, Any], shape: RecordShape | None = None) -> NormalizedProduct:
    """
    Map one source record of any shape into a NormalizedProduct.

    Unknown keys are dropped. Absent flags default to False, except the
    active flag, which stays None so callers can tell "not carried" from
    "inactive".

    Args:
        record: Flat source record
        shape: Shape the record came from, used to break ties between aliases

    Returns:
        NormalizedProduct

    Raises:
        MalformedRecordError: If the name is missing or a value cannot be coerced
    """
    if not isinstance(record, Mapping):
        raise MalformedRecordError("record", f"expected an object, got {type(record).__name__}")

    raw = _collect(record, shape)

    name = coerce_text(raw.get("name"))
    if name is None:
        raise MalformedRecordError("name", "missing product name")

    values: dict[str, Any] = {}
    for spec in FIELDS:
        if spec.name not in raw:
            continue
        value = raw[spec.name]
        if spec.tri_state and is_placeholder(value):
            continue
        try:
            values[spec.name] = _READERS[spec.kind](value)
        except ValueError as e:
            raise MalformedRecordError(spec.name, str(e), record_name=name)

    values["name"] = name

    try:
        return NormalizedProduct(**values)
    except ValidationError as e:
        first = e.errors()[0]
        field_name = str(first["loc"][0]) if first.get("loc") else "record"
        raise MalformedRecordError(field_name, first["msg"], record_name=name)


def _encode_legacy(spec: FieldSpec, value: Any) -> Any:
    if spec.kind is FieldKind.LIST:
        return joined_list(value) if spec.comma_list else json_list(value)
    if spec.kind is FieldKind.NUMBER:
        return storage_number(value)
    if spec.kind is FieldKind.DATE:
        return iso_date(value)
    return value


def _encode_relational(spec: FieldSpec, value: Any) -> Any:
    if spec.kind is FieldKind.LIST:
        return list(value)
    if spec.kind is FieldKind.NUMBER:
        return storage_number(value)
    if spec.kind is FieldKind.DATE:
        return iso_date(value)
    return value


def _encode_view(spec: FieldSpec, value: Any) -> Any:
    if spec.name == "annual_cost":
        return format_cost(value)
    if spec.name == "mobile_app":
        return "Yes" if value else "No"
    if spec.kind is FieldKind.LIST:
        if spec.comma_list:
            return joined_list(value) or ""
        return list(value)
    if spec.kind is FieldKind.DATE:
        value = iso_date(value)
    if value is None and spec.view_placeholder is not None:
        return spec.view_placeholder
    return value


def denormalize(
    product: NormalizedProduct,
    target_shape: RecordShape,
    baseline: NormalizedProduct | None = None,
    classification: Classification | None = None,
) -> dict[str, Any]:
    """
    Map a NormalizedProduct into one external record shape.

    Args:
        product: Product to write
        target_shape: LEGACY, RELATIONAL or VIEW
        baseline: Previous state of the product (LEGACY only); unchanged fields are omitted
        classification: Placement of the product (VIEW only); adds the isOrgWide flag

    Returns:
        Flat record keyed for the target shape
    """
    target_shape = RecordShape(target_shape)

    if target_shape is RecordShape.LEGACY:
        record: dict[str, Any] = {FIELDS_BY_NAME["name"].legacy_key: product.name}
        for spec in FIELDS:
            if spec.name == "name":
                continue
            value = getattr(product, spec.name)
            if baseline is not None and getattr(baseline, spec.name) == value:
                continue
            encoded = _encode_legacy(spec, value)
            if encoded is None:
                continue
            record[spec.legacy_key] = encoded
        return record

    if target_shape is RecordShape.RELATIONAL:
        return {
            spec.relational_key: _encode_relational(spec, getattr(product, spec.name))
            for spec in FIELDS
        }

    record = {
        spec.view_key: _encode_view(spec, getattr(product, spec.name))
        for spec in FIELDS
        if spec.view_key
    }
    if classification is not None:
        record["isOrgWide"] = classification.is_org_wide
    return record


def to_legacy_updates(
    product: NormalizedProduct,
    baseline: NormalizedProduct | None = None,
) -> list[dict[str, Any]]:
    """
    Keyed partial-update items for the legacy bulk update action.

    Returns:
        One {"product", "field", "value"} item per field to write
    """
    record = denormalize(product, RecordShape.LEGACY, baseline=baseline)
    name_key = FIELDS_BY_NAME["name"].legacy_key
    return [
        {"product": product.name, "field": key, "value": value}
        for key, value in record.items()
        if key != name_key
    ]
