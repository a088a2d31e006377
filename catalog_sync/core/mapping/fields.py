"""
Field table: one row per canonical product attribute.

Each row names the attribute's coercion kind and its key in every record
shape. The field mapper walks this table in both directions, so adding an
attribute means adding one row here.
"""

import re
from dataclasses import dataclass, field
from enum import Enum


class RecordShape(str, Enum):
    """The three external schemas a product record can take."""

    LEGACY = "legacy"
    RELATIONAL = "relational"
    VIEW = "view"


class FieldKind(str, Enum):
    TEXT = "text"
    LIST = "list"
    BOOL = "bool"
    NUMBER = "number"
    INT = "int"
    DATE = "date"


@dataclass(frozen=True)
class FieldSpec:
    """
    Mapping of one canonical attribute.

    Attributes:
        name: Attribute name on NormalizedProduct
        kind: Coercion applied when reading any shape
        legacy_key: Column written to the legacy sheet
        relational_key: Column of the relational mirror
        view_key: Key of the dashboard record (None to omit from the view)
        aliases: Extra spellings accepted when reading
        comma_list: Lists stored comma-joined in the legacy sheet instead of JSON
        view_placeholder: Display value for a missing attribute in the view
        tri_state: Absent stays None instead of defaulting to False
    """

    name: str
    kind: FieldKind
    legacy_key: str
    relational_key: str
    view_key: str | None
    aliases: tuple[str, ...] = ()
    comma_list: bool = False
    view_placeholder: str | None = None
    tri_state: bool = False
    keys: tuple[str, ...] = field(init=False, default=())

    def __post_init__(self):
        spellings = (self.name, self.legacy_key, self.relational_key, self.view_key) + self.aliases
        object.__setattr__(self, "keys", tuple(dict.fromkeys(s for s in spellings if s)))

    def key_for(self, shape: RecordShape) -> str | None:
        if shape is RecordShape.LEGACY:
            return self.legacy_key
        if shape is RecordShape.RELATIONAL:
            return self.relational_key
        return self.view_key


NA = "N/A"

FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("name", FieldKind.TEXT, "product", "product", "product",
              aliases=("product name", "app", "app name", "title")),
    FieldSpec("product_id", FieldKind.TEXT, "productId", "product_id", "productId",
              aliases=("apps_script_id", "slug")),
    FieldSpec("units", FieldKind.TEXT, "division", "division", "division",
              aliases=("divisions", "unit", "units"), view_placeholder=NA),
    FieldSpec("department", FieldKind.TEXT, "department", "department", "department",
              aliases=("dept",), view_placeholder=NA),
    FieldSpec("subject", FieldKind.TEXT, "subject", "subject", "subject", view_placeholder=NA),
    FieldSpec("budget", FieldKind.TEXT, "budget", "budget", "budget", view_placeholder=""),
    FieldSpec("license_type", FieldKind.TEXT, "licenseType", "license_type", "licenseType",
              aliases=("license",), view_placeholder=NA),
    FieldSpec("license_count", FieldKind.INT, "licenses", "licenses", "licenses",
              aliases=("license count", "seats")),
    FieldSpec("annual_cost", FieldKind.NUMBER, "spend", "annual_cost", "spend",
              aliases=("annual cost", "cost", "price")),
    FieldSpec("website", FieldKind.TEXT, "website", "website", "website",
              aliases=("url", "link"), view_placeholder="#"),
    FieldSpec("date_added", FieldKind.DATE, "dateAdded", "date_added", "dateAdded",
              aliases=("added",), view_placeholder=""),
    FieldSpec("renewal_date", FieldKind.DATE, "renewalDate", "renewal_date", "renewalDate",
              aliases=("renewal",), view_placeholder=""),
    FieldSpec("enterprise", FieldKind.BOOL, "enterprise", "enterprise", "enterprise",
              aliases=("flagship",)),
    FieldSpec("audience", FieldKind.LIST, "audience", "audience", "audience", comma_list=True),
    FieldSpec("grade_levels", FieldKind.TEXT, "gradeLevels", "grade_levels", "gradeLevels",
              aliases=("grades",), view_placeholder=NA),
    FieldSpec("category", FieldKind.TEXT, "category", "category", "category", view_placeholder=NA),
    FieldSpec("description", FieldKind.TEXT, "description", "description", "description",
              view_placeholder=""),
    FieldSpec("logo_url", FieldKind.TEXT, "logoUrl", "logo_url", "logoUrl",
              aliases=("logo",), view_placeholder=""),
    FieldSpec("tutorial_link", FieldKind.TEXT, "tutorialLink", "tutorial_link", "tutorialLink",
              aliases=("tutorial",), view_placeholder=""),
    FieldSpec("support_email", FieldKind.TEXT, "supportEmail", "support_email", "supportEmail",
              view_placeholder=""),
    FieldSpec("sso_enabled", FieldKind.BOOL, "ssoEnabled", "sso_enabled", "ssoEnabled",
              aliases=("sso",)),
    FieldSpec("mobile_app", FieldKind.BOOL, "mobileApp", "mobile_app", "mobileApp"),
    FieldSpec("vendor", FieldKind.TEXT, "vendor", "vendor", "vendor", view_placeholder=""),
    FieldSpec("risk_rating", FieldKind.TEXT, "riskRating", "risk_rating", "riskRating",
              view_placeholder=NA),
    FieldSpec("languages", FieldKind.LIST, "languages", "languages", "languages"),
    FieldSpec("support_options", FieldKind.LIST, "supportOptions", "support_options",
              "supportOptions"),
    FieldSpec("alternatives", FieldKind.LIST, "alternatives", "alternatives", "alternatives"),
    FieldSpec("notes", FieldKind.TEXT, "notes", "notes", "notes", view_placeholder=""),
    FieldSpec("active", FieldKind.BOOL, "active", "active", None,
              aliases=("is active", "enabled"), tri_state=True),
)

FIELDS_BY_NAME: dict[str, FieldSpec] = {spec.name: spec for spec in FIELDS}

_SEPARATORS = re.compile(r"[^0-9a-z]")


def fold_key(key: str) -> str:
    """
    Fold a source key so spelling variants compare equal.

    Examples:
        >>> fold_key("License Type") == fold_key("license_type") == fold_key("licenseType")
        True
    """
    return _SEPARATORS.sub("", str(key).lower())


def _build_key_index() -> dict[str, FieldSpec]:
    index: dict[str, FieldSpec] = {}
    for spec in FIELDS:
        for key in spec.keys:
            folded = fold_key(key)
            existing = index.get(folded)
            if existing is not None and existing is not spec:
                raise ValueError(f"Key {key!r} maps to both {existing.name} and {spec.name}")
            index[folded] = spec
    return index


KEY_INDEX: dict[str, FieldSpec] = _build_key_index()
