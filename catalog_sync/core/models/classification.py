"""
Classification and categorized-catalog models (ephemeral, recomputed every pass).
"""

from pydantic import BaseModel, Field

from .product import NormalizedProduct


class Classification(BaseModel):
    """
    Organizational placement of one product.

    Attributes:
        is_org_wide: Available to the whole organization
        sub_units: Sub-unit keys the product belongs to (empty when org-wide)
        reason: Which rule made the product org-wide, if any
    """

    is_org_wide: bool
    sub_units: frozenset[str] = Field(default_factory=frozenset)
    reason: str | None = None

    @property
    def is_orphan(self) -> bool:
        """Neither org-wide nor in any sub-unit: shown on no tab."""
        return not self.is_org_wide and not self.sub_units

    class Config:
        frozen = True


class Bucket(BaseModel):
    """
    Products of one organizational tab, split for display.

    Attributes:
        products: Every product on the tab, sorted by name
        flagship: Enterprise products (org-wide tab only)
        everyone: Products licensed to everyone, excluding flagship ones
        by_department: Remaining products grouped by department
    """

    products: list[NormalizedProduct] = Field(default_factory=list)
    flagship: list[NormalizedProduct] = Field(default_factory=list)
    everyone: list[NormalizedProduct] = Field(default_factory=list)
    by_department: dict[str, list[NormalizedProduct]] = Field(default_factory=dict)


class CatalogStats(BaseModel):
    total: int = 0
    org_wide_count: int = 0
    sub_unit_counts: dict[str, int] = Field(default_factory=dict)
    orphans: list[str] = Field(default_factory=list)


class CategorizedCatalog(BaseModel):
    """
    Output of one categorization pass.

    Attributes:
        org_wide_key: Bucket key of the whole-organization tab
        buckets: Bucket per tab, org-wide first then sub-units in rule order
        classifications: Classification per product name
        stats: Counts for the dashboard header
    """

    org_wide_key: str
    buckets: dict[str, Bucket]
    classifications: dict[str, Classification] = Field(default_factory=dict)
    stats: CatalogStats = Field(default_factory=CatalogStats)
