"""
NormalizedProduct model: the canonical shape every source record is mapped into.
"""

from datetime import date

from pydantic import BaseModel, Field, field_validator


class NormalizedProduct(BaseModel):
    """
    One licensed application, independent of the store it was read from.

    The name is the join key across the legacy sheet, the relational mirror and
    the edge cache; no numeric surrogate key is guaranteed to exist everywhere.

    Attributes:
        name: Product name (unique within one pipeline pass)
        product_id: Optional stable slug identifier
        units: Free-text organizational unit tags (e.g. "Elementary, Middle")
        department: Free-text department / sub-group
        license_type: Free-text license category ("Site Licence", "Per User", ...)
        license_count: Number of license seats
        annual_cost: Yearly cost; 0 means free, None means unknown
        website: External URL probed for liveness
        date_added: Date the product entered the catalog
        renewal_date: Next license renewal
        enterprise: Flagship / enterprise-tool flag
        audience: Audience tags (Teachers, Students, ...)
        active: Active flag, None when the source carried no such column
    """

    name: str = Field(..., min_length=1)
    product_id: str | None = None
    units: str | None = None
    department: str | None = None
    subject: str | None = None
    budget: str | None = None
    license_type: str | None = None
    license_count: int | None = Field(None, ge=0)
    annual_cost: float | None = Field(None, ge=0)
    website: str | None = None
    date_added: date | None = None
    renewal_date: date | None = None
    enterprise: bool = False
    audience: list[str] = Field(default_factory=list)
    grade_levels: str | None = None
    category: str | None = None

    # Descriptive / compliance metadata
    description: str | None = None
    logo_url: str | None = None
    tutorial_link: str | None = None
    support_email: str | None = None
    sso_enabled: bool = False
    mobile_app: bool = False
    vendor: str | None = None
    risk_rating: str | None = None
    languages: list[str] = Field(default_factory=list)
    support_options: list[str] = Field(default_factory=list)
    alternatives: list[str] = Field(default_factory=list)
    notes: str | None = None

    active: bool | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Names are compared verbatim across stores, so surrounding whitespace is dropped."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("name cannot be empty or whitespace-only")
        return stripped

    @property
    def is_free(self) -> bool:
        return self.annual_cost == 0

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "name": "Seesaw",
                "product_id": "seesaw",
                "units": "SAS Elementary School",
                "department": "Technology",
                "license_type": "Site Licence",
                "license_count": 800,
                "annual_cost": 0,
                "website": "https://web.seesaw.me",
                "date_added": "2024-08-01",
                "renewal_date": "2025-07-31",
                "enterprise": False,
                "audience": ["Teachers", "Students"],
            }
        }
