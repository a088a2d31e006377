"""
Classification rule configuration.

Loads the organizational hierarchy (the whole-organization unit, its
sub-units and the keywords that place a product in them) from YAML, or
builds it programmatically.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


class SubUnitRule(BaseModel):
    """
    One sub-unit tab.

    Attributes:
        key: Bucket key (e.g. "middleSchool")
        name: Display name
        aliases: Words that name this sub-unit in unit-tag text (whole-word match)
    """

    key: str = Field(..., min_length=1)
    name: str
    aliases: list[str] = Field(..., min_length=1)

    @field_validator("aliases")
    @classmethod
    def lower_aliases(cls, v: list[str]) -> list[str]:
        return [alias.strip().lower() for alias in v if alias.strip()]

    class Config:
        frozen = True


class ClassificationRules(BaseModel):
    """
    Complete rule set for classify/categorize.

    Attributes:
        org_wide_key: Bucket key of the whole-organization tab
        org_wide_name: Display name of the whole-organization tab
        org_wide_aliases: Unit-tag words that mean "the whole organization"
        license_keywords: License-type substrings that make a product org-wide
        department_sentinels: Department values that make a product org-wide
        sub_units: Sub-unit tabs in display order
    """

    org_wide_key: str = "wholeSchool"
    org_wide_name: str = "Whole School"
    org_wide_aliases: list[str] = Field(default_factory=list)
    license_keywords: list[str] = Field(default_factory=list)
    department_sentinels: list[str] = Field(default_factory=list)
    sub_units: list[SubUnitRule] = Field(default_factory=list)

    @field_validator("org_wide_aliases", "license_keywords", "department_sentinels")
    @classmethod
    def lower_keywords(cls, v: list[str]) -> list[str]:
        return [word.strip().lower() for word in v if word and word.strip()]

    @field_validator("sub_units")
    @classmethod
    def unique_keys(cls, v: list[SubUnitRule]) -> list[SubUnitRule]:
        keys = [unit.key for unit in v]
        duplicates = {key for key in keys if keys.count(key) > 1}
        if duplicates:
            raise ValueError(f"Duplicate sub-unit keys: {sorted(duplicates)}")
        return v

    @property
    def bucket_keys(self) -> list[str]:
        return [self.org_wide_key] + [unit.key for unit in self.sub_units]

    class Config:
        frozen = True


def default_rules() -> ClassificationRules:
    """Built-in hierarchy: one school with elementary, middle and high divisions."""
    return (
        ClassificationRulesBuilder()
        .with_org_wide("wholeSchool", "Whole School",
                       ["whole school", "school-wide", "schoolwide", "all divisions", "all"])
        .add_license_keywords("site", "school", "enterprise", "unlimited")
        .add_department_sentinels("school operations", "school-wide")
        .add_sub_unit("elementary", "Elementary", ["elementary", "es", "primary", "lower school"])
        .add_sub_unit("middleSchool", "Middle School", ["middle", "ms"])
        .add_sub_unit("highSchool", "High School", ["high", "hs"])
        .build()
    )


class ClassificationRulesLoader:
    """
    Loads classification rules from a YAML configuration file.

    Expected YAML format:
    ```yaml
    org_wide:
      key: wholeSchool
      name: Whole School
      aliases: [whole school, school-wide, all divisions]

    license_keywords: [site, school, enterprise, unlimited]
    department_sentinels: [school operations, school-wide]

    sub_units:
      - key: elementary
        name: Elementary
        aliases: [elementary, es]
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Classification rules file not found: {config_path}")

    def load_rules(self) -> ClassificationRules:
        """
        Load and parse the rule file.

        Returns:
            ClassificationRules

        Raises:
            ValueError: If the YAML is invalid or missing required sections
        """
        with open(self.config_path) as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {self.config_path}: {e}")

        if not config or "sub_units" not in config:
            raise ValueError("Configuration file must contain 'sub_units' section")

        return self._parse(config)

    def _parse(self, config: dict[str, Any]) -> ClassificationRules:
        org_wide = config.get("org_wide") or {}
        if not isinstance(org_wide, dict):
            raise ValueError("'org_wide' must be a mapping")

        sub_units = config["sub_units"]
        if not isinstance(sub_units, list) or not sub_units:
            raise ValueError("'sub_units' must be a non-empty list")

        for idx, unit in enumerate(sub_units):
            if not isinstance(unit, dict) or "key" not in unit:
                raise ValueError(f"Sub-unit #{idx} is missing 'key'")

        try:
            return ClassificationRules(
                org_wide_key=org_wide.get("key", "wholeSchool"),
                org_wide_name=org_wide.get("name", "Whole School"),
                org_wide_aliases=org_wide.get("aliases", []),
                license_keywords=config.get("license_keywords", []),
                department_sentinels=config.get("department_sentinels", []),
                sub_units=[
                    SubUnitRule(
                        key=unit["key"],
                        name=unit.get("name", unit["key"]),
                        aliases=unit.get("aliases", []),
                    )
                    for unit in sub_units
                ],
            )
        except ValidationError as e:
            raise ValueError(f"Invalid classification rules in {self.config_path}: {e}")


class ClassificationRulesBuilder:
    """
    Programmatically build classification rules (for testing or dynamic hierarchies).
    """

    def __init__(self):
        self._org_wide: dict[str, Any] = {}
        self._license_keywords: list[str] = []
        self._department_sentinels: list[str] = []
        self._sub_units: list[SubUnitRule] = []

    def with_org_wide(self, key: str, name: str, aliases: list[str]) -> "ClassificationRulesBuilder":
        """Set the whole-organization unit."""
        self._org_wide = {"org_wide_key": key, "org_wide_name": name, "org_wide_aliases": list(aliases)}
        return self

    def add_license_keywords(self, *keywords: str) -> "ClassificationRulesBuilder":
        """Add license-type substrings that make a product org-wide."""
        self._license_keywords.extend(keywords)
        return self

    def add_department_sentinels(self, *departments: str) -> "ClassificationRulesBuilder":
        """Add department values that make a product org-wide."""
        self._department_sentinels.extend(departments)
        return self

    def add_sub_unit(self, key: str, name: str, aliases: list[str]) -> "ClassificationRulesBuilder":
        """Add a sub-unit tab."""
        self._sub_units.append(SubUnitRule(key=key, name=name, aliases=list(aliases)))
        return self

    def build(self) -> ClassificationRules:
        """Build and return the rule set."""
        return ClassificationRules(
            **self._org_wide,
            license_keywords=self._license_keywords,
            department_sentinels=self._department_sentinels,
            sub_units=self._sub_units,
        )


def load_rules(config_path: str | Path | None = None) -> ClassificationRules:
    """
    Load rules from config_path, or the built-in defaults when no path is given
    or the file does not exist.
    """
    if config_path is None or not Path(config_path).exists():
        return default_rules()
    return ClassificationRulesLoader(config_path).load_rules()
