"""
Categorization engine: place products in the organizational hierarchy.

classify() is a pure function of the product and the rule set, so running it
twice on the same input always gives the same Classification.
"""

import re
from typing import Iterable

from catalog_sync.core.models import (
    Bucket,
    CatalogStats,
    CategorizedCatalog,
    Classification,
    NormalizedProduct,
)

from .rule_config import ClassificationRules, default_rules

PLACEHOLDER_DEPARTMENTS = {"", "n/a", "na", "none", "-"}


def _has_word(text: str, word: str) -> bool:
    """Whole-word, case-insensitive match (hyphens and spaces inside word are literal)."""
    return re.search(rf"(?<![0-9a-z]){re.escape(word)}(?![0-9a-z])", text, re.IGNORECASE) is not None


def _matches_any(text: str, words: Iterable[str]) -> bool:
    return any(_has_word(text, word) for word in words)


def is_everyone_license(license_type: str | None, rules: ClassificationRules) -> bool:
    """License text contains an org-wide keyword (substring, case-insensitive)."""
    if not license_type:
        return False
    text = license_type.lower()
    return any(keyword in text for keyword in rules.license_keywords)


def is_sentinel_department(department: str | None, rules: ClassificationRules) -> bool:
    if not department:
        return False
    return department.strip().lower() in rules.department_sentinels


def matched_sub_units(units: str | None, rules: ClassificationRules) -> frozenset[str]:
    """Keys of every sub-unit named in the unit-tag text."""
    if not units:
        return frozenset()
    return frozenset(unit.key for unit in rules.sub_units if _matches_any(units, unit.aliases))


def classify(product: NormalizedProduct, rules: ClassificationRules | None = None) -> Classification:
    """
    Classify one product.

    Org-wide when, in order: the license type carries an org-wide keyword, the
    department is a sentinel, the unit tags name the whole organization, or the
    unit tags name every sub-unit. Otherwise the product belongs to each
    sub-unit its unit tags name, possibly none (an orphan).

    Args:
        product: Product to classify
        rules: Rule set (built-in defaults when None)

    Returns:
        Classification
    """
    rules = rules or default_rules()
    units = product.units or ""

    if is_everyone_license(product.license_type, rules):
        return Classification(is_org_wide=True, reason="license")

    if is_sentinel_department(product.department, rules):
        return Classification(is_org_wide=True, reason="department")

    if units and _matches_any(units, rules.org_wide_aliases):
        return Classification(is_org_wide=True, reason="unit_tag")

    sub_units = matched_sub_units(units, rules)
    if rules.sub_units and len(sub_units) == len(rules.sub_units):
        return Classification(is_org_wide=True, reason="all_sub_units")

    return Classification(is_org_wide=False, sub_units=sub_units)


def _sort_key(product: NormalizedProduct) -> tuple[str, str]:
    return (product.name.casefold(), product.name)


def _split_bucket(
    products: list[NormalizedProduct],
    classifications: dict[str, Classification],
    rules: ClassificationRules,
    is_org_wide_tab: bool,
) -> Bucket:
    products = sorted(products, key=_sort_key)

    flagship = [p for p in products if p.enterprise] if is_org_wide_tab else []
    flagship_names = {p.name for p in flagship}

    everyone = []
    by_department: dict[str, list[NormalizedProduct]] = {}
    for product in products:
        if product.name in flagship_names:
            continue
        if not is_org_wide_tab and classifications[product.name].is_org_wide:
            continue
        if not product.enterprise and is_everyone_license(product.license_type, rules):
            everyone.append(product)
            continue

        department = (product.department or "").strip()
        if department.lower() in PLACEHOLDER_DEPARTMENTS:
            continue
        by_department.setdefault(department, []).append(product)

    return Bucket(
        products=products,
        flagship=flagship,
        everyone=everyone,
        by_department=dict(sorted(by_department.items(), key=lambda item: item[0].casefold())),
    )


def categorize(
    products: Iterable[NormalizedProduct],
    rules: ClassificationRules | None = None,
) -> CategorizedCatalog:
    """
    Classify every product and build one bucket per tab.

    Org-wide products go to the org-wide bucket only; the rest go to each of
    their sub-unit buckets. Orphans appear in no bucket and are listed in the
    stats. Product names are expected to be unique.

    Args:
        products: Normalized products
        rules: Rule set (built-in defaults when None)

    Returns:
        CategorizedCatalog
    """
    rules = rules or default_rules()
    products = list(products)

    classifications: dict[str, Classification] = {}
    members: dict[str, list[NormalizedProduct]] = {key: [] for key in rules.bucket_keys}
    orphans: list[str] = []

    for product in products:
        classification = classify(product, rules)
        classifications[product.name] = classification

        if classification.is_org_wide:
            members[rules.org_wide_key].append(product)
        elif classification.is_orphan:
            orphans.append(product.name)
        else:
            for unit in rules.sub_units:
                if unit.key in classification.sub_units:
                    members[unit.key].append(product)

    buckets = {
        key: _split_bucket(items, classifications, rules, is_org_wide_tab=(key == rules.org_wide_key))
        for key, items in members.items()
    }

    stats = CatalogStats(
        total=len(products),
        org_wide_count=len(members[rules.org_wide_key]),
        sub_unit_counts={unit.key: len(members[unit.key]) for unit in rules.sub_units},
        orphans=sorted(orphans, key=str.casefold),
    )

    return CategorizedCatalog(
        org_wide_key=rules.org_wide_key,
        buckets=buckets,
        classifications=classifications,
        stats=stats,
    )
