"""ABO/Rh transfusion compatibility table.

Keys are donor groups; values are the recipient groups a donor's red cells
can be given to. The table is checked once when the ``blood`` app loads.
"""

from __future__ import annotations

from typing import Dict, FrozenSet

from django.core.exceptions import ImproperlyConfigured
from django.db import models


class BloodGroup(models.TextChoices):
    O_NEGATIVE = "O_NEGATIVE", "O-"
    O_POSITIVE = "O_POSITIVE", "O+"
    A_NEGATIVE = "A_NEGATIVE", "A-"
    A_POSITIVE = "A_POSITIVE", "A+"
    B_NEGATIVE = "B_NEGATIVE", "B-"
    B_POSITIVE = "B_POSITIVE", "B+"
    AB_NEGATIVE = "AB_NEGATIVE", "AB-"
    AB_POSITIVE = "AB_POSITIVE", "AB+"


COMPATIBILITY: Dict[str, FrozenSet[str]] = {
    "O_NEGATIVE": frozenset(BloodGroup.values),
    "O_POSITIVE": frozenset({"O_POSITIVE", "A_POSITIVE", "B_POSITIVE", "AB_POSITIVE"}),
    "A_NEGATIVE": frozenset({"A_NEGATIVE", "A_POSITIVE", "AB_NEGATIVE", "AB_POSITIVE"}),
    "A_POSITIVE": frozenset({"A_POSITIVE", "AB_POSITIVE"}),
    "B_NEGATIVE": frozenset({"B_NEGATIVE", "B_POSITIVE", "AB_NEGATIVE", "AB_POSITIVE"}),
    "B_POSITIVE": frozenset({"B_POSITIVE", "AB_POSITIVE"}),
    "AB_NEGATIVE": frozenset({"AB_NEGATIVE", "AB_POSITIVE"}),
    "AB_POSITIVE": frozenset({"AB_POSITIVE"}),
}


def validate_table(table: Dict[str, FrozenSet[str]] = COMPATIBILITY) -> None:
    """Raise ``ImproperlyConfigured`` unless the table covers exactly the 8 groups."""

    known = set(BloodGroup.values)
    missing = known - set(table)
    if missing:
        raise ImproperlyConfigured(f"Compatibility table has no entry for: {', '.join(sorted(missing))}")

    for donor_group, recipients in table.items():
        if donor_group not in known:
            raise ImproperlyConfigured(f"Unrecognized donor blood group in compatibility table: {donor_group!r}")
        unknown = set(recipients) - known
        if unknown:
            raise ImproperlyConfigured(
                f"Unrecognized recipient group(s) for {donor_group}: {', '.join(sorted(map(str, unknown)))}"
            )
        if donor_group not in recipients:
            raise ImproperlyConfigured(f"{donor_group} must be compatible with itself")


def compatible(donor_group: str) -> FrozenSet[str]:
    return COMPATIBILITY[donor_group]


def is_compatible(donor_group: str, recipient_group: str) -> bool:
    return recipient_group in COMPATIBILITY.get(donor_group, frozenset())


def donor_groups_for(recipient_group: str) -> FrozenSet[str]:
    """Donor groups whose blood the given recipient group can receive."""

    return frozenset(donor for donor, recipients in COMPATIBILITY.items() if recipient_group in recipients)
