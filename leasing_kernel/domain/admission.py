"""
Admission policy (``leasing_kernel.domain.admission``).

Responsibility
--------------
Decide whether a proposed booking can be confirmed instantly or must wait
for staff review, and say why.  Every rule is an independent
predicate-plus-message function over one frozen ``AdmissionInput``; all
rules run and every triggered reason is collected, because reviewers need
to see all of them at once.

Architecture position
---------------------
**Kernel domain layer** -- pure function, ZERO I/O.  The caller gathers the
site, customer and duplicate-intent facts into ``AdmissionInput`` first, so
the decision is made against one snapshot even if category approvals are
edited concurrently.

Invariants enforced
-------------------
* ``requires_approval`` is True iff at least one reason was produced.
* Reason wording is stable; reporting matches on substrings.
* Coverage floor is inclusive: ``insured_amount == floor`` passes.
* An empty approved-category set means every category is allowed
  (``UNRESTRICTED_WHEN_NO_CATEGORIES``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable
from uuid import UUID

from leasing_kernel.domain.insurance import COVERAGE_FLOOR, InsuranceRecord
from leasing_kernel.domain.values import external_amount
from leasing_kernel.exceptions import ValidationError

# Business policy: a site with no approved categories configured accepts
# every usage category.
UNRESTRICTED_WHEN_NO_CATEGORIES = True

FALLBACK_REASON = "Manual approval required"
REASON_SEPARATOR = "; "

REASON_MANUAL_SITE = "Site requires manual approval for all bookings"
REASON_INSURANCE_MISSING = "Insurance certificate missing"
REASON_INSURANCE_UNREADABLE = "Insurance certificate unreadable"
REASON_INSURANCE_EXPIRED = "Insurance expired before booking end date"
REASON_CUSTOM_DETAILS = "Custom usage category details provided"
REASON_DUPLICATE = (
    "Duplicate booking: customer already has booking with same category "
    "at this centre"
)
REASON_CATEGORY_CONFLICT = (
    "Category conflict: another customer has overlapping booking with same "
    "category at this centre"
)


@dataclass(frozen=True)
class AdmissionInput:
    """Everything the policy looks at, captured at evaluation time."""

    site_instant_booking: bool
    start_date: date
    end_date: date
    approved_category_ids: frozenset[UUID] = frozenset()
    category_id: UUID | None = None
    category_name: str | None = None
    insurance: InsuranceRecord | None = None
    additional_category_details: str | None = None
    duplicate_intent: bool = False
    category_conflict: bool = False
    coverage_floor: Decimal = COVERAGE_FLOOR


@dataclass(frozen=True)
class AdmissionDecision:
    requires_approval: bool
    reasons: tuple[str, ...] = field(default_factory=tuple)

    @property
    def reason_text(self) -> str | None:
        """Joined reasons for storage; None when auto-approved."""
        if not self.requires_approval:
            return None
        if not self.reasons:
            return FALLBACK_REASON
        return REASON_SEPARATOR.join(self.reasons)


def format_millions(amount: Decimal) -> str:
    """20_000_000 -> '$20.0M'."""
    millions = (external_amount(amount) / Decimal(1_000_000)).quantize(
        Decimal("0.1"), rounding=ROUND_HALF_UP,
    )
    return f"${millions}M"


def _floor_label(floor: Decimal) -> str:
    return f"${(floor / Decimal(1_000_000)).normalize():f}M"


# =========================================================================
# Rules
# =========================================================================

Rule = Callable[[AdmissionInput], "str | None"]


def site_requires_manual_approval(inp: AdmissionInput) -> str | None:
    if not inp.site_instant_booking:
        return REASON_MANUAL_SITE
    return None


def insurance_unusable(inp: AdmissionInput) -> str | None:
    if inp.insurance is None:
        return REASON_INSURANCE_MISSING
    if not inp.insurance.is_usable:
        if inp.insurance.error:
            return f"{REASON_INSURANCE_UNREADABLE} ({inp.insurance.error})"
        return REASON_INSURANCE_UNREADABLE
    return None


def insurance_expires_before_end(inp: AdmissionInput) -> str | None:
    ins = inp.insurance
    if ins is None or ins.expiry_date is None:
        return None
    if ins.expiry_date < inp.end_date:
        return REASON_INSURANCE_EXPIRED
    return None


def insurance_below_floor(inp: AdmissionInput) -> str | None:
    ins = inp.insurance
    if ins is None or ins.insured_amount is None:
        return None
    if ins.insured_amount < inp.coverage_floor:
        return (
            f"Insufficient insurance coverage ({format_millions(ins.insured_amount)}, "
            f"requires {_floor_label(inp.coverage_floor)})"
        )
    return None


def category_not_approved(inp: AdmissionInput) -> str | None:
    if not inp.approved_category_ids:
        return None if UNRESTRICTED_WHEN_NO_CATEGORIES else (
            f'Usage category "{inp.category_name or "Unknown"}" not approved for this site'
        )
    if inp.category_id is None:
        return None
    if inp.category_id not in inp.approved_category_ids:
        return f'Usage category "{inp.category_name or "Unknown"}" not approved for this site'
    return None


def custom_category_details(inp: AdmissionInput) -> str | None:
    if inp.additional_category_details and inp.additional_category_details.strip():
        return REASON_CUSTOM_DETAILS
    return None


def duplicate_intent(inp: AdmissionInput) -> str | None:
    if inp.duplicate_intent:
        return REASON_DUPLICATE
    return None


def category_conflict(inp: AdmissionInput) -> str | None:
    """One vendor per usage category per centre at a time."""
    if inp.category_conflict:
        return REASON_CATEGORY_CONFLICT
    return None


ADMISSION_RULES: tuple[Rule, ...] = (
    site_requires_manual_approval,
    insurance_unusable,
    insurance_expires_before_end,
    insurance_below_floor,
    category_not_approved,
    custom_category_details,
    duplicate_intent,
    category_conflict,
)


def evaluate_admission(
    inp: AdmissionInput,
    rules: tuple[Rule, ...] = ADMISSION_RULES,
) -> AdmissionDecision:
    """Run every rule and collect the reasons that fire, in rule order."""
    if inp.end_date < inp.start_date:
        raise ValidationError(
            "end_date",
            f"end date {inp.end_date} is before start date {inp.start_date}",
        )

    reasons = tuple(r for r in (rule(inp) for rule in rules) if r)
    return AdmissionDecision(requires_approval=bool(reasons), reasons=reasons)
