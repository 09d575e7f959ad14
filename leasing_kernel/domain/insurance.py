"""
Insurance certificate domain types (``leasing_kernel.domain.insurance``).

Responsibility
--------------
Value objects for the public-liability insurance a customer holds, and the
validation applied to a fresh OCR scan result before it is stored on the
customer profile.  The scan itself is performed by an external
``InsuranceScanner`` (see ``domain/ports.py``); this module only interprets
its output.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.

Invariants enforced
-------------------
* An ``InsuranceRecord`` is *usable* only if the scan succeeded and both the
  expiry date and the insured amount were extracted.  Anything else is
  treated as unreadable by admission control.
* Insured amounts are held as ``Decimal``.  Scanners report plain numbers;
  they are converted on construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from leasing_kernel.domain.values import external_amount

# Minimum public-liability cover in dollars.  Equal to the floor passes.
COVERAGE_FLOOR = Decimal("20000000")


@dataclass(frozen=True)
class InsuranceScanResult:
    """Result of scanning an uploaded insurance certificate."""

    success: bool
    expiry_date: date | None = None
    insured_amount: Decimal | None = None
    policy_number: str | None = None
    insurance_company: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "insured_amount", external_amount(self.insured_amount))


@dataclass(frozen=True)
class InsuranceRecord:
    """The insurance currently on file for a customer."""

    success: bool
    expiry_date: date | None = None
    insured_amount: Decimal | None = None
    policy_number: str | None = None
    insurance_company: str | None = None
    error: str | None = None
    document_url: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "insured_amount", external_amount(self.insured_amount))

    @property
    def is_usable(self) -> bool:
        return (
            self.success
            and self.expiry_date is not None
            and self.insured_amount is not None
        )

    @classmethod
    def from_scan(
        cls, result: InsuranceScanResult, document_url: str | None = None,
    ) -> InsuranceRecord:
        return cls(
            success=result.success,
            expiry_date=result.expiry_date,
            insured_amount=result.insured_amount,
            policy_number=result.policy_number,
            insurance_company=result.insurance_company,
            error=result.error,
            document_url=document_url,
        )


def validate_insurance(
    result: InsuranceScanResult,
    today: date,
    coverage_floor: Decimal = COVERAGE_FLOOR,
) -> list[str]:
    """Return the human-readable problems with a scan result (empty if none)."""
    if not result.success:
        return [result.error or "Failed to scan insurance document"]

    errors: list[str] = []

    if result.expiry_date is None:
        errors.append("Could not find expiry date in document")
    elif result.expiry_date < today:
        errors.append(f"Insurance expired on {result.expiry_date.isoformat()}")

    if result.insured_amount is None:
        errors.append("Could not find insured amount in document")
    elif result.insured_amount < coverage_floor:
        errors.append(
            f"Insured amount ${result.insured_amount:,.0f} is below the "
            f"required ${coverage_floor:,.0f}"
        )

    if not result.policy_number:
        errors.append("Could not find policy number in document")

    if not result.insurance_company:
        errors.append("Could not find insurance company name in document")

    return errors
