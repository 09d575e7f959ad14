"""
LeasingConfiguration schema.

The human-authored, reviewable settings that govern admission, pricing and
payment.  YAML is parsed into these types by the loader; the kernel sees
them only through ``leasing_config.bridges``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class AdmissionSettings:
    """Admission control thresholds."""

    # Minimum public-liability cover in dollars; equal passes.
    coverage_floor: Decimal


@dataclass(frozen=True)
class PricingSettings:
    gst_percentage: Decimal


@dataclass(frozen=True)
class PaymentSettings:
    # Days from booking creation until an invoice falls due.
    invoice_due_days: int


@dataclass(frozen=True)
class LeasingConfiguration:
    """
    One complete configuration set.

    ``checksum`` is the SHA-256 of the canonical JSON form of the source
    YAML, so two loads of the same file always agree.
    """

    config_id: str
    version: int
    admission: AdmissionSettings
    pricing: PricingSettings
    payment: PaymentSettings
    checksum: str
    description: str = ""
