"""
Configuration Loader (``leasing_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen dataclasses in
``leasing_config.schema``.  Runtime callers go through
``leasing_config.get_active_config()`` rather than calling this directly.

Invariants enforced
-------------------
* Missing required keys raise ``KeyError``; bad values raise ``ValueError``.
  There are no silent defaults for required fields.
* Money and percentages are parsed to ``Decimal`` from their string form;
  YAML floats are refused.
* ``compute_checksum`` is deterministic over the parsed YAML.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from leasing_config.schema import (
    AdmissionSettings,
    LeasingConfiguration,
    PaymentSettings,
    PricingSettings,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file gives an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, name: str) -> Decimal:
    if isinstance(value, (bool, float)):
        raise ValueError(f"{name} must be written as an integer or quoted decimal, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name} is not a decimal: {value!r}") from None


def parse_admission(data: dict[str, Any]) -> AdmissionSettings:
    floor = parse_decimal(data["coverage_floor"], "admission.coverage_floor")
    if floor < 0:
        raise ValueError("admission.coverage_floor must be non-negative")
    return AdmissionSettings(coverage_floor=floor)


def parse_pricing(data: dict[str, Any]) -> PricingSettings:
    gst = parse_decimal(data["gst_percentage"], "pricing.gst_percentage")
    if not Decimal("0") <= gst <= Decimal("100"):
        raise ValueError("pricing.gst_percentage must be between 0 and 100")
    return PricingSettings(gst_percentage=gst)


def parse_payment(data: dict[str, Any]) -> PaymentSettings:
    days = data["invoice_due_days"]
    if isinstance(days, bool) or not isinstance(days, int) or days < 0:
        raise ValueError(f"payment.invoice_due_days must be a non-negative integer, got {days!r}")
    return PaymentSettings(invoice_due_days=days)


def parse_configuration(data: dict[str, Any]) -> LeasingConfiguration:
    return LeasingConfiguration(
        config_id=data["config_id"],
        version=int(data["version"]),
        description=data.get("description", ""),
        admission=parse_admission(data["admission"]),
        pricing=parse_pricing(data["pricing"]),
        payment=parse_payment(data["payment"]),
        checksum=compute_checksum(data),
    )


def load_configuration(path: Path) -> LeasingConfiguration:
    return parse_configuration(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
