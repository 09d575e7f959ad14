"""
Module: leasing_kernel.models.customer
Responsibility: ORM persistence for customer profiles and the insurance
    certificate currently on file.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - One profile per customer (unique customer_id).
    - insurance_success is NULL until a certificate has been scanned; a
      profile in that state has no insurance record at all.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from leasing_kernel.db.base import TrackedBase, UUIDString
from leasing_kernel.domain.insurance import InsuranceRecord, InsuranceScanResult


class CustomerProfile(TrackedBase):
    __tablename__ = "customer_profiles"

    customer_id: Mapped[UUID] = mapped_column(
        UUIDString(), nullable=False, unique=True,
    )
    display_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    can_pay_by_invoice: Mapped[bool] = mapped_column(nullable=False, default=False)

    insurance_success: Mapped[bool | None] = mapped_column(nullable=True)
    insurance_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)
    insurance_amount: Mapped[Decimal | None] = mapped_column(Numeric(16, 2), nullable=True)
    insurance_policy_number: Mapped[str | None] = mapped_column(
        String(100), nullable=True,
    )
    insurance_company: Mapped[str | None] = mapped_column(String(200), nullable=True)
    insurance_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    insurance_document_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    def insurance_record(self) -> InsuranceRecord | None:
        if self.insurance_success is None:
            return None
        return InsuranceRecord(
            success=self.insurance_success,
            expiry_date=self.insurance_expiry,
            insured_amount=self.insurance_amount,
            policy_number=self.insurance_policy_number,
            insurance_company=self.insurance_company,
            error=self.insurance_error,
            document_url=self.insurance_document_url,
        )

    def apply_scan(self, result: InsuranceScanResult, document_url: str) -> None:
        self.insurance_success = result.success
        self.insurance_expiry = result.expiry_date
        self.insurance_amount = result.insured_amount
        self.insurance_policy_number = result.policy_number
        self.insurance_company = result.insurance_company
        self.insurance_error = result.error
        self.insurance_document_url = document_url

    def __repr__(self) -> str:
        return f"<CustomerProfile {self.customer_id}>"
