"""
Module: leasing_kernel.models.centre
Responsibility: ORM persistence for shopping centres, their bookable sites,
    usage categories, per-site category approvals and seasonal rates.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - Centre.payment_mode is one of the PaymentMode values (check constraint).
    - Site prices are non-negative (check constraints).
    - A site with NO approved categories accepts every category.  This is a
      business policy evaluated by domain.admission, not an absence of data.
    - SeasonalRate.start_date <= end_date (check constraint).

Failure modes:
    - IntegrityError on duplicate (site, category) approval rows.

Audit relevance:
    These rows are reference data read at admission time.  Admission
    snapshots them into an AdmissionInput, so later edits never change a
    decision already made.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Numeric,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leasing_kernel.db.base import Base, TrackedBase, UUIDString
from leasing_kernel.domain.payment import PaymentMode
from leasing_kernel.domain.pricing import SeasonalRateInfo

site_approved_categories = Table(
    "site_approved_categories",
    Base.metadata,
    Column("site_id", UUIDString(), ForeignKey("sites.id"), primary_key=True),
    Column(
        "usage_category_id",
        UUIDString(),
        ForeignKey("usage_categories.id"),
        primary_key=True,
    ),
)


class Centre(TrackedBase):
    """A shopping centre; owns sites and sets the payment mode."""

    __tablename__ = "centres"

    __table_args__ = (
        CheckConstraint(
            "payment_mode IN ('stripe', 'stripe_with_exceptions', 'invoice_only')",
            name="ck_centres_payment_mode",
        ),
        CheckConstraint(
            "commission_percentage >= 0 AND commission_percentage <= 100",
            name="ck_centres_commission_range",
        ),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    centre_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    payment_mode: Mapped[str] = mapped_column(
        String(30), nullable=False, default=PaymentMode.STRIPE.value,
    )
    commission_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False, default=Decimal("0"),
    )

    sites: Mapped[list[Site]] = relationship(back_populates="centre")

    def __repr__(self) -> str:
        return f"<Centre {self.name} mode={self.payment_mode}>"


class UsageCategory(Base):
    """What a customer intends to use a site for (e.g. "Charity", "Food")."""

    __tablename__ = "usage_categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<UsageCategory {self.name}>"


class Site(TrackedBase):
    """A bookable space within a centre."""

    __tablename__ = "sites"

    __table_args__ = (
        UniqueConstraint("centre_id", "site_number", name="uq_sites_centre_number"),
        CheckConstraint("price_per_day >= 0", name="ck_sites_price_non_negative"),
        CheckConstraint(
            "weekend_price_per_day IS NULL OR weekend_price_per_day >= 0",
            name="ck_sites_weekend_price_non_negative",
        ),
    )

    centre_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("centres.id"), nullable=False, index=True,
    )
    site_number: Mapped[str] = mapped_column(String(50), nullable=False)
    instant_booking: Mapped[bool] = mapped_column(nullable=False, default=True)
    price_per_day: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    weekend_price_per_day: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    centre: Mapped[Centre] = relationship(back_populates="sites")
    approved_categories: Mapped[list[UsageCategory]] = relationship(
        secondary=site_approved_categories,
        lazy="selectin",
    )
    seasonal_rates: Mapped[list[SeasonalRate]] = relationship(
        back_populates="site",
        order_by="SeasonalRate.created_at",
    )

    @property
    def approved_category_ids(self) -> frozenset[UUID]:
        return frozenset(c.id for c in self.approved_categories)

    def __repr__(self) -> str:
        return f"<Site {self.site_number} instant={self.instant_booking}>"


class SeasonalRate(TrackedBase):
    """Date-ranged day-rate override for one site."""

    __tablename__ = "seasonal_rates"

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_seasonal_rates_range"),
    )

    site_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("sites.id"), nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    weekday_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    weekend_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    site: Mapped[Site] = relationship(back_populates="seasonal_rates")

    def to_info(self) -> SeasonalRateInfo:
        return SeasonalRateInfo(
            name=self.name,
            start_date=self.start_date,
            end_date=self.end_date,
            weekday_rate=self.weekday_rate,
            weekend_rate=self.weekend_rate,
        )
