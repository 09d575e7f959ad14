"""
BookingService -- booking admission and management operations.

Responsibility:
    Orchestrates the creation of a site booking (conflict check, pricing,
    admission decision, payment method, booking number, creation record)
    and the staff operations that follow it (approve, reject, cancel,
    complete, mark paid, admin status edit).  Every status write is
    delegated to StatusLifecycleManager.

Architecture position:
    Kernel > Services -- imperative shell.  Pure decisions are made in
    domain/ (admission, payment, pricing, numbering); this service gathers
    their inputs from the database and persists their outcome.

Invariants enforced:
    - Conflict check and insert are serialised by locking the site row
      (SELECT ... FOR UPDATE): of two concurrent overlapping requests, the
      second sees the first's booking and gets ConflictError.
    - The admission decision is made against one snapshot of site, category
      approvals, insurance and duplicate intent, taken under that lock.
    - Payment method is resolved once here and stored on the booking.

Failure modes:
    - ValidationError: end before start, blank rejection reason.
    - SiteNotFoundError / UsageCategoryNotFoundError / CustomerNotFoundError.
    - ConflictError: overlapping live booking on the site.
    - InvalidTransitionError: operation not allowed from the current status.

Audit relevance:
    ``booking_created`` and the lifecycle manager's events are logged with
    booking id, number and actor.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from leasing_kernel.domain.admission import (
    AdmissionDecision,
    AdmissionInput,
    evaluate_admission,
)
from leasing_kernel.domain.booking import (
    LIVE_STATUSES,
    BookingStatus,
    DateRange,
    StatusChange,
)
from leasing_kernel.domain.clock import Clock, SystemClock
from leasing_kernel.domain.insurance import validate_insurance
from leasing_kernel.domain.numbering import (
    booking_number_sequence_name,
    centre_code_for_booking,
    format_booking_number,
)
from leasing_kernel.domain.payment import (
    PaymentMethod,
    RefundStatus,
    resolve_payment_method,
    resolve_refund_outcome,
    resolve_refund_status,
)
from leasing_kernel.domain.ports import DocumentStorage, InsuranceScanner
from leasing_kernel.domain.pricing import (
    CostBreakdown,
    PriceBreakdown,
    calculate_booking_cost,
    price_booking,
)
from leasing_kernel.domain.settings import BookingPolicy
from leasing_kernel.exceptions import (
    BookingNotFoundError,
    ConflictError,
    CustomerNotFoundError,
    SiteNotFoundError,
    UsageCategoryNotFoundError,
    ValidationError,
)
from leasing_kernel.logging_config import LogContext, get_logger
from leasing_kernel.models.booking import Booking
from leasing_kernel.models.centre import Site, UsageCategory
from leasing_kernel.models.customer import CustomerProfile
from leasing_kernel.selectors.overlap_selector import OverlapSelector
from leasing_kernel.services.base import BaseService
from leasing_kernel.services.lifecycle_service import StatusLifecycleManager
from leasing_kernel.services.sequence_service import SequenceService

logger = get_logger("services.booking")

DEFAULT_CANCEL_REASON = "Cancelled by administrator"


@dataclass(frozen=True)
class BookingRequest:
    site_id: UUID
    customer_id: UUID
    start_date: date
    end_date: date
    usage_category_id: UUID | None = None
    additional_category_details: str | None = None
    created_by: UUID | None = None
    created_by_name: str | None = None


@dataclass(frozen=True)
class BookingCreated:
    booking_id: UUID
    booking_number: str
    status: BookingStatus
    decision: AdmissionDecision
    payment_method: PaymentMethod
    payment_due_date: date | None
    cost: CostBreakdown
    price: PriceBreakdown

    @property
    def requires_approval(self) -> bool:
        return self.decision.requires_approval


@dataclass(frozen=True)
class CancellationResult:
    booking_number: str
    refund_status: RefundStatus
    change: StatusChange


class BookingService(BaseService[Booking]):
    """
    Admission and management of site bookings.

    Contract:
        Flushes within the caller's transaction; never commits.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: BookingPolicy | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._policy = policy or BookingPolicy()
        self._lifecycle = StatusLifecycleManager(session, self._clock)
        self._overlaps = OverlapSelector(session)
        self._sequences = SequenceService(session)

    @property
    def lifecycle(self) -> StatusLifecycleManager:
        return self._lifecycle

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def create_booking(self, request: BookingRequest) -> BookingCreated:
        """
        Admit a booking request.

        Steps: lock site -> conflict check -> price -> admission decision ->
        payment method -> booking number -> record creation.
        """
        stay = DateRange(request.start_date, request.end_date)

        with LogContext.bind(
            site_id=str(request.site_id),
            actor_id=str(request.created_by) if request.created_by else None,
        ):
            site = self._lock_site(request.site_id)
            centre = site.centre
            category = self._category(request.usage_category_id)
            profile = self._profile(request.customer_id)

            conflicts = self._overlaps.conflicts(site.id, stay.start, stay.end)
            if conflicts:
                raise ConflictError(
                    site.id,
                    stay.start,
                    stay.end,
                    [c.booking_id for c in conflicts],
                )

            cost = calculate_booking_cost(
                site.price_per_day,
                site.weekend_price_per_day,
                stay.start,
                stay.end,
                [
                    r.to_info()
                    for r in site.seasonal_rates
                    if r.start_date <= stay.end and r.end_date >= stay.start
                ],
            )
            price = price_booking(
                cost.subtotal,
                self._policy.gst_percentage,
                centre.commission_percentage,
            )

            duplicates = self._overlaps.find_duplicate_intent(
                request.customer_id,
                centre.id,
                request.usage_category_id,
            )
            rivals = self._overlaps.find_category_conflicts(
                request.customer_id,
                centre.id,
                request.usage_category_id,
                stay.start,
                stay.end,
            )
            decision = evaluate_admission(
                self._admission_input(
                    site=site,
                    category=category,
                    profile=profile,
                    stay=stay,
                    additional_category_details=request.additional_category_details,
                    duplicate_intent=bool(duplicates),
                    category_conflict=bool(rivals),
                )
            )
            initial = (
                BookingStatus.PENDING
                if decision.requires_approval
                else BookingStatus.CONFIRMED
            )

            payment_method = resolve_payment_method(
                centre.payment_mode,
                profile.can_pay_by_invoice if profile is not None else False,
            )
            payment_due_date = (
                self._clock.today() + timedelta(days=self._policy.invoice_due_days)
                if payment_method == PaymentMethod.INVOICE
                else None
            )

            code = centre_code_for_booking(centre.name, centre.centre_code)
            number = format_booking_number(
                code,
                stay.start,
                self._sequences.next_value(
                    booking_number_sequence_name(code, stay.start)
                ),
            )

            booking = Booking(
                booking_number=number,
                site_id=site.id,
                customer_id=request.customer_id,
                usage_category_id=request.usage_category_id,
                start_date=stay.start,
                end_date=stay.end,
                total_amount=price.total_amount,
                gst_amount=price.gst_amount,
                gst_percentage=price.gst_percentage,
                platform_fee=price.platform_fee,
                owner_amount=price.owner_amount,
                payment_method=payment_method.value,
                payment_due_date=payment_due_date,
                requires_approval=decision.requires_approval,
                approval_reasons=decision.reason_text,
                additional_category_details=request.additional_category_details,
            )
            self._lifecycle.record_creation(
                booking,
                initial,
                changed_by=request.created_by,
                changed_by_name=request.created_by_name,
            )

            logger.info(
                "booking_created",
                extra={
                    "booking_id": str(booking.id),
                    "booking_number": number,
                    "status": initial.value,
                    "requires_approval": decision.requires_approval,
                    "reasons": list(decision.reasons),
                    "payment_method": payment_method.value,
                    "total_amount": price.total_amount,
                },
            )

            return BookingCreated(
                booking_id=booking.id,
                booking_number=number,
                status=initial,
                decision=decision,
                payment_method=payment_method,
                payment_due_date=payment_due_date,
                cost=cost,
                price=price,
            )

    def explain_pending(self, booking_id: UUID) -> AdmissionDecision:
        """Re-evaluate why a booking needs review, against current data."""
        booking = self._booking(booking_id)
        site = booking.site
        duplicates = self._overlaps.find_duplicate_intent(
            booking.customer_id,
            site.centre_id,
            booking.usage_category_id,
            exclude_booking_id=booking.id,
        )
        rivals = self._overlaps.find_category_conflicts(
            booking.customer_id,
            site.centre_id,
            booking.usage_category_id,
            booking.start_date,
            booking.end_date,
            exclude_booking_id=booking.id,
        )
        return evaluate_admission(
            self._admission_input(
                site=site,
                category=booking.usage_category,
                profile=self._profile(booking.customer_id),
                stay=DateRange(booking.start_date, booking.end_date),
                additional_category_details=booking.additional_category_details,
                duplicate_intent=bool(duplicates),
                category_conflict=bool(rivals),
            )
        )

    # ------------------------------------------------------------------
    # Management
    # ------------------------------------------------------------------

    def approve(
        self,
        booking_id: UUID,
        actor_id: UUID,
        actor_name: str | None = None,
        reason: str | None = None,
    ) -> StatusChange:
        return self._lifecycle.change_status(
            booking_id,
            BookingStatus.CONFIRMED,
            changed_by=actor_id,
            changed_by_name=actor_name,
            reason=reason or "Booking approved",
            extra_fields={"approved_by": actor_id, "approved_at": self._clock.now()},
            require_current=frozenset({BookingStatus.PENDING}),
        )

    def reject(
        self,
        booking_id: UUID,
        reason: str,
        actor_id: UUID,
        actor_name: str | None = None,
    ) -> StatusChange:
        if not reason or not reason.strip():
            raise ValidationError("reason", "a rejection reason is required")
        return self._lifecycle.change_status(
            booking_id,
            BookingStatus.REJECTED,
            changed_by=actor_id,
            changed_by_name=actor_name,
            reason=reason,
            extra_fields={"rejection_reason": reason},
            require_current=frozenset({BookingStatus.PENDING}),
        )

    def cancel(
        self,
        booking_id: UUID,
        actor_id: UUID,
        actor_name: str | None = None,
        reason: str | None = None,
        perform_refund: bool = False,
    ) -> CancellationResult:
        """
        Cancel a live booking and record what happens to any payment.

        Issuing the card refund itself is the payment collaborator's job;
        this records ``refund_status`` so it can be actioned.  The refund
        decision and the appended comment are computed from the locked row.
        """
        now = self._clock.now()
        outcome: dict = {}

        def cancellation_fields(locked: Booking) -> dict:
            refund_status, follow_up = resolve_refund_status(
                locked.paid_at, locked.payment_method, perform_refund,
            )
            outcome["refund_status"] = refund_status
            outcome["booking_number"] = locked.booking_number
            fields: dict = {
                "cancelled_at": now,
                "refund_status": refund_status.value,
                "refund_pending_at": now if follow_up else None,
            }
            if reason:
                fields["admin_comments"] = (
                    f"{locked.admin_comments or ''}\n[Cancelled] {reason}"
                )
            return fields

        change = self._lifecycle.change_status(
            booking_id,
            BookingStatus.CANCELLED,
            changed_by=actor_id,
            changed_by_name=actor_name,
            reason=reason or DEFAULT_CANCEL_REASON,
            require_current=LIVE_STATUSES,
            build_fields=cancellation_fields,
        )
        refund_status = outcome["refund_status"]
        logger.info(
            "booking_cancelled",
            extra={
                "booking_id": str(booking_id),
                "booking_number": outcome["booking_number"],
                "refund_status": refund_status.value,
                "perform_refund": perform_refund,
            },
        )
        return CancellationResult(
            booking_number=outcome["booking_number"],
            refund_status=refund_status,
            change=change,
        )

    def record_refund_outcome(
        self,
        booking_id: UUID,
        succeeded: bool,
        actor_id: UUID | None = None,
        actor_name: str | None = None,
    ) -> StatusChange:
        """
        Record the result of the card refund for a cancelled booking.

        A successful refund becomes ``processed``.  A failed one stays
        ``pending`` and is re-flagged for staff with a fresh
        ``refund_pending_at``.
        """
        now = self._clock.now()

        def refund_fields(locked: Booking) -> dict:
            status, follow_up = resolve_refund_outcome(locked.refund_status, succeeded)
            fields: dict = {"refund_status": status.value}
            if follow_up:
                fields["refund_pending_at"] = now
            return fields

        change = self._lifecycle.change_status(
            booking_id,
            BookingStatus.CANCELLED,
            changed_by=actor_id,
            changed_by_name=actor_name,
            reason="Refund processed" if succeeded else "Refund failed - flagged for follow-up",
            require_current=frozenset({BookingStatus.CANCELLED}),
            build_fields=refund_fields,
        )
        logger.info(
            "refund_outcome_recorded",
            extra={"booking_id": str(booking_id), "succeeded": succeeded},
        )
        return change

    def complete(
        self,
        booking_id: UUID,
        actor_id: UUID | None = None,
        actor_name: str | None = None,
    ) -> StatusChange:
        return self._lifecycle.change_status(
            booking_id,
            BookingStatus.COMPLETED,
            changed_by=actor_id,
            changed_by_name=actor_name,
            reason="Booking completed",
            require_current=frozenset({BookingStatus.CONFIRMED}),
        )

    def mark_paid(
        self,
        booking_id: UUID,
        paid_at: datetime | None = None,
        actor_id: UUID | None = None,
        actor_name: str | None = None,
    ) -> StatusChange:
        """Stamp ``paid_at``; the status stays as it is."""
        booking = self._booking(booking_id)
        return self._lifecycle.change_status(
            booking_id,
            booking.status,
            changed_by=actor_id,
            changed_by_name=actor_name,
            reason="Payment received",
            extra_fields={"paid_at": paid_at or self._clock.now()},
        )

    def admin_set_status(
        self,
        booking_id: UUID,
        new_status: BookingStatus | str,
        actor_id: UUID,
        actor_name: str | None = None,
        reason: str | None = None,
        extra_fields: dict | None = None,
    ) -> StatusChange:
        """Status edit from the admin booking screen."""
        return self._lifecycle.change_status(
            booking_id,
            new_status,
            changed_by=actor_id,
            changed_by_name=actor_name,
            reason=reason,
            extra_fields=extra_fields,
        )

    # ------------------------------------------------------------------
    # Insurance
    # ------------------------------------------------------------------

    def refresh_insurance(
        self,
        customer_id: UUID,
        document_key: str,
        scanner: InsuranceScanner,
        storage: DocumentStorage,
    ) -> list[str]:
        """
        Scan the customer's uploaded certificate and store the result.

        Returns the human-readable problems with the certificate (empty when
        it is acceptable).  The stored result is what admission reads.
        """
        profile = self._profile(customer_id)
        if profile is None:
            raise CustomerNotFoundError(str(customer_id))

        url = storage.get(document_key).url
        result = scanner.scan(url)
        profile.apply_scan(result, url)
        self.session.flush()

        problems = validate_insurance(
            result, self._clock.today(), self._policy.coverage_floor,
        )
        logger.info(
            "insurance_refreshed",
            extra={
                "customer_id": str(customer_id),
                "scan_success": result.success,
                "problem_count": len(problems),
            },
        )
        return problems

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock_site(self, site_id: UUID) -> Site:
        site = self.session.execute(
            select(Site)
            .where(Site.id == site_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if site is None:
            raise SiteNotFoundError(str(site_id))
        return site

    def _booking(self, booking_id: UUID) -> Booking:
        booking = self.session.get(Booking, booking_id)
        if booking is None:
            raise BookingNotFoundError(str(booking_id))
        return booking

    def _category(self, category_id: UUID | None) -> UsageCategory | None:
        if category_id is None:
            return None
        category = self.session.get(UsageCategory, category_id)
        if category is None:
            raise UsageCategoryNotFoundError(str(category_id))
        return category

    def _profile(self, customer_id: UUID) -> CustomerProfile | None:
        return self.session.execute(
            select(CustomerProfile).where(CustomerProfile.customer_id == customer_id)
        ).scalar_one_or_none()

    def _admission_input(
        self,
        site: Site,
        category: UsageCategory | None,
        profile: CustomerProfile | None,
        stay: DateRange,
        additional_category_details: str | None,
        duplicate_intent: bool,
        category_conflict: bool = False,
    ) -> AdmissionInput:
        return AdmissionInput(
            site_instant_booking=site.instant_booking,
            start_date=stay.start,
            end_date=stay.end,
            approved_category_ids=site.approved_category_ids,
            category_id=category.id if category is not None else None,
            category_name=category.name if category is not None else None,
            insurance=profile.insurance_record() if profile is not None else None,
            additional_category_details=additional_category_details,
            duplicate_intent=duplicate_intent,
            category_conflict=category_conflict,
            coverage_floor=self._policy.coverage_floor,
        )
