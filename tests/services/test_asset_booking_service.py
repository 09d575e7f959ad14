"""AssetBookingService: vacant-shop and third-line bookings with audit log."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from leasing_kernel.domain.booking import AssetType, BookingStatus
from leasing_kernel.exceptions import (
    AssetBookingNotFoundError,
    AuditWriteError,
    ConflictError,
    InvalidTransitionError,
    ValidationError,
)
from leasing_kernel.models.asset_booking import AssetBooking
from leasing_kernel.selectors.history_selector import HistorySelector
from leasing_kernel.services.asset_booking_service import (
    AssetBookingRequest,
    asset_lock_name,
)
from leasing_kernel.services.sequence_service import SequenceService


def _request(asset_id=None, start=date(2024, 3, 1), end=date(2024, 3, 31), **kw):
    return AssetBookingRequest(
        asset_type=kw.pop("asset_type", AssetType.VACANT_SHOP),
        asset_id=asset_id or uuid4(),
        customer_id=uuid4(),
        start_date=start,
        end_date=end,
        total_amount=Decimal("3100.00"),
        **kw,
    )


@pytest.fixture
def history(session) -> HistorySelector:
    return HistorySelector(session)


class TestCreate:
    def test_created_pending_with_audit_entry(
        self, asset_booking_service, history, test_actor_id,
    ):
        booking = asset_booking_service.create_booking(
            _request(created_by=test_actor_id)
        )

        assert booking.status == "pending"
        assert booking.booking_number == "VS-20240301-001"
        log = history.entity_audit_log("vacant_shop_booking", booking.id)
        assert len(log) == 1
        assert log[0].previous_status is None
        assert log[0].new_status == "pending"
        assert log[0].changed_by == test_actor_id

    def test_third_line_numbering(self, asset_booking_service):
        booking = asset_booking_service.create_booking(
            _request(asset_type=AssetType.THIRD_LINE)
        )
        assert booking.booking_number.startswith("TL-20240301-")

    def test_overlap_on_same_asset_is_refused(self, asset_booking_service):
        asset_id = uuid4()
        asset_booking_service.create_booking(_request(asset_id))

        with pytest.raises(ConflictError):
            asset_booking_service.create_booking(
                _request(asset_id, date(2024, 3, 31), date(2024, 4, 30))
            )

    def test_creation_takes_the_per_asset_lock(self, session, asset_booking_service):
        asset_id = uuid4()
        asset_booking_service.create_booking(_request(asset_id))
        asset_booking_service.create_booking(
            _request(asset_id, date(2024, 4, 1), date(2024, 4, 30))
        )

        sequences = SequenceService(session)
        assert sequences.current_value(
            asset_lock_name(AssetType.VACANT_SHOP, asset_id)
        ) == 2
        assert sequences.current_value(
            asset_lock_name(AssetType.THIRD_LINE, asset_id)
        ) is None

    def test_negative_amount(self, asset_booking_service):
        request = AssetBookingRequest(
            asset_type=AssetType.VACANT_SHOP,
            asset_id=uuid4(),
            customer_id=uuid4(),
            start_date=date(2024, 3, 1),
            end_date=date(2024, 3, 2),
            total_amount=Decimal("-1"),
        )
        with pytest.raises(ValidationError):
            asset_booking_service.create_booking(request)


class TestUpdateStatus:
    def test_transition_is_audited(self, session, asset_booking_service, history,
                                   test_actor_id, deterministic_clock):
        booking = asset_booking_service.create_booking(_request())

        change = asset_booking_service.update_status(
            booking.id,
            BookingStatus.CONFIRMED,
            changed_by=test_actor_id,
            reason="Lease signed",
            extra_fields={"approved_by": test_actor_id,
                          "approved_at": deterministic_clock.now()},
        )

        assert change.previous_status == BookingStatus.PENDING
        assert session.get(AssetBooking, booking.id).status == "confirmed"
        log = history.entity_audit_log("vacant_shop_booking", booking.id)
        assert [(e.previous_status, e.new_status) for e in log] == [
            (None, "pending"),
            ("pending", "confirmed"),
        ]

    def test_same_status_is_a_noop(self, asset_booking_service, history):
        booking = asset_booking_service.create_booking(_request())

        change = asset_booking_service.update_status(booking.id, "pending")

        assert change.recorded is False
        assert len(history.entity_audit_log("vacant_shop_booking", booking.id)) == 1

    def test_terminal_status_has_no_exits(self, asset_booking_service):
        booking = asset_booking_service.create_booking(_request())
        asset_booking_service.update_status(booking.id, "rejected", reason="No")

        with pytest.raises(InvalidTransitionError):
            asset_booking_service.update_status(booking.id, "confirmed")

    def test_unknown_booking(self, asset_booking_service):
        with pytest.raises(AssetBookingNotFoundError):
            asset_booking_service.update_status(uuid4(), "confirmed")

    def test_unknown_extra_field(self, asset_booking_service):
        booking = asset_booking_service.create_booking(_request())
        with pytest.raises(ValidationError):
            asset_booking_service.update_status(
                booking.id, "confirmed", extra_fields={"total_amount": 0},
            )

    def test_audit_failure_rolls_back_status(
        self, session, asset_booking_service, history, monkeypatch,
    ):
        booking = asset_booking_service.create_booking(_request())

        def _fail(*args, **kwargs):
            raise AuditWriteError(booking.id, "confirmed", "disk full")

        monkeypatch.setattr(
            asset_booking_service._lifecycle, "log_asset_status_change", _fail,
        )

        with pytest.raises(AuditWriteError):
            asset_booking_service.update_status(booking.id, "confirmed")

        assert session.get(AssetBooking, booking.id).status == "pending"
        assert len(history.entity_audit_log("vacant_shop_booking", booking.id)) == 1
