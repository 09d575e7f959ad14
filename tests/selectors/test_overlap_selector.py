"""Conflict, duplicate-intent and category-exclusivity queries."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from leasing_kernel.domain.booking import AssetType, BookingStatus
from leasing_kernel.exceptions import ValidationError
from leasing_kernel.selectors.overlap_selector import OverlapSelector
from leasing_kernel.services.asset_booking_service import AssetBookingRequest

MONDAY = date(2024, 3, 4)


@pytest.fixture
def selector(session) -> OverlapSelector:
    return OverlapSelector(session)


@pytest.fixture
def site(make_site):
    return make_site()


@pytest.fixture
def booked(booking_service, site, make_profile, booking_request):
    """Site booked 2024-03-04 .. 2024-03-06."""
    profile = make_profile()
    return booking_service.create_booking(
        booking_request(site, profile.customer_id, MONDAY, date(2024, 3, 6))
    )


class TestConflicts:
    def test_overlapping_range_conflicts(self, selector, site, booked):
        found = selector.conflicts(site.id, date(2024, 3, 6), date(2024, 3, 8))
        assert [b.booking_id for b in found] == [booked.booking_id]

    def test_adjacent_range_is_free(self, selector, site, booked):
        assert selector.conflicts(site.id, date(2024, 3, 7), date(2024, 3, 9)) == []

    def test_other_site_is_free(self, selector, make_site, booked):
        other = make_site()
        assert selector.conflicts(other.id, MONDAY, date(2024, 3, 6)) == []

    def test_exclude_booking(self, selector, site, booked):
        assert selector.conflicts(
            site.id, MONDAY, MONDAY, exclude_booking_id=booked.booking_id,
        ) == []

    def test_cancelled_booking_does_not_conflict(
        self, selector, site, booked, booking_service, test_actor_id,
    ):
        booking_service.cancel(booked.booking_id, test_actor_id)
        assert selector.conflicts(site.id, MONDAY, date(2024, 3, 6)) == []

    def test_pending_booking_conflicts(
        self, selector, make_site, make_profile, booking_service, booking_request,
    ):
        site = make_site(instant_booking=False)
        created = booking_service.create_booking(
            booking_request(site, make_profile().customer_id)
        )
        assert created.status == BookingStatus.PENDING
        assert len(selector.conflicts(site.id, MONDAY, MONDAY)) == 1

    def test_end_before_start(self, selector, site):
        with pytest.raises(ValidationError):
            selector.conflicts(site.id, date(2024, 3, 6), MONDAY)

    def test_conflict_is_logged(self, selector, site, booked, captured_logs):
        selector.conflicts(site.id, MONDAY, MONDAY)
        assert any(
            r["message"] == "booking_conflict_detected" and r["conflict_count"] == 1
            for r in captured_logs()
        )


class TestDuplicateIntent:
    def test_same_customer_category_and_centre(
        self, selector, make_site, make_category, make_profile, booking_service,
        booking_request,
    ):
        category = make_category()
        first_site = make_site(approved_categories=[category])
        second_site = make_site(centre=first_site.centre)
        profile = make_profile()
        created = booking_service.create_booking(
            booking_request(
                first_site, profile.customer_id,
                usage_category_id=category.id,
            )
        )

        found = selector.find_duplicate_intent(
            profile.customer_id, second_site.centre_id, category.id,
        )

        assert [b.booking_id for b in found] == [created.booking_id]

    def test_other_centre_is_not_a_duplicate(
        self, selector, make_site, make_category, make_profile, booking_service,
        booking_request,
    ):
        category = make_category()
        site = make_site()
        profile = make_profile()
        booking_service.create_booking(
            booking_request(site, profile.customer_id, usage_category_id=category.id)
        )

        other = make_site()
        assert selector.find_duplicate_intent(
            profile.customer_id, other.centre_id, category.id,
        ) == []

    def test_cancelled_bookings_are_excluded_by_default(
        self, selector, make_site, make_category, make_profile, booking_service,
        booking_request, test_actor_id,
    ):
        category = make_category()
        site = make_site()
        profile = make_profile()
        created = booking_service.create_booking(
            booking_request(site, profile.customer_id, usage_category_id=category.id)
        )
        booking_service.cancel(created.booking_id, test_actor_id)

        assert selector.find_duplicate_intent(
            profile.customer_id, site.centre_id, category.id,
        ) == []
        assert len(selector.find_duplicate_intent(
            profile.customer_id, site.centre_id, category.id,
            excluding_cancelled=False,
        )) == 1

    def test_no_category_never_duplicates(self, selector, site):
        assert selector.find_duplicate_intent(uuid4(), site.centre_id, None) == []


class TestCategoryConflicts:
    @pytest.fixture
    def holder(self, make_site, make_category, make_profile, booking_service,
               booking_request):
        """Another customer holds the category at the centre 2024-03-04 .. 06."""
        category = make_category()
        held_site = make_site(approved_categories=[category])
        customer_id = make_profile().customer_id
        created = booking_service.create_booking(
            booking_request(held_site, customer_id, MONDAY, date(2024, 3, 6),
                            usage_category_id=category.id)
        )
        return created, held_site, category, customer_id

    def test_other_customer_on_another_site_conflicts(self, selector, holder):
        created, held_site, category, _ = holder

        found = selector.find_category_conflicts(
            uuid4(), held_site.centre_id, category.id,
            date(2024, 3, 6), date(2024, 3, 9),
        )

        assert [b.booking_id for b in found] == [created.booking_id]

    def test_own_bookings_are_not_rivals(self, selector, holder):
        _, held_site, category, customer_id = holder
        assert selector.find_category_conflicts(
            customer_id, held_site.centre_id, category.id, MONDAY, MONDAY,
        ) == []

    def test_non_overlapping_dates(self, selector, holder):
        _, held_site, category, _ = holder
        assert selector.find_category_conflicts(
            uuid4(), held_site.centre_id, category.id,
            date(2024, 3, 7), date(2024, 3, 9),
        ) == []

    def test_other_centre(self, selector, holder, make_site):
        _, _, category, _ = holder
        assert selector.find_category_conflicts(
            uuid4(), make_site().centre_id, category.id, MONDAY, MONDAY,
        ) == []

    def test_other_category(self, selector, holder, make_category):
        _, held_site, _, _ = holder
        assert selector.find_category_conflicts(
            uuid4(), held_site.centre_id, make_category().id, MONDAY, MONDAY,
        ) == []

    def test_cancelled_holder_releases_the_category(
        self, selector, holder, booking_service, test_actor_id,
    ):
        created, held_site, category, _ = holder
        booking_service.cancel(created.booking_id, test_actor_id)

        assert selector.find_category_conflicts(
            uuid4(), held_site.centre_id, category.id, MONDAY, MONDAY,
        ) == []

    def test_exclude_booking(self, selector, holder):
        created, held_site, category, _ = holder
        assert selector.find_category_conflicts(
            uuid4(), held_site.centre_id, category.id, MONDAY, MONDAY,
            exclude_booking_id=created.booking_id,
        ) == []

    def test_no_category_never_conflicts(self, selector, site):
        assert selector.find_category_conflicts(
            uuid4(), site.centre_id, None, MONDAY, MONDAY,
        ) == []


class TestAssetConflicts:
    def test_overlap_on_same_asset(self, selector, asset_booking_service):
        asset_id = uuid4()
        booking = asset_booking_service.create_booking(
            AssetBookingRequest(
                asset_type=AssetType.VACANT_SHOP,
                asset_id=asset_id,
                customer_id=uuid4(),
                start_date=MONDAY,
                end_date=date(2024, 3, 31),
                total_amount=Decimal("4000.00"),
            )
        )

        found = selector.asset_conflicts(
            AssetType.VACANT_SHOP, asset_id, date(2024, 3, 31), date(2024, 4, 2),
        )
        assert [b.asset_booking_id for b in found] == [booking.id]
        assert selector.asset_conflicts(
            AssetType.THIRD_LINE, asset_id, MONDAY, MONDAY,
        ) == []
