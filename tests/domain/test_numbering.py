"""Booking number format and centre codes."""

from datetime import date

import pytest

from leasing_kernel.domain.numbering import (
    abbreviate_centre_name,
    booking_number_sequence_name,
    centre_code_for_booking,
    format_booking_number,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Campbelltown Mall", "CAMA"),
        ("Westfield Parramatta", "WEPA"),
        ("Castle Towers", "CATO"),
        ("Rouse Hill Town Centre", "RHTC"),
        ("Macquarie Park Village", "MAPV"),
        ("Chatswood", "CHAT"),
        ("Ox", "OXXX"),
    ],
)
def test_abbreviate_centre_name(name, expected):
    assert abbreviate_centre_name(name) == expected


def test_short_stored_code_is_used():
    assert centre_code_for_booking("Campbelltown Mall", "cmp") == "CMP"


def test_long_stored_code_falls_back_to_abbreviation():
    assert centre_code_for_booking("Campbelltown Mall", "CAMPBELL") == "CAMA"


def test_booking_number_uses_start_date():
    assert format_booking_number("CAMA", date(2024, 3, 4), 7) == "CAMA-20240304-007"


def test_sequence_name_is_per_code_and_day():
    assert (
        booking_number_sequence_name("CAMA", date(2024, 3, 4))
        == "booking_number:CAMA:20240304"
    )
