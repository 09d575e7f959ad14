"""
Booking numbers (``leasing_kernel.domain.numbering``).

Human-readable booking numbers have the form ``CODE-YYYYMMDD-NNN``: a
four-letter centre code, the booking's start date, and a per
centre-and-day sequence allocated by ``SequenceService``.
"""

from __future__ import annotations

from datetime import date

CENTRE_CODE_LENGTH = 4


def abbreviate_centre_name(name: str) -> str:
    """
    Four-letter code derived from a centre name.

    "Campbelltown Mall" -> "CAMA"
    "Rouse Hill Town Centre" -> "RHTC"
    """
    words = name.split()

    if len(words) <= 1:
        source = words[0] if words else name.strip()
        return source[:4].upper().ljust(CENTRE_CODE_LENGTH, "X")

    if len(words) == 2:
        return (words[0][:2] + words[1][:2]).upper().ljust(CENTRE_CODE_LENGTH, "X")

    if len(words) == 3:
        return (words[0][:2] + words[1][0] + words[2][0]).upper()

    return "".join(w[0] for w in words[:4]).upper()


def centre_code_for_booking(name: str, centre_code: str | None) -> str:
    """Stored code when it is already short, otherwise an abbreviation."""
    if centre_code and len(centre_code) <= CENTRE_CODE_LENGTH:
        return centre_code.upper()
    return abbreviate_centre_name(name)


def booking_number_sequence_name(code: str, start_date: date) -> str:
    return f"booking_number:{code}:{start_date:%Y%m%d}"


def format_booking_number(code: str, start_date: date, sequence: int) -> str:
    return f"{code}-{start_date:%Y%m%d}-{sequence:03d}"
