"""
Leasing Kernel

Booking admission control and status lifecycle for a retail-space leasing
marketplace:
- Conflict-free site bookings
- Instant or staff-reviewed admission with recorded reasons
- A single write path for booking status with an append-only history
"""

__version__ = "0.1.0"
