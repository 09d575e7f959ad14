"""leasing_config: YAML loading, checksum trace and the kernel bridge."""

from decimal import Decimal
from pathlib import Path

import pytest

from leasing_config import DEFAULT_CONFIG_PATH, get_active_config
from leasing_config.bridges import to_booking_policy
from leasing_config.loader import compute_checksum, parse_configuration
from leasing_kernel.domain.insurance import COVERAGE_FLOOR
from leasing_kernel.domain.settings import BookingPolicy


def _data(**overrides) -> dict:
    data = {
        "config_id": "test",
        "version": 1,
        "admission": {"coverage_floor": 20000000},
        "pricing": {"gst_percentage": "10.00"},
        "payment": {"invoice_due_days": 7},
    }
    data.update(overrides)
    return data


class TestDefaultSet:
    def test_default_matches_kernel_defaults(self):
        config = get_active_config()

        assert config.admission.coverage_floor == COVERAGE_FLOOR
        assert to_booking_policy(config) == BookingPolicy()

    def test_trace_is_logged(self, captured_logs):
        config = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "LEASING_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["checksum"] == config.checksum
        assert traces[0]["config_set_id"] == "retail-leasing-default"

    def test_checksum_is_stable(self):
        assert get_active_config().checksum == get_active_config().checksum
        assert len(get_active_config().checksum) == 64

    def test_default_path_ships_with_package(self):
        assert DEFAULT_CONFIG_PATH.exists()


class TestParsing:
    def test_override_path(self, tmp_path: Path):
        path = tmp_path / "strict.yaml"
        path.write_text(
            "config_id: strict\n"
            "version: 2\n"
            "admission:\n  coverage_floor: 30000000\n"
            "pricing:\n  gst_percentage: '0'\n"
            "payment:\n  invoice_due_days: 14\n"
        )

        policy = to_booking_policy(get_active_config(path))

        assert policy == BookingPolicy(
            coverage_floor=Decimal("30000000"),
            gst_percentage=Decimal("0"),
            invoice_due_days=14,
        )

    def test_missing_section(self):
        data = _data()
        del data["pricing"]
        with pytest.raises(KeyError):
            parse_configuration(data)

    def test_float_money_is_refused(self):
        with pytest.raises(ValueError):
            parse_configuration(_data(pricing={"gst_percentage": 10.5}))

    def test_negative_floor(self):
        with pytest.raises(ValueError):
            parse_configuration(_data(admission={"coverage_floor": -1}))

    def test_invalid_due_days(self):
        with pytest.raises(ValueError):
            parse_configuration(_data(payment={"invoice_due_days": "seven"}))

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})
