from datetime import date, datetime
from decimal import Decimal

import pytest

from restaurant_ops.domain.models import ProviderConfig, WeekSelection
from restaurant_ops.domain.models.sales import provider_id_from_name
from restaurant_ops.utils.logging_redaction import redact_message
from restaurant_ops.utils.money import format_currency, normalize_flag, to_count, to_decimal
from restaurant_ops.utils.time import day_name, is_within_week, parse_iso_date, range_key


@pytest.mark.parametrize(
    "raw, expected",
    [("12.5", Decimal("12.5")), ("$1,250.00", Decimal("1250.00")), ("", Decimal("0")), ("abc", Decimal("0")),
     (None, Decimal("0")), (7, Decimal("7")), ("NaN", Decimal("0"))],
)
def test_to_decimal_is_lenient(raw, expected):
    assert to_decimal(raw) == expected


def test_format_currency_rounds_half_up():
    assert format_currency(Decimal("2.005")) == "2.01"
    assert format_currency("3") == "3.00"
    assert to_count("12.9") == 12


def test_normalize_flag_default_for_unknown():
    assert normalize_flag(None, default=True) is True
    assert normalize_flag("maybe") is None
    assert normalize_flag("Closed") is False


def test_week_range_is_inclusive():
    week = WeekSelection(start_date=date(2026, 10, 12))

    assert week.end_date == date(2026, 10, 18)
    assert week.contains(date(2026, 10, 12))
    assert week.contains(date(2026, 10, 18))
    assert not week.contains(date(2026, 10, 19))
    assert is_within_week(date(2026, 10, 18), date(2026, 10, 12))
    assert week.key == range_key(date(2026, 10, 12), date(2026, 10, 18))


def test_day_name_and_date_parsing():
    assert day_name(date(2026, 10, 18)) == "Sunday"
    assert parse_iso_date("2026-10-12T00:00:00Z") == date(2026, 10, 12)
    assert parse_iso_date(datetime(2026, 10, 12, 9, 30)) == date(2026, 10, 12)
    with pytest.raises(ValueError):
        parse_iso_date(None)


def test_provider_ids_are_stable():
    assert provider_id_from_name("DoorDash") == "doordash"
    assert provider_id_from_name(" Skip The Dishes ") == "skip_the_dishes"

    config = ProviderConfig.from_payload([{"provider_name": "Uber Eats"}, {"provider_name": "uber eats"}, "", "In Store"])

    assert [p.id for p in config.providers] == ["uber_eats"]
    assert config.channel_ids == ("in_store", "app_online", "uber_eats")


def test_redaction_hides_tokens():
    message = redact_message("GET /api with Authorization: Bearer abc.def-123 token=xyz")

    assert "abc.def-123" not in message
    assert "xyz" not in message
