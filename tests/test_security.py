import pytest

from mandate_intake.errors import ValidationError
from mandate_intake.rate_limit import RateLimiter
from mandate_intake.security import (
    extract_client_id,
    validate_amounts,
    validate_email,
    validate_envelope,
    validate_identifier,
    validate_single_line,
)


def test_validate_amounts_accepts_consistent_values():
    amounts = validate_amounts(500, 100, 400)
    assert amounts.fee == 100
    assert amounts.net_amount == 400


def test_validate_amounts_tolerates_rounding():
    validate_amounts(1234.56, 123.456, 1111.104)
    validate_amounts(1234.56, 123.46, 1111.10)


def test_validate_amounts_accepts_negative_total():
    # Same rule as calculate_fee: a negative balance still carries the minimum fee
    amounts = validate_amounts(-500, 100, -600)
    assert amounts.total_assets == -500
    assert amounts.net_amount == -600


@pytest.mark.parametrize("total,fee,net,field", [
    (2000, 100, 1900, "amounts.fee"),
    (2000, 200, 2000, "amounts.netAmount"),
    (-5, 100, -5, "amounts.netAmount"),
    (float("nan"), 100, 0, "amounts.totalAssets"),
    (True, 100, -99, "amounts.totalAssets"),
    (100, "100", 0, "amounts.fee"),
])
def test_validate_amounts_rejects(total, fee, net, field):
    with pytest.raises(ValidationError) as exc:
        validate_amounts(total, fee, net)
    assert exc.value.field == field


def test_validate_identifier():
    assert validate_identifier("da5bac51-412c-7931-6378-5391bb851f8a")
    with pytest.raises(ValidationError):
        validate_identifier("da5bac51412c793163785391bb851f8a")


def test_validate_envelope_size_limit():
    huge = "-----BEGIN MANDATE ENVELOPE-----\n" + "A" * 300_000 + "\n-----END MANDATE ENVELOPE-----"
    with pytest.raises(ValidationError):
        validate_envelope(huge)


@pytest.mark.parametrize("email", ["", "plain", "a@b", "a b@c.d", "a@b.co\n", "a@b.co\r\nBcc: x@evil.test"])
def test_validate_email_rejects(email):
    with pytest.raises(ValidationError):
        validate_email(email)


def test_extract_client_id():
    assert extract_client_id({"x-forwarded-for": "1.2.3.4, 10.0.0.1"}, "10.0.0.1") == "ip:1.2.3.4"
    assert extract_client_id({}, "10.0.0.9") == "ip:10.0.0.9"
    assert extract_client_id({}) == "anonymous"


def test_rate_limiter_window():
    limiter = RateLimiter(2)
    assert limiter.allow("a")
    assert limiter.allow("a")
    result = limiter.check("a")
    assert not result.allowed
    assert result.retry_after is not None and result.retry_after > 0
    # Keys are independent
    assert limiter.allow("b")
    limiter.reset("a")
    assert limiter.allow("a")


@pytest.mark.parametrize("value", ["Jean\r\nBcc: x@evil.test", "Jean\nTremblay", "Jean\r"])
def test_validate_single_line_rejects_line_breaks(value):
    with pytest.raises(ValidationError) as exc:
        validate_single_line(value, "nom")
    assert exc.value.field == "nom"


def test_validate_single_line_accepts_plain_value():
    assert validate_single_line("Jean-Luc O'Brien", "nom") == "Jean-Luc O'Brien"
