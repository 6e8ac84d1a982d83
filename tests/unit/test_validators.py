"""Tests for the review and admin-reply validation gate."""
import pytest

from qreview.services.validators import parse_rating, validate_admin_reply, validate_review


def _valid_review(**overrides):
    payload = {
        "company_name": "Acme",
        "position": "Developer",
        "duration": "2 ans",
        "rating": 4,
        "email": "jane@example.com",
        "comment": "Good team.",
        "siret": "12345678901234",
    }
    payload.update(overrides)
    return payload


@pytest.mark.unit
def test_fully_valid_review_has_no_errors():
    assert validate_review(_valid_review()) == []


@pytest.mark.unit
def test_empty_payload_reports_every_required_field():
    errors = validate_review({})

    assert "company_name is required" in errors
    assert "position is required" in errors
    assert "duration is required" in errors
    assert "rating must be an integer between 1 and 5" in errors
    assert "A valid email is required" in errors


@pytest.mark.unit
def test_none_payload_is_treated_as_empty():
    assert len(validate_review(None)) == 5


@pytest.mark.unit
@pytest.mark.parametrize("rating", [1, 2, 3, 4, 5, "3", 5.0])
def test_ratings_in_range_are_accepted(rating):
    assert validate_review(_valid_review(rating=rating)) == []


@pytest.mark.unit
@pytest.mark.parametrize("rating", [0, 6, -1, 3.5, "abc", "", None, True])
def test_ratings_out_of_range_are_rejected(rating):
    assert "rating must be an integer between 1 and 5" in validate_review(_valid_review(rating=rating))


@pytest.mark.unit
def test_blank_strings_count_as_missing():
    errors = validate_review(_valid_review(company_name="   ", position="\t"))

    assert "company_name is required" in errors
    assert "position is required" in errors


@pytest.mark.unit
def test_max_lengths():
    errors = validate_review(
        _valid_review(
            company_name="c" * 256,
            position="p" * 256,
            duration="d" * 101,
            comment="x" * 5001,
        )
    )

    assert "company_name must be at most 255 characters" in errors
    assert "position must be at most 255 characters" in errors
    assert "duration must be at most 100 characters" in errors
    assert "comment must be at most 5000 characters" in errors


@pytest.mark.unit
def test_limits_are_inclusive():
    payload = _valid_review(company_name="c" * 255, duration="d" * 100, comment="x" * 5000)
    assert validate_review(payload) == []


@pytest.mark.unit
@pytest.mark.parametrize("email", ["not-an-email", "a@b", "a b@c.com", "@b.com", ""])
def test_malformed_emails_are_rejected(email):
    assert "A valid email is required" in validate_review(_valid_review(email=email))


@pytest.mark.unit
def test_overlong_email_is_rejected():
    email = "a" * 250 + "@b.com"
    assert "email must be at most 255 characters" in validate_review(_valid_review(email=email))


@pytest.mark.unit
@pytest.mark.parametrize("siret", ["1234", "1234567890123a", "123456789012345"])
def test_siret_must_be_fourteen_digits(siret):
    assert "siret must be exactly 14 digits" in validate_review(_valid_review(siret=siret))


@pytest.mark.unit
def test_siret_is_optional():
    assert validate_review(_valid_review(siret=None)) == []
    assert validate_review(_valid_review(siret="")) == []


@pytest.mark.unit
def test_parse_rating_returns_int():
    assert parse_rating("4") == 4
    assert parse_rating(2.0) == 2
    assert parse_rating(False) is None


@pytest.mark.unit
def test_admin_reply_rules():
    assert validate_admin_reply({"reply": "Merci pour votre retour."}) == []
    assert validate_admin_reply({}) == ["reply is required"]
    assert validate_admin_reply({"reply": "  "}) == ["reply is required"]
    assert validate_admin_reply({"reply": "r" * 2001}) == ["reply must be at most 2000 characters"]
    assert validate_admin_reply({"reply": "r" * 2000}) == []


@pytest.mark.unit
@pytest.mark.parametrize("siret", ["12345678901234\n", "١" * 14, " 12345678901234"])
def test_siret_rejects_trailing_newline_and_non_ascii_digits(siret):
    assert "siret must be exactly 14 digits" in validate_review(_valid_review(siret=siret))


@pytest.mark.unit
def test_email_rejects_trailing_newline():
    assert "A valid email is required" in validate_review(_valid_review(email="jane@example.com\n"))


@pytest.mark.unit
@pytest.mark.parametrize("payload", [[1, 2], "text", 42])
def test_non_object_payloads_are_treated_as_empty(payload):
    assert "company_name is required" in validate_review(payload)
    assert validate_admin_reply(payload) == ["reply is required"]
