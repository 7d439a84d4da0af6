import pytest

from caprep.domain.errors import ValidationError
from caprep.domain.services import is_valid_email, require_valid_email


@pytest.mark.parametrize(
    "raw", [" Student@Example.com", "student@example.com\t", "  a@b.co  "]
)
def test_surrounding_whitespace_is_not_a_format_error(raw):
    assert is_valid_email(raw)
    assert require_valid_email(raw) == raw.strip().lower()


@pytest.mark.parametrize("raw", [None, "", "   ", "a b@c.de", "no-at-sign.com", "a@b"])
def test_malformed_emails_are_rejected(raw):
    with pytest.raises(ValidationError) as exc_info:
        require_valid_email(raw)
    assert exc_info.value.field == "email"
