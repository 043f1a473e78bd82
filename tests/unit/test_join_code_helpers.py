from datetime import datetime, timedelta, timezone

import pytest

from app.features.join_codes.models import JoinCode
from app.features.join_codes.service import (
    CODE_ALPHABET,
    CODE_LENGTH,
    ExhaustedJoinCodeError,
    ExpiredJoinCodeError,
    InactiveJoinCodeError,
    UnknownJoinCodeError,
    check_redeemable,
    format_code,
    new_code,
    normalize_code,
)
from app.features.organizations.permissions import Role

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_code(**overrides) -> JoinCode:
    fields = dict(
        organization_id="org-1",
        code="ABCDEFGHJKLM",
        role=Role.EMPLOYEE,
        max_uses=5,
        used_count=0,
        expires_at=NOW + timedelta(days=1),
        is_active=True,
    )
    fields.update(overrides)
    return JoinCode(**fields)


@pytest.mark.unit
class TestCodeFormat:
    def test_new_code_uses_unambiguous_alphabet(self) -> None:
        code = new_code()
        assert len(code) == CODE_LENGTH
        assert set(code) <= set(CODE_ALPHABET)
        assert not set(code) & set("01IO")

    def test_format_groups_of_four(self) -> None:
        assert format_code("A1B2C3D4E5F6") == "A1B2-C3D4-E5F6"

    def test_normalize_ignores_dashes_spaces_and_case(self) -> None:
        assert normalize_code("  a1b2-c3d4-e5f6 ") == "A1B2C3D4E5F6"
        assert normalize_code("a1b2 c3d4 e5f6") == "A1B2C3D4E5F6"


@pytest.mark.unit
class TestCheckRedeemable:
    def test_valid_code_passes(self) -> None:
        code = make_code()
        assert check_redeemable(code, NOW) is code

    def test_unknown(self) -> None:
        with pytest.raises(UnknownJoinCodeError):
            check_redeemable(None, NOW)

    def test_inactive(self) -> None:
        with pytest.raises(InactiveJoinCodeError):
            check_redeemable(make_code(is_active=False), NOW)

    def test_expired(self) -> None:
        with pytest.raises(ExpiredJoinCodeError):
            check_redeemable(make_code(expires_at=NOW - timedelta(minutes=1)), NOW)

    def test_naive_expiry_is_treated_as_utc(self) -> None:
        naive = (NOW - timedelta(minutes=1)).replace(tzinfo=None)
        with pytest.raises(ExpiredJoinCodeError):
            check_redeemable(make_code(expires_at=naive), NOW)

    def test_never_expiring_code(self) -> None:
        assert check_redeemable(make_code(expires_at=None), NOW)

    def test_exhausted(self) -> None:
        with pytest.raises(ExhaustedJoinCodeError):
            check_redeemable(make_code(max_uses=2, used_count=2), NOW)
