from __future__ import annotations

import re
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from bayorder.application.mappers.collections import CAFES
from bayorder.application.ports.identity import InvalidCredentialsError, InvalidTokenError, Role
from bayorder.application.use_cases.access import PermissionDeniedError
from bayorder.application.use_cases.onboard_cafe import (
    ListCafes,
    OnboardCafe,
    generate_credentials,
    owner_email,
)
from bayorder.application.use_cases.sign_in import (
    AdminSettings,
    ResolveOwnerCafe,
    SignIn,
    ensure_admin_account,
)
from bayorder.domain.cafe.entities import PENDING_OWNER, TableState
from bayorder.infrastructure.identity.jwt_provider import JwtIdentityProvider, JwtSettings

ADMIN = AdminSettings(username="admin", password="admin123", email="admin@bayorder.app")


@pytest.fixture
def provider(store) -> JwtIdentityProvider:
    jwt_provider = JwtIdentityProvider(store, JwtSettings(secret_key="unit-test-secret"))
    ensure_admin_account(jwt_provider, ADMIN)
    return jwt_provider


@pytest.fixture
def sign_in(store, provider) -> SignIn:
    return SignIn(store, provider, admin=ADMIN)


def test_generated_credentials_have_expected_shape() -> None:
    credentials = generate_credentials()

    assert re.fullmatch(r"cafe_[a-z0-9]{6}", credentials.username)
    assert re.fullmatch(r"[a-z0-9]{8}", credentials.password)
    assert owner_email(credentials.username).endswith("@owner.bayorder.app")


def test_admin_account_is_created_once(store, provider) -> None:
    ensure_admin_account(provider, ADMIN)

    identity = provider.sign_in_with_password(ADMIN.email, ADMIN.password)
    assert identity.role == Role.ADMIN


def test_admin_onboards_cafe_with_vacant_tables(store, provider, sign_in) -> None:
    admin = sign_in.execute("admin", "admin123").identity

    cafe = OnboardCafe(store, provider).execute(admin, "  Dockside  ", "2 Pier Rd", 4)

    document = store.get(CAFES, str(cafe.cafe_id))
    assert document.get("name") == "Dockside"
    assert document.get("ownerUserId") == PENDING_OWNER
    assert document.get("tableStatus") == {f"T{index}": TableState.VACANT.value for index in range(1, 5)}
    assert document.get("ownerUsername") == cafe.credentials.username
    assert document.get("createdAt") is not None
    assert [listed.cafe_id for listed in ListCafes(store).execute(admin)] == [cafe.cafe_id]


def test_only_admins_onboard_or_list(store, provider, owner) -> None:
    with pytest.raises(PermissionDeniedError):
        OnboardCafe(store, provider).execute(owner, "Dockside", "2 Pier Rd", 4)
    with pytest.raises(PermissionDeniedError):
        ListCafes(store).execute(None)


def test_first_owner_sign_in_links_the_cafe(store, provider, sign_in) -> None:
    admin = sign_in.execute("admin", "admin123").identity
    cafe = OnboardCafe(store, provider).execute(admin, "Dockside", "2 Pier Rd", 2)

    result = sign_in.execute(cafe.credentials.username, cafe.credentials.password)

    assert result.cafe_id == cafe.cafe_id
    assert result.identity.role == Role.OWNER
    assert store.get(CAFES, str(cafe.cafe_id)).get("ownerUserId") == str(result.identity.uid)
    assert ResolveOwnerCafe(store).execute(result.identity) == cafe.cafe_id

    again = sign_in.execute(cafe.credentials.username, cafe.credentials.password)
    assert again.identity.uid == result.identity.uid


@pytest.mark.parametrize(
    ("username", "password"),
    [("admin", "wrong"), ("cafe_nobody", "whatever"), ("", "admin123"), ("admin", "")],
)
def test_bad_credentials_are_rejected(sign_in, username, password) -> None:
    with pytest.raises(InvalidCredentialsError):
        sign_in.execute(username, password)


def test_tokens_round_trip_and_tampering_is_detected(store, provider) -> None:
    anonymous = provider.sign_in_anonymously()

    verified = provider.verify_token(anonymous.token)
    assert verified.uid == anonymous.uid
    assert verified.role == Role.ANONYMOUS

    with pytest.raises(InvalidTokenError):
        provider.verify_token(anonymous.token + "x")
    other = JwtIdentityProvider(store, JwtSettings(secret_key="another-secret"))
    with pytest.raises(InvalidTokenError):
        other.verify_token(anonymous.token)
