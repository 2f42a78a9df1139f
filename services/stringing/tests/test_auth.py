import pytest

from app.application.auth import Identity, check_admin, create_access_token, decode_identity
from app.core_settings import Settings
from app.domain.errors import UnauthenticatedError, UnauthorizedError

SETTINGS = Settings(JWT_SECRET="test-secret", ADMIN_EMAILS="owner@stringshop.test, Backup@Stringshop.test")


def test_token_round_trip_carries_role():
    token = create_access_token("user_1", email="a@b.test", role="admin", settings=SETTINGS)
    identity = decode_identity(token, SETTINGS)
    assert identity == Identity(subject="user_1", email="a@b.test", email_verified=True, role="admin")


def test_bad_signature_is_no_identity():
    token = create_access_token("user_1", settings=Settings(JWT_SECRET="other"))
    assert decode_identity(token, SETTINGS) is None


def test_anonymous_is_unauthenticated():
    with pytest.raises(UnauthenticatedError):
        check_admin(None, SETTINGS)


def test_unverified_email_is_refused():
    identity = Identity("user_1", "owner@stringshop.test", email_verified=False, role="admin")
    with pytest.raises(UnauthorizedError, match="verified"):
        check_admin(identity, SETTINGS)


def test_admin_role_or_allow_listed_email():
    assert check_admin(Identity("u", "x@y.test", True, role="admin"), SETTINGS)
    assert check_admin(Identity("u", "backup@stringshop.test", True), SETTINGS)


def test_customer_is_refused():
    with pytest.raises(UnauthorizedError, match="Admin access"):
        check_admin(Identity("u", "player@example.com", True), SETTINGS)
