"""
Unit tests for the security primitives: token codec, password hasher,
access guard, authorization policies and the limit parser.
"""
import pytest

from newsroom.dependencies import AccessGuard, parse_limit, require_admin, require_staff, require_user
from newsroom.errors import Forbidden, InvalidTokenError
from newsroom.models import Role
from newsroom.policies import draft_owner_scope, ensure_can_read_private, ensure_owner_or_admin
from newsroom.security import (
    REFRESH_COOKIE,
    IdentityClaim,
    PasswordHasher,
    TokenCodec,
    make_cookie,
)
from newsroom.storage import key_from_path, object_key_for

ADMIN = IdentityClaim(id=1, role=Role.ADMIN, email="admin@example.com")
MANAGER = IdentityClaim(id=2, role=Role.MANAGER, email="manager@example.com")
USER = IdentityClaim(id=3, role=Role.USER, email="user@example.com")


@pytest.fixture
def token_codec() -> TokenCodec:
    return TokenCodec(
        access_secret="access",
        access_ttl=60,
        refresh_secret="refresh",
        refresh_ttl=3600,
    )


# ---------------------------------------------------------------------------
# TokenCodec
# ---------------------------------------------------------------------------

def test_encode_decode_round_trip(token_codec: TokenCodec):
    token = token_codec.encode(MANAGER, "secret", 60)
    assert token_codec.decode(token, "secret") == MANAGER


def test_expired_token_is_rejected(token_codec: TokenCodec):
    token = token_codec.encode(USER, "secret", -10)
    with pytest.raises(InvalidTokenError):
        token_codec.decode(token, "secret")


def test_wrong_secret_is_rejected(token_codec: TokenCodec):
    token = token_codec.encode(USER, "secret", 60)
    with pytest.raises(InvalidTokenError):
        token_codec.decode(token, "other-secret")


def test_malformed_token_is_rejected(token_codec: TokenCodec):
    with pytest.raises(InvalidTokenError):
        token_codec.decode("not.a.token", "secret")


def test_access_and_refresh_secrets_are_independent(token_codec: TokenCodec):
    access = token_codec.issue_access(ADMIN)
    refresh = token_codec.issue_refresh(ADMIN)

    assert token_codec.verify_access(access.token) == ADMIN
    assert token_codec.verify_refresh(refresh.token) == ADMIN
    with pytest.raises(InvalidTokenError):
        token_codec.verify_refresh(access.token)
    with pytest.raises(InvalidTokenError):
        token_codec.verify_access(refresh.token)


def test_issued_cookie_format(token_codec: TokenCodec):
    refresh = token_codec.issue_refresh(USER)
    assert refresh.cookie == f"refreshToken={refresh.token}; HttpOnly; Path=/; Max-Age=3600"


def test_make_cookie():
    assert make_cookie(REFRESH_COOKIE, "abc", 10) == "refreshToken=abc; HttpOnly; Path=/; Max-Age=10"


# ---------------------------------------------------------------------------
# PasswordHasher
# ---------------------------------------------------------------------------

def test_hash_and_verify():
    hasher = PasswordHasher(rounds=4)
    hashed = hasher.hash("password123")

    assert hashed != "password123"
    assert hashed.startswith("$2")
    assert hasher.verify("password123", hashed)
    assert not hasher.verify("password124", hashed)


def test_hash_is_salted():
    hasher = PasswordHasher(rounds=4)
    assert hasher.hash("password123") != hasher.hash("password123")


def test_verify_against_malformed_hash_is_false():
    assert PasswordHasher(rounds=4).verify("password123", "plaintext") is False


def test_verify_dummy_never_matches():
    assert PasswordHasher(rounds=4).verify_dummy("not-a-real-password") is False


# ---------------------------------------------------------------------------
# AccessGuard
# ---------------------------------------------------------------------------

def test_guard_without_roles_allows_any_claim():
    for claim in (ADMIN, MANAGER, USER):
        assert require_user.check(claim) is claim


def test_guard_denies_anonymous():
    with pytest.raises(Forbidden) as exc_info:
        require_user.check(None)
    assert exc_info.value.message == "User not authorized"


def test_admin_guard():
    assert require_admin.check(ADMIN) is ADMIN
    with pytest.raises(Forbidden) as exc_info:
        require_admin.check(USER)
    assert exc_info.value.message == "No permissions"


def test_staff_guard():
    assert require_staff.check(MANAGER) is MANAGER
    with pytest.raises(Forbidden):
        require_staff.check(USER)


def test_guard_role_set_is_frozen():
    guard = AccessGuard([Role.MANAGER, Role.MANAGER])
    assert guard.roles == frozenset({Role.MANAGER})


# ---------------------------------------------------------------------------
# Authorization policies
# ---------------------------------------------------------------------------

def test_owner_may_mutate():
    ensure_owner_or_admin(MANAGER, MANAGER.id)


def test_admin_may_mutate_anything():
    ensure_owner_or_admin(ADMIN, MANAGER.id)


def test_non_owner_may_not_mutate():
    with pytest.raises(Forbidden):
        ensure_owner_or_admin(MANAGER, USER.id)


def test_private_read():
    ensure_can_read_private(MANAGER, ADMIN.id)
    ensure_can_read_private(USER, USER.id)
    with pytest.raises(Forbidden):
        ensure_can_read_private(USER, MANAGER.id)


def test_draft_owner_scope():
    assert draft_owner_scope(ADMIN) is None
    assert draft_owner_scope(MANAGER) == MANAGER.id


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    ("limit", "expected"),
    [(None, 5), (0, 5), (3, 3), (10, 10), (50, 10)],
)
def test_parse_limit(limit, expected):
    assert parse_limit(limit, 5, 10) == expected


def test_object_key_keeps_extension():
    key = object_key_for("Photo.PNG")
    millis, _, rest = key.partition("-")
    assert millis.isdigit()
    assert rest.endswith(".png")


def test_object_key_without_extension():
    assert object_key_for("README").endswith(".bin")
    assert object_key_for(None).endswith(".bin")


def test_key_from_path():
    assert key_from_path("http://cdn.test/images/123-abc.png") == "123-abc.png"
    assert key_from_path("123-abc.png") == "123-abc.png"
