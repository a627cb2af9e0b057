import jwt
import pytest

from newsai.core.errors import InvalidCredentialsError, TokenError, UserExistsError, UserNotFoundError
from newsai.services.auth_service import AuthService

from conftest import run


@pytest.fixture
def auth(database, settings):
    settings.BCRYPT_ROUNDS = 4
    return AuthService(database=database, settings=settings)


def test_register_and_login(auth, settings):
    user = run(auth.create_user("  Editor ", "gizli123", "editor"))
    assert (user.username, user.role) == ("editor", "editor")

    result = run(auth.login("EDITOR", "gizli123"))
    assert result.user.id == user.id

    payload = jwt.decode(result.token, settings.JWT_SECRET, algorithms=["HS256"])
    assert (payload["userId"], payload["username"], payload["role"]) == (user.id, "editor", "editor")
    assert "exp" in payload


def test_password_is_hashed(auth):
    hashed = auth.hash_password("gizli123")
    assert hashed != "gizli123"
    assert auth.check_password("gizli123", hashed)
    assert not auth.check_password("yanlis", hashed)


def test_duplicate_username_is_rejected(auth):
    run(auth.create_user("ayse", "gizli123"))
    with pytest.raises(UserExistsError):
        run(auth.create_user("AYSE", "baska123"))


def test_bad_credentials(auth):
    run(auth.create_user("ayse", "gizli123"))
    with pytest.raises(InvalidCredentialsError):
        run(auth.login("ayse", "yanlis"))
    with pytest.raises(InvalidCredentialsError):
        run(auth.login("kimse", "gizli123"))


def test_verify_token(auth, settings):
    user = run(auth.create_user("ayse", "gizli123", "admin"))
    token = run(auth.login("ayse", "gizli123")).token

    verified = auth.verify_token(token)
    assert (verified.user_id, verified.username, verified.role) == (user.id, "ayse", "admin")

    with pytest.raises(TokenError):
        auth.verify_token(token + "x")

    settings.JWT_EXPIRES_HOURS = -1
    expired = run(auth.login("ayse", "gizli123")).token
    with pytest.raises(TokenError):
        auth.verify_token(expired)


def test_invalid_role_is_rejected(auth):
    with pytest.raises(ValueError):
        run(auth.create_user("ayse", "gizli123", "superuser"))


def test_update_role_and_profile(auth):
    user = run(auth.create_user("ayse", "gizli123"))
    assert user.role == "viewer"

    updated = run(auth.update_user_role(user.id, "editor"))
    assert updated.role == "editor"
    assert run(auth.get_profile(user.id)).role == "editor"

    with pytest.raises(UserNotFoundError):
        run(auth.update_user_role(999, "admin"))
    with pytest.raises(UserNotFoundError):
        run(auth.get_profile(999))
