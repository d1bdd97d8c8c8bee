"""Registration, activation, login, refresh and password reset flows."""
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from followups.auth import (
    ACTIVATION_TTL,
    AUTHENTICATION_TTL,
    PASSWORD_RESET_TTL,
    REFRESH_TTL,
    verify_password,
)
from followups.database import AsyncSessionLocal
from followups.errors import (
    DuplicateEmail,
    EditConflict,
    InvalidCredentials,
    InvalidOrExpiredToken,
    ValidationFailed,
)
from followups.models import Token, User
from followups.models.base import utcnow
from followups.stores import TokenStore, UserStore
from followups.tokens import Scope

PASSWORD = "pa55word-long"


def assert_expires_in(expiry, ttl: timedelta) -> None:
    remaining = expiry - utcnow()
    assert ttl - timedelta(minutes=1) < remaining <= ttl


async def load_user(user_id: int) -> User:
    async with AsyncSessionLocal() as session:
        return await UserStore(session).get(user_id)


async def registered(auth_service, background, mailer, email="alice@x.com"):
    user = await auth_service.register("Alice", email, PASSWORD)
    await background.wait_drained()
    return user, mailer.sent[-1][2]


@pytest.mark.asyncio
async def test_register_creates_unactivated_user_and_mails_token(
    auth_service, background, mailer, session
) -> None:
    user = await auth_service.register("Alice", "alice@x.com", PASSWORD)

    assert (user.id, user.version, user.activated) == (1, 1, False)
    assert verify_password(PASSWORD, user.password_hash)
    assert user.password_hash != PASSWORD

    token_row = (await session.execute(select(Token))).scalar_one()
    assert token_row.scope is Scope.ACTIVATION
    assert_expires_in(token_row.expiry, ACTIVATION_TTL)

    assert await background.wait_drained(timeout=5)
    recipient, template, data = mailer.sent[0]
    assert (recipient, template, data["user_id"]) == ("alice@x.com", "user_welcome.j2", 1)
    assert (await TokenStore(session).find_valid(data["activation_token"], Scope.ACTIVATION)).id == 1


@pytest.mark.asyncio
async def test_register_rejects_duplicate_email(auth_service) -> None:
    await auth_service.register("Alice", "alice@x.com", PASSWORD)

    with pytest.raises(DuplicateEmail) as exc:
        await auth_service.register("Other Alice", "alice@x.com", PASSWORD)
    assert "email" in exc.value.errors


@pytest.mark.asyncio
async def test_register_reports_each_bad_field(auth_service) -> None:
    with pytest.raises(ValidationFailed) as exc:
        await auth_service.register("", "not-an-email", "short")

    assert set(exc.value.errors) == {"name", "email", "password"}


@pytest.mark.asyncio
async def test_activation_scenario(auth_service, background, mailer) -> None:
    user, data = await registered(auth_service, background, mailer)
    token = data["activation_token"]

    activated = await auth_service.activate(token)

    assert activated.activated is True
    assert activated.version == 2
    stored = await load_user(user.id)
    assert (stored.activated, stored.version) == (True, 2)

    with pytest.raises(InvalidOrExpiredToken):
        await auth_service.activate(token)


@pytest.mark.asyncio
async def test_activation_conflict_leaves_tokens_in_place(
    auth_service, background, mailer
) -> None:
    user, data = await registered(auth_service, background, mailer)
    auth_service.users.update = AsyncMock(side_effect=EditConflict())

    with pytest.raises(EditConflict):
        await auth_service.activate(data["activation_token"])

    async with AsyncSessionLocal() as session:
        owner = await TokenStore(session).find_valid(data["activation_token"], Scope.ACTIVATION)
    assert owner.id == user.id


@pytest.mark.asyncio
async def test_garbled_activation_token_never_reaches_the_store(auth_service) -> None:
    auth_service.tokens.find_valid = AsyncMock()

    with pytest.raises(InvalidOrExpiredToken):
        await auth_service.activate("definitely not a token")
    auth_service.tokens.find_valid.assert_not_called()


@pytest.mark.asyncio
async def test_login_issues_authentication_and_refresh_tokens(
    auth_service, background, mailer
) -> None:
    user, _ = await registered(auth_service, background, mailer)

    tokens = await auth_service.login("alice@x.com", PASSWORD)

    assert tokens.authentication.scope is Scope.AUTHENTICATION
    assert tokens.refresh.scope is Scope.REFRESH
    assert_expires_in(tokens.authentication.expiry, AUTHENTICATION_TTL)
    assert_expires_in(tokens.refresh.expiry, REFRESH_TTL)
    assert (await auth_service.authenticate(tokens.authentication.plaintext)).id == user.id


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(auth_service, background, mailer) -> None:
    await registered(auth_service, background, mailer)

    with pytest.raises(InvalidCredentials) as wrong_password:
        await auth_service.login("alice@x.com", "wrong-password")
    with pytest.raises(InvalidCredentials) as unknown_email:
        await auth_service.login("nobody@x.com", PASSWORD)

    assert type(wrong_password.value) is type(unknown_email.value)
    assert str(wrong_password.value) == str(unknown_email.value)
    assert vars(wrong_password.value) == vars(unknown_email.value)


@pytest.mark.asyncio
async def test_refresh_token_is_reusable_and_unchanged(
    auth_service, background, mailer, session
) -> None:
    await registered(auth_service, background, mailer)
    tokens = await auth_service.login("alice@x.com", PASSWORD)

    first = await auth_service.refresh(tokens.refresh.plaintext)
    second = await auth_service.refresh(tokens.refresh.plaintext)

    assert first.plaintext != second.plaintext
    for issued in (first, second):
        assert issued.scope is Scope.AUTHENTICATION
        assert_expires_in(issued.expiry, AUTHENTICATION_TTL)

    refresh_rows = (
        await session.execute(select(Token).where(Token.scope == Scope.REFRESH))
    ).scalars().all()
    assert len(refresh_rows) == 1
    assert refresh_rows[0].expiry == tokens.refresh.expiry


@pytest.mark.asyncio
async def test_authentication_token_cannot_refresh(auth_service, background, mailer) -> None:
    await registered(auth_service, background, mailer)
    tokens = await auth_service.login("alice@x.com", PASSWORD)

    with pytest.raises(InvalidOrExpiredToken):
        await auth_service.refresh(tokens.authentication.plaintext)


@pytest.mark.asyncio
async def test_password_reset_for_unknown_email_is_silent(
    auth_service, background, mailer, session
) -> None:
    await auth_service.request_password_reset("nobody@x.com")
    await background.wait_drained()

    assert mailer.sent == []
    assert (await session.execute(select(Token))).first() is None


@pytest.mark.asyncio
async def test_password_reset_scenario(auth_service, background, mailer, session) -> None:
    user, welcome = await registered(auth_service, background, mailer)
    login = await auth_service.login("alice@x.com", PASSWORD)

    await auth_service.request_password_reset("alice@x.com")
    await background.wait_drained()
    recipient, template, data = mailer.sent[-1]
    assert (recipient, template) == ("alice@x.com", "password_reset.j2")
    reset_token = data["password_reset_token"]

    reset_row = (
        await session.execute(select(Token).where(Token.scope == Scope.PASSWORD_RESET))
    ).scalar_one()
    assert_expires_in(reset_row.expiry, PASSWORD_RESET_TTL)

    # The activation token cannot stand in for a reset token.
    with pytest.raises(InvalidOrExpiredToken):
        await auth_service.confirm_password_reset(welcome["activation_token"], "new-password-1")

    updated = await auth_service.confirm_password_reset(reset_token, "new-password-1")
    assert updated.version == 2

    stored = await load_user(user.id)
    assert verify_password("new-password-1", stored.password_hash)
    assert stored.version == 2

    previously_issued = [
        (welcome["activation_token"], Scope.ACTIVATION),
        (login.authentication.plaintext, Scope.AUTHENTICATION),
        (login.refresh.plaintext, Scope.REFRESH),
        (reset_token, Scope.PASSWORD_RESET),
    ]
    async with AsyncSessionLocal() as other:
        for plaintext, scope in previously_issued:
            with pytest.raises(InvalidOrExpiredToken):
                await TokenStore(other).find_valid(plaintext, scope)

    with pytest.raises(InvalidCredentials):
        await auth_service.login("alice@x.com", PASSWORD)
    assert await auth_service.login("alice@x.com", "new-password-1")


@pytest.mark.asyncio
async def test_password_reset_validates_new_password(auth_service, background, mailer) -> None:
    await registered(auth_service, background, mailer)

    with pytest.raises(ValidationFailed) as exc:
        await auth_service.confirm_password_reset("A" * 26, "short")
    assert "password" in exc.value.errors
