import asyncio
import time
from datetime import datetime, timedelta, timezone

import bcrypt
import pytest
from fastapi import BackgroundTasks
from redis.exceptions import RedisError
from sqlalchemy import select

from travelle.errors import DataAccessFailure, DuplicateEmail, DuplicateUsername, InvalidCredentials
from travelle.models import PasswordResetToken, User
from travelle.services.auth_service import INVALID_LINK_MESSAGE
from travelle.utils.security import is_password_hash, verify_password


async def _stored_password(db, email):
    result = await db.execute(select(User.password_hash).where(User.email == email))
    return result.scalar_one()


async def _request_reset(auth, email):
    """Request a reset and run the queued email the way the app does after responding"""
    tasks = BackgroundTasks()
    result = await auth.request_password_reset(email, tasks)
    await tasks()
    return result


async def _token_row(db, user_id):
    result = await db.execute(
        select(PasswordResetToken.token, PasswordResetToken.attempts, PasswordResetToken.used)
        .where(PasswordResetToken.user_id == user_id)
    )
    return result.one()


async def test_register_returns_public_user_and_session(auth, sessions, alice):
    assert alice.user.email == "alice@example.com"
    assert alice.user.username == "alice"
    assert not hasattr(alice.user, "password_hash")
    assert "password" not in alice.user.model_dump()

    stored = await sessions.get(alice.token)
    assert stored.user.id == alice.user.id


async def test_register_hashes_password(db, alice):
    stored = await _stored_password(db, "alice@example.com")
    assert is_password_hash(stored)
    assert verify_password("wonderland", stored)


async def test_register_duplicate_email(auth, alice):
    with pytest.raises(DuplicateEmail):
        await auth.register("someone", "Someone", "alice@example.com", "secret1")


async def test_register_duplicate_username(auth, alice):
    with pytest.raises(DuplicateUsername):
        await auth.register("alice", "Other Alice", "other@example.com", "secret1")


async def test_register_race_on_email_maps_to_duplicate_email(auth, alice, monkeypatch):
    real_check = auth.email_exists
    checks = []

    async def stale_first_check(email):
        checks.append(email)
        if len(checks) == 1:
            return False
        return await real_check(email)

    monkeypatch.setattr(auth, "email_exists", stale_first_check)
    with pytest.raises(DuplicateEmail):
        await auth.register("alice2", "Other Alice", "alice@example.com", "secret1")


async def test_register_race_on_username_maps_to_duplicate_username(auth, alice, monkeypatch):
    async def stale_check(username):
        return False

    monkeypatch.setattr(auth, "username_exists", stale_check)
    with pytest.raises(DuplicateUsername):
        await auth.register("alice", "Other Alice", "other@example.com", "secret1")


async def test_login_with_hashed_password(auth, alice):
    session = await auth.login("alice@example.com", "wonderland")
    assert session.user.id == alice.user.id
    assert session.token != alice.token


async def test_login_unknown_email(auth):
    with pytest.raises(InvalidCredentials):
        await auth.login("nobody@example.com", "whatever")


async def test_login_wrong_password(auth, alice):
    with pytest.raises(InvalidCredentials):
        await auth.login("alice@example.com", "not-wonderland")


async def test_login_upgrades_legacy_plaintext(db, auth):
    db.add(User(username="legacy", name="Legacy", email="legacy@example.com", password_hash="plain-pass"))
    await db.commit()

    session = await auth.login("legacy@example.com", "plain-pass")
    assert session.user.email == "legacy@example.com"

    stored = await _stored_password(db, "legacy@example.com")
    assert is_password_hash(stored)
    assert verify_password("plain-pass", stored)

    # Second login goes through the hash path
    again = await auth.login("legacy@example.com", "plain-pass")
    assert again.user.id == session.user.id


async def test_login_with_bcrypt_hash_upgrades_to_argon2(db, auth):
    legacy = bcrypt.hashpw(b"old-secret", bcrypt.gensalt(rounds=4)).decode()
    db.add(User(username="legacy", name="Legacy", email="legacy@example.com", password_hash=legacy))
    await db.commit()

    with pytest.raises(InvalidCredentials):
        await auth.login("legacy@example.com", legacy)
    assert await _stored_password(db, "legacy@example.com") == legacy

    session = await auth.login("legacy@example.com", "old-secret")
    assert session.user.email == "legacy@example.com"

    stored = await _stored_password(db, "legacy@example.com")
    assert stored.startswith("$argon2")
    assert verify_password("old-secret", stored)


async def test_legacy_plaintext_wrong_password_is_not_upgraded(db, auth):
    db.add(User(username="legacy", name="Legacy", email="legacy@example.com", password_hash="plain-pass"))
    await db.commit()

    with pytest.raises(InvalidCredentials):
        await auth.login("legacy@example.com", "guess")
    assert await _stored_password(db, "legacy@example.com") == "plain-pass"


async def test_logout_removes_session(auth, sessions, alice):
    await auth.logout(alice.token)
    assert await sessions.get(alice.token) is None


async def test_session_refresh_failure_is_data_access_failure(sessions, redis_client, alice, monkeypatch):
    async def broken_expire(*args, **kwargs):
        raise RedisError("connection reset")

    monkeypatch.setattr(redis_client, "expire", broken_expire)
    with pytest.raises(DataAccessFailure):
        await sessions.get(alice.token)


async def test_availability_checks(auth, alice):
    assert await auth.email_exists("alice@example.com")
    assert not await auth.email_exists("bob@example.com")
    assert await auth.username_exists("alice")
    assert not await auth.username_exists("bob")


async def test_reset_request_succeeds_for_unknown_email(auth, mailer):
    result = await _request_reset(auth, "nobody@example.com")
    assert result.success is True
    assert mailer.sent == []


async def test_reset_request_issues_token_and_emails_link(db, auth, mailer, alice):
    result = await _request_reset(auth, "alice@example.com")
    assert result.success is True

    token, attempts, used = await _token_row(db, alice.user.id)
    assert attempts == 0
    assert used is False
    assert len(mailer.sent) == 1
    assert mailer.sent[0].to == "alice@example.com"
    assert f"http://app.test/reset-password/{token}" in mailer.sent[0].html


async def test_reset_request_does_not_wait_for_the_email(auth, mailer, alice, monkeypatch):
    deliver = mailer.send

    async def slow_send(email):
        await asyncio.sleep(0.5)
        return await deliver(email)

    monkeypatch.setattr(mailer, "send", slow_send)
    tasks = BackgroundTasks()

    started = time.perf_counter()
    known = await auth.request_password_reset("alice@example.com", tasks)
    known_elapsed = time.perf_counter() - started

    started = time.perf_counter()
    unknown = await auth.request_password_reset("nobody@example.com", BackgroundTasks())
    unknown_elapsed = time.perf_counter() - started

    assert known == unknown
    assert known_elapsed - unknown_elapsed < 0.2
    assert mailer.sent == []

    await tasks()
    assert len(mailer.sent) == 1


async def test_reset_request_replaces_previous_token(db, auth, alice):
    await _request_reset(auth, "alice@example.com")
    first, _, _ = await _token_row(db, alice.user.id)
    await _request_reset(auth, "alice@example.com")
    second, _, _ = await _token_row(db, alice.user.id)
    assert first != second


async def test_reset_request_succeeds_when_email_fails(auth, mailer, alice):
    mailer.fail_with = "SMTP down"
    result = await _request_reset(auth, "alice@example.com")
    assert result.success is True


async def test_verify_token_counts_attempts_until_exceeded(db, auth, mailer, alice):
    await _request_reset(auth, "alice@example.com")
    token, _, _ = await _token_row(db, alice.user.id)

    for expected_attempts in (1, 2, 3):
        check = await auth.verify_reset_token(token)
        assert check.valid is True
        assert check.user_id == alice.user.id
        assert check.email == "alice@example.com"
        _, attempts, _ = await _token_row(db, alice.user.id)
        assert attempts == expected_attempts

    check = await auth.verify_reset_token(token)
    assert check.valid is False
    assert check.max_attempts_exceeded is True

    _, _, used = await _token_row(db, alice.user.id)
    assert used is True
    assert "Security Alert - Password Reset Attempts Exceeded" in mailer.subjects()

    # Used tokens stay invalid without raising the alarm again
    check = await auth.verify_reset_token(token)
    assert check.valid is False
    assert check.max_attempts_exceeded is False


async def test_verify_unknown_token(auth):
    check = await auth.verify_reset_token("does-not-exist")
    assert check.valid is False


async def test_verify_expired_token(db, auth, alice):
    db.add(PasswordResetToken(
        user_id=alice.user.id,
        token="expired-token",
        expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
    ))
    await db.commit()

    check = await auth.verify_reset_token("expired-token")
    assert check.valid is False
    assert check.max_attempts_exceeded is False


async def test_reset_password_changes_password_and_consumes_token(db, auth, mailer, alice):
    await _request_reset(auth, "alice@example.com")
    token, _, _ = await _token_row(db, alice.user.id)

    result = await auth.reset_password(token, "looking-glass")
    assert result.success is True
    assert "Password Reset Successful" in mailer.subjects()

    session = await auth.login("alice@example.com", "looking-glass")
    assert session.user.id == alice.user.id
    with pytest.raises(InvalidCredentials):
        await auth.login("alice@example.com", "wonderland")

    again = await auth.reset_password(token, "third-password")
    assert again.success is False
    assert again.error == INVALID_LINK_MESSAGE
