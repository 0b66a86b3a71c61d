from datetime import datetime, timedelta

import pytest

from ats.errors import AuthenticationFailed, ConflictError, InvalidReference, PermissionDenied, ValidationFailed
from ats.models.enums import UserStatus
from ats.services.users import (
    authenticate,
    register_user,
    request_password_reset,
    reset_password,
    set_user_status,
    verify_user,
)
from ats.utils.security import decode_token


async def _register(db, mailer, email="jordan@example.com", password="s3cret-pass"):
    return await register_user(db, "Jordan", email, password, "hiringManager", mailer=mailer)


@pytest.mark.asyncio
async def test_register_verify_login(db, mailer):
    result = await _register(db, mailer)
    user = result["user"]
    assert user["status"] == "unverified"
    assert result["resent"] is False

    with pytest.raises(PermissionDenied):
        await authenticate(db, "jordan@example.com", "s3cret-pass")

    (_, code), = mailer.verifications
    verified = await verify_user(db, code)
    assert verified["status"] == "verified"

    token = await authenticate(db, "jordan@example.com", "s3cret-pass")
    payload = decode_token(token["access_token"])
    assert payload["sub"] == str(user["_id"])
    assert payload["type"] == "access"


@pytest.mark.asyncio
async def test_wrong_password(db, mailer):
    await _register(db, mailer)
    await verify_user(db, mailer.verifications[0][1])

    with pytest.raises(AuthenticationFailed) as exc:
        await authenticate(db, "jordan@example.com", "not-the-password")
    assert exc.value.message == "Incorrect email or password"


@pytest.mark.asyncio
async def test_code_is_single_use(db, mailer):
    await _register(db, mailer)
    code = mailer.verifications[0][1]
    await verify_user(db, code)

    with pytest.raises(ValidationFailed):
        await verify_user(db, code)


@pytest.mark.asyncio
async def test_expired_verification_code(db, mailer):
    result = await _register(db, mailer)
    await db.credentials.update_one(
        {"user_id": result["user"]["_id"]},
        {"$set": {"verify_code_issued_at": datetime.utcnow() - timedelta(days=1)}},
    )

    with pytest.raises(ValidationFailed) as exc:
        await verify_user(db, mailer.verifications[0][1])
    assert exc.value.message == "Verification link has expired"


@pytest.mark.asyncio
async def test_reregistering_unverified_email_sends_new_code(db, mailer):
    first = await _register(db, mailer)
    second = await _register(db, mailer, password="another-pass")

    assert second["resent"] is True
    assert second["user"]["_id"] == first["user"]["_id"]
    assert await db.users.count_documents({"email": "jordan@example.com"}) == 1

    old_code, new_code = (code for _, code in mailer.verifications)
    assert old_code != new_code
    with pytest.raises(ValidationFailed):
        await verify_user(db, old_code)
    await verify_user(db, new_code)
    await authenticate(db, "jordan@example.com", "another-pass")


@pytest.mark.asyncio
async def test_verified_email_cannot_register_again(db, mailer):
    await _register(db, mailer)
    await verify_user(db, mailer.verifications[0][1])

    with pytest.raises(ConflictError):
        await _register(db, mailer)


@pytest.mark.asyncio
async def test_unknown_role(db, mailer):
    with pytest.raises(InvalidReference):
        await register_user(db, "Jordan", "jordan@example.com", "s3cret-pass", "owner", mailer=mailer)


@pytest.mark.asyncio
async def test_suspended_user_cannot_log_in(db, mailer):
    result = await _register(db, mailer)
    await verify_user(db, mailer.verifications[0][1])
    await set_user_status(db, result["user"]["_id"], UserStatus.SUSPENDED)

    with pytest.raises(PermissionDenied) as exc:
        await authenticate(db, "jordan@example.com", "s3cret-pass")
    assert exc.value.message == "User account is suspended"


@pytest.mark.asyncio
async def test_password_reset(db, mailer):
    await _register(db, mailer)
    await verify_user(db, mailer.verifications[0][1])

    assert await request_password_reset(db, "jordan@example.com", mailer=mailer)
    assert not await request_password_reset(db, "nobody@example.com", mailer=mailer)

    (_, code), = mailer.resets
    await reset_password(db, code, "brand-new-pass")
    await authenticate(db, "jordan@example.com", "brand-new-pass")

    with pytest.raises(ValidationFailed):
        await reset_password(db, code, "again-new-pass")
