"""
Unit tests for services.auth_service.

Real repositories and challenge services over mongomock; the email provider
is an in-memory recorder and the clock is frozen.
"""

from __future__ import annotations

import pytest

from config import VerificationSettings
from errors import (
    AuthenticationError,
    ChallengeUnavailableError,
    ConflictError,
    EmailDeliveryError,
    ForbiddenError,
    InvalidChallengeError,
    RateLimitError,
    ValidationError,
    WrongCodeError,
)
from repositories.user_repository import UserRepository
from services.auth_service import GENERIC_RESET_MESSAGE, AuthService
from services.challenge_service import ChallengePolicy, ChallengePurpose, ChallengeService
from services.token_service import TokenService
from shared.crypto import verify_password
from tests.support import DEFAULT_PASSWORD, insert_user, make_settings

NEW_PASSWORD = "N3wSecretPass"


def _build(mongo_db, email_provider, clock, **verification) -> AuthService:
    settings = make_settings(verification=VerificationSettings(**verification))
    users = UserRepository(mongo_db["users"])
    return AuthService(
        users,
        ChallengeService(
            users,
            ChallengePurpose.EMAIL_VERIFICATION,
            ChallengePolicy.for_verification(settings.verification),
            clock=clock,
        ),
        ChallengeService(
            users,
            ChallengePurpose.PASSWORD_RESET,
            ChallengePolicy.for_reset(settings.verification),
            clock=clock,
        ),
        TokenService(settings.jwt),
        email_provider,
        settings,
        clock=clock,
    )


@pytest.fixture
def auth(mongo_db, email_provider, clock) -> AuthService:
    return _build(mongo_db, email_provider, clock)


def _wrong(code: str) -> str:
    return "9" * len(code) if code != "9" * len(code) else "8" * len(code)


# ---------------------------------------------------------------------------
# Register / login
# ---------------------------------------------------------------------------


class TestRegister:
    async def test_creates_unverified_user_with_jwt(self, auth, mongo_db):
        user, access = await auth.register(
            "alice", "Alice@Example.com", DEFAULT_PASSWORD, DEFAULT_PASSWORD, "Alice A"
        )

        assert user.email == "alice@example.com"
        assert user.email_verified is False
        assert user.fullname == "Alice A"
        assert access.count(".") == 2

        doc = await mongo_db["users"].find_one({"username": "alice"})
        assert verify_password(DEFAULT_PASSWORD, doc["password_hash"])

    async def test_default_fullname(self, auth):
        user, _ = await auth.register("bob", "b@e.com", DEFAULT_PASSWORD, DEFAULT_PASSWORD)
        assert user.fullname == "Anonymous"

    @pytest.mark.parametrize(
        "username, password, confirm, field",
        [
            ("ab", DEFAULT_PASSWORD, DEFAULT_PASSWORD, "username"),
            ("bad name", DEFAULT_PASSWORD, DEFAULT_PASSWORD, "username"),
            ("carol", "weak", "weak", "password"),
            ("carol", DEFAULT_PASSWORD, "Different1A", "confirm_password"),
        ],
    )
    async def test_validation(self, auth, username, password, confirm, field):
        with pytest.raises(ValidationError) as exc_info:
            await auth.register(username, "c@e.com", password, confirm)
        assert exc_info.value.field == field

    @pytest.mark.parametrize(
        "username, email, field",
        [("alice", "other@e.com", "username"), ("other", "ALICE@example.com", "email")],
    )
    async def test_duplicates(self, auth, mongo_db, username, email, field):
        await insert_user(mongo_db, "alice")
        with pytest.raises(ConflictError) as exc_info:
            await auth.register(username, email, DEFAULT_PASSWORD, DEFAULT_PASSWORD)
        assert exc_info.value.field == field


class TestLogin:
    @pytest.mark.parametrize("identifier", ["alice", "alice@example.com", "ALICE@example.com"])
    async def test_by_username_or_email(self, auth, mongo_db, identifier):
        await insert_user(mongo_db, "alice")
        user, access = await auth.login(identifier, DEFAULT_PASSWORD)
        assert user.username == "alice"
        assert (await auth.resolve_user(access)).id == user.id

    @pytest.mark.parametrize("identifier, password", [("ghost", DEFAULT_PASSWORD), ("alice", "nope")])
    async def test_generic_failure(self, auth, mongo_db, identifier, password):
        await insert_user(mongo_db, "alice")
        with pytest.raises(AuthenticationError) as exc_info:
            await auth.login(identifier, password)
        assert exc_info.value.message == "Invalid credentials"

    async def test_blocked(self, auth, mongo_db):
        await insert_user(mongo_db, "alice", status="blocked")
        with pytest.raises(ForbiddenError):
            await auth.login("alice", DEFAULT_PASSWORD)


class TestResolveUser:
    async def test_garbage_token(self, auth):
        with pytest.raises(AuthenticationError):
            await auth.resolve_user("not.a.jwt")

    async def test_deleted_user(self, auth, mongo_db):
        alice = await insert_user(mongo_db, "alice")
        _, access = await auth.login("alice", DEFAULT_PASSWORD)
        await mongo_db["users"].delete_one({"_id": alice.id})
        with pytest.raises(AuthenticationError):
            await auth.resolve_user(access)

    async def test_blocked_after_login(self, auth, mongo_db):
        alice = await insert_user(mongo_db, "alice")
        _, access = await auth.login("alice", DEFAULT_PASSWORD)
        await mongo_db["users"].update_one({"_id": alice.id}, {"$set": {"status": "blocked"}})
        with pytest.raises(ForbiddenError):
            await auth.resolve_user(access)


# ---------------------------------------------------------------------------
# Email verification
# ---------------------------------------------------------------------------


class TestRequestVerification:
    async def test_sends_link_and_code(self, auth, mongo_db, email_provider):
        alice = await insert_user(mongo_db, "alice")

        issued = await auth.request_verification(alice)

        sent = email_provider.last_challenge
        assert sent["to"] == "alice@example.com"
        assert sent["link"] == f"http://localhost:5173/verify-email?token={issued.token}"
        assert sent["otp"] == issued.code
        assert "15 minutes" in email_provider.messages[-1]["text"]

    async def test_code_only_mode(self, mongo_db, email_provider, clock):
        auth = _build(mongo_db, email_provider, clock, verify_mode_token=False)
        alice = await insert_user(mongo_db, "alice")

        issued = await auth.request_verification(alice)

        assert issued.token is None
        assert email_provider.last_challenge["link"] is None

    async def test_already_verified(self, auth, mongo_db, email_provider):
        alice = await insert_user(mongo_db, "alice", email_verified=True)
        with pytest.raises(ValidationError):
            await auth.request_verification(alice)
        assert email_provider.challenges == []

    async def test_resend_cooldown(self, auth, mongo_db, clock):
        alice = await insert_user(mongo_db, "alice")
        users = UserRepository(mongo_db["users"])
        await auth.request_verification(alice)

        clock.advance(seconds=20)
        with pytest.raises(RateLimitError) as exc_info:
            await auth.request_verification(await users.find_by_id(alice.id))
        assert exc_info.value.details == {"retry_after_seconds": 40}

        clock.advance(seconds=40)
        await auth.request_verification(await users.find_by_id(alice.id))

    async def test_spent_record_holds_no_cooldown(self, auth, mongo_db, email_provider, clock):
        alice = await insert_user(
            mongo_db,
            "alice",
            email_verification={"code_attempts": 0, "code_last_sent_at": clock()},
        )

        await auth.request_verification(alice)

        assert len(email_provider.challenges) == 1

    async def test_send_failure_keeps_challenge(self, auth, mongo_db, email_provider):
        alice = await insert_user(mongo_db, "alice")
        email_provider.fail = True

        with pytest.raises(EmailDeliveryError):
            await auth.request_verification(alice)

        doc = await mongo_db["users"].find_one({"_id": alice.id})
        assert doc["email_verification"]["code_hash"] is not None


class TestConfirmVerification:
    async def test_by_token(self, auth, mongo_db):
        alice = await insert_user(mongo_db, "alice")
        issued = await auth.request_verification(alice)

        user = await auth.confirm_verification_token(issued.token)

        assert user.email_verified is True

    async def test_by_code(self, auth, mongo_db):
        alice = await insert_user(mongo_db, "alice")
        issued = await auth.request_verification(alice)

        user = await auth.confirm_verification_code(alice, issued.code)

        assert user.email_verified is True

    async def test_wrong_then_unavailable(self, auth, mongo_db):
        alice = await insert_user(mongo_db, "alice")
        issued = await auth.request_verification(alice)

        for _ in range(5):
            with pytest.raises(WrongCodeError):
                await auth.confirm_verification_code(alice, _wrong(issued.code))
        with pytest.raises(ChallengeUnavailableError):
            await auth.confirm_verification_code(alice, issued.code)

    async def test_code_is_bound_to_the_caller(self, auth, mongo_db):
        alice = await insert_user(mongo_db, "alice")
        bob = await insert_user(mongo_db, "bob")
        issued = await auth.request_verification(alice)

        with pytest.raises(ChallengeUnavailableError):
            await auth.confirm_verification_code(bob, issued.code)


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


class TestForgotPassword:
    async def test_unknown_email_is_generic(self, auth, email_provider):
        assert await auth.forgot_password("ghost@example.com") == GENERIC_RESET_MESSAGE
        assert email_provider.challenges == []

    async def test_unverified_is_generic_and_silent(self, auth, mongo_db, email_provider):
        await insert_user(mongo_db, "alice")
        assert await auth.forgot_password("alice@example.com") == GENERIC_RESET_MESSAGE
        assert email_provider.challenges == []

    async def test_blocked_is_silent(self, auth, mongo_db, email_provider):
        await insert_user(mongo_db, "alice", email_verified=True, status="blocked")
        assert await auth.forgot_password("alice@example.com") == GENERIC_RESET_MESSAGE
        assert email_provider.challenges == []

    async def test_sends_reset(self, auth, mongo_db, email_provider):
        await insert_user(mongo_db, "alice", email_verified=True)

        assert await auth.forgot_password("Alice@Example.com ") == GENERIC_RESET_MESSAGE

        sent = email_provider.last_challenge
        assert sent["kind"] == "reset"
        assert sent["link"].startswith("http://localhost:5173/reset-password?token=")
        assert sent["otp"] is not None

    async def test_cooldown_is_silent(self, auth, mongo_db, email_provider, clock):
        await insert_user(mongo_db, "alice", email_verified=True)
        await auth.forgot_password("alice@example.com")
        clock.advance(seconds=5)

        assert await auth.forgot_password("alice@example.com") == GENERIC_RESET_MESSAGE
        assert len(email_provider.challenges) == 1

    async def test_send_failure_is_generic(self, auth, mongo_db, email_provider):
        await insert_user(mongo_db, "alice", email_verified=True)
        email_provider.fail = True
        assert await auth.forgot_password("alice@example.com") == GENERIC_RESET_MESSAGE


class TestResetPassword:
    async def _request(self, auth, mongo_db, email_provider):
        alice = await insert_user(mongo_db, "alice", email_verified=True)
        await auth.forgot_password(alice.email)
        return alice, email_provider.last_challenge

    async def test_by_token(self, auth, mongo_db, email_provider):
        alice, _ = await self._request(auth, mongo_db, email_provider)

        await auth.reset_password_by_token(email_provider.last_link_token, NEW_PASSWORD)

        user, _ = await auth.login("alice", NEW_PASSWORD)
        assert user.id == alice.id
        with pytest.raises(AuthenticationError):
            await auth.login("alice", DEFAULT_PASSWORD)

    async def test_by_code(self, auth, mongo_db, email_provider):
        _, sent = await self._request(auth, mongo_db, email_provider)

        await auth.reset_password_by_code("alice@example.com", sent["otp"], NEW_PASSWORD)

        await auth.login("alice", NEW_PASSWORD)
        doc = await mongo_db["users"].find_one({"username": "alice"})
        assert "password_reset" not in doc

    async def test_weak_password_does_not_consume(self, auth, mongo_db, email_provider):
        _, sent = await self._request(auth, mongo_db, email_provider)

        with pytest.raises(ValidationError) as exc_info:
            await auth.reset_password_by_code("alice@example.com", sent["otp"], "weak")
        assert exc_info.value.field == "new_password"

        await auth.reset_password_by_code("alice@example.com", sent["otp"], NEW_PASSWORD)

    async def test_token_single_use(self, auth, mongo_db, email_provider):
        await self._request(auth, mongo_db, email_provider)
        token = email_provider.last_link_token
        await auth.reset_password_by_token(token, NEW_PASSWORD)

        with pytest.raises(InvalidChallengeError):
            await auth.reset_password_by_token(token, "An0therPassword")

    async def test_expired_code(self, auth, mongo_db, email_provider, clock):
        _, sent = await self._request(auth, mongo_db, email_provider)
        clock.advance(minutes=11)

        with pytest.raises(ChallengeUnavailableError):
            await auth.reset_password_by_code("alice@example.com", sent["otp"], NEW_PASSWORD)

    async def test_reset_does_not_touch_verification(self, auth, mongo_db, email_provider):
        alice = await insert_user(mongo_db, "alice")
        await auth.request_verification(alice)
        await mongo_db["users"].update_one(
            {"_id": alice.id}, {"$set": {"email_verified": True}}
        )
        await auth.forgot_password(alice.email)
        await auth.reset_password_by_token(email_provider.last_link_token, NEW_PASSWORD)

        doc = await mongo_db["users"].find_one({"_id": alice.id})
        assert doc["email_verification"]["token_hash"] is not None
