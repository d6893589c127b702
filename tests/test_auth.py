"""
Tests for the auth service (accounts, tokens, revocation, listeners) and the
AuthContext that tracks the signed-in user.
"""
import unittest
from datetime import timedelta

from schemas.profile import ProfileRecord
from services.auth import SIGNED_IN, SIGNED_OUT, AuthService, hash_password, verify_password
from services.errors import AuthError, BackendError
from services.local_store import LocalStore
from services.notifications import Notifier
from services.repository import LocalRepository
from services.session_context import AuthContext


class FlakyProfileStore(LocalStore):
    """Fails the first profile write, as if the backend dropped the request."""

    def __init__(self):
        super().__init__()
        self.failures = 1

    def save_profile(self, profile):
        if self.failures:
            self.failures -= 1
            raise BackendError("backend unreachable")
        return super().save_profile(profile)


def make_auth(repo=None, **kwargs):
    repo = repo or LocalRepository(LocalStore())
    return AuthService(repo, secret_key="test-secret", bcrypt_rounds=4, **kwargs)


class TestPasswords(unittest.TestCase):
    def test_hash_and_verify(self):
        hashed = hash_password("hunter22", rounds=4)
        self.assertNotEqual(hashed, "hunter22")
        self.assertTrue(verify_password("hunter22", hashed))
        self.assertFalse(verify_password("hunter23", hashed))

    def test_verify_against_garbage_hash(self):
        self.assertFalse(verify_password("hunter22", "not-a-bcrypt-hash"))


class TestAuthService(unittest.IsolatedAsyncioTestCase):
    async def test_sign_up_issues_session(self):
        auth = make_auth()
        session = await auth.sign_up(" Jane@Example.com ", "secret1", "Jane Doe")
        self.assertEqual(session.user.email, "jane@example.com")
        self.assertEqual(session.user.full_name, "Jane Doe")
        self.assertEqual(session.token_type, "bearer")

        restored = await auth.get_session(session.access_token)
        self.assertEqual(restored.user.id, session.user.id)
        self.assertEqual((await auth.get_user(session.access_token)).email, "jane@example.com")

    async def test_duplicate_email(self):
        auth = make_auth()
        await auth.sign_up("jane@example.com", "secret1")
        with self.assertRaises(AuthError) as ctx:
            await auth.sign_up("JANE@example.com", "another1")
        self.assertEqual(ctx.exception.status_code, 409)

    async def test_missing_fields(self):
        with self.assertRaises(AuthError) as ctx:
            await make_auth().sign_up("", "secret1")
        self.assertEqual(ctx.exception.status_code, 422)

    async def test_sign_in(self):
        auth = make_auth()
        await auth.sign_up("jane@example.com", "secret1")
        session = await auth.sign_in("jane@example.com", "secret1")
        self.assertIsNotNone(session.user.last_sign_in_at)
        with self.assertRaises(AuthError) as ctx:
            await auth.sign_in("jane@example.com", "wrong")
        self.assertEqual(ctx.exception.message, "Invalid login credentials")
        with self.assertRaises(AuthError):
            await auth.sign_in("nobody@example.com", "secret1")

    async def test_sign_out_revokes_token(self):
        auth = make_auth()
        session = await auth.sign_up("jane@example.com", "secret1")
        await auth.sign_out(session.access_token)
        self.assertIsNone(await auth.get_session(session.access_token))

    async def test_rejects_foreign_and_expired_tokens(self):
        auth = make_auth()
        session = await auth.sign_up("jane@example.com", "secret1")
        other = AuthService(auth.repository, secret_key="other-secret", bcrypt_rounds=4)
        self.assertIsNone(await other.get_session(session.access_token))
        self.assertIsNone(await auth.get_session("garbage"))
        self.assertIsNone(await auth.get_session(None))

        expired = make_auth(auth.repository, session_ttl=timedelta(seconds=-5))
        token = (await expired.sign_in("jane@example.com", "secret1")).access_token
        self.assertIsNone(await expired.get_session(token))

    async def test_overlong_password_rejected(self):
        auth = make_auth()
        with self.assertRaises(AuthError) as ctx:
            await auth.sign_up("long@example.com", "p" * 80)
        self.assertEqual(ctx.exception.status_code, 422)
        # 36 two-byte characters fill the 72 byte limit exactly
        await auth.sign_up("ok@example.com", "é" * 36)
        with self.assertRaises(AuthError):
            await auth.sign_up("multi@example.com", "é" * 37)
        self.assertIsNone(await auth.repository.get_auth_user("long@example.com"))

    async def test_sign_up_creates_profile(self):
        auth = make_auth()
        session = await auth.sign_up("jane@example.com", "secret1", "Jane Doe")
        profile = await auth.repository.get_profile(session.user.id)
        self.assertEqual(profile.full_name, "Jane Doe")
        self.assertIsNone(profile.role)

    async def test_sign_in_restores_missing_profile(self):
        store = FlakyProfileStore()
        auth = make_auth(LocalRepository(store))
        with self.assertRaises(BackendError):
            await auth.sign_up("jane@example.com", "secret1", "Jane Doe")
        session = await auth.sign_in("jane@example.com", "secret1")
        profile = await auth.repository.get_profile(session.user.id)
        self.assertEqual(profile.email, "jane@example.com")
        self.assertEqual(profile.full_name, "Jane Doe")

    async def test_expired_revocations_are_pruned(self):
        auth = make_auth()
        session = await auth.sign_up("jane@example.com", "secret1")
        auth._revoked["long-expired"] = 0
        await auth.sign_out(session.access_token)
        self.assertNotIn("long-expired", auth._revoked)
        self.assertEqual(len(auth._revoked), 1)
        self.assertIsNone(await auth.get_session(session.access_token))

    async def test_listeners(self):
        auth = make_auth()
        events = []

        async def on_change(event, session):
            events.append((event, session.user.email if session else None))

        unsubscribe = auth.on_auth_state_change(on_change)
        auth.on_auth_state_change(lambda event, session: events.append(("sync", event)))
        session = await auth.sign_up("jane@example.com", "secret1")
        await auth.sign_out(session.access_token)
        self.assertEqual(
            events,
            [
                (SIGNED_IN, "jane@example.com"),
                ("sync", SIGNED_IN),
                (SIGNED_OUT, "jane@example.com"),
                ("sync", SIGNED_OUT),
            ],
        )

        unsubscribe()
        unsubscribe()
        await auth.sign_in("jane@example.com", "secret1")
        self.assertEqual(events[-1], ("sync", SIGNED_IN))
        self.assertEqual(len(events), 5)


class TestAuthContext(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.repo = LocalRepository(LocalStore())
        self.auth = make_auth(self.repo)
        self.context = AuthContext(self.auth, self.repo, Notifier())

    async def asyncTearDown(self):
        self.context.close()

    async def test_start_without_session(self):
        self.assertTrue(self.context.is_loading)
        await self.context.start()
        self.assertFalse(self.context.is_loading)
        self.assertIsNone(self.context.user)
        self.assertIsNone(self.context.identity)
        self.assertFalse(self.context.is_admin)

    async def test_start_restores_session(self):
        session = await self.auth.sign_up("jane@example.com", "secret1")
        await self.context.start(session.access_token)
        self.assertEqual(self.context.user.email, "jane@example.com")
        self.assertEqual(self.context.identity.user_id, session.user.id)

    async def test_sign_up_creates_profile(self):
        await self.context.start()
        result = await self.context.sign_up("jane@example.com", "secret1", "Jane Doe")
        self.assertTrue(result.ok)
        self.assertEqual(self.context.user.email, "jane@example.com")
        profile = await self.repo.get_profile(self.context.user.id)
        self.assertEqual(profile.full_name, "Jane Doe")
        self.assertFalse(self.context.is_admin)

    async def test_admin_flag_comes_from_profile_role(self):
        await self.context.start()
        session = await self.auth.sign_up("boss@example.com", "secret1")
        self.assertFalse(self.context.is_admin)
        await self.repo.save_profile(ProfileRecord(id=session.user.id, email="boss@example.com", role="admin"))
        await self.context.sign_in("boss@example.com", "secret1")
        self.assertTrue(self.context.is_admin)
        self.assertTrue(self.context.identity.is_admin)

    async def test_sign_in_failure_returns_error(self):
        await self.context.start()
        result = await self.context.sign_in("nobody@example.com", "secret1")
        self.assertFalse(result.ok)
        self.assertEqual(result.error, "Invalid login credentials")
        self.assertFalse(self.context.is_loading)
        self.assertEqual(self.context.notifier.errors[0].message, "Sign in failed")

    async def test_sign_out_clears_user(self):
        await self.context.start()
        await self.context.sign_up("jane@example.com", "secret1", "Jane Doe")
        result = await self.context.sign_out()
        self.assertTrue(result.ok)
        self.assertIsNone(self.context.user)
        self.assertIsNone(self.context.session)

    async def test_sign_up_with_overlong_password_returns_error(self):
        await self.context.start()
        result = await self.context.sign_up("long@example.com", "p" * 80, "Long Password")
        self.assertFalse(result.ok)
        self.assertIn("72", result.error)
        self.assertIsNone(self.context.user)
        self.assertFalse(self.context.is_loading)

    async def test_ignores_other_users_auth_events(self):
        jane = await self.auth.sign_up("jane@example.com", "secret1")
        await self.auth.sign_up("bob@example.com", "secret1")
        await self.context.start(jane.access_token)

        await self.auth.sign_in("bob@example.com", "secret1")
        self.assertEqual(self.context.user.email, "jane@example.com")
        await self.auth.sign_out(None)
        self.assertEqual(self.context.user.email, "jane@example.com")
        bob = await self.auth.sign_in("bob@example.com", "secret1")
        await self.auth.sign_out(bob.access_token)
        self.assertEqual(self.context.user.email, "jane@example.com")

    async def test_follows_own_sign_out_elsewhere(self):
        jane = await self.auth.sign_up("jane@example.com", "secret1")
        await self.context.start(jane.access_token)
        await self.auth.sign_out(jane.access_token)
        self.assertIsNone(self.context.user)

    async def test_switching_user_through_context(self):
        jane = await self.auth.sign_up("jane@example.com", "secret1")
        await self.auth.sign_up("bob@example.com", "secret1")
        await self.context.start(jane.access_token)
        result = await self.context.sign_in("bob@example.com", "secret1")
        self.assertTrue(result.ok)
        self.assertEqual(self.context.user.email, "bob@example.com")

    async def test_close_unsubscribes(self):
        await self.context.start()
        self.context.close()
        await self.auth.sign_up("jane@example.com", "secret1")
        self.assertIsNone(self.context.user)


if __name__ == "__main__":
    unittest.main()
