import unittest
from unittest.mock import patch

from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from taskhub import auth
from taskhub.errors import Unauthenticated, UnsupportedCaller
from taskhub.roles import AdminCaller, MemberCaller, caller_from_claims, is_admin, member_id

SECRET = "test-secret"


def _creds(claims: dict, secret: str = SECRET) -> HTTPAuthorizationCredentials:
    token = jwt.encode(claims, secret, algorithm="HS256")
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class BearerAuthTests(unittest.TestCase):
    def setUp(self) -> None:
        self.secret_patch = patch.object(auth.config, "JWT_SECRET", SECRET)
        self.algorithm_patch = patch.object(auth.config, "JWT_ALGORITHM", "HS256")
        self.secret_patch.start()
        self.algorithm_patch.start()

    def tearDown(self) -> None:
        self.algorithm_patch.stop()
        self.secret_patch.stop()

    def test_user_id_and_role_claims_map_to_caller(self) -> None:
        self.assertEqual(
            auth.get_current_caller(_creds({"userId": "u-1", "role": "admin"})),
            AdminCaller("u-1"),
        )
        self.assertEqual(
            auth.get_current_caller(_creds({"sub": "u-2", "role": "user"})),
            MemberCaller("u-2"),
        )

    def test_missing_token_is_rejected(self) -> None:
        with self.assertRaises(Unauthenticated) as ctx:
            auth.get_current_caller(None)
        self.assertEqual(ctx.exception.message, "Access token required")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_bad_signature_is_rejected(self) -> None:
        with self.assertRaises(Unauthenticated):
            auth.get_current_caller(_creds({"userId": "u-1", "role": "user"}, secret="other"))

    def test_missing_user_id_is_rejected(self) -> None:
        with self.assertRaises(Unauthenticated):
            auth.get_current_caller(_creds({"role": "user"}))

    def test_unknown_role_is_rejected(self) -> None:
        with self.assertRaises(UnsupportedCaller):
            auth.get_current_caller(_creds({"userId": "u-1", "role": "owner"}))


class CallerDispatchTests(unittest.TestCase):
    def test_role_tokens_are_case_insensitive(self) -> None:
        self.assertEqual(caller_from_claims("u-1", " Admin "), AdminCaller("u-1"))

    def test_member_scope_follows_role(self) -> None:
        self.assertIsNone(member_id(AdminCaller("a-1")))
        self.assertEqual(member_id(MemberCaller("u-1")), "u-1")
        self.assertTrue(is_admin(AdminCaller("a-1")))
        with self.assertRaises(UnsupportedCaller):
            is_admin("admin")


if __name__ == "__main__":
    unittest.main()
