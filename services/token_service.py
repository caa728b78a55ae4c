"""
TokenService — issue and verify access JWTs.

RS256 when both JWT_PRIVATE_KEY and JWT_PUBLIC_KEY are set, HS256 with
JWT_SECRET otherwise. Keys may be supplied through env with literal ``\\n``
sequences.
"""

from __future__ import annotations

from datetime import timedelta

import jwt

from config import JWTSettings
from errors import AuthenticationError
from shared.datetime_utils import Clock, utcnow


class TokenService:
    def __init__(self, settings: JWTSettings, clock: Clock = utcnow) -> None:
        self._settings = settings
        self._clock = clock
        if settings.use_rs256:
            self._algorithm = "RS256"
            self._signing_key = settings.jwt_private_key.replace("\\n", "\n")
            self._verify_key = settings.jwt_public_key.replace("\\n", "\n")
        else:
            if not settings.jwt_secret:
                raise RuntimeError(
                    "JWT_SECRET must be set when RS256 keys are not provided"
                )
            self._algorithm = "HS256"
            self._signing_key = self._verify_key = settings.jwt_secret

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def issue_access_token(self, user_id: str, role: str) -> str:
        now = self._clock()
        claims = {
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "sub": str(user_id),
            "role": role,
            "iat": int(now.timestamp()),
            "exp": int(
                (now + timedelta(seconds=self._settings.access_token_ttl_seconds)).timestamp()
            ),
        }
        return jwt.encode(claims, self._signing_key, algorithm=self._algorithm)

    def verify_access_token(self, access_jwt: str) -> dict:
        """Decode and validate *access_jwt*.

        Raises:
            AuthenticationError: expired, tampered, or issued for someone else.
        """
        try:
            return jwt.decode(
                access_jwt,
                self._verify_key,
                algorithms=[self._algorithm],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError("access token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError("invalid access token") from exc
