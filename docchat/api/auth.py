"""Identity for incoming requests, taken only from a verified bearer token."""

from __future__ import annotations

from typing import Annotated

import jwt
from fastapi import Header, Request

from docchat.core.errors import Unauthenticated
from docchat.models.documents import AuthenticatedUser

JWT_ALGORITHMS = ["HS256"]


class TokenIdentityContext:
    """Resolves the current user from an ``Authorization: Bearer <jwt>`` header.

    Tokens are HS256-signed with the shared secret and carry ``id`` and
    ``email`` claims plus an expiry.
    """

    def __init__(self, authorization: str | None, secret: str) -> None:
        self._authorization = authorization
        self._secret = secret

    def current_user(self) -> AuthenticatedUser:
        if not self._authorization:
            raise Unauthenticated("Missing bearer token.")
        if not self._authorization.startswith("Bearer "):
            raise Unauthenticated("Invalid authorization header format.")

        token = self._authorization[len("Bearer ") :].strip()
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=JWT_ALGORITHMS,
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise Unauthenticated("Session expired. Please log in again.") from exc
        except jwt.InvalidTokenError as exc:
            raise Unauthenticated("Invalid session token.") from exc

        user_id = claims.get("id")
        email = claims.get("email")
        if user_id is None or str(user_id).strip() == "" or not email:
            raise Unauthenticated("Session token is missing identity claims.")
        return AuthenticatedUser(id=str(user_id), email=str(email))


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> AuthenticatedUser:
    """FastAPI dependency returning the verified caller."""
    secret = request.app.state.services.jwt_secret
    return TokenIdentityContext(authorization, secret).current_user()
