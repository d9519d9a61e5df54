"""Verification of bearer tokens issued by the external auth provider.

Login, signup and password reset are handled entirely by the auth provider.
This service only validates the HS256 JWTs it signs and extracts the
subject (the user id) from them.  ``create_access_token`` exists for local
tooling and tests.
"""

from datetime import UTC, datetime, timedelta

import jwt


def create_access_token(
    subject: str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_minutes: int = 60,
    audience: str | None = "authenticated",
    email: str | None = None,
) -> str:
    """Create a JWT shaped like the ones the auth provider issues.

    Args:
        subject: The user id.
        secret_key: Secret key for signing.
        algorithm: JWT signing algorithm.
        expires_minutes: Token expiration in minutes.
        audience: Audience claim, omitted when None.
        email: Optional email claim.

    Returns:
        The encoded JWT string.
    """
    expire = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    payload: dict[str, object] = {
        "sub": subject,
        "exp": expire,
        "role": "authenticated",
    }
    if audience is not None:
        payload["aud"] = audience
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
    audience: str | None = "authenticated",
) -> dict:
    """Decode and validate a JWT token.

    Args:
        token: The JWT string to decode.
        secret_key: Secret key used for signing.
        algorithm: JWT signing algorithm.
        audience: Expected audience; the check is skipped when None.

    Returns:
        The decoded token payload.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired.
        jwt.InvalidTokenError: If the token is invalid.
    """
    if audience is None:
        return jwt.decode(token, secret_key, algorithms=[algorithm], options={"verify_aud": False})
    return jwt.decode(token, secret_key, algorithms=[algorithm], audience=audience)
