"""
Bearer credential verification.

Credentials are JWTs issued by the external authentication provider; the
core only verifies them and extracts the principal.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from jose import JWTError, jwt

from core.errors import UnauthorizedError
from core.settings import settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller."""
    user_id: str
    email: Optional[str] = None


class JWTAuthProvider:
    """Verifies bearer tokens signed with a shared secret."""

    def __init__(
        self,
        secret: str = settings.auth_jwt_secret,
        algorithm: str = settings.auth_jwt_algorithm,
        audience: Optional[str] = settings.auth_jwt_audience,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience

    def authenticate(self, token: Optional[str]) -> Principal:
        """
        Resolve a bearer token to a principal.

        Args:
            token: Raw JWT (without the "Bearer " prefix)

        Returns:
            Principal for the token subject

        Raises:
            UnauthorizedError: If the token is missing, invalid or has no subject
        """
        if not token:
            raise UnauthorizedError("Missing bearer credential")

        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": self.audience is not None},
            )
        except JWTError as e:
            logger.info(f"Rejected bearer credential: {e}")
            raise UnauthorizedError("Invalid bearer credential")

        subject = claims.get("sub")
        if not subject:
            raise UnauthorizedError("Bearer credential has no subject")

        return Principal(user_id=str(subject), email=claims.get("email"))

    def issue(self, user_id: str, email: Optional[str] = None, **claims) -> str:
        """Sign a token for `user_id`. Used by tests and local tooling."""
        payload = {"sub": user_id, **claims}
        if email:
            payload["email"] = email
        if self.audience:
            payload.setdefault("aud", self.audience)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)
