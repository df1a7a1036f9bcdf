from passlib.context import CryptContext
from datetime import datetime, timedelta
from typing import Iterable
import hashlib
import logging
import jwt

from .config import Settings, settings
from .exceptions import InvalidCredential

logger = logging.getLogger(__name__)


class CredentialHasher:
    """One-way hashing for passwords and reset secrets."""

    def __init__(self, config: Settings):
        # Use pbkdf2_sha256 to avoid external bcrypt backend issues in some environments
        self._context = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__default_rounds=config.PASSWORD_HASH_ROUNDS
        )

    def hash_password(self, password: str) -> str:
        return self._context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        try:
            return self._context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            # Unrecognised or empty hash counts as a mismatch
            return False

    @staticmethod
    def hash_token(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenIssuer:
    """
    Issues and verifies signed, self-contained session credentials.

    A credential is an HS256 JWT whose subject is the account id and whose
    ``roles`` claim lists the account roles at issue time. Nothing is stored
    server side: validity is the signature plus the ``exp`` claim.
    """

    def __init__(self, config: Settings):
        self._secret = config.SECRET_KEY
        self._algorithm = config.ALGORITHM
        self._ttl = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)

    @property
    def expiration_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    def issue(self, account_id: int, roles: Iterable[str]) -> str:
        now = datetime.utcnow()
        payload = {
            "sub": str(account_id),
            "roles": sorted(roles),
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> tuple[int, dict]:
        """
        Check signature and expiry of a credential.

        Returns:
            Tuple of (account_id, claims)

        Raises:
            InvalidCredential: signature mismatch, expiry, or malformed claims
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "iat", "exp"]}
            )
        except jwt.ExpiredSignatureError as exc:
            logger.info("Rejected expired credential")
            raise InvalidCredential("Invalid token") from exc
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected credential: %s", exc)
            raise InvalidCredential("Invalid token") from exc

        try:
            account_id = int(claims["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidCredential("Invalid token") from exc
        return account_id, claims


hasher = CredentialHasher(settings)
token_issuer = TokenIssuer(settings)
