import logging
from datetime import datetime, UTC

from jose import JWTError, jwt

from models import SessionCredential
from schemas import AuthResponse
from storage import Storage

logger = logging.getLogger(__name__)

# Storage keys for the persisted credential
TOKEN_KEY = "auth_token"
ROLE_KEY = "user_role"
ROLES = ("organizer", "student")


def is_token_expired(token: str) -> bool:
    """Check the `exp` claim of a JWT without verifying its signature.

    Tokens are opaque to the client; anything that is not a JWT, or carries
    no expiry, is treated as still valid and left for the backend to judge.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return False
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return False
    return exp <= datetime.now(UTC).timestamp()


class Session:
    """Owner of the session credential.

    The gateway reads `token` on every call; only `start`, `end` and
    `restore` write it.
    """

    def __init__(self, storage: Storage):
        self._storage = storage
        self._credential: SessionCredential | None = None

    @property
    def credential(self) -> SessionCredential | None:
        return self._credential

    @property
    def token(self) -> str | None:
        return self._credential.token if self._credential else None

    @property
    def role(self) -> str | None:
        return self._credential.role if self._credential else None

    @property
    def is_authenticated(self) -> bool:
        return self._credential is not None

    def start(self, response: AuthResponse) -> SessionCredential:
        """Persist the credential from a successful login or signup."""
        credential = SessionCredential(token=response.token, role=response.user.role)
        self._storage.set(TOKEN_KEY, credential.token)
        self._storage.set(ROLE_KEY, credential.role)
        self._credential = credential
        logger.info(f"Session started for {response.user.email} as {credential.role}")
        return credential

    def end(self, *_):
        """Drop the credential from memory and storage.

        Accepts and ignores positional arguments so it can be used directly
        as the gateway's auth-failure callback.
        """
        if self._credential is not None:
            logger.info("Session ended")
        self._credential = None
        self._storage.remove(TOKEN_KEY)
        self._storage.remove(ROLE_KEY)

    def restore(self) -> SessionCredential | None:
        """Reload a persisted credential, discarding expired or incomplete ones."""
        token = self._storage.get(TOKEN_KEY)
        role = self._storage.get(ROLE_KEY)
        if not token or role not in ROLES:
            if token or role:
                logger.warning("Discarding incomplete stored credential")
                self.end()
            return None
        if is_token_expired(token):
            logger.info("Stored token has expired")
            self.end()
            return None
        self._credential = SessionCredential(token=token, role=role)
        logger.info(f"Session restored as {role}")
        return self._credential
