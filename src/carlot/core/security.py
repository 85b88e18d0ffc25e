import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from jose import JWTError, jwt

from carlot.core.errors import InvalidCredential
from carlot.shared import Logger
from carlot.shared.config import Auth

logger = Logger(__name__).get_logger()

SCHEME = "scrypt"
SALT_BYTES = 16
KEY_LENGTH = 32
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as proven by a session claim."""

    user_id: int


def _kdf(salt: bytes) -> Scrypt:
    return Scrypt(salt=salt, length=KEY_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)


def hash_password(password: str) -> str:
    """
    Derive a one-way digest of the password with a fresh random salt.
    Stored as ``scrypt$<salt hex>$<digest hex>``.
    """
    salt = os.urandom(SALT_BYTES)
    digest = _kdf(salt).derive(password.encode("utf-8"))
    return f"{SCHEME}${salt.hex()}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        scheme, salt_hex, digest_hex = password_hash.split("$")
        if scheme != SCHEME:
            return False
        salt, digest = bytes.fromhex(salt_hex), bytes.fromhex(digest_hex)
    except ValueError:
        logger.warning("Stored password digest is malformed")
        return False

    # Scrypt.verify compares in constant time
    try:
        _kdf(salt).verify(password.encode("utf-8"), digest)
    except InvalidKey:
        return False
    return True


def create_access_token(identity: Identity, auth: Auth, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    claims = {
        "sub": str(identity.user_id),
        "iat": now,
        "exp": now + timedelta(hours=auth.expire_hours),
    }
    return jwt.encode(claims, auth.secret, algorithm=auth.algorithm)


def decode_access_token(token: str, auth: Auth) -> Identity:
    """
    Verify the token signature and expiry and return the identity it carries.
    Raises InvalidCredential on any failure.
    """
    try:
        claims = jwt.decode(token, auth.secret, algorithms=[auth.algorithm])
        return Identity(user_id=int(claims["sub"]))
    except (JWTError, KeyError, TypeError, ValueError) as e:
        logger.warning("Invalid token: %s", e)
        raise InvalidCredential("Invalid token.") from e
