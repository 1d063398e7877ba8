"""
Password and Token Helpers

Salted PBKDF2-HMAC-SHA256 password hashing and random token generation.
"""
import hmac
import secrets
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from khe.modules.config import PASSWORD_HASH_ITERATIONS

SALT_BYTES = 16
TOKEN_BYTES = 32
HASH_LENGTH = 32


def salt() -> str:
    """A fresh per-user salt, hex encoded."""
    return secrets.token_hex(SALT_BYTES)


def token() -> str:
    """A fresh opaque auth token, hex encoded."""
    return secrets.token_hex(TOKEN_BYTES)


def hash(password: str, salt: str, iterations: int = PASSWORD_HASH_ITERATIONS) -> str:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=HASH_LENGTH,
        salt=salt.encode("utf-8"),
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8")).hex()


def check_password(hashed: str, candidate: str, salt: str) -> bool:
    """True if `candidate` hashes to `hashed` under `salt`."""
    if not hashed or candidate is None:
        return False
    return hmac.compare_digest(hashed, hash(candidate, salt))


def tokens_match(expected: str, candidate: str) -> bool:
    if not expected or not candidate:
        return False
    return hmac.compare_digest(expected, candidate)
