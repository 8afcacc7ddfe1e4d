"""Password hashing for credential sign-in.

Salted PBKDF2-SHA256 via passlib. Hashes are self-describing, so the
scheme can be rotated later through CryptContext(deprecated="auto").
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """Check a password against a stored hash.

    With no stored hash, still spends the same work as a real check so a
    missing account is not distinguishable by timing.
    """
    if password_hash is None:
        pwd_context.dummy_verify()
        return False
    return pwd_context.verify(password, password_hash)
