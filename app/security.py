"""
Password hashing for stored credentials.

Only Argon2id hashes are stored. The CryptContext is the one place the
scheme is named: adding a newer scheme in front of "argon2" would hash new
passwords with it while existing hashes keep verifying.
"""

from passlib.context import CryptContext


pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """Return the Argon2id hash ("$argon2id$v=19$...") of a raw password."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a submitted password against a stored hash.

    Args:
        plain_password: The password from the login form or Basic header.
        hashed_password: User.hashed_password.

    Returns:
        True on a match.
    """
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """
    Burn one verification's worth of time without a stored hash.

    The login path calls this for unknown usernames so that a miss takes
    as long as a wrong password.
    """
    pwd_context.dummy_verify()
