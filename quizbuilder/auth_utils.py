"""Password hashing for user accounts."""

from passlib.context import CryptContext

from quizbuilder.config import get_settings

# "2b" ident keeps passlib happy with bcrypt 4.x
PWD_CONTEXT = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b",
    bcrypt__rounds=get_settings().bcrypt_rounds,
)


def hash_password(plain_password: str) -> str:
    return PWD_CONTEXT.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Check a login attempt; a malformed stored hash counts as a mismatch."""
    try:
        return PWD_CONTEXT.verify(plain_password, password_hash)
    except ValueError:
        return False
