"""Password hashing for dashboard profiles (bcrypt)."""

import bcrypt


def hash_password(plain_password: str, rounds: int = 12) -> str:
    digest = bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return digest.decode("utf-8")


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    """False for profiles without a password yet (pending invites)."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
