"""Password hashing.

Learn: bcrypt includes a random salt automatically and produces hashes
starting with "$2b$". The rest of the system treats this module as a
black box: hash on registration, compare on login, nothing else.
"""

import bcrypt

# bcrypt ignores everything past 72 bytes.
_MAX_BYTES = 72


def hash_password(password: str, rounds: int = 12) -> str:
    pw_bytes = password.encode("utf-8")[:_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time compare of a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:_MAX_BYTES], password_hash.encode("utf-8")
        )
    except (ValueError, TypeError):
        return False
