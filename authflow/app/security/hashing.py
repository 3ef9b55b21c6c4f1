# authflow/app/security/hashing.py
import bcrypt

DEFAULT_ROUNDS = 10


def get_password_hash(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Stored value is not a bcrypt hash, or the password exceeds 72 bytes
        return False
