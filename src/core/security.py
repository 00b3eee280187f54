import hashlib
import secrets
import bcrypt
from src.core.config import get_settings


def hash_password(password: str) -> str:
    """Hash a password with bcrypt; the raw secret is never stored"""
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    # Tokens are high-entropy, a fast digest is enough
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
