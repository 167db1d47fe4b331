from __future__ import annotations
import time
import bcrypt
import jwt

ALGORITHM = "HS256"

def get_password_hash(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")

def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False

def create_access_token(user_id: int, secret: str) -> str:
    # no expiry
    return jwt.encode({"id": user_id, "iat": int(time.time())}, secret, algorithm=ALGORITHM)

def decode_access_token(token: str, secret: str) -> dict:
    return jwt.decode(token, secret, algorithms=[ALGORITHM])
