from app.utils.dates import add_months, as_utc, utcnow
from app.utils.security import (
    create_access_token,
    create_refresh_token,
    create_tokens,
    decode_token,
    hash_password,
    verify_password,
)

__all__ = [
    "add_months",
    "as_utc",
    "utcnow",
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "create_tokens",
    "decode_token",
]
