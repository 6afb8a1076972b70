"""Owner authentication with bearer JWTs."""

from biztrackr.auth.dependencies import get_current_owner_id
from biztrackr.auth.jwt import create_access_token, decode_access_token, owner_id_from_token

__all__ = [
    "create_access_token",
    "decode_access_token",
    "get_current_owner_id",
    "owner_id_from_token",
]
