# authgate Models
from authgate.models.base import BaseModel
from authgate.models.revoked_token import RevokedToken
from authgate.models.user import User

__all__ = [
    "BaseModel",
    "RevokedToken",
    "User",
]
