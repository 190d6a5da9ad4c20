"""
Authentication Constants

Bearer tokens are issued by the archive's account service; this API only
verifies them to tell moderators and admins apart from public visitors.
"""

import logging

from decouple import config

from app.config import settings

logger = logging.getLogger(__name__)

# JWT Configuration
SECRET_KEY = config("SECRET_KEY", default=settings.secret_key)
if SECRET_KEY == "your_secret_key":
    logger.warning("Using default SECRET_KEY. This is insecure and should be changed in production!")

ALGORITHM = config("JWT_ALGORITHM", default="HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = config(
    "ACCESS_TOKEN_EXPIRE_MINUTES", default=settings.access_token_expire_minutes, cast=int
)

# Claim carrying the user's email
SUBJECT_CLAIM = "sub"
TOKEN_URL = "token"
