from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from daiary.config import settings
from daiary.core.logger import logger

security = HTTPBearer()


@dataclass
class Account:
    user_id: str
    email: Optional[str] = None


def parse_token(token: str) -> Account:
    """Verify a session token issued by the hosted auth provider."""
    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.AUTH_JWT_AUDIENCE,
        )
    except jwt.PyJWTError as e:
        logger.warning("Rejected token: {}", e)
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return Account(user_id=payload["sub"], email=payload.get("email"))


def get_current_account(
    creds: HTTPAuthorizationCredentials = Depends(security),
) -> Account:
    return parse_token(creds.credentials)
