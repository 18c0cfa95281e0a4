from fastapi import Depends, HTTPException, status, Header
from sqlalchemy.orm import Session
from typing import Optional

from collabtodo.core.database import get_db
from collabtodo.core.security import decode_token
from collabtodo.models.user import User
from collabtodo.services.user_service import UserService


def get_current_user(db: Session = Depends(get_db), authorization: Optional[str] = Header(None)) -> User:
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    token = authorization.replace("Bearer ", "")
    claims = decode_token(token)
    if not claims:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    # Premier passage de cet user : création + Inbox
    return UserService(db).ensure_user(
        claims["id"],
        display_name=claims["display_name"],
        email=claims["email"],
        photo=claims["photo"]
    )
