from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from collabtodo.core.config import settings

def create_access_token(user_id: str, display_name: Optional[str] = None, email: Optional[str] = None, photo: Optional[str] = None) -> str:
    # Normalement émis par le provider d'identité, utile pour les tests et le dev
    payload = {
        "sub": user_id,
        "name": display_name,
        "email": email,
        "picture": photo,
        "exp": datetime.utcnow() + timedelta(minutes=settings.JWT_EXPIRE_MIN),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")
    return token

def verify_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
        return payload
    except JWTError:
        return None

def decode_token(token: str) -> Optional[dict]:
    """Retourne les claims utiles (id opaque + profil) ou None"""
    payload = verify_token(token)
    if payload is None or not payload.get("sub"):
        return None
    return {
        "id": payload["sub"],
        "display_name": payload.get("name"),
        "email": payload.get("email"),
        "photo": payload.get("picture"),
    }
