from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from firebase_admin import auth
from pydantic import BaseModel

from libs.firebase.client import initialize_firebase_app


class User(BaseModel):
    uid: str
    email: str | None = None


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    """Resolve the caller from a Firebase ID token in the Authorization header."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    initialize_firebase_app()
    try:
        decoded_token = auth.verify_id_token(token)
        return User(uid=decoded_token["uid"], email=decoded_token.get("email"))
    except (ValueError, auth.InvalidIdTokenError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication credentials: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        )
