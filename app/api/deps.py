from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.exceptions import AuthenticationFailure
from app.core.security import decode_access_token
from app.db.database import get_db
from app.models.user import User
from app.services.storage import UploadStorage

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login")


def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    email = decode_access_token(token)
    if email is None:
        raise AuthenticationFailure()

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise AuthenticationFailure()
    request.state.user_email = user.email
    return user


def get_storage(request: Request) -> UploadStorage:
    return request.app.state.storage
