# marketplace/api/deps.py
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from marketplace.data.database import get_db
from marketplace.data.models.user import UserModel
from marketplace.domain.errors import ForbiddenError, UnauthorizedError
from marketplace.repos.user_repo import UserRepo
from marketplace.services.auth_service import decode_token

# auto_error off -> missing header is our UnauthorizedError, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> UserModel:
    if credentials is None:
        raise UnauthorizedError("Authentication required")

    claims = decode_token(credentials.credentials)
    user = UserRepo(db).get_user(claims["user_id"])
    if user is None:
        raise UnauthorizedError("Invalid or expired token")
    return user


def require_role(*roles: str):
    def _guard(user: UserModel = Depends(get_current_user)) -> UserModel:
        if user.role not in roles:
            raise ForbiddenError(f"This action requires role: {', '.join(roles)}")
        return user
    return _guard


require_seller = require_role("seller", "admin")
