from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.exceptions import AuthenticationError, InsufficientPermissionsError, ResourceInactiveError
from app.core.security import get_user_id_from_token
from app.auth.service import AuthService
from app.auth.models import User, UserRole

# Security scheme
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    user_id = get_user_id_from_token(credentials.credentials)
    user = AuthService(db).get_user_by_id(user_id)

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise ResourceInactiveError("User", str(user.id))

    return user


def get_current_staff_user(current_user: User = Depends(get_current_user)) -> User:
    """Admins and managers."""
    if current_user.role not in UserRole.STAFF:
        raise InsufficientPermissionsError(
            error_data={"required_roles": list(UserRole.STAFF), "user_role": current_user.role}
        )
    return current_user


def get_current_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """Get current authenticated admin user."""
    if current_user.role != UserRole.ADMIN:
        raise InsufficientPermissionsError(
            detail="Admin access required",
            error_data={"required_roles": [UserRole.ADMIN], "user_role": current_user.role}
        )
    return current_user
