from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session, joinedload
from app.core.database import get_db
from app.core.exceptions import StoreNotFoundError
from app.core.permissions import has_permission
from app.core.security import decode_access_token
from app.models.store import Store
from app.models.user import User
from app.repositories.store_scope import StoreContext, StoreRepository

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception
    email: str = payload.get("sub")
    if email is None:
        raise credentials_exception

    user = db.query(User).options(joinedload(User.role)).filter(User.email == email).first()
    if user is None or not user.is_active:
        raise credentials_exception
    if not user.role:
        raise HTTPException(status_code=400, detail="User role not found")
    return user

def get_store_context(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> StoreContext:
    """Resolve the caller's store; a missing or inactive store fails closed with 404."""
    if current_user.store_id is None:
        raise StoreNotFoundError()
    store = db.query(Store).filter(Store.id == current_user.store_id, Store.is_active.is_(True)).first()
    if store is None:
        raise StoreNotFoundError()
    return StoreContext(store_id=store.id, user=current_user)

async def get_store_repository(
    context: StoreContext = Depends(get_store_context),
    db: Session = Depends(get_db)
) -> StoreRepository:
    """Resolved on the event loop so the store id it sets stays in the request context seen by route logs"""
    return StoreRepository(db, context)

def require_permission_dependency(module: str, action: str):
    """Dependency factory for permission-based access control"""
    def permission_checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user, module, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: You don't have permission to {action} {module}"
            )
        return current_user
    return permission_checker
