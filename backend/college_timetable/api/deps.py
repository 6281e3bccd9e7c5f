from collections.abc import Callable, Generator, Iterable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from college_timetable.core.security import decode_token
from college_timetable.db.session import SessionLocal
from college_timetable.models.user import User, UserRole
from college_timetable.services.allocation import AllocationService
from college_timetable.services.semester import CurrentSemesterResolver
from college_timetable.services.views import TimetableViewBuilder

security = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError as exc:
        raise credentials_exception from exc

    user = db.get(User, user_id)
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return user


def require_roles(*roles: UserRole) -> Callable[[User], User]:
    allowed_roles: Iterable[UserRole] = set(roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return role_checker


def get_semester_resolver(db: Session = Depends(get_db)) -> CurrentSemesterResolver:
    return CurrentSemesterResolver(db)


def get_allocation_service(
    db: Session = Depends(get_db),
    resolver: CurrentSemesterResolver = Depends(get_semester_resolver),
) -> AllocationService:
    return AllocationService(db, resolver)


def get_view_builder(
    db: Session = Depends(get_db),
    resolver: CurrentSemesterResolver = Depends(get_semester_resolver),
) -> TimetableViewBuilder:
    return TimetableViewBuilder(db, resolver)
