"""FastAPI dependencies for caller identity.

Authentication itself happens upstream; by the time a request reaches the
service the caller's id travels in the `X-User-Id` header.
"""

from fastapi import Depends, HTTPException, status, Header
from sqlalchemy.orm import Session

from flexcalendar.database.database import get_db
from flexcalendar.database.user_repository import UserRepository
from flexcalendar.models.user import User


def get_current_user(
    x_user_id: str = Header(default="", alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the calling user.

    Args:
        x_user_id: Caller id forwarded by the upstream auth layer
        db: Database session

    Returns:
        User object

    Raises:
        HTTPException: If the header is missing or the user does not exist
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    user = UserRepository(db).get(x_user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user
