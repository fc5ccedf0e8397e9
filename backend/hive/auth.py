from uuid import UUID

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .database import get_db
from . import models

# purpose: resolve the acting user forwarded by the fronting auth layer
# status: active


def get_current_user(
    x_user_id: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> models.User:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        user_uuid = UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user id")
    user = db.get(models.User, user_uuid)
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user
