from __future__ import annotations

from fastapi import APIRouter, Depends

from welfare.schemas.security import UserOut
from welfare.security.dependencies import get_current_user

router = APIRouter(tags=["me"])


@router.get("/me", response_model=UserOut)
def me(user=Depends(get_current_user)) -> UserOut:
    return UserOut.from_user(user)
