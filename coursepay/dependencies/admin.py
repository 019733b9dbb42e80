from fastapi import Depends, HTTPException
from coursepay.models.profile import Profile
from coursepay.utils.token import get_current_user


def require_admin(current_user: Profile = Depends(get_current_user)):
    if current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
