import os
from typing import Any, Dict, Optional

import firebase_admin
from fastapi import Depends, Header, HTTPException, status
from firebase_admin import auth as fb_auth, credentials
from sqlalchemy.orm import Session

from controllers.config import logger
from controllers.db_helpers import get_user_by_firebase_uid
from models import User, UserRoleEnum
from utils.db import get_db


def ensure_firebase_initialized() -> None:
    if not firebase_admin._apps:
        service_account_path: Optional[str] = os.getenv(
            "FIREBASE_SERVICE_ACCOUNT_JSON_PATH"
        )
        if not service_account_path or not os.path.exists(service_account_path):
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Firebase service account path not configured",
            )
        cred = credentials.Certificate(service_account_path)
        firebase_admin.initialize_app(cred)


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    ensure_firebase_initialized()
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token"
        )
    token = authorization.split(" ", 1)[1]
    try:
        decoded = fb_auth.verify_id_token(token)
        return decoded
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        )


def require_admin(
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller's User row and reject anyone who is not an ADMIN."""
    user = get_user_by_firebase_uid(db, current_user.get("uid", ""))
    if not user or user.role != UserRoleEnum.ADMIN:
        logger.warning(f"Admin access denied for uid {current_user.get('uid')}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized: Admin access required",
        )
    return user
