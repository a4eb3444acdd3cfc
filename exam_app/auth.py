from typing import Optional

from fastapi import Header, HTTPException

from exam_app import config


def require_admin(authorization: Optional[str] = Header(default=None)):
    """
    관리자 전용 라우트용 dependency.
    - 헤더 없음: 401
    - 토큰 불일치: 403
    """
    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Akses ditolak. Diperlukan autentikasi untuk operasi ini.",
        )
    if authorization != f"Bearer {config.ADMIN_TOKEN}":
        raise HTTPException(status_code=403, detail="Token tidak valid")
