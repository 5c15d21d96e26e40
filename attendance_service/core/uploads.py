import logging
import os
import time
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from attendance_service.core.config import Settings
from attendance_service.core.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}
IMAGE_TYPE_MESSAGE = "Only images (JPEG, JPG, PNG, GIF) are allowed"


def ensure_upload_dir(settings: Settings) -> Path:
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


async def save_profile_image(file: UploadFile, settings: Settings) -> str:
    """
    프로필 이미지 1개를 검증 후 저장하고 공개 경로(/uploads/<name>)를 돌려준다.
    - MIME 타입과 확장자 둘 다 이미지여야 함
    - MAX_UPLOAD_BYTES 초과 시 400
    """
    ext = os.path.splitext(file.filename or "")[1].lower()
    if ext not in ALLOWED_EXTENSIONS or (file.content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise ValidationError(
            IMAGE_TYPE_MESSAGE,
            errors=[{"field": "profileImage", "message": IMAGE_TYPE_MESSAGE}],
        )

    # 한도 + 1 바이트까지만 읽어서 초과 여부 판단
    contents = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(contents) > settings.MAX_UPLOAD_BYTES:
        message = f"File too large (max {settings.MAX_UPLOAD_BYTES} bytes)"
        raise ValidationError(message, errors=[{"field": "profileImage", "message": message}])

    name = f"profile-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{ext}"
    (ensure_upload_dir(settings) / name).write_bytes(contents)
    return f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{name}"


def remove_profile_image(public_path: Optional[str], settings: Settings) -> None:
    """
    best-effort 삭제. 실패해도 예외를 올리지 않고 로그만 남긴다.
    """
    if not public_path:
        return

    path = Path(settings.UPLOAD_DIR) / Path(public_path).name
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Profile image already missing: %s", path)
    except OSError as exc:
        logger.warning("Error deleting profile image %s: %s", path, exc)
