import json
import os
import re
from datetime import datetime, timezone
from typing import Any

from app.config import settings
from app.utils.errors import ValidationFailed

_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_slug(value: Any) -> str:
    text = str(value or "").strip().lower()
    return _SLUG_INVALID.sub("-", text).strip("-")


def parse_json_param(raw: str | None, name: str, default: Any) -> Any:
    if raw is None or raw == "":
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationFailed(f"'{name}' 파라미터는 JSON 형식이어야 합니다.")


def resolve_upload_path(relative_path: str) -> str:
    base = os.path.realpath(settings.UPLOAD_DIR)
    target = os.path.realpath(os.path.join(base, os.path.normpath(relative_path)))
    if target != base and not target.startswith(base + os.sep):
        raise ValidationFailed("허용되지 않은 파일 경로입니다.")
    return target


def remove_upload(relative_path: str) -> bool:
    path = resolve_upload_path(relative_path)
    if not os.path.isfile(path):
        return False
    os.remove(path)
    return True
