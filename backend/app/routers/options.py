"""Options 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_actor
from app.schemas.option import OptionCreate, OptionListOut, OptionOut, OptionUpdate
from app.services import option_service
from app.utils.errors import ValidationFailed
from app.utils.helpers import parse_json_param
from app.utils.permissions import Actor

router = APIRouter(prefix="/api/options", tags=["options"])


@router.get("", response_model=OptionListOut)
def list_options(
    limit: Optional[int] = Query(None, ge=0),
    offset: int = Query(0, ge=0),
    order_by: str = Query("id", alias="orderBy"),
    sort: str = "desc",
    search: Optional[str] = None,
    searchable: Optional[str] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    fields = parse_json_param(searchable, "searchable", ["name", "value"])
    if not isinstance(fields, list):
        raise ValidationFailed("'searchable' 파라미터는 배열이어야 합니다.")
    return option_service.list_options(
        db, actor, search=search, searchable=fields, order_by=order_by, sort=sort, limit=limit, offset=offset
    )


@router.post("", response_model=OptionOut)
def create_option(data: OptionCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return option_service.create_option(db, actor, data)


@router.get("/{id_or_name}", response_model=OptionOut)
def get_option(id_or_name: str, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return option_service.get_option(db, actor, id_or_name)


@router.patch("/{id_or_name}", response_model=OptionOut)
def update_option(
    id_or_name: str,
    data: OptionUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    return option_service.update_option(db, actor, id_or_name, data)


@router.delete("/{id_or_name}", response_model=OptionOut)
def delete_option(id_or_name: str, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return option_service.delete_option(db, actor, id_or_name)
