"""엔티티 타입별로 등록하는 확장 지점(hook) 레지스트리입니다.

엔티티 서비스는 정해진 지점에서만 레지스트리를 호출한다.

- ``before_insert(ctx, core, meta) -> (core, meta)``
- ``before_update(ctx, existing, core, meta) -> (core, meta)``
- ``before_delete(ctx, existing) -> bool`` (falsy 반환 시 삭제 중단)
- 필드 변환 ``transform(ctx, value, entity) -> value`` (조회 응답에 적용)
- 이벤트 리스너 ``listener(ctx, entity)`` (트랜잭션 커밋 이후 호출)

등록 키는 ``posts:<post_type>``, ``terms:<post_type>:<taxonomy>`` 또는 전체 적용 ``*`` 이다.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.utils.permissions import Actor

logger = logging.getLogger(__name__)

WILDCARD = "*"

EVENT_SAVE = "save"
EVENT_INSERT = "insert"
EVENT_EDIT = "edit"
EVENT_PUBLISH = "publish"
EVENT_TRANSITION_STATUS = "transition_status"
EVENT_UNTRASH = "untrash"
EVENT_TRASH = "trash"
EVENT_BEFORE_DELETE = "before_delete"
EVENT_DELETE = "delete"

Payload = Dict[str, Any]
BeforeInsert = Callable[["HookContext", Payload, Payload], Tuple[Payload, Payload]]
BeforeUpdate = Callable[["HookContext", Payload, Payload, Payload], Tuple[Payload, Payload]]
BeforeDelete = Callable[["HookContext", Payload], bool]
FieldTransform = Callable[["HookContext", Any, Payload], Any]
Listener = Callable[["HookContext", Payload], None]


@dataclass(frozen=True)
class HookContext:
    kind: str
    type_key: str
    actor: Actor
    comment: Optional[str] = None


def type_key(kind: str, *scope: str) -> str:
    return ":".join((kind, *scope))


class HookRegistry:
    def __init__(self):
        self._before_insert: Dict[str, List[BeforeInsert]] = {}
        self._before_update: Dict[str, List[BeforeUpdate]] = {}
        self._before_delete: Dict[str, List[BeforeDelete]] = {}
        self._transforms: Dict[str, Dict[str, List[FieldTransform]]] = {}
        self._listeners: Dict[str, Dict[str, List[Listener]]] = {}

    # registration

    def add_before_insert(self, key: str, fn: BeforeInsert) -> None:
        self._before_insert.setdefault(key, []).append(fn)

    def add_before_update(self, key: str, fn: BeforeUpdate) -> None:
        self._before_update.setdefault(key, []).append(fn)

    def add_before_delete(self, key: str, fn: BeforeDelete) -> None:
        self._before_delete.setdefault(key, []).append(fn)

    def add_transform(self, key: str, field_slug: str, fn: FieldTransform) -> None:
        self._transforms.setdefault(key, {}).setdefault(field_slug, []).append(fn)

    def on(self, key: str, event: str, fn: Listener) -> None:
        self._listeners.setdefault(key, {}).setdefault(event, []).append(fn)

    # dispatch

    @staticmethod
    def _scoped(table: Dict[str, list], key: str) -> list:
        return [*table.get(WILDCARD, []), *table.get(key, [])]

    def before_insert(self, ctx: HookContext, core: Payload, meta: Payload) -> Tuple[Payload, Payload]:
        for fn in self._scoped(self._before_insert, ctx.type_key):
            core, meta = fn(ctx, core, meta)
        return core or {}, meta or {}

    def before_update(
        self, ctx: HookContext, existing: Payload, core: Payload, meta: Payload
    ) -> Tuple[Payload, Payload]:
        for fn in self._scoped(self._before_update, ctx.type_key):
            core, meta = fn(ctx, existing, core, meta)
        return core or {}, meta or {}

    def before_delete(self, ctx: HookContext, existing: Payload) -> bool:
        for fn in self._scoped(self._before_delete, ctx.type_key):
            if not fn(ctx, existing):
                return False
        return True

    def transform(self, ctx: HookContext, entity: Payload) -> Payload:
        for table in (self._transforms.get(WILDCARD, {}), self._transforms.get(ctx.type_key, {})):
            for field_slug, fns in table.items():
                if not entity.get(field_slug):
                    continue
                for fn in fns:
                    entity[field_slug] = fn(ctx, entity[field_slug], entity)
        return entity

    def emit(self, ctx: HookContext, event: str, entity: Payload) -> None:
        listeners = [
            *self._listeners.get(WILDCARD, {}).get(event, []),
            *self._listeners.get(ctx.type_key, {}).get(event, []),
        ]
        for fn in listeners:
            try:
                fn(ctx, entity)
            except Exception as exc:
                # 리스너 실패는 이미 커밋된 변경을 되돌리지 않는다.
                logger.warning("[hooks] %s listener failed for %s: %s", event, ctx.type_key, exc)
