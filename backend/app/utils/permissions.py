"""역할/권한(capability) 판정 공용 유틸리티입니다."""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from app.models.user import User


ADMINISTRATOR = "administrator"
EDITOR = "editor"
AUTHOR = "author"
SUBSCRIBER = "subscriber"

POST_CAPABILITIES = (
    "read", "read_post", "create_posts", "edit", "edit_posts", "delete", "delete_posts",
)
TERM_CAPABILITIES = (
    "read", "read_term", "create_terms", "edit", "edit_terms", "delete", "delete_terms",
)
OPTION_CAPABILITIES = ("read", "read_option", "manage_options")
USER_CAPABILITIES = ("list_users", "edit_users")

ROLE_CAPABILITIES = {
    ADMINISTRATOR: frozenset(
        (*POST_CAPABILITIES, *TERM_CAPABILITIES, *OPTION_CAPABILITIES, *USER_CAPABILITIES, "manage_types")
    ),
    EDITOR: frozenset((*POST_CAPABILITIES, *TERM_CAPABILITIES, "read_option", "list_users")),
    # 작성자는 생성만 가능하고, 조회/수정/삭제는 본인이 작성한 항목으로 제한된다.
    AUTHOR: frozenset(("create_posts", "create_terms")),
    SUBSCRIBER: frozenset(),
}
ALL_ROLES = tuple(ROLE_CAPABILITIES)

# 라우트별 허용 capability 목록
READ_LIST_POSTS = ("read", "read_post")
READ_POST = ("read_post",)
CREATE_POSTS = ("create_posts",)
EDIT_POSTS = ("edit", "edit_posts")
DELETE_POSTS = ("delete_posts",)

READ_LIST_TERMS = ("read", "read_term")
READ_TERM = ("read_term",)
CREATE_TERMS = ("create_terms",)
EDIT_TERMS = ("edit", "edit_terms")
DELETE_TERMS = ("delete_terms",)


@dataclass(frozen=True)
class Actor:
    user_id: Optional[int]
    capabilities: FrozenSet[str] = field(default_factory=frozenset)

    def can_one_of(self, candidates: Iterable[str]) -> bool:
        return any(cap in self.capabilities for cap in candidates)


ANONYMOUS = Actor(user_id=None)


def capabilities_for_role(role: str | None) -> FrozenSet[str]:
    return ROLE_CAPABILITIES.get(str(role or ""), frozenset())


def actor_for(user: User | None) -> Actor:
    if user is None:
        return ANONYMOUS
    return Actor(user_id=user.user_id, capabilities=capabilities_for_role(user.role))


def narrow_capabilities(route_caps: Iterable[str], type_caps: Iterable[str]) -> list[str]:
    allowed = set(route_caps)
    return [cap for cap in type_caps if cap in allowed]


def can_access_type(actor: Actor, route_caps: Iterable[str], type_caps: Iterable[str]) -> bool:
    valid = narrow_capabilities(route_caps, type_caps)
    if not valid:
        return False
    return actor.can_one_of(valid)
