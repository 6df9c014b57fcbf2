"""FastAPI 애플리케이션 진입점. 로깅, 미들웨어, API 라우터, 확장 지점 레지스트리를 등록합니다."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import Base, engine
import app.models  # noqa: F401 - 모델 import로 metadata 등록
from app.routers import auth, options, post_types, posts, terms, users
from app.services.hooks import HookRegistry

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(
    title="Headless CMS 엔티티 API",
    description="게시물/용어/옵션/사용자를 공통 엔티티 엔진으로 조회하고 변경하는 API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 타입별 hook은 이 레지스트리에 등록한다.
app.state.hooks = HookRegistry()

app.include_router(auth.router)
app.include_router(post_types.router)
app.include_router(posts.router)
app.include_router(terms.router)
app.include_router(options.router)
app.include_router(users.router)


@app.on_event("startup")
def ensure_schema():
    Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "headless-cms"}
