import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.database import Base, get_db
from app.main import app
from app.models.post_type import PostType, PostTypeField, Taxonomy, TaxonomyField
from app.models.user import User
from app.services.hooks import HookRegistry
from app.utils.permissions import Actor, capabilities_for_role

TEST_DB_URL = "sqlite:///./test_cms.db"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def hooks():
    registry = HookRegistry()
    app.state.hooks = registry
    return registry


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def seed_users(db):
    users = {
        "admin": User(emp_id="admin001", name="Admin", role="administrator", email="admin@example.com"),
        "editor": User(emp_id="editor001", name="Editor", role="editor", email="editor@example.com"),
        "author": User(emp_id="author001", name="Author", role="author", email="author@example.com"),
        "author2": User(emp_id="author002", name="Second Author", role="author"),
        "subscriber": User(emp_id="sub001", name="Subscriber", role="subscriber"),
    }
    for u in users.values():
        db.add(u)
    db.commit()
    for u in users.values():
        db.refresh(u)
    return users


@pytest.fixture
def seed_types(db):
    """products 게시물 타입(title 리비전 대상)과 categories 분류를 만든다."""
    products = PostType(slug="products", name="Products")
    db.add(products)
    db.add_all([
        PostTypeField(post_type_slug="products", slug="title", type="text", revisions=True, order=1),
        PostTypeField(post_type_slug="products", slug="price", type="number", revisions=False, order=2),
        PostTypeField(post_type_slug="products", slug="color", type="text", revisions=False, order=3),
    ])
    articles = PostType(slug="articles", name="Articles")
    db.add(articles)
    db.add_all([
        PostTypeField(post_type_slug="articles", slug="title", type="text", revisions=True, order=1),
        PostTypeField(post_type_slug="articles", slug="authors", type="users", revisions=False, order=2),
    ])
    # 읽기 capability를 좁힌 타입: 목록/조회는 소유자만 가능하다.
    private_notes = PostType(
        slug="notes", name="Notes", capabilities=json.dumps(["create_posts", "edit_posts", "delete_posts"])
    )
    db.add(private_notes)
    categories = Taxonomy(slug="categories", post_type_slug="products", name="Categories")
    db.add(categories)
    db.add(TaxonomyField(post_type_slug="products", taxonomy_slug="categories", slug="title", type="text", revisions=True))
    db.commit()
    return {"products": products, "articles": articles, "notes": private_notes, "categories": categories}


def actor_of(user: User) -> Actor:
    return Actor(user_id=user.user_id, capabilities=capabilities_for_role(user.role))


def get_token(client, emp_id: str) -> str:
    resp = client.post("/api/auth/login", json={"emp_id": emp_id})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def auth_headers(client, emp_id: str) -> dict:
    return {"Authorization": f"Bearer {get_token(client, emp_id)}"}
