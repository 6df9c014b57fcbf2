"""Seed the database with sample users, post types, taxonomies and options."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import SessionLocal, engine, Base
import app.models  # noqa: F401

from app.models.option import Option
from app.models.post_type import PostType, PostTypeField, Taxonomy, TaxonomyField
from app.models.user import User
from app.services.meta_store import encode_value


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(User).count() > 0:
            print("Database already seeded. Skipping.")
            return

        db.add_all([
            User(emp_id="admin001", name="관리자 김철수", role="administrator", email="admin@company.com"),
            User(emp_id="editor001", name="편집자 이영희", role="editor", email="editor@company.com"),
            User(emp_id="author001", name="작성자 박민준", role="author", email="author@company.com"),
            User(emp_id="sub001", name="구독자 한지민", role="subscriber", email="sub@company.com"),
        ])

        db.add_all([
            PostType(slug="pages", name="페이지"),
            PostType(slug="posts", name="게시물"),
            PostType(slug="attachments", name="첨부 파일"),
        ])
        db.add_all([
            PostTypeField(post_type_slug="pages", slug="title", type="text", revisions=True, order=1),
            PostTypeField(post_type_slug="pages", slug="content", type="textarea", revisions=True, order=2),
            PostTypeField(post_type_slug="posts", slug="title", type="text", revisions=True, order=1),
            PostTypeField(post_type_slug="posts", slug="content", type="textarea", revisions=True, order=2),
            PostTypeField(post_type_slug="posts", slug="authors", type="users", order=3),
            PostTypeField(post_type_slug="attachments", slug="title", type="text", order=1),
            PostTypeField(post_type_slug="attachments", slug="file", type="file", order=2),
        ])

        db.add_all([
            Taxonomy(slug="categories", post_type_slug="posts", name="카테고리"),
            Taxonomy(slug="tags", post_type_slug="posts", name="태그"),
        ])
        db.add_all([
            TaxonomyField(post_type_slug="posts", taxonomy_slug="categories", slug="title", type="text", order=1),
            TaxonomyField(post_type_slug="posts", taxonomy_slug="tags", slug="title", type="text", order=1),
        ])

        db.add_all([
            Option(name="site_title", value=encode_value("Headless CMS"), autoload=True),
            Option(name="posts_per_page", value=encode_value(10), autoload=True),
        ])

        db.commit()
        print("Seed data created successfully.")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
