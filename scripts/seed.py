"""Seed the newsroom database with categories, staff accounts and sample articles.

Safe to run repeatedly: rows whose unique key already exists are skipped.
"""
import argparse
import asyncio
import time

from sqlalchemy import select

from newsroom.config import settings
from newsroom.database import Base, async_session, engine
from newsroom.models import Article, Category, Role, User
from newsroom.security import PasswordHasher

CATEGORIES = ["people", "events", "places"]

DEFAULT_PASSWORD = "11111111"

# Each article is (url, title, published, category url).
USERS = [
    ("Admin", "admin@admin.com", Role.ADMIN, [
        ("3", "Title 3", True, "people"),
        ("4", "Title 4", False, "places"),
        ("5", "Title 5", False, "events"),
    ]),
    ("Manager", "manager@manager.com", Role.MANAGER, [
        ("1", "Title 1", True, "events"),
        ("2", "Title 2", True, "places"),
        ("6", "Title 6", False, "people"),
    ]),
    ("User", "user2@user.com", Role.USER, []),
]


async def seed(create_tables: bool = False):
    start = time.perf_counter()
    hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)

    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        categories: dict[str, Category] = {}
        for url in CATEGORIES:
            category = (
                await session.execute(select(Category).where(Category.url == url))
            ).scalar_one_or_none()
            if category is None:
                category = Category(title=url, url=url)
                session.add(category)
                await session.flush()
                print(f"  Created category {url!r} (id={category.id})")
            else:
                print(f"  Category {url!r} already exists")
            categories[url] = category

        for name, email, role, articles in USERS:
            user = (
                await session.execute(select(User).where(User.email == email))
            ).scalar_one_or_none()
            if user is None:
                user = User(name=name, email=email, role=role, password=hasher.hash(DEFAULT_PASSWORD))
                session.add(user)
                await session.flush()
                print(f"  Created user {email} ({role.value}, id={user.id})")
            else:
                print(f"  User {email} already exists")

            for url, title, published, category_url in articles:
                exists = (
                    await session.execute(select(Article.id).where(Article.url == url))
                ).scalar_one_or_none()
                if exists is not None:
                    continue
                session.add(Article(
                    title=title,
                    url=url,
                    spoiler="Short description",
                    content="Long description",
                    cover_image="",
                    picture="",
                    published=published,
                    views=0,
                    user_id=user.id,
                    category_id=categories[category_url].id,
                ))
                print(f"  Created article {url!r} for {email}")
            await session.flush()

        await session.commit()

    await engine.dispose()
    print(f"\nSeeding complete in {time.perf_counter() - start:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the newsroom database")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables first (development only; use alembic otherwise)",
    )
    args = parser.parse_args()
    asyncio.run(seed(create_tables=args.create_tables))


if __name__ == "__main__":
    main()
