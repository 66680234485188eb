"""Seed a local database with roles, an admin and sample authors/articles."""
import argparse
import asyncio
import random
import time

from blog_api.database import Base, async_session, engine
from blog_api.models import Article, Role, RoleName, User
from blog_api.security import hash_password
from blog_api.services import role_service

FIRST_NAMES = ["Anna", "Boris", "Clara", "Denis", "Elena", "Fedor", "Galina", "Igor"]
LAST_NAMES = ["Ivanova", "Petrov", "Smirnova", "Kuznetsov", "Popova", "Volkov"]
TOPICS = ["python", "fastapi", "postgresql", "redis", "docker", "testing", "security"]


async def ensure_roles(session) -> dict[RoleName, Role]:
    existing = {r.name: r for r in await role_service.get_roles(session)}
    for name in RoleName:
        if name not in existing:
            role = Role(name=name)
            session.add(role)
            existing[name] = role
    await session.flush()
    return existing


async def seed(num_users: int, articles_per_user: int, admin_email: str, admin_password: str):
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        roles = await ensure_roles(session)
        print(f"  Roles: {', '.join(r.value for r in roles)}")

        admin = User(
            first_name="Admin",
            last_name="Admin",
            email=admin_email,
            password=hash_password(admin_password),
        )
        admin.roles.extend([roles[RoleName.USER], roles[RoleName.ADMIN]])
        session.add(admin)

        # One hash shared by every sample user.
        sample_hash = hash_password("password")
        users = []
        for i in range(num_users):
            user = User(
                first_name=random.choice(FIRST_NAMES),
                last_name=random.choice(LAST_NAMES),
                email=f"user_{i:04d}@example.com",
                age=random.randint(18, 70),
                password=sample_hash,
            )
            user.roles.append(roles[RoleName.USER])
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created admin {admin_email} and {len(users)} users (password: 'password')")

        total_articles = 0
        for user in users:
            for j in range(articles_per_user):
                topic = random.choice(TOPICS)
                session.add(Article(
                    title=f"Notes on {topic} #{j}",
                    description=f"What {user.first_name} learned about {topic}. " * 5,
                    author_id=user.id,
                ))
                total_articles += 1
        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s ({total_articles} articles)")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--users", type=int, default=10, help="Number of sample users")
    parser.add_argument("--articles", type=int, default=3, help="Articles per sample user")
    parser.add_argument("--admin-email", default="admin@example.com")
    parser.add_argument("--admin-password", default="admin")
    args = parser.parse_args()
    asyncio.run(seed(args.users, args.articles, args.admin_email, args.admin_password))


if __name__ == "__main__":
    main()
