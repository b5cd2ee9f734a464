"""
Register an operator locally and print a principal token for it
"""
import argparse
import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from socdash.db.database import AsyncSessionLocal, init_db
from socdash.db.crud.user import create_user, get_user_by_username
from socdash.auth.security import create_access_token
from socdash.db.models.enums import UserRole
from loguru import logger


async def create_operator(username: str, email: str, role: str):
    await init_db()
    async with AsyncSessionLocal() as db:
        user = await get_user_by_username(db, username)
        if user:
            logger.warning(f"User {username} already exists (ID: {user.id})")
        else:
            user = await create_user(db, username, email, role)
            logger.info(f"Operator created: {user.username} (ID: {user.id}, role: {user.role.value})")

    print(create_access_token(user.username, user.role, user_id=user.id))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("username")
    parser.add_argument("email")
    parser.add_argument("--role", default=UserRole.SOC_ANALYST.value, choices=[r.value for r in UserRole])
    args = parser.parse_args()
    asyncio.run(create_operator(args.username, args.email, args.role))
