# scripts/create_admin.py
"""Create an admin account, or promote an existing user to admin.

Usage (from the repository root): python -m scripts.create_admin <email> <username> <password>
"""
import logging
import sys

from auth.schemas import UserCreate
from auth.services import AuthService
from database import SessionLocal, init_db

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_admin(email: str, username: str, password: str) -> None:
    init_db()
    db = SessionLocal()
    try:
        user = AuthService.get_user_by_email(email, db)
        if user:
            user.role = "admin"
            user.is_blocked = False
            db.commit()
            logger.info(f"Promoted {user.username} ({user.id}) to admin")
            return
        user = AuthService.create_user(UserCreate(email=email, username=username, password=password), db, role="admin")
        logger.info(f"Created admin {user.username} ({user.id})")
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print(__doc__.strip().splitlines()[-1])
        sys.exit(1)
    create_admin(*sys.argv[1:])
