"""Bootstrap an admin account so catalog imports can be run.

Usage: python create_admin.py <username> <password>
"""
import sys
import logging
import psycopg2
from urllib.parse import urlparse
from tourquote.core.security import hash_password
from tourquote.core.config import settings
from tourquote.core.enums import UserRole

logger = logging.getLogger("create_admin")


def _connect():
    db_url = urlparse(settings.DATABASE_URL.replace("postgresql+asyncpg://", "postgresql://"))
    return psycopg2.connect(
        host=db_url.hostname or "localhost",
        port=db_url.port or 5432,
        user=db_url.username or "postgres",
        password=db_url.password or "postgres",
        database=db_url.path.lstrip("/") or "tourquote"
    )


def create_admin_user(username: str, password: str) -> bool:
    try:
        conn = _connect()
    except psycopg2.Error as e:
        logger.error(f"Could not connect to database: {e}")
        return False

    try:
        with conn, conn.cursor() as cursor:
            cursor.execute("SELECT id FROM users WHERE username = %s", (username,))
            if cursor.fetchone():
                logger.error(f"User '{username}' already exists")
                return False

            # SQLAlchemy's Enum column stores member names
            cursor.execute(
                "INSERT INTO users (username, password_hash, role) VALUES (%s, %s, %s) RETURNING id",
                (username, hash_password(password), UserRole.ADMIN.name)
            )
            user_id = cursor.fetchone()[0]

        logger.info(f"Admin user '{username}' created with id {user_id}")
        return True
    except psycopg2.Error as e:
        logger.error(f"Error creating admin user: {e}")
        return False
    finally:
        conn.close()


def main():
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")

    if len(sys.argv) < 3:
        print("Usage: python create_admin.py <username> <password>")
        sys.exit(1)

    username, password = sys.argv[1], sys.argv[2]
    if not username or len(password) < 8:
        print("Error: username is required and password needs at least 8 characters")
        sys.exit(1)

    sys.exit(0 if create_admin_user(username, password) else 1)


if __name__ == "__main__":
    main()
