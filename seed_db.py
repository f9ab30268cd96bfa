"""
Seed the directory with sample users, categories, listings and reviews.
Run with: python seed_db.py

Existing rows are deleted first. For schema changes use Alembic
(`alembic upgrade head`); init_db() only creates missing tables.
"""
from dotenv import load_dotenv

# Settings read the environment at import time
load_dotenv()

from sqlalchemy.orm import Session  # noqa: E402

from app.core.logging import configure_logging  # noqa: E402
from app.db.session import SessionLocal, init_db  # noqa: E402
from app.seed.seed_data import seed_db  # noqa: E402


def main():
    configure_logging()
    print("Initializing database...")
    init_db()

    print("Seeding database...")
    db: Session = SessionLocal()
    try:
        seed_db(db)
    finally:
        db.close()
    print("Done!")


if __name__ == "__main__":
    main()
