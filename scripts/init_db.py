"""
Database initialization script.
Creates the snapshot table used by the journal and profile stores.
"""
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from config.settings import get_settings
from journal.models.base import Base, build_engine
# Import models to register them
from journal.models.snapshots import Snapshot  # noqa: F401

def init_database():
    """
    Initialize database with all tables.
    Steps:
    1. Create all tables from SQLAlchemy models
    2. List what exists
    """
    settings = get_settings()
    engine = build_engine(settings.DATABASE_URL)

    print("Memecoin Journal - Database Initialization")
    print("=" * 50)

    print("\n1. Creating all tables...")
    try:
        Base.metadata.create_all(bind=engine)
        print("  ✓ All tables created")
    except SQLAlchemyError as e:
        print(f"  ✗ Error creating tables: {e}")
        return

    print("\n2. Verifying tables...")
    tables = inspect(engine).get_table_names()
    print(f"  ✓ Found {len(tables)} tables:")
    for table in tables:
        print(f"    - {table}")

    print("\n" + "=" * 50)
    print("✅ Database initialization complete!")
    print("\nNext steps:")
    print(f"1. Start API: uvicorn journal.api.main:app --host {settings.API_HOST} --port {settings.API_PORT}")
    print("2. Docs: /docs")

if __name__ == "__main__":
    init_database()
