from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from shared.core.config import DATABASE_URL, settings

Base = declarative_base()


def enable_sqlite_foreign_keys(engine):
    # sqlite ignores ON DELETE CASCADE unless the pragma is set per connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str):
    if url.startswith("sqlite"):
        engine = create_engine(
            url, connect_args={"check_same_thread": False})
        enable_sqlite_foreign_keys(engine)
        return engine

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=settings.DB_POOL_SIZE,        # max idle connections
        max_overflow=settings.DB_MAX_OVERFLOW,  # max temporary extra connections
        pool_timeout=30
    )


billing_engine = build_engine(DATABASE_URL)
BillingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=billing_engine)


# Dependency
def get_billing_db():
    db = BillingSessionLocal()
    try:
        yield db
    finally:
        db.close()
