"""Database setup and configuration."""

from sqlalchemy import create_engine, Column, String, Boolean, DateTime, Integer, Index
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from datetime import datetime, timezone
import logging
import os

# Load environment variables from .env file (for local development)
from dotenv import load_dotenv
load_dotenv()

# DATABASE_URL should be set as an environment variable (e.g., from the hosting platform)
DATABASE_URL = os.environ.get("DATABASE_URL")

if not DATABASE_URL:
    raise ValueError(
        "DATABASE_URL environment variable is required. "
        "Please set it to your PostgreSQL connection string."
    )

# Hosted Postgres often hands out postgres:// but SQLAlchemy 2.0+ requires postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

if DATABASE_URL.startswith("sqlite"):
    # Local development and tests; handlers run in a threadpool
    engine_kwargs = {"connect_args": {"check_same_thread": False}}
    if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool
else:
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "connect_args": {"connect_timeout": 10},
    }

engine = create_engine(DATABASE_URL, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def utcnow() -> datetime:
    """Current time as naive UTC, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class OtpCode(Base):
    """One-time login code issued to the admin email."""
    __tablename__ = "otp_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, index=True)  # Always lowercased
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_otp_codes_email_created', 'email', 'created_at'),
    )


class AdminSession(Base):
    """Bearer session minted after a successful code verification."""
    __tablename__ = "admin_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(128), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


def _register_models():
    # CRM tables share this Base; importing registers them on the metadata
    import scalerebel.crm.database  # noqa: F401


def init_db():
    """Initialize database tables."""
    from sqlalchemy.exc import IntegrityError, ProgrammingError

    _register_models()
    try:
        # checkfirst=True makes this equivalent to CREATE TABLE IF NOT EXISTS
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logging.info("Database tables initialized successfully")
    except (IntegrityError, ProgrammingError) as e:
        # Concurrent workers can race on type creation; the tables still end up present
        error_str = str(e)
        if "pg_type_typname_nsp_index" in error_str or "duplicate key" in error_str.lower():
            logging.info("Database types already exist, skipping type creation (safe to ignore)")
        else:
            logging.warning(f"Database integrity/programming error (may be safe to ignore): {error_str}")
    except Exception as e:
        # Don't raise - routes call ensure_tables() on first use as a fallback
        logging.error(f"Database initialization error: {str(e)}")


def ensure_tables():
    """Create any missing tables (fallback if startup init failed)."""
    _register_models()
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
    except Exception as e:
        logging.warning(f"Table creation check failed: {str(e)}")


def get_db():
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
