from sqlalchemy import create_engine, Index, inspect
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from .config import settings

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()

def init_db():
    Base.metadata.create_all(bind=engine)

    # Reset tokens are bulk-invalidated per account, index the lookup if missing
    from .models import PasswordResetToken  # Import here to avoid circular dependency
    inspector = inspect(engine)

    existing_token_indexes = [idx['name'] for idx in inspector.get_indexes('password_reset_tokens')]
    if 'idx_reset_tokens_account_state' not in existing_token_indexes:
        idx = Index(
            'idx_reset_tokens_account_state',
            PasswordResetToken.account_id,
            PasswordResetToken.used,
            PasswordResetToken.valid
        )
        try:
            idx.create(bind=engine)
        except SQLAlchemyError:
            # Index may already exist (race condition)
            pass

    # AuthEvent indexes are declared in the model __table_args__
    # and created by Base.metadata.create_all() above

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
