import os
import sys
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from party_cart.config import settings

DATABASE_URL = settings.DATABASE_URL
engine = create_engine(DATABASE_URL, future=True, echo=False)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def _running_pytest() -> bool:
    # sys.argv usually carries 'pytest' when tests are started with 'pytest';
    # otherwise look for the env vars pytest sets while a test runs
    if any("pytest" in os.path.basename(a).lower() for a in sys.argv):
        return True
    return any(k.upper().startswith("PYTEST") for k in os.environ.keys())

def init_db(reset: bool = None):
    """
    Initialize DB schema.

    Behavior:
      - If `reset` is True, or RESET_DB env var is 1/true/yes, or pytest is
        detected and `reset` was not given, drop & recreate tables.
      - Otherwise leave existing tables in place.

    All model modules are imported first so metadata is populated.
    """
    import importlib, traceback

    if reset is None:
        env_reset = os.environ.get("RESET_DB", "false").lower() in ("1", "true", "yes")
        reset = env_reset or _running_pytest()

    model_modules = [
        "party_cart.models.storage_entry",
        "party_cart.models.abandoned_order",
        "party_cart.models.group_order",
    ]

    failed = []
    for mod in model_modules:
        try:
            importlib.import_module(mod)
        except Exception:
            failed.append((mod, traceback.format_exc()))

    if failed:
        print("init_db: model import FAILED for:")
        for mod, tb in failed:
            print(f"--- {mod} ---")
            print(tb)

    if reset:
        print("Resetting database (RESET_DB set or pytest detected)...")
        Base.metadata.drop_all(bind=engine)

    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Database initialized.")

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
