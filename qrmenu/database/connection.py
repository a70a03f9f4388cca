"""
Database Connection Manager for QR Menu
SQLite engine, sessions and first-run reference data

One manager per process: the web app and the CLI build it from the
``database`` config section, tests construct it with ``db_path=":memory:"``.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Optional, Tuple

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session as SQLSession
from sqlalchemy.pool import StaticPool
from loguru import logger

from qrmenu.config.config_loader import DatabaseConfig
from qrmenu.database.models import Base
from qrmenu.database.repository import AllergenRepository

IN_MEMORY = ":memory:"

# The 14 allergens EU menus must declare, as (name, icon)
STANDARD_ALLERGENS: Tuple[Tuple[str, str], ...] = (
    ("Glutine", "wheat"),
    ("Latte", "milk"),
    ("Uova", "egg"),
    ("Soia", "soy"),
    ("Noci", "nut"),
    ("Arachidi", "peanut"),
    ("Pesce", "fish"),
    ("Crostacei", "shrimp"),
    ("Sedano", "celery"),
    ("Senape", "mustard"),
    ("Sesamo", "sesame"),
    ("Solfiti", "sulphite"),
    ("Lupini", "lupin"),
    ("Molluschi", "shell"),
)


class DatabaseManager:
    """Process-wide SQLite engine and session factory."""

    _instance: Optional['DatabaseManager'] = None

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(
        self,
        db_path: str = "./data/qrmenu.db",
        echo: bool = False,
        seed_allergens: bool = False,
    ):
        if self._initialized:
            return

        self._db_path = db_path
        self._echo = echo
        self._engine = None
        self._session_factory = None
        self._initialized = True

        self._init_database()
        if seed_allergens:
            self.seed_allergens()

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> 'DatabaseManager':
        """Build (or return) the manager described by the ``database`` section."""
        if config.type != "sqlite":
            raise ValueError(f"Unsupported database type: {config.type}")
        return cls(
            db_path=config.path,
            echo=config.echo,
            seed_allergens=config.seed_allergens,
        )

    @property
    def is_in_memory(self) -> bool:
        return self._db_path == IN_MEMORY

    def _init_database(self) -> None:
        """Create the engine and the tables."""
        engine_options: Dict[str, Any] = {
            "echo": self._echo,
            "connect_args": {"check_same_thread": False},
        }
        if self.is_in_memory:
            # Every session must see the same in-memory database
            engine_options["poolclass"] = StaticPool
        else:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        self._engine = create_engine(f"sqlite:///{self._db_path}", **engine_options)
        in_memory = self.is_in_memory

        @event.listens_for(self._engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if not in_memory:
                # WAL: readers are not blocked by a writer
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        self._session_factory = sessionmaker(
            bind=self._engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

        Base.metadata.create_all(self._engine)
        logger.info(f"Database initialized at {self._db_path}")

    @property
    def engine(self):
        """Get SQLAlchemy engine."""
        return self._engine

    def get_session(self) -> SQLSession:
        """Get a new database session."""
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[SQLSession, None, None]:
        """Context manager for database sessions with automatic commit/rollback."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        """True if the primary store answers a trivial query."""
        try:
            with self.session_scope() as db:
                db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def seed_allergens(self) -> int:
        """Insert the standard allergens that are missing. Returns how many were added."""
        added = 0
        with self.session_scope() as db:
            repo = AllergenRepository(db)
            for name, icon in STANDARD_ALLERGENS:
                if repo.get_by_name(name) is None:
                    repo.create(name, icon=icon)
                    added += 1
        if added:
            logger.info(f"Seeded {added} standard allergens")
        return added

    @classmethod
    def get_instance(cls) -> 'DatabaseManager':
        """Get the singleton, creating it with defaults if needed."""
        if cls._instance is None or not cls._instance._initialized:
            return cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton instance."""
        if cls._instance is not None:
            if cls._instance._engine is not None:
                cls._instance._engine.dispose()
            cls._instance._initialized = False
            cls._instance = None
