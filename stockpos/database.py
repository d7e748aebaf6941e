"""Database configuration and unit-of-work handling."""
import logging
from contextlib import contextmanager

from sqlalchemy import BigInteger, Integer, create_engine, event, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, scoped_session, sessionmaker

from stockpos.exceptions import DuplicateKeyError, PersistenceError, StockposError

logger = logging.getLogger(__name__)

# Create SQLAlchemy base
Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntId = BigInteger().with_variant(Integer(), 'sqlite')

EXTENSION_KEY = 'stockpos.db'


class Database:
    """
    Explicitly constructed persistence handle.

    Owns the engine, a session factory for units of work and a scoped
    session used by read-only request handlers. Created by the app factory
    and disposed when the process shuts down.
    """

    def __init__(self, uri, echo=False, pool_size=10, max_overflow=20):
        options = {'echo': echo, 'pool_pre_ping': True}
        if uri.startswith('sqlite'):
            options['connect_args'] = {'check_same_thread': False, 'timeout': 30}
        else:
            options['pool_size'] = pool_size
            options['max_overflow'] = max_overflow

        self.engine = create_engine(uri, **options)
        if self.engine.dialect.name == 'sqlite':
            _configure_sqlite(self.engine)

        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )
        self.session = scoped_session(self.session_factory)

    @contextmanager
    def unit_of_work(self):
        """
        Transactional scope: commit on success, rollback on every error path.

        Application errors propagate untouched; driver/ORM failures surface
        as PersistenceError (or DuplicateKeyError for unique violations).
        """
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except StockposError:
            session.rollback()
            raise
        except IntegrityError as e:
            session.rollback()
            error_msg = str(e.orig).lower()
            if 'unique' in error_msg or 'duplicate' in error_msg:
                raise DuplicateKeyError('Ya existe un registro con ese valor único') from e
            logger.error(f"Integrity error inside unit of work: {e.orig}")
            raise PersistenceError(f'Error de integridad: {e.orig}') from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Persistence failure inside unit of work: {e}", exc_info=True)
            raise PersistenceError(f'Error de base de datos: {e}') from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def run_in_transaction(self, fn, *args, **kwargs):
        """Run ``fn(session, *args, **kwargs)`` inside a unit of work."""
        with self.unit_of_work() as session:
            return fn(session, *args, **kwargs)

    def create_all(self):
        # Register every mapped class before creating tables
        import stockpos.models  # noqa: F401
        Base.metadata.create_all(self.engine)

    def drop_all(self):
        import stockpos.models  # noqa: F401
        Base.metadata.drop_all(self.engine)

    def ping(self):
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def dispose(self):
        self.session.remove()
        self.engine.dispose()


def _configure_sqlite(engine):
    """Enforce foreign keys and take the write lock when a transaction starts."""

    @event.listens_for(engine, 'connect')
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()

    @event.listens_for(engine, 'begin')
    def _on_begin(conn):
        conn.exec_driver_sql('BEGIN IMMEDIATE')


def init_db(app):
    """Build the Database handle for ``app`` and register request teardown."""
    database = Database(
        app.config['SQLALCHEMY_DATABASE_URI'],
        echo=app.config.get('SQLALCHEMY_ECHO', False),
        pool_size=app.config.get('DB_POOL_SIZE', 10),
        max_overflow=app.config.get('DB_MAX_OVERFLOW', 20),
    )
    app.extensions[EXTENSION_KEY] = database

    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close the request session and rollback on error."""
        if exception:
            database.session.rollback()
        database.session.remove()

    return database


def get_db(app=None):
    """Get the Database handle of the current (or given) app."""
    if app is None:
        from flask import current_app
        app = current_app
    return app.extensions[EXTENSION_KEY]


def get_session():
    """Get the request-scoped session (read-only handlers)."""
    return get_db().session
