from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData, event

metadata = MetaData(naming_convention={
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
})

db = SQLAlchemy(metadata=metadata)


def enable_sqlite_savepoints(engine):
    """
    Let pysqlite honour SAVEPOINT so nested transactions behave as on Postgres.

    The driver otherwise issues its own BEGIN/COMMIT and silently drops
    savepoints, which breaks the duplicate-insert handling in the services.
    """
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")
