"""Backend connection pools and configurations.

Each backend lives in its own package so that optional drivers are only
required when used::

    from querykit.adapters.sqlite import SqliteConfig, SqliteConnectionPool
    from querykit.adapters.mysql import MySQLConfig, MySQLConnectionPool
"""
