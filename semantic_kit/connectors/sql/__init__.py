from .collection import SQLVectorStore, SQLVectorStoreRecordCollection
from .mysql import MySQLVectorStoreQueryProvider
from .postgres import PostgreSQLVectorStoreQueryProvider
from .query_provider import SQLVectorStoreQueryProvider
from .search_mapping import build_where_clause, validate_sql_identifier
from .sqlite import SQLiteVectorStoreQueryProvider

__all__ = [
    "MySQLVectorStoreQueryProvider",
    "PostgreSQLVectorStoreQueryProvider",
    "SQLVectorStore",
    "SQLVectorStoreQueryProvider",
    "SQLVectorStoreRecordCollection",
    "SQLiteVectorStoreQueryProvider",
    "build_where_clause",
    "validate_sql_identifier",
]
