"""
pg_enhanced: tagged-template SQL assembly and readable PostgreSQL errors.

    from pg_enhanced import PgClient, escape

    client = PgClient()
    await client.sql(
        ["INSERT INTO users ", " RETURNING id"],
        escape.keys_and_values([{"name": "Ada"}, {"name": "Grace"}]),
    )
"""

from .utils.logging import get_project_version
from .sql import (
    UNDEFINED,
    ClientRegistry,
    Escape,
    EscapeKind,
    EscapeValue,
    FilterKeysReport,
    PgClient,
    QueryConfig,
    QueryResult,
    assemble,
    assemble_template,
    default_registry,
    escape,
    escape_identifier,
    examine_filter_keys,
    is_undefined,
)
from .exceptions import (
    CLASSIFIER_RULES,
    ClassifiedError,
    ClassifierRule,
    DatabaseErrorInput,
    DBError,
    PgEnhancedError,
    QueryTemplateError,
    classify,
    get_query_method,
)

__version__ = get_project_version()

__all__ = [
    "UNDEFINED",
    "ClientRegistry",
    "Escape",
    "EscapeKind",
    "EscapeValue",
    "FilterKeysReport",
    "PgClient",
    "QueryConfig",
    "QueryResult",
    "assemble",
    "assemble_template",
    "default_registry",
    "escape",
    "escape_identifier",
    "examine_filter_keys",
    "is_undefined",
    "CLASSIFIER_RULES",
    "ClassifiedError",
    "ClassifierRule",
    "DatabaseErrorInput",
    "DBError",
    "PgEnhancedError",
    "QueryTemplateError",
    "classify",
    "get_query_method",
]
