# pg_enhanced/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py          # Package-level errors (PgEnhancedError, QueryTemplateError, DBError)
# │   └── classifier.py    # Ordered message rules that reword raw PostgreSQL errors

from .base import DBError, PgEnhancedError, QueryTemplateError
from .classifier import (
    CLASSIFIER_RULES,
    ClassifiedError,
    ClassifierRule,
    DatabaseErrorInput,
    classify,
    get_query_method,
)

__all__ = [
    "PgEnhancedError",
    "QueryTemplateError",
    "DBError",
    "ClassifiedError",
    "ClassifierRule",
    "CLASSIFIER_RULES",
    "DatabaseErrorInput",
    "classify",
    "get_query_method",
]
