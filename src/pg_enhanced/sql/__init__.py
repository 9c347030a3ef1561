# pg_enhanced/
# │
# ├── sql/
# │   ├── __init__.py
# │   ├── escape.py        # Escape wrappers (EscapeValue) and the UNDEFINED sentinel
# │   ├── template.py      # Tagged-template assembler -> QueryConfig
# │   ├── filter_keys.py   # examine_filter_keys() helper for filter / primary-key mappings
# │   ├── registry.py      # ClientRegistry of open clients
# │   └── client.py        # PgClient transport over a SQLAlchemy AsyncEngine

from .escape import UNDEFINED, Escape, EscapeKind, EscapeValue, escape, escape_identifier, is_undefined
from .template import QueryConfig, assemble, assemble_template
from .filter_keys import FilterKeysReport, examine_filter_keys
from .registry import ClientRegistry, default_registry
from .client import PgClient, QueryResult

__all__ = [
    "UNDEFINED",
    "Escape",
    "EscapeKind",
    "EscapeValue",
    "escape",
    "escape_identifier",
    "is_undefined",
    "QueryConfig",
    "assemble",
    "assemble_template",
    "FilterKeysReport",
    "examine_filter_keys",
    "ClientRegistry",
    "default_registry",
    "PgClient",
    "QueryResult",
]
