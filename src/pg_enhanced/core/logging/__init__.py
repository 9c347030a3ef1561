# src/pg_enhanced/core/logging/
# ├─ __init__.py            # public API: setup_logging, make_dict_config, request id helpers
# ├─ builder.py             # make_dict_config(settings) + setup_logging(settings)
# ├─ formatters.py          # JsonFormatter, ColorFormatter
# ├─ filters.py             # RequestIdFilter, RedactFilter (+ contextvar helpers)
# └─ handlers.py            # handler config factories (console, file, error file/console)


from .builder import setup_logging, make_dict_config
from .filters import (
    set_request_id,
    reset_request_id,
    get_request_id,
    request_id_scope,
    RequestIdFilter,
    RedactFilter,
)

__all__ = [
    "setup_logging",
    "make_dict_config",
    "set_request_id",
    "reset_request_id",
    "get_request_id",
    "request_id_scope",
    "RequestIdFilter",
    "RedactFilter",
]
