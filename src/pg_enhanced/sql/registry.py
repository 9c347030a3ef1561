"""
Registry of open clients.

A client registers itself once it has connected (when `auto_close=True`) and deregisters
when it is ended. `close_all()` ends everything still open. The test suite calls it at
session teardown so forgotten clients don't keep the event loop or the server busy.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from .client import PgClient

logger = logging.getLogger(__name__)


class ClientRegistry:
    def __init__(self) -> None:
        self._clients: list[PgClient] = []

    def register(self, client: "PgClient") -> None:
        if client not in self._clients:
            self._clients.append(client)

    def deregister(self, client: "PgClient") -> None:
        if client in self._clients:
            self._clients.remove(client)

    def __contains__(self, client: object) -> bool:
        return client in self._clients

    def __len__(self) -> int:
        return len(self._clients)

    def __iter__(self) -> Iterator["PgClient"]:
        return iter(list(self._clients))

    async def close_all(self) -> int:
        """
        End every registered client and return how many were closed.

        All clients are ended even if some fail; the first failure is re-raised afterwards.
        """
        clients, self._clients = list(self._clients), []
        first_error: BaseException | None = None
        for client in clients:
            try:
                await client.end()
            except Exception as exc:
                logger.exception("registry.close_failed")
                if first_error is None:
                    first_error = exc
        if clients:
            logger.debug("registry.closed_all", extra={"closed": len(clients)})
        if first_error is not None:
            raise first_error
        return len(clients)


_DEFAULT_REGISTRY = ClientRegistry()


def default_registry() -> ClientRegistry:
    """The process-wide registry used by clients that aren't given one explicitly."""
    return _DEFAULT_REGISTRY


__all__ = ["ClientRegistry", "default_registry"]
