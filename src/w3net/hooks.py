"""
Handler chains for connection lifecycle events.

Third parties can intercept connection creation, every outgoing HTTP request
and connection shutdown by registering handlers for the ``network`` category:

- ``newConnection``: ``handler(next_handler)``
- ``onRequest``: ``handler(connection, json_rpc_request, next_handler)``
- ``closeConnection``: ``handler(connection, next_handler)``

Each handler is a coroutine function that receives the event arguments plus a
``next_handler`` continuation, and returns whatever the chain should return.
Handlers run in registration order (the first registered is the outermost);
the innermost continuation is the event's default behavior.

Example:
    >>> async def log_requests(connection, request, next_handler):
    ...     print(request["method"])
    ...     return await next_handler(connection, request)
    >>> hook_manager.register_handlers("network", {"onRequest": log_requests})
"""

import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Sequence

logger = logging.getLogger(__name__)

Handler = Callable[..., Awaitable[Any]]


class HookManager:
    def __init__(self) -> None:
        self._handlers: Dict[str, List[Mapping[str, Handler]]] = defaultdict(list)

    def register_handlers(self, category: str, handlers: Mapping[str, Handler]) -> None:
        self._handlers[category].append(handlers)

    def unregister_handlers(self, category: str, handlers: Mapping[str, Handler]) -> None:
        registered = self._handlers.get(category, [])
        self._handlers[category] = [h for h in registered if h is not handlers]

    def get_handlers(self, category: str, event: str) -> List[Handler]:
        return [
            handlers[event]
            for handlers in self._handlers.get(category, [])
            if event in handlers
        ]

    async def run_handler_chain(
        self,
        category: str,
        event: str,
        args: Sequence[Any],
        default_handler: Handler,
    ) -> Any:
        """
        Run the registered handlers of an event around ``default_handler``.

        Args:
            category: Hook category (e.g. ``"network"``)
            event: Event name (e.g. ``"onRequest"``)
            args: Positional arguments of the event
            default_handler: Coroutine function called with ``*args`` at the end of the chain

        Returns:
            The result of the outermost handler, or of ``default_handler`` when
            nothing is registered
        """
        handlers = self.get_handlers(category, event)
        if handlers:
            logger.debug("Running %d %s/%s handler(s)", len(handlers), category, event)

        handler = default_handler
        # Apply in reverse (inner to outer)
        for current in reversed(handlers):
            handler = _chain(current, handler)

        return await handler(*args)


def _chain(handler: Handler, next_handler: Handler) -> Handler:
    async def call(*args: Any) -> Any:
        return await handler(*args, next_handler)
    return call


__all__ = ["HookManager", "Handler"]
