"""Lifespan composition for the app factory.

Composes :class:`~dominium.foundation.application.contributions.LifespanContribution`
hooks into a single FastAPI-compatible lifespan context manager.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

    from dominium.foundation.application.contributions import LifespanContribution

logger = logging.getLogger(__name__)


def compose_lifespan(
    hooks: list[LifespanContribution],
) -> object:
    """Create a composite lifespan from :class:`LifespanContribution` hooks.

    Lower priority hooks start first and shut down last (AsyncExitStack).
    """
    sorted_hooks = sorted(hooks, key=lambda h: h.priority)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for hook_contrib in sorted_hooks:
                logger.info(
                    "lifespan_hook_entering",
                    extra={"priority": hook_contrib.priority, "hook": repr(hook_contrib.hook)},
                )
                await stack.enter_async_context(hook_contrib.hook(app))
            yield

    return lifespan
