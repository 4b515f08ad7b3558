"""
Retry decorator for connector methods.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Tuple, Type, TypeVar, cast

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def retry(
    *,
    attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
) -> Callable[[F], F]:
    """Retry an async connector call with exponential backoff.

    Only the listed exception types are retried; anything else propagates on
    the first failure. The last failure is re-raised once ``attempts`` calls
    have been made.
    """
    attempts = max(1, int(attempts))

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            _attempt = 0
            _delay = delay
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as exc:
                    _attempt += 1
                    if _attempt >= attempts:
                        raise
                    log.debug(
                        "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                        func.__qualname__, _attempt, attempts, _delay, exc,
                    )
                    await asyncio.sleep(_delay)
                    _delay *= backoff

        return cast(F, wrapper)

    return decorator
