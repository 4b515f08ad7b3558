"""
Centralized exception handling decorator for API route functions.

The :func:`handle_exceptions` decorator wraps an async endpoint handler and
translates failures into :class:`fastapi.HTTPException` responses:

* :class:`HTTPException` raised by the handler propagates untouched.
* :class:`ServiceNotFound` becomes a ``404``; a correlation run focused on a
  service the backend does not know has no meaningful output.
* Any other :class:`DataSourceError` becomes a ``502``, since the telemetry
  backend (not the request) is at fault.
* Everything else becomes a ``500`` with the exception message as detail.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar, cast

from fastapi import HTTPException

from datasources.exceptions import DataSourceError, ServiceNotFound

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def handle_exceptions(func: F) -> F:
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except HTTPException:
            raise
        except ServiceNotFound as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except DataSourceError as exc:
            log.warning("%s: telemetry backend error: %s", func.__name__, exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        except Exception as exc:
            log.exception("%s failed", func.__name__)
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    return cast(F, wrapper)
