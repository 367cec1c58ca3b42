"""
Action results

Every public service operation returns an ActionResult instead of raising.
Failures carry a message that can be shown to the user as-is; non-blocking
side-effect problems (calendar push, quote link) travel in ``warning`` next
to a successful result.
"""

import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import HTTPException

from .errors import HTTP_STATUS_BY_CODE, DomainError, ErrorCode

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[ErrorCode] = None
    warning: Optional[str] = None


def ok(data: Any = None, warning: Optional[str] = None) -> ActionResult:
    return ActionResult(success=True, data=data, warning=warning)


def fail(code: ErrorCode, message: str) -> ActionResult:
    return ActionResult(success=False, error=message, code=code)


def _rollback(args) -> None:
    # Service methods keep their session on self.db
    db = getattr(args[0], "db", None) if args else None
    if db is not None:
        try:
            db.rollback()
        except Exception as e:
            logger.error(f"❌ Rollback failed: {e}")


def action(default_message: str):
    """Wrap a service operation so it always returns an ActionResult.

    DomainError becomes a failure with its own code and message. Anything
    else is logged with traceback and reported as ``default_message``.
    Return values that are already ActionResult instances pass through,
    other values are wrapped with ``ok``.
    """

    def decorator(func):
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    result = await func(*args, **kwargs)
                except DomainError as e:
                    _rollback(args)
                    return fail(e.code, e.message)
                except Exception:
                    logger.exception(f"❌ {func.__qualname__} failed")
                    _rollback(args)
                    return fail(ErrorCode.INTERNAL, default_message)
                return result if isinstance(result, ActionResult) else ok(result)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                result = func(*args, **kwargs)
            except DomainError as e:
                _rollback(args)
                return fail(e.code, e.message)
            except Exception:
                logger.exception(f"❌ {func.__qualname__} failed")
                _rollback(args)
                return fail(ErrorCode.INTERNAL, default_message)
            return result if isinstance(result, ActionResult) else ok(result)

        return wrapper

    return decorator


def unwrap(result: ActionResult) -> Any:
    """Return the data of a successful result, raise HTTPException otherwise"""
    if result.success:
        return result.data
    status_code = HTTP_STATUS_BY_CODE.get(result.code, 500)
    raise HTTPException(status_code=status_code, detail=result.error)
