"""
Named primary/secondary composition for degradable operations.

Every degradable call in the knowledge engine tries its primary path once
and, on a recognised failure, its secondary path once. Building the pair
with ``with_fallback`` keeps that policy visible at the definition site:

    embed = with_fallback(_embed_remote, _no_embedding, name="embed",
                          catch=(ProviderUnavailableError,))

The secondary's own exceptions propagate; there is no second fallback.
"""

import functools
import logging
from typing import Any, Awaitable, Callable, Tuple, Type, TypeVar

logger = logging.getLogger("Converse.Fallback")

T = TypeVar("T")


def with_fallback(
    primary: Callable[..., Awaitable[T]],
    secondary: Callable[..., Awaitable[T]],
    *,
    name: str,
    catch: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable[..., Awaitable[T]]:
    """
    Compose two async callables sharing a signature.

    Args:
        primary: Preferred implementation
        secondary: Implementation used when ``primary`` raises one of ``catch``
        name: Label used in log lines
        catch: Exception types that trigger the secondary path

    Returns:
        Async callable with the primary's signature
    """

    @functools.wraps(primary)
    async def composed(*args: Any, **kwargs: Any) -> T:
        try:
            return await primary(*args, **kwargs)
        except catch as exc:
            logger.warning(f"{name}: primary path failed, using fallback: {exc}")
            return await secondary(*args, **kwargs)

    composed.primary = primary
    composed.secondary = secondary
    composed.fallback_name = name
    return composed
