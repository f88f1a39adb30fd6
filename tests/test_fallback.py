import pytest

from app.shared.errors import ProviderUnavailableError, StoreQueryError
from app.shared.fallback import with_fallback


async def _primary_ok(value):
    return f"primary:{value}"


async def _primary_fails(value):
    raise ProviderUnavailableError("openai", "no key")


async def _secondary(value):
    return f"secondary:{value}"


async def _secondary_fails(value):
    raise StoreQueryError("text_search", "down")


@pytest.mark.asyncio
async def test_primary_result_is_returned():
    composed = with_fallback(_primary_ok, _secondary, name="test")
    assert await composed("x") == "primary:x"


@pytest.mark.asyncio
async def test_caught_error_uses_secondary_with_same_arguments():
    composed = with_fallback(
        _primary_fails, _secondary, name="test", catch=(ProviderUnavailableError,)
    )
    assert await composed("x") == "secondary:x"


@pytest.mark.asyncio
async def test_uncaught_error_propagates():
    composed = with_fallback(_primary_fails, _secondary, name="test", catch=(StoreQueryError,))
    with pytest.raises(ProviderUnavailableError):
        await composed("x")


@pytest.mark.asyncio
async def test_secondary_failure_is_not_retried():
    composed = with_fallback(
        _primary_fails, _secondary_fails, name="test",
        catch=(ProviderUnavailableError, StoreQueryError),
    )
    with pytest.raises(StoreQueryError):
        await composed("x")


def test_composition_exposes_its_parts():
    composed = with_fallback(_primary_ok, _secondary, name="embed")
    assert composed.primary is _primary_ok
    assert composed.secondary is _secondary
    assert composed.fallback_name == "embed"
    assert composed.__name__ == "_primary_ok"
