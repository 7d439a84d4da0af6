import pytest

from caprep.infrastructure.http import client as http_client_mod


@pytest.fixture(autouse=True)
async def reset_http_client():
    """
    Ensure each test starts with a clean module-level client
    and leaves it clean afterwards.
    """
    if getattr(http_client_mod, "_client", None) is not None:
        await http_client_mod.close_http_client()
    http_client_mod._client = None

    yield

    if getattr(http_client_mod, "_client", None) is not None:
        await http_client_mod.close_http_client()
    http_client_mod._client = None


@pytest.mark.asyncio
async def test_get_before_open_raises():
    with pytest.raises(RuntimeError):
        _ = http_client_mod.get_http_client()


@pytest.mark.asyncio
async def test_open_returns_singleton_with_given_timeout():
    c1 = await http_client_mod.open_http_client(timeout=20.0)
    assert not c1.is_closed

    c2 = await http_client_mod.open_http_client()
    assert c1 is c2

    t = c1.timeout
    assert float(t.read) == pytest.approx(20.0)
    assert float(t.connect) == pytest.approx(5.0)


@pytest.mark.asyncio
async def test_close_http_client_is_idempotent_and_drops_singleton():
    c1 = await http_client_mod.open_http_client()
    await http_client_mod.close_http_client()
    assert c1.is_closed
    assert http_client_mod._client is None

    await http_client_mod.close_http_client()
    assert http_client_mod._client is None
