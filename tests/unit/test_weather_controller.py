"""Unit tests for WeatherController: state transitions and error messages per HTTP outcome."""
import asyncio
from unittest.mock import MagicMock

import httpx
import pytest

from tools.base import ApiResponse, CitySuggestion, WeatherClientError
from tools.weather_api import WeatherClient
from viewmodel.state import Error, Idle, Loading, Success
from viewmodel.weather import WeatherController

from conftest import weather_body


def _controller(fake_client):
    clear = MagicMock()
    return WeatherController(fake_client, clear_suggestions=clear), clear


@pytest.mark.asyncio
async def test_starts_idle(fake_client):
    ctl, _ = _controller(fake_client)
    assert ctl.state.value == Idle()


@pytest.mark.asyncio
async def test_fetch_by_city_success(fake_client):
    fake_client.fetch_by_city.return_value = ApiResponse(200, weather_body(name="Ankara", temp=17.25))
    ctl, clear = _controller(fake_client)
    seen = []
    ctl.state.subscribe(seen.append)

    await ctl.fetch_by_city("Ankara")

    clear.assert_called_once()
    assert isinstance(seen[0], Loading)
    state = ctl.state.value
    assert isinstance(state, Success)
    assert state.snapshot.location_name == "Ankara"
    assert state.snapshot.temperature_c == 17.25
    fake_client.fetch_by_city.assert_awaited_once_with("Ankara")


@pytest.mark.asyncio
async def test_loading_is_set_before_reply(fake_client):
    ctl, _ = _controller(fake_client)
    task = ctl.fetch_by_city("Ankara")
    assert ctl.state.value == Loading()
    await task


@pytest.mark.asyncio
async def test_fetch_by_city_not_found_names_city(fake_client):
    fake_client.fetch_by_city.return_value = ApiResponse(404, {"cod": "404", "message": "city not found"})
    ctl, _ = _controller(fake_client)
    await ctl.fetch_by_city("Qwxyzzy")
    state = ctl.state.value
    assert isinstance(state, Error)
    assert "Qwxyzzy" in state.message
    assert state.message == "city 'Qwxyzzy' not found"


@pytest.mark.asyncio
@pytest.mark.parametrize("city", ["Ankara", "Qwxyzzy", "Rize"])
async def test_fetch_by_city_invalid_credential(fake_client, city):
    fake_client.fetch_by_city.return_value = ApiResponse(401, {"cod": 401})
    ctl, _ = _controller(fake_client)
    await ctl.fetch_by_city(city)
    assert ctl.state.value == Error("invalid API credential")


@pytest.mark.asyncio
async def test_fetch_by_city_other_status(fake_client):
    fake_client.fetch_by_city.return_value = ApiResponse(500, None)
    ctl, _ = _controller(fake_client)
    await ctl.fetch_by_city("Ankara")
    assert ctl.state.value == Error("request failed: code 500")


@pytest.mark.asyncio
async def test_fetch_by_city_empty_success_body(fake_client):
    fake_client.fetch_by_city.return_value = ApiResponse(200, None)
    ctl, _ = _controller(fake_client)
    await ctl.fetch_by_city("Ankara")
    assert ctl.state.value == Error("request failed: code 200")


@pytest.mark.asyncio
async def test_fetch_by_city_network_error(fake_client):
    fake_client.fetch_by_city.side_effect = WeatherClientError("timed out")
    ctl, _ = _controller(fake_client)
    await ctl.fetch_by_city("Ankara")
    assert ctl.state.value == Error("network error: timed out")


@pytest.mark.asyncio
async def test_fetch_by_location_success(fake_client):
    fake_client.fetch_by_coordinates.return_value = ApiResponse(200, weather_body(name="Çankaya"))
    ctl, clear = _controller(fake_client)
    await ctl.fetch_by_location(39.9, 32.8)
    clear.assert_called_once()
    assert ctl.state.value.snapshot.location_name == "Çankaya"
    fake_client.fetch_by_coordinates.assert_awaited_once_with(39.9, 32.8)


@pytest.mark.asyncio
async def test_fetch_by_location_status_error(fake_client):
    fake_client.fetch_by_coordinates.return_value = ApiResponse(401, None)
    ctl, _ = _controller(fake_client)
    await ctl.fetch_by_location(0.0, 0.0)
    assert ctl.state.value == Error("could not retrieve weather for location: code 401")


@pytest.mark.asyncio
async def test_fetch_by_location_network_error_clears_suggestions(fake_client):
    fake_client.fetch_by_coordinates.side_effect = WeatherClientError("connection reset")
    ctl, clear = _controller(fake_client)
    await ctl.fetch_by_location(41.0, 29.0)
    clear.assert_called_once()
    state = ctl.state.value
    assert isinstance(state, Error)
    assert state.message.startswith("network error:")


@pytest.mark.asyncio
async def test_select_suggestion_fetches_its_coordinates(fake_client):
    ctl, clear = _controller(fake_client)
    seen = []
    ctl.state.subscribe(seen.append)
    await ctl.select_suggestion(CitySuggestion("Ankara", "TR", 39.92, 32.85))

    clear.assert_called_once()
    fake_client.fetch_by_coordinates.assert_awaited_once_with(39.92, 32.85)
    assert [type(s) for s in seen] == [Loading, Success]


@pytest.mark.asyncio
async def test_every_state_reenters_loading(fake_client):
    fake_client.fetch_by_city.side_effect = [
        ApiResponse(404, None),
        ApiResponse(200, weather_body()),
        ApiResponse(500, None),
    ]
    ctl, _ = _controller(fake_client)
    seen = []
    ctl.state.subscribe(seen.append)
    for _ in range(3):
        await ctl.fetch_by_city("Ankara")
    assert [type(s) for s in seen] == [Loading, Error, Loading, Success, Loading, Error]
    assert Idle() not in seen


@pytest.mark.asyncio
async def test_last_reply_wins_without_cancellation(fake_client):
    slow_gate = asyncio.Event()

    async def fetch(city):
        if city == "Ankara":
            await slow_gate.wait()
        return ApiResponse(200, weather_body(name=city))

    fake_client.fetch_by_city.side_effect = fetch
    ctl, _ = _controller(fake_client)

    slow = ctl.fetch_by_city("Ankara")
    fast = ctl.fetch_by_city("İzmir")
    await fast
    assert ctl.state.value.snapshot.location_name == "İzmir"

    slow_gate.set()
    await slow
    assert not slow.cancelled()
    assert ctl.state.value.snapshot.location_name == "Ankara"


@pytest.mark.asyncio
async def test_aclose_waits_for_inflight(fake_client):
    ctl, _ = _controller(fake_client)
    task = ctl.fetch_by_city("Ankara")
    await ctl.aclose()
    assert task.done()


@pytest.mark.asyncio
async def test_unexpected_client_exception_ends_in_error(fake_client):
    fake_client.fetch_by_city.side_effect = RuntimeError("decoder exploded")
    ctl, _ = _controller(fake_client)
    task = ctl.fetch_by_city("Ankara")
    await task
    assert task.exception() is None
    assert ctl.state.value == Error("network error: decoder exploded")


@pytest.mark.asyncio
async def test_unencodable_city_with_real_client_ends_in_error():
    client = WeatherClient(
        api_key="fake",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=weather_body()))),
    )
    ctl = WeatherController(client)
    await ctl.fetch_by_city("Ank\ud800")
    state = ctl.state.value
    assert isinstance(state, Error)
    assert state.message.startswith("network error:")
    await client.aclose()


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_request(fake_client):
    from app.main import _await_request

    gate = asyncio.Event()

    async def fetch(city):
        await gate.wait()
        return ApiResponse(200, weather_body(name=city))

    fake_client.fetch_by_city.side_effect = fetch
    ctl, _ = _controller(fake_client)
    request = ctl.fetch_by_city("Ankara")
    caller = asyncio.ensure_future(_await_request(request))
    await asyncio.sleep(0.01)

    caller.cancel()
    with pytest.raises(asyncio.CancelledError):
        await caller
    gate.set()
    await request

    assert not request.cancelled()
    assert isinstance(ctl.state.value, Success)
    assert ctl.state.value.snapshot.location_name == "Ankara"
