import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from callbridge.config.settings import BridgeSettings
from callbridge.models.call_registry import CallRegistry
from callbridge.websocket_manager import WebSocketManager


def client_factory(connect_result=True):
    """Build a factory returning mock Realtime clients."""
    created = []

    def factory(**kwargs):
        client = MagicMock()
        client.connect = AsyncMock(return_value=connect_result)
        client.close = AsyncMock()
        client.kwargs = kwargs
        created.append(client)
        return client

    factory.created = created
    return factory


@pytest.fixture
def websocket():
    websocket = AsyncMock(spec=WebSocket)
    websocket.client_state = WebSocketState.CONNECTED
    return websocket


@pytest.fixture
def websocket_manager(settings):
    return WebSocketManager(settings, client_factory=client_factory())


def test_websocket_manager_initialization(websocket_manager, settings):
    """Test that WebSocketManager initializes correctly"""
    assert isinstance(websocket_manager.call_registry, CallRegistry)
    assert websocket_manager.settings is settings
    assert websocket_manager.active_calls == 0


def test_settings_default_to_environment(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
    monkeypatch.setenv("RESPONSE_MODE", "automatic")

    manager = WebSocketManager()

    assert manager.settings.openai_api_key == "sk-from-env"
    assert manager.settings.automatic_responses is True


@pytest.mark.asyncio
async def test_missing_api_key_rejects_call(websocket):
    factory = client_factory()
    manager = WebSocketManager(BridgeSettings(openai_api_key=None), client_factory=factory)

    await manager.handle_websocket(websocket)

    websocket.accept.assert_called_once()
    websocket.close.assert_called_once()
    assert factory.created == []
    assert manager.active_calls == 0


@pytest.mark.asyncio
async def test_speech_service_failure_closes_media_socket(websocket, settings):
    factory = client_factory(connect_result=False)
    manager = WebSocketManager(settings, client_factory=factory)

    await manager.handle_websocket(websocket)

    factory.created[0].connect.assert_called_once()
    websocket.close.assert_called_once()
    assert manager.active_calls == 0


@pytest.mark.asyncio
async def test_call_registered_while_running(websocket_manager, websocket, settings):
    """The call is counted for exactly as long as its bridge runs"""
    observed = []

    with patch(
        "callbridge.websocket_manager.CallBridge.run",
        new=AsyncMock(side_effect=lambda: observed.append(websocket_manager.active_calls)),
    ):
        await websocket_manager.handle_websocket(websocket)

    assert observed == [1]
    assert websocket_manager.active_calls == 0
    client = websocket_manager.client_factory.created[0]
    assert client.kwargs["api_key"] == settings.openai_api_key
    assert client.kwargs["model"] == settings.realtime_model


@pytest.mark.asyncio
async def test_call_removed_when_bridge_fails(websocket_manager, websocket):
    with patch(
        "callbridge.websocket_manager.CallBridge.run",
        new=AsyncMock(side_effect=RuntimeError("boom")),
    ):
        with pytest.raises(RuntimeError):
            await websocket_manager.handle_websocket(websocket)

    assert websocket_manager.active_calls == 0
