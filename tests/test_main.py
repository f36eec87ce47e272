import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, patch

from callbridge.main import app, websocket_manager

client = TestClient(app)


def test_health_check():
    """Test the health check endpoint returns correct response"""
    response = client.get("/health")
    assert response.status_code == 200

    response_json = response.json()
    assert response_json["status"] == "healthy"
    assert isinstance(response_json["openai_api_key_configured"], bool)
    assert response_json["response_mode"] in ("manual", "automatic")
    assert response_json["active_calls"] == 0


def test_health_check_counts_active_calls():
    websocket_manager.call_registry.add_call("test-call-id", MagicMock())
    try:
        response = client.get("/health")
        assert response.json()["active_calls"] == 1
    finally:
        websocket_manager.call_registry.remove_call("test-call-id")


def test_root_endpoint():
    """Test the root endpoint returns the correct API information"""
    response = client.get("/")
    assert response.status_code == 200

    response_json = response.json()
    assert response_json["name"] == "Realtime Call Bridge"
    assert "description" in response_json
    assert response_json["version"] == "1.0.0"
    assert "/media-stream" in response_json["endpoints"]
    assert "/health" in response_json["endpoints"]


@pytest.mark.asyncio
async def test_media_stream_endpoint():
    """Test that the media stream endpoint hands the socket to the manager"""
    with patch("callbridge.websocket_manager.WebSocketManager.handle_websocket") as mock_handle:
        mock_handle.return_value = None
        mock_websocket = MagicMock()

        websocket_route = next(route for route in app.routes if route.path == "/media-stream")
        await websocket_route.endpoint(mock_websocket)

        mock_handle.assert_called_once_with(mock_websocket)


def test_app_configuration():
    """Test the app configuration on startup"""
    assert app.title == "Realtime Call Bridge"
    assert app.version == "1.0.0"

    route_paths = [route.path for route in app.routes]
    assert "/media-stream" in route_paths
    assert "/health" in route_paths
    assert "/" in route_paths
