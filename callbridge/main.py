"""
FastAPI server bridging telephony media streams with the OpenAI Realtime API.

This module initializes and configures the FastAPI application. The telephony
gateway opens a websocket to ``/media-stream`` for every call; the call's audio is
relayed to an OpenAI Realtime session and the synthesized replies are streamed back.
"""

import os
from pathlib import Path

import dotenv
from fastapi import FastAPI, WebSocket

from callbridge.config.logging_config import configure_logging
from callbridge.config.settings import BridgeSettings
from callbridge.websocket_manager import WebSocketManager

# Load environment variables from .env file if it exists
env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)

# Configure logging
logger = configure_logging()

# Get configuration from environment variables
PORT = int(os.getenv("PORT", "8000"))
HOST = os.getenv("HOST", "0.0.0.0")

# Fail at startup on invalid configuration
settings = BridgeSettings.from_env()

# Create FastAPI application
app = FastAPI(
    title="Realtime Call Bridge",
    description="Bridge between telephony media streams and the OpenAI Realtime API",
    version="1.0.0",
)

# Create WebSocket manager
websocket_manager = WebSocketManager(settings)


@app.websocket("/media-stream")
async def media_stream(websocket: WebSocket):
    """WebSocket endpoint for the telephony gateway's media stream.

    One connection carries one call: caller audio, playback acknowledgments and
    stream control inbound; synthesized audio, marks and clear commands outbound.
    """
    await websocket_manager.handle_websocket(websocket)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring system status.

    Returns:
        dict: Status information indicating the server is operational.
    """
    return {
        "status": "healthy",
        "openai_api_key_configured": bool(settings.openai_api_key),
        "response_mode": settings.response_mode,
        "active_calls": websocket_manager.active_calls,
    }


@app.get("/")
async def root():
    """Root endpoint to display basic information about the API."""
    return {
        "name": "Realtime Call Bridge",
        "description": "Bridge between telephony media streams and the OpenAI Realtime API",
        "version": "1.0.0",
        "endpoints": {
            "/media-stream": "WebSocket endpoint for the telephony media stream",
            "/health": "Health check endpoint",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on http://{HOST}:{PORT}")
    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        websocket_ping_interval=5,
        websocket_max_size=16777216,  # 16MB - large enough for audio chunks
        websocket_ping_timeout=20,
        http="h11",
    )
