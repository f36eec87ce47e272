import logging

import pytest

from callbridge.config.settings import BridgeSettings
from callbridge.models.call_session import CallSession


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)

    # configure_logging() detaches the application logger from the root logger
    app_logger = logging.getLogger("call_bridge")
    for handler in app_logger.handlers[:]:
        handler.close()
        app_logger.removeHandler(handler)
    app_logger.setLevel(logging.NOTSET)
    app_logger.propagate = True
    yield


@pytest.fixture
def settings():
    """Settings with zero delays and a small prebuffer"""
    return BridgeSettings(
        openai_api_key="test-api-key",
        pacer_prebuffer_chunks=2,
        session_settle_delay=0,
        greeting_delay=0,
        response_fallback_delay=0,
        response_create_timeout=5,
    )


@pytest.fixture
def session():
    return CallSession()

