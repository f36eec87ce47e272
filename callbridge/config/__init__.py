"""
Configuration module for the call bridge.

This module provides centralized configuration management for the entire application,
including constants, validated runtime settings, and logging setup.

Key components:
- constants: Wire vocabulary of both channels (event names), timer names and
  default tunables.
- settings: ``BridgeSettings``, the validated per-process configuration built from
  environment variables.
- logging_config: Console and rotating-file logging for the ``call_bridge`` logger.

Usage examples:
```python
from callbridge.config.constants import LOGGER_NAME
from callbridge.config.logging_config import configure_logging
from callbridge.config.settings import BridgeSettings

logger = configure_logging()
settings = BridgeSettings.from_env()
logger.info(f"Response mode: {settings.response_mode}")
```
"""
