"""
Версии SDK и REST API.

Назначение:
- единая точка версии для User-Agent
- префикс путей project API
"""

from __future__ import annotations

SDK_VERSION = "0.1.3"
USER_AGENT = f"opentok-server-python/{SDK_VERSION}"

DEFAULT_API_URL = "https://api.opentok.com"
PROJECT_API_PREFIX = "/v2/project"
SESSION_CREATE_PATH = "/session/create"
