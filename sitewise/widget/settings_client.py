"""Fetches widget settings from the public settings endpoint"""
import httpx
from typing import Optional
import logging

from sitewise.models.widget import WidgetSettings

logger = logging.getLogger(__name__)


class SettingsFetchError(Exception):
    """Settings could not be loaded for a widget"""


class SettingsClient:
    """Read-through lookup: every call hits the backend, nothing is cached"""

    def __init__(
        self,
        api_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0
    ):
        self.settings_url = f"{api_url.rstrip('/')}/api/widget/settings"
        self._client = client
        self.timeout = timeout

    async def fetch(self, widget_id: str) -> WidgetSettings:
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            response = await client.get(self.settings_url, params={"id": widget_id})
        except httpx.HTTPError as e:
            raise SettingsFetchError(f"Settings request failed: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.is_success:
            error = body.get("error") if isinstance(body, dict) else None
            raise SettingsFetchError(error or f"Settings request failed ({response.status_code})")

        settings = body.get("settings") if isinstance(body, dict) else None
        if not isinstance(settings, dict):
            raise SettingsFetchError("Settings response had no settings")
        return WidgetSettings(**settings)
