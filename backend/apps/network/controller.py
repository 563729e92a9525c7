"""Network profile controller used to cut and restore customer service."""
import logging
from dataclasses import dataclass
from typing import Protocol

import httpx
from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


@dataclass
class ProfileChangeResult:
    """Outcome of a single profile switch on the network controller."""

    success: bool
    error: str | None = None


class NetworkProfileController(Protocol):
    """Switches the service profile bound to a network credential."""

    def change_profile(self, username: str, profile_name: str) -> ProfileChangeResult:
        ...


def is_cut_profile(profile_name: str | None) -> bool:
    """Whether a profile name looks like one of the configured cut profiles."""
    if not profile_name:
        return False
    upper = profile_name.upper()
    return any(marker.upper() in upper for marker in settings.NETWORK_CUT_PROFILE_MARKERS)


class ProvisioningApiController:
    """Talks to the provisioning API that fronts the network routers."""

    TIMEOUT = 15  # seconds

    def __init__(self, base_url: str | None = None, token: str | None = None):
        self.base_url = (base_url or settings.NETWORK_CONTROLLER_URL).rstrip("/")
        self.token = token if token is not None else settings.NETWORK_CONTROLLER_TOKEN

    def _get_headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def change_profile(self, username: str, profile_name: str) -> ProfileChangeResult:
        logger.info("Changing profile of %s to %s", username, profile_name)
        try:
            response = httpx.post(
                f"{self.base_url}/api/pppoe/profile",
                json={"username": username, "profile": profile_name},
                headers=self._get_headers(),
                timeout=self.TIMEOUT,
            )
        except httpx.TimeoutException:
            logger.error("Provisioning API timeout for %s", username)
            return ProfileChangeResult(success=False, error="Provisioning API timeout")
        except httpx.RequestError as e:
            logger.error("Provisioning API request failed for %s: %s", username, e)
            return ProfileChangeResult(success=False, error=f"Failed to connect to provisioning API: {e}")

        if not response.is_success:
            logger.error(
                "Provisioning API error for %s: %s - %s",
                username, response.status_code, response.text,
            )
            return ProfileChangeResult(
                success=False,
                error=f"Provisioning API error {response.status_code}: {response.text}",
            )

        return ProfileChangeResult(success=True)


class DryRunController:
    """Logs profile changes without touching the network (development and tests)."""

    def change_profile(self, username: str, profile_name: str) -> ProfileChangeResult:
        logger.info("[dry-run] %s -> %s", username, profile_name)
        return ProfileChangeResult(success=True)


def get_network_controller() -> NetworkProfileController:
    """Instantiate the controller configured in NETWORK_PROFILE_CONTROLLER."""
    return import_string(settings.NETWORK_PROFILE_CONTROLLER)()
