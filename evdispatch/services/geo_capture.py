"""Single-shot GPS capture over native and browser positioning APIs.

The host environment supplies a *backend* (the device location service or
the browser's ``navigator.geolocation``); this module wraps it in a
:class:`PositionProvider` chosen once at composition time, and validates
whatever fix comes back before anything downstream can store it.
"""

from __future__ import annotations

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol

from evdispatch.config import GeoCaptureConfig
from evdispatch.errors import LocationError
from evdispatch.schemas.geo import GeoCoordinates

logger = logging.getLogger(__name__)

NATIVE_PLATFORMS = ("ios", "android", "macos", "windows")

# W3C GeolocationPositionError codes
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3


@dataclass
class PositionFix:
    latitude: float | None
    longitude: float | None
    accuracy: float | None = None


class HostPositionError(Exception):
    """Raised by a backend when the host positioning call fails."""

    def __init__(self, code: int, message: str = ""):
        super().__init__(message or f"position error {code}")
        self.code = code


class BrowserGeolocation(Protocol):
    async def get_current_position(
        self, *, enable_high_accuracy: bool, timeout: float, maximum_age: float,
    ) -> PositionFix: ...


class NativeLocationService(Protocol):
    async def has_services_enabled(self) -> bool: ...

    async def request_foreground_permissions(self) -> str: ...  # granted | denied | undetermined

    async def get_current_position(self, *, high_accuracy: bool) -> PositionFix: ...


def validate_coordinates(latitude, longitude, accuracy=None) -> GeoCoordinates:
    """Reject missing, ``(0, 0)`` and out-of-range fixes."""
    if latitude is None or longitude is None or math.isnan(latitude) or math.isnan(longitude):
        raise LocationError("GPS returned no coordinates", LocationError.OUT_OF_RANGE)
    if latitude == 0 and longitude == 0:
        raise LocationError("GPS returned an empty (0, 0) fix", LocationError.OUT_OF_RANGE)
    if abs(latitude) > 90 or abs(longitude) > 180:
        raise LocationError("GPS coordinates out of valid range", LocationError.OUT_OF_RANGE)
    if accuracy is not None and (math.isnan(accuracy) or accuracy < 0):
        accuracy = None
    return GeoCoordinates(latitude=float(latitude), longitude=float(longitude), accuracy=accuracy)


def _host_failure(exc: Exception) -> LocationError:
    logger.debug("Positioning backend raised %r", exc)
    return LocationError(f"Failed to get location: {exc}", LocationError.CAPTURE_FAILED)


class PositionProvider(ABC):
    platform: str = "unknown"

    def __init__(self, config: GeoCaptureConfig | None = None):
        self.config = config or GeoCaptureConfig()

    @abstractmethod
    async def get_position(self) -> PositionFix:
        """Return one raw fix or raise :class:`LocationError`."""


class BrowserPositionProvider(PositionProvider):
    platform = "web"

    def __init__(self, geolocation: BrowserGeolocation | None, config: GeoCaptureConfig | None = None):
        super().__init__(config)
        self.geolocation = geolocation

    async def get_position(self) -> PositionFix:
        if self.geolocation is None:
            raise LocationError("Geolocation is not supported by this browser", LocationError.SERVICES_DISABLED)
        timeout = self.config.timeout_seconds
        try:
            return await asyncio.wait_for(
                self.geolocation.get_current_position(
                    enable_high_accuracy=self.config.high_accuracy,
                    timeout=timeout,
                    maximum_age=0,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise LocationError(f"Location request timed out after {timeout:g}s", LocationError.CAPTURE_FAILED) from exc
        except HostPositionError as exc:
            if exc.code == PERMISSION_DENIED:
                raise LocationError("Location permission denied", LocationError.PERMISSION_DENIED) from exc
            raise _host_failure(exc) from exc
        except Exception as exc:
            raise _host_failure(exc) from exc


class NativePositionProvider(PositionProvider):
    def __init__(self, service: NativeLocationService, platform: str = "ios", config: GeoCaptureConfig | None = None):
        super().__init__(config)
        self.service = service
        self.platform = platform
        self._settled = False

    async def get_position(self) -> PositionFix:
        try:
            enabled = await self.service.has_services_enabled()
        except Exception as exc:
            raise _host_failure(exc) from exc
        if not enabled:
            raise LocationError(
                "Location services are disabled. Enable them in device settings.",
                LocationError.SERVICES_DISABLED,
            )
        try:
            status = await self.service.request_foreground_permissions()
        except Exception as exc:
            raise _host_failure(exc) from exc
        if status != "granted":
            raise LocationError("Location permission denied", LocationError.PERMISSION_DENIED)

        if not self._settled:
            await asyncio.sleep(self.config.settle_delay_seconds)
            self._settled = True

        timeout = self.config.timeout_seconds
        try:
            return await asyncio.wait_for(
                self.service.get_current_position(high_accuracy=self.config.high_accuracy),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise LocationError(f"Location request timed out after {timeout:g}s", LocationError.CAPTURE_FAILED) from exc
        except Exception as exc:
            raise _host_failure(exc) from exc


def build_position_provider(platform: str, backend, config: GeoCaptureConfig | None = None) -> PositionProvider:
    """Pick the provider for a runtime target. Called once when wiring the app."""
    if platform == "web":
        return BrowserPositionProvider(backend, config)
    if platform in NATIVE_PLATFORMS:
        return NativePositionProvider(backend, platform=platform, config=config)
    raise LocationError(f"No positioning capability for platform {platform!r}", LocationError.SERVICES_DISABLED)


async def capture_coordinates(provider: PositionProvider) -> GeoCoordinates:
    """Acquire and validate a single fix from ``provider``."""
    try:
        fix = await provider.get_position()
        coords = validate_coordinates(fix.latitude, fix.longitude, fix.accuracy)
    except LocationError as exc:
        logger.warning("Location capture failed on %s (%s): %s", provider.platform, exc.reason, exc.message)
        raise
    logger.info(
        "Captured %.6f, %.6f (accuracy %s) on %s",
        coords.latitude, coords.longitude, coords.accuracy, provider.platform,
    )
    return coords
