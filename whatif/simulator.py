"""Synthetic service that turns requests into simulated responses."""

import logging
import random

from whatif.models import ServiceProfile, SimulatedRequest, SimulatedResponse

logger = logging.getLogger(__name__)

PAYLOAD_RANGE = (50, 1000)
DEADLINE_RANGE_MS = (100, 1000)


class ServiceSimulator:
    """Simulates one service from its profile.

    Latency is ``base + randrange(jitter)`` and a request fails when a
    uniform draw falls below the profile's failure probability. The
    simulator keeps no state between calls; all randomness comes from the
    ``rng`` handed to :meth:`process`.
    """

    def __init__(self, profile: ServiceProfile):
        self.profile = profile

    @property
    def name(self) -> str:
        return self.profile.name

    def process(self, request: SimulatedRequest, rng: random.Random) -> SimulatedResponse:
        profile = self.profile
        jitter = rng.randrange(profile.latency_jitter_ms) if profile.latency_jitter_ms > 0 else 0
        latency = profile.base_latency_ms + jitter
        success = rng.random() >= profile.failure_probability

        if success:
            response = SimulatedResponse(success=True, latency_ms=latency)
        else:
            response = SimulatedResponse(
                success=False,
                latency_ms=latency,
                error_code=f"{profile.name.upper()}_ERROR",
                error_message=f"error in service {profile.display_name}",
            )

        logger.debug(
            "[%s] %s: %d bytes -> %s (%d ms)",
            profile.role.value if profile.role else "-",
            profile.display_name,
            request.payload_bytes,
            "ok" if success else response.error_code,
            latency,
        )
        return response


def build_request(service_name: str, rng: random.Random) -> SimulatedRequest:
    """Draw a request for ``service_name``.

    Payload size and deadline are recorded for diagnostics only; they never
    affect the simulated latency or outcome.
    """
    return SimulatedRequest(
        service_name=service_name,
        payload_bytes=rng.randrange(*PAYLOAD_RANGE),
        deadline_ms=rng.randrange(*DEADLINE_RANGE_MS),
    )
