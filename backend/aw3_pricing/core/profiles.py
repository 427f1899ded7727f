"""
AW3 Pricing Requester Profile Module

Fee estimation needs the requester's reputation score and cumulative spend.
Those live in the project service, so the pricing service reaches them through
a ``RequesterProfileProvider`` collaborator. The FastAPI dependency
``get_requester_profile`` reads the ``X-Requester-Id`` header and asks the
configured provider for the profile.

Usage:
    ```python
    from fastapi import Depends
    from aw3_pricing.core.profiles import get_requester_profile

    @router.post("/estimate-fees")
    async def estimate(profile: RequesterProfile = Depends(get_requester_profile)):
        ...
    ```

Swap the provider with ``app.dependency_overrides[get_profile_provider]``.
"""

import logging

from typing import Protocol

from fastapi import Depends, Header

from aw3_pricing.models.fee_estimate import RequesterProfile


# Configure module logger
logger = logging.getLogger(__name__)

REQUESTER_ID_HEADER = "X-Requester-Id"


class RequesterProfileProvider(Protocol):
    """Looks up the reputation and spend history of a requester."""

    async def get_profile(self, requester_id: str | None) -> RequesterProfile: ...


class DefaultRequesterProfileProvider:
    """
    Provider used when no project service is wired in.

    Every requester, known or anonymous, is treated as a new project with no
    reputation and no spend history (bronze tier).
    """

    async def get_profile(self, requester_id: str | None) -> RequesterProfile:
        return RequesterProfile()


class StaticRequesterProfileProvider:
    """In-memory provider keyed by requester id; unknown ids get an empty profile."""

    def __init__(self, profiles: dict[str, RequesterProfile] | None = None) -> None:
        self.profiles = dict(profiles or {})

    async def get_profile(self, requester_id: str | None) -> RequesterProfile:
        if requester_id is None:
            return RequesterProfile()
        return self.profiles.get(requester_id, RequesterProfile())


_default_provider = DefaultRequesterProfileProvider()


def get_profile_provider() -> RequesterProfileProvider:
    """FastAPI dependency returning the active profile provider."""
    return _default_provider


async def get_requester_profile(
    requester_id: str | None = Header(default=None, alias=REQUESTER_ID_HEADER),
    provider: RequesterProfileProvider = Depends(get_profile_provider),
) -> RequesterProfile:
    """
    Resolve the requester's pricing profile from the ``X-Requester-Id`` header.

    Args:
        requester_id: Header value, None for anonymous requests.
        provider: Injected profile provider.

    Returns:
        RequesterProfile: Reputation score and cumulative spend.
    """
    profile = await provider.get_profile(requester_id)
    logger.debug(
        "Resolved profile for requester=%s: reputation=%s spend=%s",
        requester_id,
        profile.reputation_score,
        profile.cumulative_spend,
    )
    return profile


__all__ = [
    "REQUESTER_ID_HEADER",
    "DefaultRequesterProfileProvider",
    "RequesterProfileProvider",
    "StaticRequesterProfileProvider",
    "get_profile_provider",
    "get_requester_profile",
]
