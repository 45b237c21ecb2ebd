"""
Explicit session context for a signed-in portal user
"""

import logging
from typing import Generic, Optional, TypeVar

from ..core.models import Identity
from ..services.live_query import LiveSubscription

logger = logging.getLogger(__name__)

ProfileT = TypeVar("ProfileT")


class SessionContext(Generic[ProfileT]):
    """Identity, profile and live subscription of one signed-in session

    Created when an identity appears, closed on logout or identity change.
    Closing tears down the subscription so no stale snapshot reaches the portal.
    """

    def __init__(self, identity: Identity, profile: ProfileT):
        self.identity = identity
        self.profile = profile
        self.subscription: Optional[LiveSubscription] = None
        self.closed = False

    @property
    def uid(self) -> str:
        return self.identity.uid

    async def replace_subscription(self, subscription: LiveSubscription) -> None:
        previous, self.subscription = self.subscription, subscription
        if previous is not None:
            await previous.unsubscribe()
        if self.closed:
            await subscription.unsubscribe()

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.subscription is not None:
            await self.subscription.unsubscribe()
        logger.info(f"🔒 Session closed for {self.uid}")
