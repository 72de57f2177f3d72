"""
Gallery Session

Application root for one signed-in user: owns the local state, the sync engine
and the components built on it, and the single background poller.
"""

import logging
from typing import Optional

from config import POLL_INTERVAL_SECONDS
from gallery.services.gateway import RemoteGateway
from gallery.sync import (
    CategoryReconciler,
    GalleryPromoter,
    GenerationSubmitter,
    LocalStateStore,
    SyncEngine,
    TaskPoller,
    UploadOrchestrator,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class GallerySession:
    """
    Wires the gallery components together for one user.

    Usage:
        async with GallerySession(user_id) as session:
            await session.engine.toggle_favorite(asset_id)
    """

    def __init__(
        self,
        user_id: str,
        gateway: Optional[RemoteGateway] = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ):
        self.user_id = user_id
        self.gateway = gateway or RemoteGateway.from_config()
        self.store = LocalStateStore()
        self.engine = SyncEngine(self.store, self.gateway)
        self.reconciler = CategoryReconciler(self.store)
        self.uploads = UploadOrchestrator(self.engine, self.reconciler)
        self.poller = TaskPoller(self.engine, interval=poll_interval)
        self.promoter = GalleryPromoter(self.engine)
        self.submitter = GenerationSubmitter(self.engine)

    async def open(self) -> None:
        """Load the collections and start polling generation tasks."""
        await self.engine.reload()
        self.poller.start()
        logger.info(f"Session opened for {self.user_id}")

    async def close(self) -> None:
        await self.poller.stop()
        await self.gateway.aclose()
        logger.info(f"Session closed for {self.user_id}")

    async def __aenter__(self) -> "GallerySession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
