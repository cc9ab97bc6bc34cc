"""Registry of live analysis sessions — one AnalysisSyncController per user.

Controllers outlive a single HTTP request: a regeneration started by one
request keeps running while later requests read its state, and connected
event-stream clients receive every transition.
"""

import logging
from collections.abc import Callable

from app.application.schemas.analysis import AnalysisView
from app.application.services.analysis_sync_controller import AnalysisSyncController
from app.application.services.sse_manager import SSEManager
from app.domain.entities import SyncState

logger = logging.getLogger(__name__)

ControllerFactory = Callable[[str], AnalysisSyncController]

ANALYSIS_EVENT = "analysis_state"


def channel_for(user_id: str) -> str:
    return f"analysis:{user_id}"


class AnalysisSessionRegistry:
    """Creates controllers on first use and keeps them for the process lifetime."""

    def __init__(self, controller_factory: ControllerFactory, sse_manager: SSEManager | None = None):
        self._factory = controller_factory
        self._sse = sse_manager
        self._controllers: dict[str, AnalysisSyncController] = {}

    def get(self, user_id: str) -> AnalysisSyncController:
        controller = self._controllers.get(user_id)
        if controller is None:
            controller = self._factory(user_id)
            if self._sse is not None:
                controller.add_listener(self._broadcaster(user_id))
            self._controllers[user_id] = controller
            logger.debug("Created analysis session for user %s", user_id)
        return controller

    def get_existing(self, user_id: str) -> AnalysisSyncController | None:
        return self._controllers.get(user_id)

    def _broadcaster(self, user_id: str):
        sse = self._sse

        async def _broadcast(state: SyncState) -> None:
            view = AnalysisView.from_state(user_id, state)
            await sse.broadcast(channel_for(user_id), ANALYSIS_EVENT, view.model_dump(mode="json"))

        return _broadcast

    async def notify_stale(self, user_id: str) -> None:
        """Mark a live session stale after its records changed.

        The flag itself is already stored by the record mutation.
        """
        controller = self.get_existing(user_id)
        if controller is None:
            return
        await controller.mark_stale(persist=False)

    @property
    def active_sessions(self) -> int:
        return len(self._controllers)

    async def shutdown(self) -> None:
        """Cancel in-flight generations; their claims expire on their own."""
        for user_id, controller in self._controllers.items():
            if controller.cancel():
                logger.info("Cancelled in-flight generation for user %s", user_id)
        self._controllers.clear()
