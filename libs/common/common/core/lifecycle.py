import atexit
from abc import ABC, abstractmethod

from common.utils.utils import blocking_run_async, get_logger

logger = get_logger()


class Lifecycle(ABC):
    """Start/stop protocol for long-lived services owned by the service container."""

    _is_running: bool

    def __init__(self) -> None:
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def start(self) -> None:
        if self._is_running:
            return
        self._is_running = True
        atexit.register(self._stop_sync)

        try:
            logger.info("Starting", component=self._name_for_log)
            await self._start()
            logger.info("Started", component=self._name_for_log)
        except Exception as e:
            logger.exception("Failed to start", component=self._name_for_log, exc_info=e)
            await self.stop()
            raise

    @abstractmethod
    async def _start(self) -> None:
        pass

    async def stop(self) -> None:
        if not self._is_running:
            return
        self._is_running = False

        try:
            logger.info("Stopping", component=self._name_for_log)
            await self._stop()
            logger.info("Stopped", component=self._name_for_log)
        except Exception as e:
            self._is_running = True
            logger.exception("Failed to stop", component=self._name_for_log, exc_info=e)
            raise

    @abstractmethod
    async def _stop(self) -> None:
        pass

    def _stop_sync(self) -> None:
        if self._is_running:
            blocking_run_async(self.stop())

    @property
    def _name_for_log(self) -> str:
        return self.__class__.__name__
