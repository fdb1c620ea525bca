from abc import ABC, abstractmethod

from domain.models import RenderEvent


class RenderSink(ABC):
    """Consumer of orchestrator events (Telegram card, HTTP snapshot, ...)."""

    @abstractmethod
    async def emit(self, event: RenderEvent) -> None:
        pass
