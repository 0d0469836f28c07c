from abc import ABC, abstractmethod
from app.core.providers.models import AnswerResult


class BasePipelineProvider(ABC):

    @abstractmethod
    async def ask(self, user_input: str) -> AnswerResult:
        """Send ``user_input`` to the pipeline and wait for its answer."""

    @abstractmethod
    def is_available(self) -> bool:
        pass

    async def health_check(self) -> bool:
        return self.is_available()

    def get_provider_name(self) -> str:
        return self.__class__.__name__.lower().replace('provider', '')
