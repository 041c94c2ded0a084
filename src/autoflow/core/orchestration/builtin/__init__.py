from autoflow.core.orchestration.handlers import HandlerRegistry

from .data_fetcher import DataFetcherHandler
from .data_transformer import DataTransformerHandler
from .delay import DelayHandler
from .output_logger import OutputLoggerHandler


def build_default_handlers() -> HandlerRegistry:
    """Registry of the side-effect-free handlers shipped with autoflow.

    Steps that talk to outside services (``emailGenerator``, ``slackSender``,
    ``aiSummarizer`` and the rest) have no default handler. Register them
    before running graphs that use them; otherwise the run is rejected with
    ``status="error"`` before any node executes.
    """
    registry = HandlerRegistry()
    registry.register(DataFetcherHandler())
    registry.register(OutputLoggerHandler())
    registry.register(DelayHandler())
    registry.register(DataTransformerHandler())
    return registry


__all__ = [
    "DataFetcherHandler",
    "DataTransformerHandler",
    "DelayHandler",
    "OutputLoggerHandler",
    "build_default_handlers",
]
