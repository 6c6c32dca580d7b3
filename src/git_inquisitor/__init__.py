"""Git Inquisitor: repository history, file and contributor statistics."""

__version__ = "0.1.0"

# Import main components
from .collector import GitDataCollector
from .config import Config
from .logging import get_logger
from .models import AggregateDataset

__all__ = [
    "AggregateDataset",
    "Config",
    "GitDataCollector",
    "get_logger",
]
