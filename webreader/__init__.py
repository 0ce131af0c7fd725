from .batch import MAX_BATCH_URLS
from .browser import BrowserManager, install_shutdown_hook
from .errors import (
    BrowserLaunchError,
    EscalationExhaustedError,
    ExtractionError,
    FetchError,
    FetchTimeoutError,
    UpstreamError,
    ValidationError,
)
from .models import BatchFailure, BatchSuccess, FetchMetadata, FetchOptions, FetchResult
from .render import render_batch, render_result
from .session import ReaderSession
from .settings import ReaderConfig, load_reader_config
from .utils import is_valid_url

__all__ = [
    "MAX_BATCH_URLS",
    "BatchFailure",
    "BatchSuccess",
    "BrowserLaunchError",
    "BrowserManager",
    "EscalationExhaustedError",
    "ExtractionError",
    "FetchError",
    "FetchMetadata",
    "FetchOptions",
    "FetchResult",
    "FetchTimeoutError",
    "ReaderConfig",
    "ReaderSession",
    "UpstreamError",
    "ValidationError",
    "install_shutdown_hook",
    "is_valid_url",
    "load_reader_config",
    "render_batch",
    "render_result",
]
