# champsim/utils/observability.py
import logging
import sys
from pathlib import Path
from typing import Optional
import structlog
import contextvars
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, write_to_textfile

from champsim.config import ObservabilitySettings, settings as app_settings

# Correlation ID for tying one CLI run's events together
CORRELATION_ID = contextvars.ContextVar('correlation_id', default=None)

class ObservabilityConfig:
    """Configuration for observability stack, taken from ObservabilitySettings."""

    def __init__(self, settings: Optional[ObservabilitySettings] = None):
        if settings is None:
            settings = app_settings.observability
        self.environment = settings.environment
        self.log_level = settings.log_level
        self.enable_metrics = settings.enable_metrics
        self.log_format = settings.log_format

class MetricsRegistry:
    """Centralized metrics management."""

    def __init__(self):
        self.registry = CollectorRegistry()
        self._init_metrics()

    def _init_metrics(self):
        """Initialize all metrics with proper naming conventions."""

        # HISTOGRAMS (timing data)
        self.simulation_duration = Histogram(
            'simulation_duration_seconds',
            'Wall time of a full Monte Carlo run',
            labelnames=['mode'],  # 'sequential' or 'parallel'
            buckets=(1, 5, 10, 30, 60, 300, 900, 3600),
            registry=self.registry
        )

        # COUNTERS (monotonic increases)
        self.trials_completed = Counter(
            'simulation_trials_total',
            'Simulated tournaments completed',
            registry=self.registry
        )

        self.rating_requests = Counter(
            'rating_requests_total',
            'Matchplay rating lookups',
            labelnames=['outcome'],  # 'rated', 'default', 'error'
            registry=self.registry
        )

        self.cache_events = Counter(
            'field_cache_events_total',
            'Tournament field cache lookups',
            labelnames=['event'],  # 'hit', 'miss', 'stale', 'write'
            registry=self.registry
        )

        # GAUGES (point-in-time snapshots)
        self.field_size = Gauge(
            'simulation_field_size',
            'Number of competitors in the last simulated field',
            registry=self.registry
        )

class StructlogConfig:
    """Structured logging configuration."""

    @staticmethod
    def configure(log_format: str = 'console', log_level: str = 'INFO'):
        """
        Configure structlog for the chosen LOG_FORMAT.

        json: machine-readable output
        console: human-readable output

        Output goes to stderr; stdout is reserved for results.
        """

        shared_processors = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
        ]

        if log_format == 'json':
            processors = shared_processors + [
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(),
            ]
        else:
            processors = shared_processors + [
                structlog.dev.ConsoleRenderer(),
            ]

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(
                logging.getLevelName(log_level)
            ),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
            cache_logger_on_first_use=True,
        )

class Logger:
    """Wrapper for structured logging with context awareness."""

    def __init__(self, module_name: str):
        self.logger = structlog.get_logger(module_name)
        self.module_name = module_name

    def with_correlation_id(self, correlation_id: str):
        """Bind correlation ID to all subsequent logs."""
        CORRELATION_ID.set(correlation_id)
        return self.logger.bind(correlation_id=correlation_id)

    def log_event(self, event: str, **kwargs):
        """Log structured event with automatic context."""
        corr_id = CORRELATION_ID.get()
        ctx = {'correlation_id': corr_id, 'module': self.module_name}
        ctx.update(kwargs)
        return self.logger.info(event, **ctx)

    def log_warning(self, event: str, **kwargs):
        corr_id = CORRELATION_ID.get()
        ctx = {'correlation_id': corr_id, 'module': self.module_name}
        ctx.update(kwargs)
        return self.logger.warning(event, **ctx)

    def log_error(self, event: str, exc_info=None, **kwargs):
        """Log error with exception details."""
        corr_id = CORRELATION_ID.get()
        ctx = {'correlation_id': corr_id, 'module': self.module_name}
        ctx.update(kwargs)
        return self.logger.error(event, exc_info=exc_info, **ctx)

def initialize_observability(config: Optional[ObservabilityConfig] = None):
    """One-stop initialization for all observability components."""
    global METRICS, CONFIG
    config = config or ObservabilityConfig()
    StructlogConfig.configure(log_format=config.log_format, log_level=config.log_level)
    metrics = MetricsRegistry()

    logger = structlog.get_logger(__name__)
    logger.debug(
        'observability_initialized',
        environment=config.environment,
        log_format=config.log_format,
        metrics_enabled=config.enable_metrics,
    )

    METRICS, CONFIG = metrics, config
    return metrics, config

# Global metrics instance
METRICS = None
CONFIG = None

def get_metrics() -> MetricsRegistry:
    """Lazy-load metrics singleton."""
    global METRICS, CONFIG
    if METRICS is None:
        METRICS, CONFIG = initialize_observability()
    return METRICS

def export_metrics(path: Path) -> Optional[Path]:
    """
    Write the metrics registry in Prometheus text format, for a
    node-exporter textfile collector.

    Returns None without writing when ENABLE_METRICS is off.
    """
    if CONFIG is not None and not CONFIG.enable_metrics:
        return None
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    write_to_textfile(str(path), get_metrics().registry)
    return path
