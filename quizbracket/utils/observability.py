# quizbracket/utils/observability.py
import logging
import os
from typing import Optional
import structlog
import contextvars
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry

# Correlation ID tying together all events of one tournament session
CORRELATION_ID = contextvars.ContextVar('correlation_id', default=None)

class ObservabilityConfig:
    """Configuration for observability stack."""

    def __init__(self):
        self.environment = os.getenv('ENVIRONMENT', 'development')
        self.log_level = os.getenv('LOG_LEVEL', 'INFO')
        self.enable_metrics = os.getenv('ENABLE_METRICS', 'true').lower() == 'true'
        self.log_format = 'json' if self.environment == 'production' else 'console'

class MetricsRegistry:
    """Centralized metrics management."""

    def __init__(self):
        self.registry = CollectorRegistry()
        self._init_metrics()

    def _init_metrics(self):
        """Initialize all metrics with proper naming conventions."""

        # HISTOGRAMS
        self.points_per_response = Histogram(
            'points_per_response',
            'Points awarded per recorded response',
            buckets=(0, 50, 100, 150, 200, 300, 400),
            registry=self.registry
        )

        self.match_duration = Histogram(
            'match_duration_seconds',
            'Wall time from first question to match completion',
            labelnames=['round'],
            buckets=(30, 60, 120, 300, 600, 1200),
            registry=self.registry
        )

        # COUNTERS
        self.responses_recorded = Counter(
            'responses_recorded_total',
            'Responses recorded into matches',
            labelnames=['correct'],
            registry=self.registry
        )

        self.responses_rejected = Counter(
            'responses_rejected_total',
            'Responses refused by the progression engine',
            labelnames=['reason'],
            registry=self.registry
        )

        self.question_timeouts = Counter(
            'question_timeouts_total',
            'Questions that expired without an answer',
            registry=self.registry
        )

        self.matches_completed = Counter(
            'matches_completed_total',
            'Completed bracket matches',
            labelnames=['round'],
            registry=self.registry
        )

        self.tie_breaks_applied = Counter(
            'tie_breaks_applied_total',
            'Matches decided by the slot tie-break',
            registry=self.registry
        )

        self.tournaments_completed = Counter(
            'tournaments_completed_total',
            'Tournaments that crowned a champion',
            labelnames=['size'],
            registry=self.registry
        )

        # GAUGES
        self.active_sessions = Gauge(
            'active_tournament_sessions',
            'Tournament sessions still in play',
            registry=self.registry
        )

class StructlogConfig:
    """Structured logging configuration."""

    @staticmethod
    def configure(env: str = 'development', log_level: str = 'INFO'):
        """
        Configure structlog with environment-appropriate settings.

        Production: JSON output (machine-readable)
        Development: Console output (human-readable)
        """

        shared_processors = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
        ]

        if env == 'production':
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
            logger_factory=structlog.PrintLoggerFactory(),
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

def initialize_observability(environment: Optional[str] = None):
    """One-stop initialization for all observability components."""
    config = ObservabilityConfig()
    if environment:
        config.environment = environment
        config.log_format = 'json' if environment == 'production' else 'console'
    StructlogConfig.configure(env=config.environment, log_level=config.log_level)
    metrics = MetricsRegistry()

    logger = structlog.get_logger(__name__)
    logger.info(
        'observability_initialized',
        environment=config.environment,
        log_format=config.log_format,
        metrics_enabled=config.enable_metrics,
    )

    return metrics, config

# Global metrics instance
METRICS = None

def get_metrics() -> MetricsRegistry:
    """Lazy-load metrics singleton."""
    global METRICS
    if METRICS is None:
        METRICS = MetricsRegistry()
    return METRICS
