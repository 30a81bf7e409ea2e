"""
FirmSync application factory
Wires configuration, services and blueprints into a Flask app
"""

from dataclasses import dataclass
from typing import Optional

from flask import Flask

from .api import agent_assignments_bp, agents_bp, document_types_bp, monitoring_bp
from .assignments import AssignmentStorage, JsonFileStorage
from .assignments.store import AssignmentStore
from .classification import Catalog, load_catalog, load_vertical_catalog
from .config import ConfigManager, FirmSyncConfig
from .error_handlers import register_error_handlers
from .middleware import PerformanceMonitor, RateLimiter, register_middleware
from .monitoring import ErrorReporter, get_logger
from .services import (
    AgentExecutor,
    DocumentRepository,
    LLMClient,
    LocalAgentExecutor,
    NotificationService,
    SMTPSettings,
    WorkflowEngine,
)
from .utils import RetryOptions

logger = get_logger('firmsync')


@dataclass
class ServiceContainer:
    """Per-app service instances, reachable as ``app.extensions['firmsync']``"""
    config: FirmSyncConfig
    catalog: Catalog
    storage: AssignmentStorage
    store: AssignmentStore
    engine: WorkflowEngine
    notifications: NotificationService
    documents: DocumentRepository
    error_reporter: ErrorReporter
    performance_monitor: PerformanceMonitor
    rate_limiter: RateLimiter


def load_configured_catalog(config: FirmSyncConfig) -> Catalog:
    if config.vertical:
        return load_vertical_catalog(config.vertical, config.verticals_dir, config.catalog_path)
    return load_catalog(config.catalog_path)


def build_services(config: FirmSyncConfig,
                   storage: Optional[AssignmentStorage] = None,
                   executor: Optional[AgentExecutor] = None) -> ServiceContainer:
    """
    Create every service the API needs

    Args:
        config: Active configuration
        storage: Persistence backend, defaults to the JSON file under ``data_dir``
        executor: Agent executor, defaults to LocalAgentExecutor
    """
    catalog = load_configured_catalog(config)

    notifications = NotificationService(SMTPSettings(
        host=config.smtp_host,
        port=config.smtp_port,
        sender=config.smtp_sender,
        recipients=config.notification_emails
    ))

    if executor is None:
        llm_client = LLMClient(
            config.llm_url,
            model=config.llm_model,
            timeout=config.ai_timeout,
            retry_options=RetryOptions(
                max_attempts=config.retry_max_attempts,
                initial_delay=config.retry_initial_delay_ms,
                max_delay=config.retry_max_delay_ms,
                factor=config.retry_factor
            )
        )
        executor = LocalAgentExecutor(catalog, notifications, llm_client)

    engine = WorkflowEngine(
        executor,
        notifications,
        default_retries=config.default_step_retries,
        default_timeout_ms=config.default_step_timeout_ms,
        fallback_timeout_ms=config.fallback_timeout_ms
    )

    storage = storage or JsonFileStorage(config.assignments_path)
    documents = DocumentRepository(config.documents_dir, max_pages=config.max_pages_extract)
    store = AssignmentStore(storage, engine, documents, catalog=catalog)

    return ServiceContainer(
        config=config,
        catalog=catalog,
        storage=storage,
        store=store,
        engine=engine,
        notifications=notifications,
        documents=documents,
        error_reporter=ErrorReporter(),
        performance_monitor=PerformanceMonitor(),
        rate_limiter=RateLimiter(config.rate_limit_per_minute, config.rate_limit_burst)
    )


def create_app(config: Optional[FirmSyncConfig] = None,
               storage: Optional[AssignmentStorage] = None,
               executor: Optional[AgentExecutor] = None) -> Flask:
    """Build the FirmSync Flask application"""
    config_manager = ConfigManager(config)
    config = config_manager.config

    app = Flask(__name__)
    config_manager.initialize_app(app)

    services = build_services(config, storage=storage, executor=executor)
    app.extensions['firmsync'] = services
    app.extensions['firmsync_config_manager'] = config_manager

    # Only reconcile against a catalog that actually loaded
    if services.catalog:
        removed = services.store.reconcile(services.catalog)
        if removed:
            logger.warning("Assignments removed for unknown document types",
                           document_type_ids=removed)

    register_error_handlers(app)
    register_middleware(app, services.rate_limiter, services.performance_monitor)

    app.register_blueprint(agent_assignments_bp)
    app.register_blueprint(agents_bp)
    app.register_blueprint(document_types_bp)
    app.register_blueprint(monitoring_bp)

    logger.info("FirmSync application created",
                catalog_types=len(services.catalog),
                vertical=config.vertical,
                assignments_path=str(config.assignments_path))
    return app
