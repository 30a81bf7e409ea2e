#!/usr/bin/env python3
"""
FirmSync
Document type detection and agent workflow assignment service
"""

from firmsync.application import create_app
from firmsync.monitoring import get_logger

app = create_app()
logger = get_logger('firmsync')


if __name__ == '__main__':
    services = app.extensions['firmsync']
    config = services.config

    app.extensions['firmsync_config_manager'].print_config_summary()

    logger.info("Starting FirmSync application",
                host=config.host,
                port=config.port,
                catalog_path=config.catalog_path,
                vertical=config.vertical,
                document_types=len(services.catalog),
                debug_mode=config.debug)

    print("Starting FirmSync...")
    print(f"Document types: {len(services.catalog)}")
    print(f"Assignments: {config.assignments_path}")
    print(f"Sample documents: {config.documents_dir}")
    print(f"Health Check: /api/monitoring/health")

    try:
        app.run(debug=config.debug, host=config.host, port=config.port)
    except Exception as e:
        logger.critical("Application startup failed", exception=e)
        services.error_reporter.report_error("application_startup_error", str(e), {
            'config': config.to_dict()
        })
        raise
