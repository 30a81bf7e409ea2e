"""
Monitoring API Blueprint
Health, request performance and error statistics
"""

import os
import shutil
import time
from datetime import datetime

import psutil
from flask import Blueprint, jsonify, request

from .. import __version__
from ..monitoring import get_logger
from .common import get_services

monitoring_bp = Blueprint('monitoring', __name__, url_prefix='/api/monitoring')

logger = get_logger('monitoring_api')

_started_at = time.time()


def get_system_stats(data_dir) -> dict:
    """Get real system metrics"""
    stats = {
        'cpu_percent': 0,
        'memory_percent': 0,
        'disk_usage': 0
    }

    try:
        stats['cpu_percent'] = round(psutil.cpu_percent(interval=0.1), 1)
        stats['memory_percent'] = round(psutil.virtual_memory().percent, 1)

        total, used, _free = shutil.disk_usage(data_dir)
        stats['disk_usage'] = round((used / total) * 100, 1)
    except (OSError, psutil.Error) as e:
        logger.error("Error getting system stats", exception=e)

    return stats


@monitoring_bp.route('/health')
def health():
    services = get_services()
    config = services.config

    checks = {
        'catalog_loaded': len(services.catalog) > 0,
        'documents_dir_exists': services.documents.documents_dir.exists(),
        'storage_writable': _storage_writable(config.assignments_path)
    }
    status = 'healthy' if all(checks.values()) else 'degraded'

    return jsonify({
        'status': status,
        'version': __version__,
        'timestamp': datetime.now().isoformat(),
        'uptime_seconds': round(time.time() - _started_at, 1),
        'checks': checks,
        'system': get_system_stats(config.data_dir)
    })


def _storage_writable(path) -> bool:
    target = path if path.exists() else path.parent
    return target.exists() and os.access(target, os.W_OK)


@monitoring_bp.route('/performance')
def performance():
    return jsonify(get_services().performance_monitor.get_performance_stats())


@monitoring_bp.route('/errors')
def errors():
    hours = request.args.get('hours', 24, type=int)
    return jsonify(get_services().error_reporter.get_error_statistics(hours))
