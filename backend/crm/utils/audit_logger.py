"""
Audit logging.
Records every write to CRM data with timestamp, actor, action, and resource.
"""
import os
import logging
import structlog
from datetime import datetime, timezone
from flask import request, g, has_request_context, has_app_context
from functools import wraps


def setup_audit_logging(app):
    """Configure structured audit logging."""

    log_file = app.config.get('AUDIT_LOG_FILE') or os.getenv('AUDIT_LOG_FILE', 'logs/audit.log')
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    # Configure structlog for JSON output
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    audit_logger = logging.getLogger('audit')
    audit_logger.setLevel(logging.INFO)
    # Audit events go to the file only, not to the console progress log
    audit_logger.propagate = False

    target = os.path.abspath(log_file)
    for handler in list(audit_logger.handlers):
        if isinstance(handler, logging.FileHandler) and handler.baseFilename != target:
            audit_logger.removeHandler(handler)
            handler.close()
    if not audit_logger.handlers:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        audit_logger.addHandler(file_handler)

    app.config['AUDIT_LOGGER'] = structlog.get_logger('audit')


def get_audit_logger():
    """Get the audit logger instance."""
    if has_app_context():
        from flask import current_app
        return current_app.config.get('AUDIT_LOGGER', structlog.get_logger('audit'))
    return structlog.get_logger('audit')


def audit_log(action: str, resource_type: str, resource_id: str = None,
              details: dict = None, user_id: str = None):
    """
    Log an audit event.

    Args:
        action: The action performed (CREATE, UPDATE, DELETE, LINK, etc.)
        resource_type: Type of resource touched (person, unit, application, ...)
        resource_id: ID of the specific resource (optional)
        details: Additional details about the action (optional)
        user_id: Actor performing the action. Defaults to g.user_id inside a
            request and to 'system' elsewhere (CLI migrations).
    """
    logger = get_audit_logger()

    if user_id is None:
        user_id = getattr(g, 'user_id', 'anonymous') if has_request_context() else 'system'

    if has_request_context():
        client_ip = request.remote_addr or 'unknown'
        user_agent = request.headers.get('User-Agent', 'unknown')
    else:
        client_ip = 'local'
        user_agent = 'cli'

    log_entry = {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'action': action,
        'resource_type': resource_type,
        'resource_id': resource_id,
        'user_id': user_id,
        'client_ip': client_ip,
        'user_agent': user_agent,
        'details': details or {}
    }

    logger.info("audit_event", **log_entry)


def audited(action: str, resource_type: str):
    """
    Decorator that logs an audit event for a route once it returns.
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            response = f(*args, **kwargs)
            resource_id = kwargs.get('id')
            audit_log(action, resource_type, resource_id=str(resource_id) if resource_id else None)
            return response
        return wrapper
    return decorator
