# lambdas/dashboard_analyzer/app.py
import logging
from typing import Any, Optional

from .clients import AwsClients
from .models import ConfigurationError, Settings, load_settings
from .notifier import publish_report
from .report_generator import ReportGenerator

LOGGER_NAME = "dashboard_analyzer"


def get_logger(context: Optional[object] = None) -> logging.LoggerAdapter:
    """Returns a logger scoped to one invocation, tagged with the Lambda request id."""
    request_id = getattr(context, "aws_request_id", "local")
    return logging.LoggerAdapter(logging.getLogger(LOGGER_NAME), {"aws_request_id": request_id})


def run(settings: Settings, clients, logger) -> str:
    """Fetches the metrics, generates the report and publishes it."""
    report = ReportGenerator(settings, clients, logger).generate()
    publish_report(settings, report, clients, logger)
    return report


def handler(event: Any, context: object, clients=None) -> str:
    """
    Main Lambda handler, triggered by an EventBridge schedule. The event
    payload is not used; everything comes from the environment.
    """
    logger = get_logger(context)
    logger.info("Initializing Function...")

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(f"FATAL: {e}")
        raise

    logging.getLogger(LOGGER_NAME).setLevel(settings.log_level)
    logger.info(f"Analyzing {len(settings.metric_names)} metrics: {', '.join(settings.metric_names)}")

    report = run(settings, clients or AwsClients(), logger)

    logger.info(report)
    logger.info("Function Completed Successfully")
    return report
