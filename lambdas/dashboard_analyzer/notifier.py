# lambdas/dashboard_analyzer/notifier.py
import json

from botocore.exceptions import BotoCoreError, ClientError

from .models import Settings

# AWS Chatbot custom notification schema
ENVELOPE_VERSION = "1.0"
ENVELOPE_SOURCE = "custom"
REPORT_TITLE = "*Daily Dashboard Analyzer*\n"
DISABLED_TOPIC = "none"


def is_publishing_disabled(topic_arn: str) -> bool:
    return not topic_arn or topic_arn.lower() == DISABLED_TOPIC


def build_envelope(report: str) -> dict:
    """Wraps the report in the custom notification format AWS Chatbot posts to Slack."""
    return {
        "version": ENVELOPE_VERSION,
        "source": ENVELOPE_SOURCE,
        "content": {"description": REPORT_TITLE + report},
    }


def publish_report(settings: Settings, report: str, clients, logger) -> None:
    """
    Publishes the report to the configured SNS topic, once.
    Does nothing when the topic is empty or "none".
    """
    logger.info("Sending report to SNS topic")
    if is_publishing_disabled(settings.sns_topic_arn):
        logger.info("No SNS mode. Skipping.")
        return

    message = json.dumps(build_envelope(report), ensure_ascii=False)
    sns = clients.sns(settings.sns_region)
    try:
        response = sns.publish(TopicArn=settings.sns_topic_arn, Message=message)
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error sending message to SNS: {e}")
        raise

    logger.info(f"✅ Report published. MessageId: {response.get('MessageId')}")
