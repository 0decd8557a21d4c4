# tests/conftest.py
import json
import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from lambdas.dashboard_analyzer.models import Settings

FIXED_NOW = datetime(2024, 6, 17, 0, 0, tzinfo=timezone.utc)

PARAM_ITEMS = {
    "ALB Requests": {
        "awsService": "ALB Requests",
        "namespace": "AWS/ApplicationELB",
        "metricName": "RequestCount",
        "dimensions": json.dumps([{"LoadBalancer": "app/my-alb/0123456789abcdef"}]),
        "dateRange": "3",
        "period": "300",
        "stat": "Sum",
        "unit": "Count",
    },
    "Aurora DML Latency": {
        "awsService": "Aurora DML Latency",
        "namespace": "AWS/RDS",
        "metricName": "DMLLatency",
        "dimensions": json.dumps([{"DBClusterIdentifier": "my-aurora-cluster"}, {"Role": "WRITER"}]),
        "dateRange": "2",
        "period": "60",
        "stat": "Average",
        "unit": "Milliseconds",
    },
}


def make_metric_result(values, start=FIXED_NOW):
    """A MetricDataResult the way boto3 returns it: newest sample first."""
    timestamps = [start - timedelta(minutes=5 * i) for i in range(len(values))]
    return {"Id": "m1", "Label": "m1", "Timestamps": timestamps, "Values": values, "StatusCode": "Complete"}


def error_messages(caplog):
    return [record.getMessage() for record in caplog.records if record.levelno == logging.ERROR]


def make_converse_response(text="異常なし"):
    return {
        "output": {"message": {"role": "assistant", "content": [{"text": text}]}},
        "stopReason": "end_turn",
        "usage": {"inputTokens": 1200, "outputTokens": 42, "totalTokens": 1242},
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        dynamodb_table_name="DashboardAnalyzerParams",
        dynamodb_region="ap-northeast-1",
        bedrock_region="us-east-1",
        bedrock_model_id="anthropic.claude-3-haiku-20240307-v1:0",
        sns_topic_arn="arn:aws:sns:ap-northeast-1:123456789012:dashboard-reports",
        metric_names=("ALB Requests", "Aurora DML Latency"),
    )


@pytest.fixture
def logger():
    return logging.getLogger("dashboard_analyzer.tests")


@pytest.fixture
def fake_clients():
    """
    A stand-in for AwsClients. The DynamoDB table answers from PARAM_ITEMS,
    CloudWatch returns three samples, Bedrock returns a short report.
    """
    clients = MagicMock()

    table = MagicMock()
    table.get_item.side_effect = lambda Key: (
        {"Item": PARAM_ITEMS[Key["awsService"]]} if Key["awsService"] in PARAM_ITEMS else {}
    )
    clients.dynamodb_table.return_value = table

    cloudwatch = MagicMock()
    cloudwatch.get_metric_data.return_value = {"MetricDataResults": [make_metric_result([12.0, 15.5, 9.0])]}
    clients.cloudwatch.return_value = cloudwatch

    bedrock = MagicMock()
    bedrock.converse.return_value = make_converse_response()
    clients.bedrock_runtime.return_value = bedrock

    sns = MagicMock()
    sns.publish.return_value = {"MessageId": "b7c1d0e2-0000-4000-8000-000000000001"}
    clients.sns.return_value = sns

    return clients
