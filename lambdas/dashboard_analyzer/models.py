# lambdas/dashboard_analyzer/models.py
"""
Plain-dataclass models, the settings loader and the error types for the
Dashboard Analyzer.
"""
import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

REQUIRED_ENV_VARS = (
    "DYNAMODB_TABLE_NAME",
    "DYNAMODB_REGION",
    "BEDROCK_REGION",
    "BEDROCK_MODEL_ID",
    "SNS_TOPIC_ARN",
)
# SNS_TOPIC_ARN may be empty, it switches publishing off.
NON_EMPTY_ENV_VARS = REQUIRED_ENV_VARS[:4]

METRICS_NAME_PREFIX = "METRICS_NAME_"
MAX_METRICS = 5


class DashboardAnalyzerError(Exception):
    """Base class for every error raised by the analyzer."""


class ConfigurationError(DashboardAnalyzerError, ValueError):
    """Missing or invalid environment configuration."""


class InvalidMetricParamsError(DashboardAnalyzerError, ValueError):
    """A parameter record from DynamoDB could not be parsed."""


class MetricDataError(DashboardAnalyzerError):
    """CloudWatch answered, but without a usable series."""


@dataclass(frozen=True)
class Settings:
    """
    Configuration for a single invocation. Built once by load_settings()
    and never mutated afterwards.
    """
    dynamodb_table_name: str
    dynamodb_region: str
    bedrock_region: str
    bedrock_model_id: str
    sns_topic_arn: str
    metric_names: Tuple[str, ...]
    cloudwatch_region: str = ""
    sns_region: str = ""
    log_level: str = "INFO"

    def __post_init__(self):
        # CloudWatch and SNS live next to the parameter table unless overridden.
        if not self.cloudwatch_region:
            object.__setattr__(self, "cloudwatch_region", self.dynamodb_region)
        if not self.sns_region:
            object.__setattr__(self, "sns_region", self.dynamodb_region)


def _collect_metric_names(environ: Mapping[str, str]) -> Tuple[str, ...]:
    names = []
    for key, value in environ.items():
        if not key.startswith(METRICS_NAME_PREFIX):
            continue
        if not value:
            raise ConfigurationError(f"missing required environment variable {key}")
        names.append(value)

    if not names or len(names) > MAX_METRICS:
        raise ConfigurationError(f"the count of metric names must be between 1 and {MAX_METRICS}")
    return tuple(names)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Reads the analyzer configuration from the environment.

    Metric identifiers are every METRICS_NAME_* variable, in the order the
    environment enumerates them.

    Raises:
        ConfigurationError: If a required variable is missing or empty, or
            the number of metric identifiers is not between 1 and 5.
    """
    if environ is None:
        environ = os.environ

    values = {}
    for name in REQUIRED_ENV_VARS:
        if name not in environ:
            raise ConfigurationError(f"missing required environment variable {name}")
        values[name] = environ[name]

    for name in NON_EMPTY_ENV_VARS:
        if not values[name]:
            raise ConfigurationError(f"environment variable {name} must not be empty")

    log_level = environ.get("LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationError(f"unknown LOG_LEVEL {log_level!r}")

    return Settings(
        dynamodb_table_name=values["DYNAMODB_TABLE_NAME"],
        dynamodb_region=values["DYNAMODB_REGION"],
        bedrock_region=values["BEDROCK_REGION"],
        bedrock_model_id=values["BEDROCK_MODEL_ID"],
        sns_topic_arn=values["SNS_TOPIC_ARN"],
        metric_names=_collect_metric_names(environ),
        cloudwatch_region=environ.get("CLOUDWATCH_REGION", ""),
        sns_region=environ.get("SNS_REGION", ""),
        log_level=log_level,
    )


def parse_dimensions(raw: str) -> Tuple[Tuple[str, str], ...]:
    """
    Decodes the dimension set stored as a JSON list of single-key objects,
    e.g. '[{"LoadBalancer": "app/my-alb/123"}]'.
    """
    try:
        decoded = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise InvalidMetricParamsError(f"dimensions is not valid JSON: {e}") from e

    if not isinstance(decoded, list):
        raise InvalidMetricParamsError("dimensions must be a JSON list")

    pairs = []
    for entry in decoded:
        if not isinstance(entry, dict):
            raise InvalidMetricParamsError(f"dimension entry must be an object, got {entry!r}")
        for name, value in entry.items():
            if not isinstance(value, str):
                raise InvalidMetricParamsError(f"dimension {name!r} must have a string value")
            pairs.append((name, value))
    return tuple(pairs)


def _positive_int(record: Mapping[str, str], key: str) -> int:
    raw = record.get(key, "")
    # Plain ASCII digits only: no sign, whitespace or underscores.
    if not (raw.isascii() and raw.isdigit()):
        raise InvalidMetricParamsError(f"{key} must be an integer, got {raw!r}")
    number = int(raw)
    if number <= 0:
        raise InvalidMetricParamsError(f"{key} must be positive, got {number}")
    return number


@dataclass(frozen=True)
class MetricFetchParams:
    """What is needed to query one metric's time series from CloudWatch."""
    namespace: str
    metric_name: str
    dimensions: Tuple[Tuple[str, str], ...]
    date_range_days: int
    period_seconds: int
    stat: str
    unit: str

    @classmethod
    def from_record(cls, record: Dict[str, str]) -> "MetricFetchParams":
        """Builds the params from the raw string attributes of a parameter item."""
        return cls(
            namespace=record.get("namespace", ""),
            metric_name=record.get("metricName", ""),
            dimensions=parse_dimensions(record.get("dimensions", "")),
            date_range_days=_positive_int(record, "dateRange"),
            period_seconds=_positive_int(record, "period"),
            stat=record.get("stat", ""),
            unit=record.get("unit", ""),
        )
