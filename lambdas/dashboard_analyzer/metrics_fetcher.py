# lambdas/dashboard_analyzer/metrics_fetcher.py
import csv
import io
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from .models import MetricDataError, MetricFetchParams, InvalidMetricParamsError, Settings
from .param_store import get_metric_params

# Reports are read in Japan, so every timestamp is rendered in JST.
JST = timezone(timedelta(hours=9), "Asia/Tokyo")
CSV_HEADER = ("timestamp", "value")
QUERY_ID = "m1"


def compute_time_window(date_range_days: int, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Returns (start, end) where end is now and start is date_range_days before it."""
    end_time = now or datetime.now(timezone.utc)
    start_time = end_time - timedelta(days=date_range_days)
    return start_time, end_time


def build_metric_query(params: MetricFetchParams, start_time: datetime, end_time: datetime) -> Dict[str, Any]:
    """Builds the keyword arguments of a single-query GetMetricData call."""
    metric_stat = {
        "Metric": {
            "Namespace": params.namespace,
            "MetricName": params.metric_name,
            "Dimensions": [{"Name": name, "Value": value} for name, value in params.dimensions],
        },
        "Period": params.period_seconds,
        "Stat": params.stat,
    }
    if params.unit:
        metric_stat["Unit"] = params.unit

    return {
        "StartTime": start_time,
        "EndTime": end_time,
        "MetricDataQueries": [{"Id": QUERY_ID, "MetricStat": metric_stat}],
    }


def format_value(value: float) -> str:
    """Renders a sample the way a person would write it: 3, 12.5, 0.004."""
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return str(value)


def render_csv(result: Dict[str, Any]) -> bytes:
    """
    Serializes one MetricDataResult as a timestamp,value CSV document.
    Samples keep the order CloudWatch returned them in.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for timestamp, value in zip(result.get("Timestamps", []), result.get("Values", [])):
        writer.writerow([timestamp.astimezone(JST).isoformat(timespec="seconds"), format_value(value)])
    return buffer.getvalue().encode("utf-8")


def get_metric_csv(metric_name: str, settings: Settings, clients, logger, now: Optional[datetime] = None) -> bytes:
    """
    Looks up the fetch parameters of a metric, queries CloudWatch for its
    series and returns it as CSV bytes.

    Raises:
        InvalidMetricParamsError: If the parameter item cannot be parsed.
        MetricDataError: If CloudWatch returned no result series.
        ClientError: If DynamoDB or CloudWatch rejected a call.
    """
    logger.info(f"Getting metrics data for '{metric_name}'")

    record = get_metric_params(metric_name, settings, clients, logger)
    try:
        params = MetricFetchParams.from_record(record)
    except InvalidMetricParamsError as e:
        logger.error(f"Invalid parameters for '{metric_name}': {e}")
        raise

    start_time, end_time = compute_time_window(params.date_range_days, now)
    cloudwatch = clients.cloudwatch(settings.cloudwatch_region)

    try:
        response = cloudwatch.get_metric_data(**build_metric_query(params, start_time, end_time))
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error getting metric data: {e}")
        raise

    results = response.get("MetricDataResults", [])
    if not results:
        logger.error(f"CloudWatch returned no series for '{metric_name}'")
        raise MetricDataError(f"no metric data results for {metric_name}")

    csv_data = render_csv(results[0])
    logger.info(f"Fetched {len(results[0].get('Timestamps', []))} samples for '{metric_name}'")
    return csv_data
