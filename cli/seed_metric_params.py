# cli/seed_metric_params.py
"""
Loads metric parameter records from a YAML file into the DynamoDB table the
Dashboard Analyzer reads its CloudWatch queries from.

    python -m cli.seed_metric_params metric_params.yml --table DashboardAnalyzerParams
"""
import argparse
import json
import os
import sys

import boto3
import yaml
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

from lambdas.dashboard_analyzer.models import InvalidMetricParamsError, MetricFetchParams
from lambdas.dashboard_analyzer.param_store import PARTITION_KEY


def to_item(metric_name: str, entry: dict) -> dict:
    """
    Converts one YAML entry into a DynamoDB item. Every attribute is stored
    as a string, the dimension list as JSON, since the analyzer only reads
    string attributes.
    """
    dimensions = entry.get("dimensions", [])
    item = {
        PARTITION_KEY: metric_name,
        "namespace": str(entry.get("namespace", "")),
        "metricName": str(entry.get("metricName", "")),
        "dimensions": dimensions if isinstance(dimensions, str) else json.dumps(dimensions),
        "dateRange": str(entry.get("dateRange", "")),
        "period": str(entry.get("period", "")),
        "stat": str(entry.get("stat", "")),
        "unit": str(entry.get("unit", "")),
    }
    # Fail here rather than at 9am in the Lambda.
    MetricFetchParams.from_record(item)
    return item


def load_items(path: str) -> list[dict]:
    with open(path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    metrics = config.get("metrics", {})
    if not isinstance(metrics, dict) or not metrics:
        raise InvalidMetricParamsError(f"'{path}' must contain a non-empty 'metrics' mapping")
    return [to_item(name, entry or {}) for name, entry in metrics.items()]


def write_items(table, items: list[dict]) -> None:
    with table.batch_writer() as batch:
        for item in items:
            batch.put_item(Item=item)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the Dashboard Analyzer parameter table.")
    parser.add_argument("file", help="YAML file with a 'metrics' mapping")
    parser.add_argument("--table", default=os.environ.get("DYNAMODB_TABLE_NAME"),
                        help="DynamoDB table name (default: $DYNAMODB_TABLE_NAME)")
    parser.add_argument("--region", default=os.environ.get("DYNAMODB_REGION"),
                        help="DynamoDB region (default: $DYNAMODB_REGION)")
    parser.add_argument("--dry-run", action="store_true", help="Validate the file without writing")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        items = load_items(args.file)
    except (OSError, yaml.YAMLError, InvalidMetricParamsError) as e:
        print(f"❌ ERROR: {e}")
        return 1

    for item in items:
        print(f" -> {item[PARTITION_KEY]}: {item['namespace']}/{item['metricName']} ({item['stat']}, {item['period']}s)")

    if args.dry_run:
        print(f"✅ {len(items)} record(s) are valid. Nothing written (dry run).")
        return 0

    if not args.table:
        print("❌ ERROR: no table given. Use --table or set DYNAMODB_TABLE_NAME.")
        return 1

    try:
        table = boto3.resource("dynamodb", region_name=args.region).Table(args.table)
        write_items(table, items)
    except (ClientError, BotoCoreError) as e:
        print(f"❌ Failed to write to '{args.table}': {e}")
        return 1

    print(f"✅ Wrote {len(items)} record(s) to '{args.table}'.")
    return 0


if __name__ == "__main__":
    # Pick up DYNAMODB_TABLE_NAME / DYNAMODB_REGION from a local .env file
    load_dotenv()
    sys.exit(main())
