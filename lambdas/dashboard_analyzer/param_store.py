# lambdas/dashboard_analyzer/param_store.py
from typing import Dict

from botocore.exceptions import BotoCoreError, ClientError

from .models import Settings

PARTITION_KEY = "awsService"


def get_metric_params(metric_name: str, settings: Settings, clients, logger) -> Dict[str, str]:
    """
    Fetches the parameter item for one metric from DynamoDB.

    Args:
        metric_name: The metric identifier, used as the partition key.

    Returns:
        The item's string attributes. Numbers, sets, maps and the other
        DynamoDB types are left out. A missing item gives an empty dict.
    """
    logger.info(f"Getting parameters for '{metric_name}' from DynamoDB table {settings.dynamodb_table_name}")
    table = clients.dynamodb_table(settings.dynamodb_table_name, settings.dynamodb_region)

    try:
        response = table.get_item(Key={PARTITION_KEY: metric_name})
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error getting item from DynamoDB: {e}")
        raise

    item = response.get("Item", {})
    if not item:
        logger.warning(f"No parameter item found for '{metric_name}'")
    return {key: value for key, value in item.items() if isinstance(value, str)}
