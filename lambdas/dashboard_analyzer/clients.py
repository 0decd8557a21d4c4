# lambdas/dashboard_analyzer/clients.py
import boto3


class AwsClients:
    """
    Hands out boto3 clients for the analyzer. Every call builds a new client,
    so nothing is shared between invocations of a warm Lambda container.
    Tests replace this with a MagicMock.
    """

    def dynamodb_table(self, table_name: str, region: str):
        return boto3.resource("dynamodb", region_name=region).Table(table_name)

    def cloudwatch(self, region: str):
        return boto3.client("cloudwatch", region_name=region)

    def bedrock_runtime(self, region: str):
        return boto3.client(service_name="bedrock-runtime", region_name=region)

    def sns(self, region: str):
        return boto3.client("sns", region_name=region)
