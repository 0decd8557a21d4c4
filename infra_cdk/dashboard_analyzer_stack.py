# infra_cdk/dashboard_analyzer_stack.py
from pathlib import Path
from typing import Optional, Sequence

from aws_cdk import (
    Aspects,
    CfnOutput,
    CfnParameter,
    Duration,
    RemovalPolicy,
    Stack,
    aws_dynamodb as dynamodb,
    aws_events as events,
    aws_events_targets as targets,
    aws_iam as iam,
    aws_lambda as _lambda,
)
from cdk_nag import AwsSolutionsChecks, NagPackSuppression, NagSuppressions
from constructs import Construct

# The asset is the lambdas/ directory so the handler keeps its package name
LAMBDAS_DIR = Path(__file__).resolve().parent.parent / "lambdas"
MAX_METRICS = 5


class DashboardAnalyzerStack(Stack):
    '''
    CDK stack for the Daily Dashboard Analyzer.
    A scheduled Lambda reads per-metric query parameters from DynamoDB, pulls the series from CloudWatch,
    asks a Bedrock model for an anomaly report and publishes it to an SNS topic for AWS Chatbot.
    '''

    def __init__(self, scope: Construct, construct_id: str, *,
                 metric_names: Sequence[str],
                 sns_topic_arn: Optional[str] = None,
                 bedrock_region: Optional[str] = None,
                 schedule: Optional[events.Schedule] = None,
                 **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        if not 1 <= len(metric_names) <= MAX_METRICS:
            raise ValueError(f"metric_names must hold between 1 and {MAX_METRICS} entries")

        # === Parameters for Deployment ===
        model_id_param = CfnParameter(self, "BedrockModelId", type="String",
            default="us.anthropic.claude-3-5-sonnet-20241022-v2:0",
            description="The Bedrock model or inference profile id used to write the report.")

        # === Parameter Table ===
        self.params_table = dynamodb.Table(self, "MetricParamsTable",
            partition_key=dynamodb.Attribute(name="awsService", type=dynamodb.AttributeType.STRING),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            point_in_time_recovery=True,
            removal_policy=RemovalPolicy.DESTROY,
        )

        # === Analyzer Function ===
        environment = {
            "DYNAMODB_TABLE_NAME": self.params_table.table_name,
            "DYNAMODB_REGION": self.region,
            "BEDROCK_REGION": bedrock_region or self.region,
            "BEDROCK_MODEL_ID": model_id_param.value_as_string,
            "SNS_TOPIC_ARN": sns_topic_arn or "none",
            "LOG_LEVEL": "INFO",
        }
        for i, name in enumerate(metric_names, start=1):
            environment[f"METRICS_NAME_{i}"] = name

        self.analyzer_function = _lambda.Function(self, "DashboardAnalyzerFunction",
            runtime=_lambda.Runtime.PYTHON_3_12,
            code=_lambda.Code.from_asset(str(LAMBDAS_DIR), exclude=["**/__pycache__"]),
            handler="dashboard_analyzer.app.handler",
            timeout=Duration.minutes(5),
            memory_size=256,
            environment=environment,
            logging_format=_lambda.LoggingFormat.JSON,
        )

        self.params_table.grant(self.analyzer_function, "dynamodb:GetItem")
        self.analyzer_function.add_to_role_policy(iam.PolicyStatement(
            actions=["cloudwatch:GetMetricData"], resources=["*"]))
        self.analyzer_function.add_to_role_policy(iam.PolicyStatement(
            actions=["bedrock:InvokeModel"], resources=["*"]))
        if sns_topic_arn:
            self.analyzer_function.add_to_role_policy(iam.PolicyStatement(
                actions=["sns:Publish"], resources=[sns_topic_arn]))

        # === Schedule: every day at 09:00 JST ===
        self.schedule_rule = events.Rule(self, "DailyScheduleRule",
            schedule=schedule or events.Schedule.cron(minute="0", hour="0"),
        )
        self.schedule_rule.add_target(targets.LambdaFunction(self.analyzer_function))

        # === Outputs ===
        CfnOutput(self, "ParamsTableName", value=self.params_table.table_name,
            description="Seed this table with cli/seed_metric_params.py.")
        CfnOutput(self, "AnalyzerFunctionName", value=self.analyzer_function.function_name)

        # Add AWS Solutions checks for best practices
        Aspects.of(self).add(AwsSolutionsChecks())
        NagSuppressions.add_stack_suppressions(self, [
            NagPackSuppression(id="AwsSolutions-IAM4",
                reason="AWSLambdaBasicExecutionRole only grants CloudWatch Logs writes."),
            NagPackSuppression(id="AwsSolutions-IAM5",
                reason="GetMetricData and InvokeModel on inference profiles do not support resource-level scoping."),
        ])
