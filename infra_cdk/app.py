# infra_cdk/app.py
#
#   cdk deploy --app "python -m infra_cdk.app" \
#       -c metricNames="ALB Requests,ALB Target Response Time" -c snsTopicArn=arn:aws:sns:...
import aws_cdk as cdk

from infra_cdk.dashboard_analyzer_stack import DashboardAnalyzerStack

app = cdk.App()

metric_names = [name.strip() for name in (app.node.try_get_context("metricNames") or "").split(",") if name.strip()]

DashboardAnalyzerStack(app, "DashboardAnalyzerStack",
    metric_names=metric_names,
    sns_topic_arn=app.node.try_get_context("snsTopicArn"),
    bedrock_region=app.node.try_get_context("bedrockRegion"),
)

app.synth()
