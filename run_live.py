# dashboard-analyzer/run_live.py
import logging
import sys

from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

from lambdas.dashboard_analyzer.app import handler
from lambdas.dashboard_analyzer.models import DashboardAnalyzerError


def run_live() -> int:
    """Executes the dashboard_analyzer Lambda handler using your live AWS credentials."""
    print("--- Starting LIVE Run of dashboard_analyzer Lambda ---")

    # Settings come from the environment, so fill it from .env first
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    try:
        print("\n--- Invoking Lambda handler (this will call CloudWatch, Bedrock and SNS) ---")
        # The scheduled event payload is never read, an empty one will do.
        report = handler({}, None)
        print("--- Lambda handler execution finished ---")
    except (DashboardAnalyzerError, ClientError, BotoCoreError) as e:
        print(f"\n❌ The run failed: {e}")
        return 1

    print("\n--- Report: ---")
    print(report or "(empty report)")
    return 0


if __name__ == "__main__":
    sys.exit(run_live())
