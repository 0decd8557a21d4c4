# lambdas/dashboard_analyzer/report_generator.py
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from .metrics_fetcher import get_metric_csv
from .models import Settings

PROMPT_PATH = Path(__file__).parent / "analysis_prompt.txt"

# Inference parameters, see
# https://docs.aws.amazon.com/bedrock/latest/userguide/model-parameters.html
INFERENCE_CONFIG = {
    "maxTokens": 4000,
    "temperature": 0.1,
    "stopSequences": ["\n\nHuman:"],
}


def load_system_prompt(path: Path = PROMPT_PATH) -> str:
    return path.read_text(encoding="utf-8")


def build_user_message(metric_names: Sequence[str], documents: Sequence[bytes]) -> Dict[str, Any]:
    """
    Builds the single user turn: a short label for each metric followed by
    its CSV attached as a document block, in the configured order.
    """
    content = []
    for name, document in zip(metric_names, documents):
        content.append({"text": f"This document contains {name}"})
        content.append({
            "document": {
                "format": "csv",
                "name": name,
                "source": {"bytes": document},
            }
        })
    return {"role": "user", "content": content}


def extract_text(response: Dict[str, Any]) -> Optional[str]:
    """
    Returns the first text block of a Converse response, or None when the
    output is not a message carrying text.
    """
    message = response.get("output", {}).get("message")
    if not isinstance(message, dict):
        return None
    for block in message.get("content", []):
        if isinstance(block, dict) and "text" in block:
            return block["text"]
    return None


class ReportGenerator:
    """
    Uses the Bedrock Converse API to turn the configured metrics into an
    anomaly report. One model call per invocation, whatever the metric count.
    """

    def __init__(self, settings: Settings, clients, logger, system_prompt: Optional[str] = None):
        self.settings = settings
        self.clients = clients
        self.logger = logger
        self.system_prompt = system_prompt if system_prompt is not None else load_system_prompt()

    def collect_documents(self, now: Optional[datetime] = None) -> List[bytes]:
        """Fetches the CSV of every metric, one after another."""
        return [
            get_metric_csv(name, self.settings, self.clients, self.logger, now=now)
            for name in self.settings.metric_names
        ]

    def generate(self, now: Optional[datetime] = None) -> str:
        """
        Fetches all metrics and asks the model for a report.

        Returns:
            The report text. An empty string if Bedrock answered with an
            output shape that carries no text.
        """
        documents = self.collect_documents(now=now)

        self.logger.info(f"Conversing with model {self.settings.bedrock_model_id}...")
        bedrock_runtime = self.clients.bedrock_runtime(self.settings.bedrock_region)
        try:
            response = bedrock_runtime.converse(
                modelId=self.settings.bedrock_model_id,
                messages=[build_user_message(self.settings.metric_names, documents)],
                system=[{"text": self.system_prompt}],
                inferenceConfig=INFERENCE_CONFIG,
            )
        except (ClientError, BotoCoreError) as e:
            self.logger.error(f"Failed to invoke model: {e}")
            raise

        report = extract_text(response)
        if report is None:
            # Still published as an empty report, see DESIGN.md.
            self.logger.error(f"Unrecognized Converse output, stop reason: {response.get('stopReason')}")
            return ""

        usage = response.get("usage", {})
        self.logger.info(f"Model replied with {usage.get('outputTokens', '?')} output tokens")
        return report
