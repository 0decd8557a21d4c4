# tests/test_notifier.py
import dataclasses
import json

import pytest
from botocore.exceptions import ClientError

from lambdas.dashboard_analyzer.notifier import build_envelope, is_publishing_disabled, publish_report

from conftest import error_messages


def test_build_envelope():
    assert build_envelope("- ALB: 異常なし") == {
        "version": "1.0",
        "source": "custom",
        "content": {"description": "*Daily Dashboard Analyzer*\n- ALB: 異常なし"},
    }


@pytest.mark.parametrize("topic", ["", "none", "None", "NONE", "nOnE"])
def test_publishing_disabled(topic):
    assert is_publishing_disabled(topic)


def test_publishing_enabled_for_a_topic_arn():
    assert not is_publishing_disabled("arn:aws:sns:ap-northeast-1:123456789012:none-reports")


def test_publish_report_sends_the_envelope_once(settings, logger, fake_clients):
    publish_report(settings, "report body", fake_clients, logger)

    fake_clients.sns.assert_called_once_with("ap-northeast-1")
    sns = fake_clients.sns.return_value
    sns.publish.assert_called_once()

    kwargs = sns.publish.call_args.kwargs
    assert kwargs["TopicArn"] == "arn:aws:sns:ap-northeast-1:123456789012:dashboard-reports"
    message = json.loads(kwargs["Message"])
    assert message["version"] == "1.0"
    assert message["source"] == "custom"
    assert message["content"]["description"] == "*Daily Dashboard Analyzer*\nreport body"


@pytest.mark.parametrize("topic", ["none", "NONE", ""])
def test_publish_report_skips_when_disabled(settings, logger, fake_clients, topic):
    publish_report(dataclasses.replace(settings, sns_topic_arn=topic), "report body", fake_clients, logger)

    fake_clients.sns.assert_not_called()


def test_publish_report_propagates_errors(settings, logger, fake_clients, caplog):
    fake_clients.sns.return_value.publish.side_effect = ClientError(
        {"Error": {"Code": "AuthorizationError", "Message": "not authorized to perform: SNS:Publish"}}, "Publish")

    with pytest.raises(ClientError):
        publish_report(settings, "report body", fake_clients, logger)

    assert len(error_messages(caplog)) == 1
    assert error_messages(caplog)[0].startswith("Error sending message to SNS: ")
    assert "SNS:Publish" in error_messages(caplog)[0]
