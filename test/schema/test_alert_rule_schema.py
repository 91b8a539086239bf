import pytest
from pydantic import ValidationError

from core.model.enum.alert_enum import NotificationChannel
from core.model.enum.condition_enum import ConditionOperator, MetricFamily
from core.schema.alert_rule_schema import AlertRuleInput, AlertRuleModel, extract_emails
from core.schema.log_event_schema import LogEvent


class TestConditionOperator:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (">", ConditionOperator.GREATER_THAN),
            (" <= ", ConditionOperator.LESS_THAN_OR_EQUAL),
            ("!=", ConditionOperator.NOT_EQUAL),
            ("greater than", ConditionOperator.GREATER_THAN),
            ("GREATER_THAN", ConditionOperator.GREATER_THAN),
            ("Greater-Than-Or-Equal-To", ConditionOperator.GREATER_THAN_OR_EQUAL),
            ("less than or equal to", ConditionOperator.LESS_THAN_OR_EQUAL),
            ("equal", ConditionOperator.EQUAL),
            ("not equal to", ConditionOperator.NOT_EQUAL),
            ("equals", None),
            ("=>", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse(self, raw, expected):
        assert ConditionOperator.parse(raw) == expected

    def test_symbol(self):
        assert ConditionOperator.GREATER_THAN_OR_EQUAL.symbol == ">="


class TestMetricFamily:
    @pytest.mark.parametrize(
        "metric, family",
        [
            ("error_rate", MetricFamily.ERROR),
            ("unique_errors", MetricFamily.ERROR),
            ("5xx_rate", MetricFamily.ERROR),
            ("avg_response_time", MetricFamily.RESPONSE_TIME),
            ("4xx_rate", MetricFamily.CLIENT_ERROR),
            ("log_count", MetricFamily.DEFAULT),
        ],
    )
    def test_of(self, metric, family):
        assert MetricFamily.of(metric) == family


class TestAlertRuleInput:
    def test_normalizes(self):
        rule = AlertRuleInput(
            name=" High error rate ", metric="ERROR_RATE", condition=">", threshold=5, channel=" EMAIL "
        )

        assert rule.name == "High error rate"
        assert rule.metric == "error_rate"
        assert rule.threshold == "5"
        assert rule.channel == NotificationChannel.EMAIL

    @pytest.mark.parametrize(
        "override",
        [{"name": ""}, {"metric": "  "}, {"condition": "about"}, {"threshold": ""}, {"channel": "pigeon"}],
    )
    def test_rejects(self, override):
        fields = {"name": "r", "metric": "error_rate", "condition": ">", "threshold": "5"}
        fields.update(override)

        with pytest.raises(ValidationError):
            AlertRuleInput(**fields)


class TestAlertRuleModel:
    def test_stored_rule_is_lenient(self):
        rule = AlertRuleModel(
            id="rule_1", name="legacy", metric="error_rate", condition="roughly", threshold="lots", channel="fax"
        )

        assert rule.condition == "roughly"
        assert rule.sends_email is False

    def test_recipients_from_free_text(self):
        rule = AlertRuleModel(
            id="rule_1",
            name="r",
            metric="error_rate",
            condition=">",
            threshold="5",
            notify="Email ops@example.com and dev@example.org",
        )

        assert rule.recipients == ["ops@example.com", "dev@example.org"]

    def test_extract_emails_handles_empty(self):
        assert extract_emails(None) == []
        assert extract_emails("nobody here") == []


class TestLogEvent:
    def test_normalizes_timestamp_and_level(self):
        event = LogEvent.model_validate(
            {
                "id": 7,
                "timestamp": "2025-01-25T10:30:00+00:00",
                "level": "ERROR",
                "details": {"statusCode": 503, "duration": 1200, "userAgent": "curl"},
            }
        )

        assert event.timestamp == "2025-01-25T10:30:00.000Z"
        assert event.level == "error"
        assert event.status_code == 503
        assert event.duration == 1200
        assert event.details.user_agent == "curl"
