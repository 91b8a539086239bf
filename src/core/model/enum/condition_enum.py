import re
from enum import StrEnum


class ConditionOperator(StrEnum):
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    EQUAL = "equal"
    NOT_EQUAL = "not_equal"

    @classmethod
    def parse(cls, raw: str | None) -> "ConditionOperator | None":
        """
        Resolve a condition spelling to an operator.

        Accepts the word form ("greater than", "greater-than-or-equal-to", "GREATER_THAN")
        and the symbol form (">", ">=", "<", "<=", "==", "!=").
        Returns None for anything else.
        """
        if raw is None:
            return None

        text = raw.strip()
        if text in _SYMBOLS:
            return _SYMBOLS[text]

        normalized = re.sub(r"[\s\-]+", "_", text.lower())
        if normalized.endswith("_to"):
            normalized = normalized[: -len("_to")]

        try:
            return cls(normalized)
        except ValueError:
            return None

    @property
    def symbol(self) -> str:
        return _SYMBOL_BY_OPERATOR[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_SYMBOLS: dict[str, ConditionOperator] = {
    ">": ConditionOperator.GREATER_THAN,
    ">=": ConditionOperator.GREATER_THAN_OR_EQUAL,
    "<": ConditionOperator.LESS_THAN,
    "<=": ConditionOperator.LESS_THAN_OR_EQUAL,
    "==": ConditionOperator.EQUAL,
    "!=": ConditionOperator.NOT_EQUAL,
}

_SYMBOL_BY_OPERATOR: dict[ConditionOperator, str] = {op: sym for sym, op in _SYMBOLS.items()}

_DESCRIPTIONS: dict[ConditionOperator, str] = {
    ConditionOperator.GREATER_THAN: "exceeded",
    ConditionOperator.GREATER_THAN_OR_EQUAL: "met or exceeded",
    ConditionOperator.LESS_THAN: "fallen below",
    ConditionOperator.LESS_THAN_OR_EQUAL: "fallen to or below",
    ConditionOperator.EQUAL: "reached exactly",
    ConditionOperator.NOT_EQUAL: "deviated from",
}


class MetricName(StrEnum):
    ERROR_RATE = "error_rate"
    ERROR_COUNT = "error_count"
    LOG_COUNT = "log_count"
    AVG_RESPONSE_TIME = "avg_response_time"
    MAX_RESPONSE_TIME = "max_response_time"
    RATE_4XX = "4xx_rate"
    RATE_5XX = "5xx_rate"
    UNIQUE_ERRORS = "unique_errors"


class MetricFamily(StrEnum):
    """Metric family drives the severity ladder of a fired alert."""

    ERROR = "error"
    RESPONSE_TIME = "response_time"
    CLIENT_ERROR = "4xx"
    DEFAULT = "default"

    @classmethod
    def of(cls, metric: str) -> "MetricFamily":
        name = metric.lower()
        if "error" in name or "5xx" in name:
            return cls.ERROR
        if "response_time" in name:
            return cls.RESPONSE_TIME
        if "4xx" in name:
            return cls.CLIENT_ERROR
        return cls.DEFAULT
