"""
API Enum Definitions
"""

from enum import StrEnum


class ResponseStatus(StrEnum):
    """API response status"""

    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"
    ERROR = "error"


class AlertAction(StrEnum):
    """Status transition requested through PUT /api/alerts/{id}"""

    ACKNOWLEDGE = "acknowledge"
    RESOLVE = "resolve"
