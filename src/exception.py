"""Alert Pipeline Exception Definitions"""


class HeraldError(Exception):
    """Base exception for the Herald system"""

    pass


class NotFoundError(HeraldError):
    """Base class for lookups of a record that does not exist"""

    def __init__(self, message: str, record_id: str | None = None):
        super().__init__(message)
        self.record_id = record_id


class AlertNotFoundError(NotFoundError):
    """Alert not found"""

    pass


class RuleNotFoundError(NotFoundError):
    """Alert rule not found"""

    pass


class InputValidationError(HeraldError, ValueError):
    """Malformed rule/alert fields or an illegal status transition"""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class CollaboratorError(HeraldError):
    """Store or mail transport call failed"""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class CollaboratorTimeoutError(CollaboratorError):
    """Store or mail transport call exceeded its time budget"""

    pass


class ConfigurationError(HeraldError):
    """Invalid configuration file or environment"""

    pass
