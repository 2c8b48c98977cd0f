"""Error taxonomy shared by services and routers.

Each error carries the HTTP status it maps to; ``survey_api.main`` renders
them as ``{"success": false, "message": ...}`` and the decision link renders
them as plain text.
"""

from __future__ import annotations

import math


class SurveyAPIError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(SurveyAPIError):
    status_code = 400


class Forbidden(SurveyAPIError):
    status_code = 403

    def __init__(self, message: str = "Access restricted"):
        super().__init__(message)


class NotFound(SurveyAPIError):
    status_code = 404


class InvalidAction(SurveyAPIError):
    status_code = 400


class AlreadyDecided(SurveyAPIError):
    """A decision link was used again; benign, reported with 200."""

    status_code = 200

    def __init__(self, status: str):
        super().__init__(f"Request already {status}.")
        self.status = status


class RateLimited(SurveyAPIError):
    status_code = 429

    def __init__(self, retry_after: float):
        self.retry_after = max(1, math.ceil(retry_after))
        minutes = math.ceil(self.retry_after / 60)
        super().__init__(f"Too many requests. Please wait {minutes} minutes.")


class ConfigurationError(SurveyAPIError):
    status_code = 500


class EmailDeliveryError(SurveyAPIError):
    status_code = 500
