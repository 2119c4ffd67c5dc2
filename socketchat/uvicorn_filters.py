"""Custom filters for uvicorn access logging."""

import logging

from socketchat.settings import app_settings


class ExcludeMetricsFilter(logging.Filter):
    """
    Logging filter to exclude monitoring endpoint requests from access logs.

    Health probes from the hosting platform and Prometheus scraping would
    otherwise flood uvicorn's access log. The excluded paths are configurable
    via the LOG_EXCLUDED_PATHS setting in socketchat.settings.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Determine if the log record should be logged.

        Args:
            record: The log record to evaluate.

        Returns:
            False if the request path is in LOG_EXCLUDED_PATHS, True otherwise.
        """
        message = record.getMessage()
        return not any(
            path in message for path in app_settings.LOG_EXCLUDED_PATHS
        )
