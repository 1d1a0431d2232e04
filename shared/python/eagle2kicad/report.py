"""
Import diagnostics.

A Reporter collects the non-fatal problems found while importing (unknown
parts, missing library symbols, ambiguous bus entries, odd rotations) and
forwards each one to the ``logging`` module.
"""

import logging

INFO = "info"
WARNING = "warning"
ERROR = "error"

_LEVELS = {
    INFO: logging.INFO,
    WARNING: logging.WARNING,
    ERROR: logging.ERROR,
}


class Reporter:
    """Collects (severity, message) pairs produced during an import."""

    def __init__(self, logger=None):
        self._logger = logger or logging.getLogger("eagle2kicad")
        self._messages = []

    def report(self, message, severity=WARNING):
        if severity not in _LEVELS:
            raise ValueError(f"Unknown severity: {severity}")
        self._messages.append((severity, message))
        self._logger.log(_LEVELS[severity], message)
        return self

    def info(self, message):
        return self.report(message, INFO)

    def warning(self, message):
        return self.report(message, WARNING)

    def error(self, message):
        return self.report(message, ERROR)

    def messages(self, severity=None):
        if severity is None:
            return list(self._messages)
        return [m for s, m in self._messages if s == severity]

    def has_errors(self):
        return any(s == ERROR for s, _ in self._messages)
