"""Exception types raised by the resize benchmark harness."""


class BenchmarkError(Exception):
    """Base class for harness errors reported to the user."""


class ConfigurationError(BenchmarkError):
    """Invalid or missing strategy selector or option."""


class ResourceUnavailableError(BenchmarkError):
    """A memory dimension cannot be read on this host."""


class WorkUnitError(BenchmarkError):
    """A strategy's work unit failed (unreadable input, encoder error, timeout)."""


class EmptyInputError(BenchmarkError, ValueError):
    """A reduction was asked to summarise an empty series."""


class NoResultsFoundError(BenchmarkError):
    """No persisted results exist for the strategies being compared."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"No results found for: {', '.join(self.missing)}")


class WorkUnitTimeoutError(WorkUnitError):
    """A work unit overran its timeout and may still be running."""


class ResultFileError(BenchmarkError):
    """A result file cannot be read, parsed or written."""

    def __init__(self, path, reason):
        self.path = path
        super().__init__(f'{path}: {reason}')
