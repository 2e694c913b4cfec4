"""
Exceptions raised by the import services.
"""


class ImportServiceError(Exception):
    """Base class for import service errors."""


class UnknownStageError(ImportServiceError):
    """A stage identifier that is not part of the pipeline."""


class UnknownTaskError(ImportServiceError):
    """No importer is registered for the requested task name."""


class DispatchError(ImportServiceError):
    """
    An ingestion worker failed.

    Raised when the worker cannot be started, exits abnormally, times out
    or reports that its task raised. The message is the worker's own error
    text so it can be surfaced unchanged in the job record.
    """

    def __init__(self, message: str, task_name: str = None):
        super().__init__(message)
        self.task_name = task_name
