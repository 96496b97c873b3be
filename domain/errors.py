"""Error taxonomy for the batch scoring pipeline.

Batch-level errors halt a run before any item changes state. Item-level
errors are caught at the item boundary and recorded on the item.
"""


class PipelineError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PipelineError):
    """No job source or no files selected."""
    status_code = 400


class NotFoundError(PipelineError):
    status_code = 404


class BatchInProgressError(PipelineError):
    status_code = 409


class ExtractionError(PipelineError):
    status_code = 422


class AnalysisError(PipelineError):
    status_code = 502


class PersistenceError(PipelineError):
    status_code = 500


BATCH_LEVEL_ERRORS = (ValidationError, NotFoundError, ExtractionError, BatchInProgressError)
