"""Replay error types."""


class ReplayError(Exception):
    """Base class for replay errors."""


class NoEventsError(ReplayError):
    """Neither the text log nor the cursor log holds any event."""

    def __init__(self, message: str = "No log events to replay."):
        super().__init__(message)


class DocumentNotFoundError(ReplayError):
    """The requested document is not known to the document source."""

    def __init__(self, document_id: str):
        super().__init__(f"Document {document_id} not found")
        self.document_id = document_id
