"""Knowledge base error taxonomy."""


class KBServiceError(Exception):
    """Base exception for knowledge base errors."""

    def __init__(self, message: str, status_code: int = 500, error_code: str = "KB_SERVICE_ERROR"):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(self.message)


class UnsupportedFileTypeError(KBServiceError):
    """Raised when an upload is neither a PDF nor a plain-text file."""

    def __init__(self, message: str = "UNSUPPORTED_FILE_TYPE"):
        super().__init__(
            message=message,
            status_code=400,
            error_code="UNSUPPORTED_FILE_TYPE",
        )


class EmptyDocumentError(KBServiceError):
    """Raised when no text (or no chunks) could be extracted from an upload."""

    def __init__(self, message: str = "EMPTY_DOCUMENT"):
        super().__init__(
            message=message,
            status_code=400,
            error_code="EMPTY_DOCUMENT",
        )


class EmbeddingFailedError(KBServiceError):
    """Raised when chunk embeddings could not be produced during upload."""

    def __init__(self, reason: str | None = None):
        message = f"EMBEDDING_FAILED:{reason}" if reason else "EMBEDDING_FAILED"
        super().__init__(
            message=message,
            status_code=500,
            error_code="EMBEDDING_FAILED",
        )
        self.reason = reason


class VectorStoreFailedError(KBServiceError):
    """Raised when chunks could not be written to the vector store."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"VECTOR_STORE_FAILED:{reason}",
            status_code=500,
            error_code="VECTOR_STORE_FAILED",
        )
        self.reason = reason


class InvalidQueryError(KBServiceError):
    """Raised when a search query is empty after trimming."""

    def __init__(self, message: str = "INVALID_QUERY"):
        super().__init__(
            message=message,
            status_code=400,
            error_code="INVALID_QUERY",
        )


class EmbeddingRequestError(Exception):
    """Raised by an embedder when the embedding service call fails."""

    error_code = "EMBEDDING_REQUEST_FAILED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"EMBEDDING_REQUEST_FAILED:{reason}")
