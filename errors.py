class RagError(Exception):
    """Base error for the prompt pipeline; rendered as ``{"error": message}``."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingQuestionError(RagError):
    status_code = 400

    def __init__(self, message: str = "Missing question"):
        super().__init__(message)


class EmbeddingError(RagError):
    def __init__(self, message: str = "Failed to create embedding"):
        super().__init__(message)


class MissingConfigError(RagError):
    pass
