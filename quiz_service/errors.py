class QuizError(Exception):
    """Base for outcomes the HTTP layer renders as a typed error envelope."""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EpicNotFoundError(QuizError):
    status_code = 404
    error = "Epic not found"

    def __init__(self, epic_id: str):
        super().__init__(f"Epic '{epic_id}' does not exist")
        self.epic_id = epic_id


class EpicUnavailableError(QuizError):
    status_code = 403
    error = "Epic not available"

    def __init__(self, epic_id: str):
        super().__init__(f"Epic '{epic_id}' is not currently available for quizzes")
        self.epic_id = epic_id


class BlockNotFoundError(QuizError):
    status_code = 404
    error = "Block not found"

    def __init__(self, block_id: int):
        super().__init__(f"Quiz block {block_id} does not exist or is not available")
        self.block_id = block_id


class InsufficientContentError(QuizError):
    status_code = 422
    error = "Insufficient content"

    def __init__(self, epic_id: str, available: int, required: int):
        super().__init__(
            f"Insufficient questions available for epic '{epic_id}': "
            f"{available} match the filters, at least {required} needed"
        )
        self.available = available
        self.required = required


class EmptySubmissionError(QuizError):
    status_code = 400
    error = "Validation Error"

    def __init__(self):
        super().__init__("A submission must contain at least one answer")


class ProgressNotFoundError(QuizError):
    status_code = 404
    error = "Progress not found"

    def __init__(self, epic_id: str):
        super().__init__(f"No progress recorded yet for epic '{epic_id}'")


class SubmissionFailedError(QuizError):
    status_code = 500
    error = "Submission failed"

    def __init__(self):
        super().__init__("The quiz submission could not be recorded, nothing was saved")
