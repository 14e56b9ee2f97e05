"""User-facing notification texts."""

QUESTIONS_AT_CAPACITY_TEMPLATE: str = "A quiz can have at most {limit} questions."
QUESTIONS_AT_MINIMUM_TEMPLATE: str = "The quiz needs at least {limit} questions."
ALTERNATIVES_AT_CAPACITY_TEMPLATE: str = "A question can have at most {limit} alternatives."
ALTERNATIVES_AT_MINIMUM_TEMPLATE: str = "A question needs at least {limit} alternatives."
READ_ONLY_MESSAGE: str = "This quiz is open in read-only mode."

INCOMPLETE_QUIZ_MESSAGE: str = "Fill in every question and alternative correctly."
QUESTIONS_SAVED_MESSAGE: str = "Questions saved successfully!"
SAVE_QUESTIONS_FAILED_MESSAGE: str = "Could not save the questions."

INVALID_QUIZ_MESSAGE: str = "Invalid quiz."
QUIZ_UNAVAILABLE_MESSAGE: str = "Quiz unavailable."
NO_QUESTIONS_MESSAGE: str = "This quiz has no questions yet."
SUBMIT_FAILED_MESSAGE: str = "Could not submit your answers."

SUBMISSION_ERRORS_TEMPLATE: str = "{count} error(s) found while submitting."
SUBMISSION_ITEM_ERROR_TEMPLATE: str = "{error} (Status: {status})"
SUBMISSION_SUCCESS_TEMPLATE: str = "{count} answer(s) processed successfully!"
