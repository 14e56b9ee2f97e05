"""Static metadata describing QuizRoom."""

APP_NAME = "QuizRoom"
APP_VERSION = "0.1"
APP_ABOUT_TEXT = (
    "QuizRoom lets teachers author multiple-choice quizzes and lets students "
    "play them one question at a time, with immediate feedback and server-side grading."
)
