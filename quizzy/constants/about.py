"""Static metadata describing Quizzy."""

APP_NAME = "Quizzy"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "Quizzy is a single-player multiple-choice quiz service. Take a short quiz drawn "
    "from the question bank, track your best score and climb the leaderboard."
)
