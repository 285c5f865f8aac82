"""Static metadata describing the exam server."""

APP_NAME = "ExamServer"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "ExamServer hands out choice and true/false questions to students, stores "
    "their submitted scores in a JSON file and gives administrators a protected "
    "reporting API."
)
