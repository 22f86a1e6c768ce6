"""Command-line interface for quizflow."""
