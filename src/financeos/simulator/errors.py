"""Simulation pipeline errors."""


class ScenarioError(Exception):
    """Recoverable failure of one simulation stage.

    These are collected into the simulation report instead of aborting the
    whole run, so earlier results stay available.
    """

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage
        self.message = message

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"


class ParseError(ScenarioError):
    """Model output could not be turned into a valid structure."""

    def __init__(self, message: str, stage: str = "parse"):
        super().__init__(stage, message)
