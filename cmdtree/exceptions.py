"""
Custom exceptions for the cmdtree CLI application.
"""
from typing import List, Optional, Tuple


class CmdtreeError(Exception):
    """Base exception for all cmdtree-related errors."""
    pass


class ConfigurationError(CmdtreeError):
    """Raised when the configuration file is missing, malformed or describes an invalid command tree."""
    pass


class ResolutionError(CmdtreeError):
    """Raised when a variable cannot be resolved to a value.

    The message is kept verbatim (e.g. the stderr of a failed value-from command);
    the variable being resolved is available as ``variable``.
    """

    def __init__(self, message: str, variable: Optional[str] = None) -> None:
        super().__init__(message)
        self.variable = variable


class PromptSpecificationError(ResolutionError):
    """Raised when a prompt definition populates zero or several prompt kinds."""
    pass


class MissingVariableError(ResolutionError):
    """Raised when a required variable has no value source and no flag override."""

    def __init__(self, variable: str) -> None:
        super().__init__(f"Variable '{variable}' is required.", variable)


class PromptError(ResolutionError):
    """Raised when an interactive prompt is aborted or cannot be shown."""
    pass


class RenderError(CmdtreeError):
    """Raised when a command template cannot be rendered."""
    pass


class DeferredStepsError(CmdtreeError):
    """Raised after all deferred steps have run, when one or more of them failed.

    Every failure is kept in ``failures`` as (step number, error) pairs; the
    message lists them one per line.
    """

    def __init__(self, failures: List[Tuple[int, CmdtreeError]]) -> None:
        super().__init__("\n".join(f"Deferred step {number} failed: {error}" for number, error in failures))
        self.failures = failures

    @property
    def returncode(self) -> Optional[int]:
        """Exit status of the first deferred step that exited non-zero."""
        for _, error in self.failures:
            returncode = getattr(error, "returncode", None)
            if returncode:
                return returncode
        return None


class CommandExecutionError(CmdtreeError):
    """Raised when a shell command fails to start or exits with a non-zero status."""

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
