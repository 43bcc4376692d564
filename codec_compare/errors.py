"""Exception hierarchy for the codec comparison harness."""


class CodecCompareError(Exception):
    """Base error for the codec comparison harness."""


class ConfigurationError(CodecCompareError, ValueError):
    """Raised when the codec config or the run arguments are unusable.

    Always raised before any external tool is invoked.
    """


class SourcePreparationError(CodecCompareError):
    """Raised when a source variant could not be materialized."""


class ExternalToolFailure(CodecCompareError):
    """Raised when an encoder, decoder or comparison tool fails.

    Attributes:
        command: The command line that was run.
        returncode: Exit status of the process.
        output: Captured stdout and stderr.
    """

    def __init__(self, message: str, command: list[str], returncode: int, output: str) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.output = output
