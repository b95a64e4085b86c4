"""
Standard exit codes and error types for gitpusher.

Following Unix/POSIX conventions for command-line tools.
"""

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
API_ERROR = 65           # GitHub API call failed
CONFIG_ERROR = 66        # Configuration file error
NETWORK_ERROR = 68       # Network connection failed
AUTH_ERROR = 69          # Authentication/authorization failed
DATA_ERROR = 70          # Push request failed validation
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)


class CommandError(Exception):
    """
    Base error for gitpusher; carries the exit code the CLI should use.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


class ValidationError(CommandError):
    """Raised when a push request is malformed. No network call has been made."""
    def __init__(self, message: str):
        super().__init__(message, DATA_ERROR)


class APIError(CommandError):
    """Raised when an external API call fails."""
    def __init__(self, message: str, exit_code: int = API_ERROR):
        super().__init__(message, exit_code)


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class AuthenticationError(CommandError):
    """Raised when no usable GitHub token is available."""
    def __init__(self, message: str = "No GitHub token configured"):
        super().__init__(message, AUTH_ERROR)


class PushCancelledError(CommandError):
    """Raised when the caller cancels a push between pipeline steps."""
    def __init__(self, message: str = "Push cancelled"):
        super().__init__(message, INTERRUPTED)
