import platform
from typing import List


def get_current_os() -> str:
    """Get the current OS as a lowercase string.

    Returns:
        String representing the OS: 'windows', 'linux', 'darwin' (macOS), etc.
    """
    return platform.system().lower()


def is_windows() -> bool:
    """Check if the current OS is Windows.

    Returns:
        True if the OS is Windows, False otherwise.
    """
    return get_current_os() == "windows"


def quote_argument(value: str) -> str:
    """Wrap a value in double quotes unless it already is."""
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value
    return f'"{value}"'


def join_shell_command(command: str, args: List[str]) -> str:
    """Join a command and pre-quoted arguments into one shell command line.

    Only the command itself is quoted here, and only when it contains
    whitespace. Arguments are passed through untouched.
    """
    if any(ch.isspace() for ch in command):
        command = quote_argument(command)
    return " ".join([command] + list(args))
