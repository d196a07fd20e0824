"""SOAP envelope construction and response parsing for WinRM shells."""

from winrmkrb.soap.envelope import (
    build_create_shell,
    build_delete_shell,
    build_execute_command,
    build_receive,
    build_signal,
)
from winrmkrb.soap.parser import (
    parse_command_id,
    parse_receive,
    parse_receive_output,
    parse_shell_id,
    parse_soap,
)

__all__ = [
    "build_create_shell",
    "build_delete_shell",
    "build_execute_command",
    "build_receive",
    "build_signal",
    "parse_command_id",
    "parse_receive",
    "parse_receive_output",
    "parse_shell_id",
    "parse_soap",
]
