"""Interpreter profiles: how a script invocation is framed on the command line."""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum

from diagbridge.encoding import (
    EncodedCommand,
    ParamValue,
    command_fragment,
    encode_parameters,
)
from diagbridge.scripts import ScriptRef


class InvocationMode(str, Enum):
    COMMAND = "command"
    FILE = "file"


@dataclass(frozen=True)
class InterpreterConfig:
    """Per-interpreter configuration."""

    name: str
    command: str
    base_args: tuple[str, ...]
    safe_env_keys: tuple[str, ...]
    install_hint: str
    mode: InvocationMode = InvocationMode.COMMAND
    command_flag: str | None = "-Command"
    file_flag: str | None = "-File"
    script_suffix: str = ".ps1"


class Interpreter:
    """Builds argument vectors for one interpreter profile."""

    def __init__(self, config: InterpreterConfig) -> None:
        self.config = config

    def build_command(
        self,
        script: ScriptRef,
        params: Iterable[tuple[str, ParamValue]],
    ) -> EncodedCommand:
        """Build the full argument vector for running ``script``.

        Command mode passes the script body inline as a script block with
        single-quoted arguments; file mode passes the script path and each
        token as a separate process argument.
        """
        args = list(self.config.base_args)
        if self.config.mode is InvocationMode.COMMAND:
            tokens = encode_parameters(params, quoted=True)
            if self.config.command_flag:
                args.append(self.config.command_flag)
            args.append(command_fragment(script.body, tokens))
        else:
            tokens = encode_parameters(params, quoted=False)
            if self.config.file_flag:
                args.append(self.config.file_flag)
            args.append(str(script.path))
            args.extend(tokens)
        return EncodedCommand(self.config.command, tuple(args))

    def check_installed(self) -> tuple[bool, str | None]:
        """Check if the interpreter is available. Returns (installed, path)."""
        path = shutil.which(self.config.command)
        return (path is not None, path)


_COMMON_ENV_KEYS = (
    "PATH",
    "PATHEXT",
    "HOME",
    "USER",
    "USERNAME",
    "USERPROFILE",
    "USERDOMAIN",
    "COMPUTERNAME",
    "LANG",
    "LC_ALL",
    "TMPDIR",
    "TMP",
    "TEMP",
    "SystemRoot",
    "SystemDrive",
    "windir",
    "ComSpec",
    "ProgramData",
    "ProgramFiles",
    "ProgramFiles(x86)",
    "ProgramW6432",
    "CommonProgramFiles",
    "APPDATA",
    "LOCALAPPDATA",
    "PSModulePath",
    "PROCESSOR_ARCHITECTURE",
    "NUMBER_OF_PROCESSORS",
)

_BASE_ARGS = ("-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass")

WINDOWS_POWERSHELL = InterpreterConfig(
    name="powershell",
    command="powershell.exe",
    base_args=_BASE_ARGS,
    safe_env_keys=_COMMON_ENV_KEYS,
    install_hint="Windows PowerShell ships with Windows; check that powershell.exe is on PATH",
)

POWERSHELL_CORE = InterpreterConfig(
    name="pwsh",
    command="pwsh",
    base_args=_BASE_ARGS,
    safe_env_keys=_COMMON_ENV_KEYS + ("POWERSHELL_TELEMETRY_OPTOUT", "DOTNET_ROOT"),
    install_hint="See https://learn.microsoft.com/powershell/scripting/install/installing-powershell",
)

_PROFILES: dict[str, InterpreterConfig] = {
    WINDOWS_POWERSHELL.name: WINDOWS_POWERSHELL,
    POWERSHELL_CORE.name: POWERSHELL_CORE,
}


def default_profile_name() -> str:
    return "powershell" if os.name == "nt" else "pwsh"


def get_interpreter(
    name: str | None = None,
    *,
    path: str | None = None,
    mode: str | None = None,
) -> Interpreter:
    """Get an interpreter by profile name.

    Args:
        name: Profile name. If None, uses DIAGBRIDGE_INTERPRETER, falling back
            to ``powershell`` on Windows and ``pwsh`` elsewhere.
        path: Explicit executable, overriding the profile's command.
        mode: ``command`` or ``file``; the profile default when None.
    """
    if name is None:
        name = (os.environ.get("DIAGBRIDGE_INTERPRETER") or "").strip() or default_profile_name()
    if name not in _PROFILES:
        available = ", ".join(sorted(_PROFILES))
        raise ValueError(f"Unknown interpreter: {name}. Available: {available}")
    config = _PROFILES[name]
    if path:
        config = replace(config, command=path)
    if mode:
        try:
            config = replace(config, mode=InvocationMode(mode.strip().lower()))
        except ValueError:
            raise ValueError(
                f"Unknown invocation mode: {mode}. Available: command, file"
            ) from None
    return Interpreter(config)


def list_interpreters() -> list[str]:
    """List available interpreter profile names."""
    return list(_PROFILES.keys())


__all__ = [
    "Interpreter",
    "InterpreterConfig",
    "InvocationMode",
    "get_interpreter",
    "list_interpreters",
]
