"""Process and installed application tools backed by apps_and_processes.ps1."""

from __future__ import annotations

from typing import Any

from .base import Arguments, ParameterDef, ParamKind, ToolDescriptor, ToolResponse, as_list

SCRIPT = "apps_and_processes"


def format_processes(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    processes = as_list(result.get("RunningProcesses"))
    if not processes:
        return ToolResponse.text("# Running Processes\n\nNo running processes found.")
    listing = "\n\n".join(
        f"- **Name**: {p.get('Name')}\n  **PID**: {p.get('PID')}\n  **CPU**: {p.get('CPU')}\n"
        f"  **MemoryMB**: {p.get('MemoryMB')}\n  **User**: {p.get('User')}"
        for p in processes
    )
    return ToolResponse.text(f"# Running Processes\n\n{listing}")


def format_killed(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    killed = as_list(result.get("KilledProcesses"))
    lines = [
        f"- **Error**: {p['Error']}" if p.get("Error") else
        f"- **Killed**: PID {p.get('PID')}, Name {p.get('Name')}"
        for p in killed
    ]
    listing = "\n".join(lines) or "No processes killed."
    return ToolResponse.text(f"# Kill Process Results\n\n{listing}")


def format_started(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    started = result.get("StartedProcess")
    if not started:
        body = "No process started."
    elif started.get("Error"):
        body = f"- **Error**: {started['Error']}"
    else:
        body = (
            f"- **Started**: Name {started.get('Name')}, PID {started.get('PID')}, "
            f"Path {started.get('Path')}"
        )
    return ToolResponse.text(f"# Start Process Result\n\n{body}")


def format_installed(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    apps = as_list(result.get("InstalledApplications"))
    if not apps:
        return ToolResponse.text("# Installed Applications\n\nNo installed applications found.")
    listing = "\n\n".join(
        f"- **Name**: {a.get('Name')}\n  **Version**: {a.get('Version')}\n"
        f"  **Publisher**: {a.get('Publisher')}\n  **InstallDate**: {a.get('InstallDate')}"
        for a in apps
    )
    return ToolResponse.text(f"# Installed Applications\n\n{listing}")


TOOLS = (
    ToolDescriptor(
        name="list_processes",
        description="List running processes with optional filters",
        script=SCRIPT,
        parameters=(
            (
                "filterName",
                ParameterDef(
                    kind=ParamKind.STRING,
                    description="Filter processes by name (wildcards accepted)",
                    flag="FilterName",
                ),
            ),
            (
                "minCPU",
                ParameterDef(
                    kind=ParamKind.NUMBER,
                    description="Minimum CPU usage to include",
                    flag="MinCPU",
                    minimum=0,
                ),
            ),
            (
                "minMemoryMB",
                ParameterDef(
                    kind=ParamKind.NUMBER,
                    description="Minimum memory usage in MB to include",
                    flag="MinMemoryMB",
                    minimum=0,
                ),
            ),
        ),
        fixed_params=(("JsonOutput", True),),
        formatter=format_processes,
    ),
    ToolDescriptor(
        name="kill_process",
        description="Kill a process by its PID or name",
        script=SCRIPT,
        parameters=(
            (
                "pid",
                ParameterDef(
                    kind=ParamKind.INTEGER,
                    description="Process ID to kill",
                    flag="KillPID",
                ),
            ),
            (
                "name",
                ParameterDef(
                    kind=ParamKind.STRING,
                    description="Process name to kill (all matching instances)",
                    flag="KillName",
                ),
            ),
        ),
        fixed_params=(("JsonOutput", True),),
        formatter=format_killed,
    ),
    ToolDescriptor(
        name="start_process",
        description="Start a new process from an executable path",
        script=SCRIPT,
        parameters=(
            (
                "path",
                ParameterDef(
                    kind=ParamKind.STRING,
                    description="Full path to the executable to start",
                    flag="StartPath",
                    required=True,
                ),
            ),
        ),
        fixed_params=(("JsonOutput", True),),
        formatter=format_started,
    ),
    ToolDescriptor(
        name="list_installed_apps",
        description="List installed applications with optional filters",
        script=SCRIPT,
        parameters=(
            (
                "appName",
                ParameterDef(
                    kind=ParamKind.STRING,
                    description="Filter by application name (wildcards accepted)",
                    flag="AppName",
                ),
            ),
            (
                "publisher",
                ParameterDef(
                    kind=ParamKind.STRING,
                    description="Filter by publisher name (wildcards accepted)",
                    flag="Publisher",
                ),
            ),
        ),
        fixed_params=(("ListInstalledApps", True), ("JsonOutput", True)),
        formatter=format_installed,
    ),
)
