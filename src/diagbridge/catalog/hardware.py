"""Hardware sensor tool backed by hardware_monitor.ps1."""

from __future__ import annotations

from typing import Any

from .base import Arguments, ParameterDef, ParamKind, ToolDescriptor, ToolResponse, as_list

SCRIPT = "hardware_monitor"


def _check(flag: str, description: str) -> ParameterDef:
    return ParameterDef(kind=ParamKind.BOOLEAN, description=description, flag=flag, default=True)


def format_hardware(args: Arguments, result: dict[str, Any]) -> ToolResponse:
    temperatures = "\n".join(
        f"- **{t.get('Sensor')}**: {t.get('TemperatureC')}°C"
        for t in as_list(result.get("Temperatures"))
    )
    fans = "\n".join(
        f"- **{f.get('Fan')}**: {f.get('SpeedRPM')} RPM" for f in as_list(result.get("FanSpeeds"))
    )
    sections = [
        "# Hardware Health Report",
        f"## Temperatures\n{temperatures or 'No temperature data available'}",
        f"## Fan Speeds\n{fans or 'No fan data available'}",
    ]
    if args.get("checkSmartStatus"):
        disks = "\n".join(
            f"- **{d.get('Disk')}**: {d.get('Status')}" for d in as_list(result.get("SMARTStatus"))
        )
        sections.append(f"## Drive SMART Status\n{disks or 'No SMART data available'}")
    if args.get("checkMemoryHealth"):
        memory = result.get("MemoryHealth") or {}
        errors = as_list(memory.get("Errors"))
        sections.append(
            f"## Memory Health\n- **Status**: {memory.get('Status', 'Unknown')}\n"
            f"- **Errors**: {len(errors)}"
        )
    errors = as_list(result.get("Errors"))
    if errors:
        sections.append("## Errors\n" + "\n".join(f"- {e}" for e in errors))
    return ToolResponse.text("\n\n".join(sections))


TOOLS = (
    ToolDescriptor(
        name="hardware_monitor",
        description=(
            "Monitors hardware health including temperatures, fan speeds, "
            "drive SMART status, and memory health."
        ),
        script=SCRIPT,
        parameters=(
            ("checkTemperatures", _check("checkTemperatures", "Check CPU and GPU temperatures")),
            ("checkFanSpeeds", _check("checkFanSpeeds", "Check system fan speeds")),
            ("checkSmartStatus", _check("checkSmartStatus", "Check storage drive SMART status")),
            ("checkMemoryHealth", _check("checkMemoryHealth", "Check memory health")),
        ),
        formatter=format_hardware,
    ),
)
