"""System health tools backed by diagnostic.ps1."""

from __future__ import annotations

from typing import Any

from .base import (
    Arguments,
    ParameterDef,
    ParamKind,
    ToolDescriptor,
    ToolResponse,
    as_list,
    bullets,
    clip,
)

SCRIPT = "diagnostic"

UNEXPECTED_SHUTDOWN_EVENT_ID = 6008

_JSON_OUTPUT = (("JsonOutput", True),)


def _days_back(default: int) -> ParameterDef:
    return ParameterDef(
        kind=ParamKind.INTEGER,
        description=f"Number of days back to analyze (default: {default})",
        flag="DaysBack",
        default=default,
        minimum=1,
        maximum=365,
    )


def _event_line(event: dict[str, Any], *, source: bool = False) -> str:
    line = f"**{event.get('Time')}**: {event.get('Description')} (Event ID: {event.get('EventID')}"
    if source:
        line += f", Source: {event.get('Source')}"
    return line + ")"


def _unexpected_shutdowns(result: dict[str, Any]) -> list[dict[str, Any]]:
    return [
        event
        for event in as_list(result.get("ShutdownEvents"))
        if event.get("EventID") == UNEXPECTED_SHUTDOWN_EVENT_ID
    ]


def _uptime(info: dict[str, Any]) -> str:
    return (
        f"{info.get('CurrentUptimeDays')} days, {info.get('CurrentUptimeHours')} hours, "
        f"{info.get('CurrentUptimeMinutes')} minutes"
    )


def _dump_line(dump: dict[str, Any]) -> str:
    size, unit = (dump.get("SizeMB"), "MB") if dump.get("SizeMB") else (dump.get("SizeKB"), "KB")
    return (
        f"**{dump.get('Type')} Dump**: {dump.get('Path')} "
        f"(Last Modified: {dump.get('LastWrite')}, Size: {size} {unit})"
    )


def format_system_diagnostics(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    summary = result["Summary"]
    info = result["SystemInfo"]
    bsod = as_list(result.get("BSODEvents"))
    unexpected = _unexpected_shutdowns(result)
    crashes = as_list(result.get("ApplicationCrashes"))
    hardware = as_list(result.get("HardwareErrors"))
    drivers = as_list(result.get("DriverIssues"))
    dumps = as_list(result.get("MemoryDumps"))
    sections = [
        "# Windows System Diagnostics Report",
        "## Summary\n"
        f"- **Analysis Period**: {summary.get('AnalysisPeriodDays')} days\n"
        f"- **Total Events**: {summary.get('TotalEventsAnalyzed')}\n"
        f"- **Critical BSOD Events**: {summary.get('CriticalBSODCount')}\n"
        f"- **Unexpected Shutdowns**: {summary.get('UnexpectedShutdownCount')}\n"
        f"- **Application Crashes**: {summary.get('TotalApplicationCrashes')}\n"
        f"- **Generated**: {summary.get('GeneratedAt')}",
        "## System Information\n"
        f"- **OS**: {info.get('OSVersion')}\n"
        f"- **Last Boot**: {info.get('LastBootTime')}\n"
        f"- **Current Uptime**: {_uptime(info)}\n"
        f"- **Total Memory**: {info.get('TotalMemoryGB')} GB\n"
        f"- **Reboots in Period**: {info.get('RebootCountInPeriod')}",
        "## Critical Events\n### BSOD Events\n"
        + bullets((_event_line(e) for e in bsod), "- No BSOD events found"),
        "### Unexpected Shutdowns\n"
        + bullets(
            (f"**{e.get('Time')}**: {e.get('Description')}" for e in unexpected),
            "- No unexpected shutdowns found",
        ),
        "## Application Crashes\n"
        + bullets(
            (
                f"**{c.get('Application')}**: {c.get('CrashCount')} crashes "
                f"(Latest: {c.get('LatestCrash')})"
                for c in crashes
            ),
            "- No application crashes found",
        ),
        "## Hardware & Driver Issues\n### Hardware Errors\n"
        + bullets(
            (f"**{e.get('Time')}**: {e.get('Source')}" for e in hardware),
            "- No hardware errors found",
        ),
        "### Driver Issues\n"
        + bullets(
            (f"**{d.get('DriverService')}**: {d.get('IssueCount')} issues" for d in drivers),
            "- No driver issues found",
        ),
        "## Memory Dumps\n" + bullets((_dump_line(d) for d in dumps), "- No memory dumps found"),
        "## Recent System Events\n"
        + bullets(
            (_event_line(e) for e in as_list(result.get("ShutdownEvents"))[:5]),
            "- No recent system events",
        ),
    ]
    return ToolResponse.text("\n\n".join(sections))


def format_shutdown_events(args: Arguments, result: dict[str, Any]) -> ToolResponse:
    events = as_list(result.get("ShutdownEvents"))
    listing = bullets(
        (_event_line(e, source=True) for e in events),
        "No shutdown/reboot events found in the specified period.",
    )
    return ToolResponse.text(
        f"# Shutdown and Reboot Events (Last {args['daysBack']} days)\n\n"
        f"{listing}\n\n"
        f"**Total Events**: {len(events)}\n"
        f"**Unexpected Shutdowns**: {len(_unexpected_shutdowns(result))}"
    )


def format_bsod_events(args: Arguments, result: dict[str, Any]) -> ToolResponse:
    events = as_list(result.get("BSODEvents"))
    header = f"# Blue Screen of Death (BSOD) Events (Last {args['daysBack']} days)\n\n"
    if not events:
        return ToolResponse.text(header + "No BSOD events found in the specified period.")
    details = "\n\n".join(
        f"- {_event_line(e, source=True)}\n  Details: {clip(e.get('Details'))}" for e in events
    )
    return ToolResponse.text(
        f"{header}**CRITICAL**: {len(events)} BSOD event(s) found!\n\n{details}"
    )


def _uptime_assessment(days: float) -> str:
    if days > 30:
        return (
            "System has been running for over 30 days. "
            "Consider rebooting to apply updates and clear memory."
        )
    if days > 7:
        return "System uptime is reasonable."
    return "Recent boot detected."


def format_system_uptime(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    info = result["SystemInfo"]
    days = info.get("CurrentUptimeDays") or 0
    return ToolResponse.text(
        "# System Uptime Information\n\n"
        f"- **Current Uptime**: {_uptime(info)}\n"
        f"- **Last Boot Time**: {info.get('LastBootTime')}\n"
        f"- **Operating System**: {info.get('OSVersion')}\n"
        f"- **Total Physical Memory**: {info.get('TotalMemoryGB')} GB\n\n"
        f"## Uptime Analysis\n{_uptime_assessment(days)}"
    )


def stability_assessment(result: dict[str, Any]) -> dict[str, Any]:
    """Score system stability from 0 to 100 with issues and recommendations."""
    bsod_count = len(as_list(result.get("BSODEvents")))
    unexpected = len(_unexpected_shutdowns(result))
    crashes = (result.get("Summary") or {}).get("TotalApplicationCrashes") or 0
    hardware_errors = len(as_list(result.get("HardwareErrors")))
    uptime_days = (result.get("SystemInfo") or {}).get("CurrentUptimeDays") or 0

    score = 100
    issues: list[str] = []
    recommendations: list[str] = []
    if bsod_count > 0:
        score -= bsod_count * 20
        issues.append(f"{bsod_count} BSOD event(s)")
        recommendations.append("Investigate BSOD causes - check Windows Update for driver updates")
    if unexpected > 0:
        score -= unexpected * 10
        issues.append(f"{unexpected} unexpected shutdown(s)")
        recommendations.append("Check hardware connections and power supply")
    if crashes > 10:
        score -= min(crashes, 30)
        issues.append(f"{crashes} application crashes")
        recommendations.append("Run system file checker: sfc /scannow")
    if hardware_errors > 0:
        score -= hardware_errors * 5
        issues.append(f"{hardware_errors} hardware error(s)")
        recommendations.append("Check hardware health and run memory diagnostics")
    if uptime_days > 30:
        score -= 5
        recommendations.append("Reboot system to apply updates and clear memory")
    score = max(0, score)

    if score >= 90:
        rating = "Excellent"
    elif score >= 75:
        rating = "Good"
    elif score >= 50:
        rating = "Fair"
    else:
        rating = "Poor"
    return {
        "score": score,
        "rating": rating,
        "issues": issues,
        "recommendations": recommendations,
        "bsod_count": bsod_count,
        "unexpected_shutdowns": unexpected,
        "crashes": crashes,
        "hardware_errors": hardware_errors,
        "uptime_days": uptime_days,
    }


def format_system_stability(args: Arguments, result: dict[str, Any]) -> ToolResponse:
    assessment = stability_assessment(result)
    return ToolResponse.text(
        f"# System Stability Analysis (Last {args['daysBack']} days)\n\n"
        f"## Overall Stability Score: {assessment['score']}/100 ({assessment['rating']})\n\n"
        "## Issues Detected\n"
        + bullets(assessment["issues"], "- No major issues detected")
        + "\n\n## Recommendations\n"
        + bullets(
            assessment["recommendations"],
            "- System appears stable, continue regular maintenance",
        )
        + "\n\n## Key Metrics\n"
        f"- **BSOD Events**: {assessment['bsod_count']}\n"
        f"- **Unexpected Shutdowns**: {assessment['unexpected_shutdowns']}\n"
        f"- **Application Crashes**: {assessment['crashes']}\n"
        f"- **Hardware Errors**: {assessment['hardware_errors']}\n"
        f"- **Current Uptime**: {assessment['uptime_days']} days\n\n"
        "## Additional Actions\n"
        "- Run DISM health check: `DISM /Online /Cleanup-Image /RestoreHealth`\n"
        "- Check Windows Update for pending updates\n"
        "- Review Event Viewer for additional details\n"
        "- Consider hardware diagnostics if issues persist"
    )


TOOLS = (
    ToolDescriptor(
        name="get_system_diagnostics",
        description=(
            "Get comprehensive Windows system diagnostics including crashes, "
            "reboots, and system health"
        ),
        script=SCRIPT,
        parameters=(
            ("daysBack", _days_back(7)),
            (
                "detailed",
                ParameterDef(
                    kind=ParamKind.BOOLEAN,
                    description="Include detailed event information",
                    flag="Detailed",
                    default=False,
                ),
            ),
        ),
        fixed_params=_JSON_OUTPUT,
        formatter=format_system_diagnostics,
        required_fields=("Summary", "SystemInfo"),
    ),
    ToolDescriptor(
        name="get_shutdown_events",
        description="Get only shutdown and reboot events",
        script=SCRIPT,
        parameters=(("daysBack", _days_back(7)),),
        fixed_params=_JSON_OUTPUT,
        formatter=format_shutdown_events,
    ),
    ToolDescriptor(
        name="get_bsod_events",
        description="Get Blue Screen of Death (BSOD) events",
        script=SCRIPT,
        parameters=(("daysBack", _days_back(7)),),
        fixed_params=_JSON_OUTPUT,
        formatter=format_bsod_events,
    ),
    ToolDescriptor(
        name="get_system_uptime",
        description="Get current system uptime and boot information",
        script=SCRIPT,
        fixed_params=(("DaysBack", 1), *_JSON_OUTPUT),
        formatter=format_system_uptime,
        required_fields=("SystemInfo",),
    ),
    ToolDescriptor(
        name="analyze_system_stability",
        description="Analyze system stability and provide recommendations",
        script=SCRIPT,
        parameters=(("daysBack", _days_back(30)),),
        fixed_params=_JSON_OUTPUT,
        formatter=format_system_stability,
        required_fields=("Summary", "SystemInfo"),
    ),
)
