"""Event log tools backed by event_viewer.ps1."""

from __future__ import annotations

from typing import Any

from .base import (
    Arguments,
    ParameterDef,
    ParamKind,
    ToolDescriptor,
    ToolResponse,
    as_list,
    clip,
)

SCRIPT = "event_viewer"

# Enumerating every log on a workstation can take minutes.
_SEARCH_TIMEOUT = 600

_TOP_EVENTS = 5


def _flag(kind: ParamKind, flag: str, description: str, **extra: Any) -> ParameterDef:
    return ParameterDef(kind=kind, description=description, flag=flag, **extra)


LOG_NAMES = _flag(
    ParamKind.STRING_LIST,
    "LogNames",
    "Names of the event logs to search (e.g., Application, System)",
)
EVENT_IDS = _flag(ParamKind.NUMBER_LIST, "EventIDs", "Specific event IDs to filter by")
SOURCES = _flag(ParamKind.STRING_LIST, "Sources", "Event sources/providers to filter by")
HOURS = _flag(ParamKind.NUMBER, "Hours", "Number of hours back to search", minimum=0)
DAYS = _flag(
    ParamKind.NUMBER,
    "Days",
    "Number of days back to search (overrides hours if specified)",
    minimum=0,
)
START_TIME = _flag(
    ParamKind.STRING, "StartTime", 'Start time for the search (format: "YYYY-MM-DDTHH:mm:ss")'
)
END_TIME = _flag(
    ParamKind.STRING, "EndTime", 'End time for the search (format: "YYYY-MM-DDTHH:mm:ss")'
)
ERRORS_ONLY = _flag(ParamKind.BOOLEAN, "ErrorsOnly", "Only show events with level Error")
WARNINGS_ONLY = _flag(ParamKind.BOOLEAN, "WarningsOnly", "Only show events with level Warning")
CRITICAL_ONLY = _flag(ParamKind.BOOLEAN, "CriticalOnly", "Only show events with level Critical")


def format_event_analysis(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    period = result.get("AnalysisPeriod") or {}
    search = result.get("SearchResults") or {}
    discovery = result.get("LogDiscovery")
    by_level = search.get("EventsByLevel") or {}
    levels = ", ".join(f"{level}: {count}" for level, count in by_level.items()) or "N/A"
    logs_searched = as_list((discovery or {}).get("LogsSearched"))

    text = (
        "# Event Viewer Analysis Results\n\n"
        "## Analysis Period\n"
        f"- **Start Time**: {period.get('StartTime') or 'N/A'}\n"
        f"- **End Time**: {period.get('EndTime') or 'N/A'}\n"
        f"- **Duration**: {period.get('Duration') or 'N/A'}\n\n"
        "## Search Results\n"
        f"- **Total Events Found**: {search.get('TotalEventsFound') or 0}\n"
        f"- **Logs Searched**: {len(logs_searched)}\n"
        f"- **Events by Level**: {levels}"
    )

    if discovery:
        text += (
            "\n\n## Log Discovery\n"
            f"- **Total Logs Found**: {discovery.get('TotalLogsFound')}\n"
            f"- **Enabled Logs**: {discovery.get('EnabledLogs')}\n"
            f"- **Accessible Logs**: {discovery.get('AccessibleLogs')}"
        )

    security = result.get("SecurityAnalysis")
    if security:
        logons = security.get("LogonEvents") or {}
        text += (
            "\n\n## Security Analysis\n"
            f"- **Successful Logons**: {logons.get('Successful') or 0}\n"
            f"- **Failed Logons**: {logons.get('Failed') or 0}\n"
            f"- **Account Lockouts**: {len(as_list(security.get('AccountLockouts')))}\n"
            f"- **Policy Changes**: {len(as_list(security.get('PolicyChanges')))}"
        )
        suspicious = as_list(security.get("SuspiciousActivity"))
        if suspicious:
            text += f"\n- **Suspicious Activities**: {len(suspicious)} detected"

    patterns = result.get("ErrorPatterns")
    if patterns:
        text += (
            "\n\n## Error Patterns\n"
            f"- **Total Errors**: {patterns.get('TotalErrors')}\n"
            f"- **Total Warnings**: {patterns.get('TotalWarnings')}\n"
            f"- **Recent Error Count**: {patterns.get('RecentErrorCount')}"
        )

    events = as_list(result.get("Events"))
    if events:
        shown = events[:_TOP_EVENTS]
        text += f"\n\n## Recent Events (Top {len(shown)})"
        for index, event in enumerate(shown, start=1):
            message = clip(event.get("Message")) or "N/A"
            text += (
                f"\n\n### Event {index}\n"
                f"- **Time**: {event.get('TimeCreated')}\n"
                f"- **Log**: {event.get('LogName')}\n"
                f"- **Level**: {event.get('LevelDisplayName')}\n"
                f"- **ID**: {event.get('Id')}\n"
                f"- **Source**: {event.get('ProviderName')}\n"
                f"- **Message**: {message}"
            )

    for title, key in (("Recommendations", "Recommendations"), ("Errors", "Errors"),
                       ("Warnings", "Warnings")):
        items = as_list(result.get(key))
        if items:
            text += f"\n\n## {title}\n" + "\n".join(f"- {item}" for item in items)

    return ToolResponse.text(text)


TOOLS = (
    ToolDescriptor(
        name="event_viewer_analyzer",
        description="Analyze Windows Event Viewer logs with advanced filtering and analysis",
        script=SCRIPT,
        parameters=(
            ("logNames", LOG_NAMES),
            (
                "searchTerms",
                _flag(
                    ParamKind.STRING_LIST,
                    "SearchTerms",
                    "Keywords to search for in log messages",
                ),
            ),
            ("eventIds", EVENT_IDS),
            ("sources", SOURCES),
            ("hours", HOURS),
            ("days", DAYS),
            ("startTime", START_TIME),
            ("endTime", END_TIME),
            ("errorsOnly", ERRORS_ONLY),
            ("warningsOnly", WARNINGS_ONLY),
            ("criticalOnly", CRITICAL_ONLY),
            (
                "securityAnalysis",
                _flag(
                    ParamKind.BOOLEAN,
                    "SecurityAnalysis",
                    "Perform a security-focused analysis of events",
                ),
            ),
            (
                "detailed",
                _flag(ParamKind.BOOLEAN, "Detailed", "Include detailed event information"),
            ),
            (
                "exportJson",
                _flag(ParamKind.BOOLEAN, "ExportJson", "Export results to a JSON file"),
            ),
            ("exportCsv", _flag(ParamKind.BOOLEAN, "ExportCsv", "Export results to a CSV file")),
            ("outputPath", _flag(ParamKind.STRING, "OutputPath", "Path to save the exported file")),
            (
                "maxEvents",
                _flag(
                    ParamKind.INTEGER,
                    "MaxEventsPerLog",
                    "Maximum number of events to return",
                    minimum=1,
                ),
            ),
        ),
        formatter=format_event_analysis,
        timeout_seconds=_SEARCH_TIMEOUT,
    ),
    ToolDescriptor(
        name="event_viewer_search",
        description=(
            "Comprehensive Windows Event Viewer search tool that enumerates all available "
            "logs and searches across them for keywords, event IDs, or other criteria. "
            "This tool can discover and search all Windows event logs, not just the main four."
        ),
        script=SCRIPT,
        parameters=(
            (
                "searchKeyword",
                _flag(ParamKind.STRING, "SearchKeyword", "Keyword to search for in event messages"),
            ),
            ("eventIds", EVENT_IDS),
            ("sources", SOURCES),
            (
                "logNames",
                _flag(
                    ParamKind.STRING_LIST,
                    "LogNames",
                    "Specific log names to search (if empty, searches all available logs)",
                ),
            ),
            ("hours", HOURS),
            ("days", DAYS),
            ("startTime", START_TIME),
            ("endTime", END_TIME),
            (
                "maxEventsPerLog",
                _flag(
                    ParamKind.INTEGER,
                    "MaxEventsPerLog",
                    "Maximum number of events to return per log (default: 100)",
                    minimum=1,
                ),
            ),
            (
                "includeDisabledLogs",
                _flag(ParamKind.BOOLEAN, "IncludeDisabledLogs", "Include disabled logs in the search"),
            ),
            ("errorsOnly", ERRORS_ONLY),
            ("warningsOnly", WARNINGS_ONLY),
            ("criticalOnly", CRITICAL_ONLY),
            (
                "informationOnly",
                _flag(
                    ParamKind.BOOLEAN,
                    "InformationOnly",
                    "Only show events with level Information",
                ),
            ),
            (
                "skipSecurityLog",
                _flag(
                    ParamKind.BOOLEAN,
                    "SkipSecurityLog",
                    "Skip the Security log (useful if access is denied)",
                ),
            ),
            (
                "includeSystemLogs",
                _flag(
                    ParamKind.BOOLEAN,
                    "IncludeSystemLogs",
                    "Include only system logs (System, Security, Application, Setup)",
                ),
            ),
            (
                "includeApplicationLogs",
                _flag(
                    ParamKind.BOOLEAN,
                    "IncludeApplicationLogs",
                    "Include only application-related logs",
                ),
            ),
        ),
        fixed_params=(("DeepSearch", True),),
        formatter=format_event_analysis,
        timeout_seconds=_SEARCH_TIMEOUT,
    ),
)
