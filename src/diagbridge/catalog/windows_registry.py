"""Registry inspection tools backed by windows_registry.ps1."""

from __future__ import annotations

from typing import Any

from .base import Arguments, ParameterDef, ParamKind, ToolDescriptor, ToolResponse, as_list

SCRIPT = "windows_registry"

# Registry scans walk whole hives.
_SCAN_TIMEOUT = 300


def _entries(items: list[dict[str, Any]], fields: tuple[tuple[str, str], ...], empty: str) -> str:
    if not items:
        return empty
    blocks = []
    for item in items:
        lines = [f"**{label}**: {item.get(key)}" for label, key in fields]
        blocks.append("- " + "\n  ".join(lines))
    return "\n\n".join(blocks)


def format_search_results(args: Arguments, result: dict[str, Any]) -> ToolResponse:
    # Older script versions report Hive/KeyPath, newer ones Type/Path.
    rows = [
        {
            "Hive": item.get("Hive", item.get("Type")),
            "KeyPath": item.get("KeyPath", item.get("Path")),
            "ValueName": item.get("ValueName"),
            "ValueData": item.get("ValueData"),
        }
        for item in as_list(result.get("SearchResults"))
    ]
    listing = _entries(
        rows,
        (("Hive", "Hive"), ("Key", "KeyPath"), ("Value", "ValueName"), ("Data", "ValueData")),
        "No results found.",
    )
    return ToolResponse.text(f'# Registry Search Results for "{args["searchTerm"]}"\n\n{listing}')


def format_startup_programs(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    listing = _entries(
        as_list(result.get("StartupPrograms")),
        (
            ("Name", "Name"),
            ("Command", "Command"),
            ("Location", "Location"),
            ("User", "User"),
            ("Verified", "Verified"),
            ("Suspicious", "Suspicious"),
        ),
        "No startup programs found.",
    )
    return ToolResponse.text(f"# Startup Program Analysis\n\n{listing}")


def format_system_components(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    listing = _entries(
        as_list(result.get("SystemComponents")),
        (("Type", "Type"), ("Name", "Name"), ("Issue", "Issue"), ("Details", "Details")),
        "No issues found with system components.",
    )
    return ToolResponse.text(f"# System Component Scan\n\n{listing}")


def format_orphaned_entries(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    listing = _entries(
        as_list(result.get("OrphanedEntries")),
        (("Path", "Path"), ("Type", "Type")),
        "No orphaned entries found.",
    )
    return ToolResponse.text(f"# Orphaned Registry Entries\n\n{listing}")


def format_registry_health(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    health = result["RegistryHealth"] or {}
    recommendations = as_list(health.get("Recommendations"))
    advice = "\n".join(f"- {r}" for r in recommendations) or "No recommendations."
    return ToolResponse.text(
        "# Registry Health Assessment\n\n"
        f"- **Score**: {health.get('Score')}/100\n"
        f"- **Rating**: {health.get('Rating')}\n"
        f"- **Issues Found**: {health.get('IssuesFound')}\n\n"
        f"## Recommendations\n{advice}"
    )


def format_security_risks(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    listing = _entries(
        as_list(result.get("SecurityFindings")),
        (
            ("ID", "ID"),
            ("Severity", "Severity"),
            ("Description", "Description"),
            ("Details", "Details"),
            ("Recommendation", "Recommendation"),
        ),
        "No security risks found.",
    )
    return ToolResponse.text(f"# Security Risk Scan\n\n{listing}")


TOOLS = (
    ToolDescriptor(
        name="search_registry",
        description="Search the Windows registry by keyword",
        script=SCRIPT,
        parameters=(
            (
                "searchTerm",
                ParameterDef(
                    kind=ParamKind.STRING,
                    description="Keyword to search for in the registry",
                    flag="SearchTerm",
                    required=True,
                ),
            ),
            (
                "maxResults",
                ParameterDef(
                    kind=ParamKind.INTEGER,
                    description="Maximum number of results to return (default: 50)",
                    flag="MaxResults",
                    default=50,
                    minimum=1,
                    maximum=1000,
                ),
            ),
        ),
        fixed_params=(("JsonOutput", True),),
        formatter=format_search_results,
        timeout_seconds=_SCAN_TIMEOUT,
    ),
    ToolDescriptor(
        name="analyze_startup_programs",
        description="Analyze startup programs for suspicious entries",
        script=SCRIPT,
        fixed_params=(("ScanStartup", True), ("JsonOutput", True)),
        formatter=format_startup_programs,
    ),
    ToolDescriptor(
        name="scan_system_components",
        description=(
            "Scan system components like services, drivers, and uninstall entries for issues"
        ),
        script=SCRIPT,
        fixed_params=(
            ("ScanServices", True),
            ("ScanUninstall", True),
            ("ScanFileAssoc", True),
            ("ScanDrivers", True),
            ("JsonOutput", True),
        ),
        formatter=format_system_components,
        timeout_seconds=_SCAN_TIMEOUT,
    ),
    ToolDescriptor(
        name="find_orphaned_entries",
        description="Find orphaned registry entries pointing to non-existent files",
        script=SCRIPT,
        fixed_params=(("FindOrphaned", True), ("JsonOutput", True)),
        formatter=format_orphaned_entries,
        timeout_seconds=_SCAN_TIMEOUT,
    ),
    ToolDescriptor(
        name="get_registry_health",
        description="Get an overall registry health assessment",
        script=SCRIPT,
        fixed_params=(("JsonOutput", True),),
        formatter=format_registry_health,
        required_fields=("RegistryHealth",),
        timeout_seconds=_SCAN_TIMEOUT,
    ),
    ToolDescriptor(
        name="scan_security_risks",
        description="Scan the registry for potential security risks",
        script=SCRIPT,
        fixed_params=(("SecurityScan", True), ("JsonOutput", True)),
        formatter=format_security_risks,
    ),
)
