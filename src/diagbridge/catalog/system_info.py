"""Privilege and environment check backed by usage_guide_and_administrator_check.ps1."""

from __future__ import annotations

from typing import Any

from .base import Arguments, ParameterDef, ParamKind, ToolDescriptor, ToolResponse, as_list

SCRIPT = "usage_guide_and_administrator_check"

_WORKFLOWS = (
    ("System Crashes", "TroubleshootCrashes"),
    ("Performance Issues", "PerformanceAnalysis"),
    ("Security Audit", "SecurityAudit"),
    ("Storage Management", "StorageManagement"),
)

_CATEGORIES = ("SystemHealth", "Hardware", "Storage", "Events", "Registry", "Processes", "Startup")


def _switch(flag: str, description: str) -> ParameterDef:
    return ParameterDef(kind=ParamKind.BOOLEAN, description=description, flag=flag, default=False)


def _joined(values: Any) -> str:
    return ", ".join(str(v) for v in as_list(values))


def _status(result: dict[str, Any]) -> str:
    admin = result.get("AdminDetails") or {}
    powershell = result["PowerShellInfo"] or {}
    domain = result.get("DomainInfo") or {}
    summary = result["Summary"] or {}
    return (
        "## System Status\n\n"
        f"**Administrator Privileges:** {'ELEVATED' if result['IsAdministrator'] else 'LIMITED'}\n"
        f"**Current User:** {admin.get('CurrentUser')}\n"
        f"**PowerShell Scripts:** "
        f"{'ENABLED' if powershell.get('CanRunScripts') else 'RESTRICTED'}\n"
        f"**Domain Status:** "
        f"{'Domain-joined' if domain.get('IsPartOfDomain') else 'Workgroup'}\n"
        f"**Ready for Full Diagnostics:** "
        f"{'YES' if summary.get('ReadyForDiagnostics') else 'PARTIAL'}"
    )


def _domain(domain: dict[str, Any]) -> str:
    if not domain.get("IsPartOfDomain"):
        return f"## Network Configuration\n\n**Workgroup:** {domain.get('Workgroup') or 'Unknown'}"
    lines = [
        "## Domain Information\n",
        f"**Domain:** {domain.get('Domain')}",
        f"**Domain Role:** {domain.get('DomainRole')}",
    ]
    if domain.get("Forest"):
        lines.append(f"**Forest:** {domain['Forest']}")
    if as_list(domain.get("DomainControllers")):
        lines.append(f"**Domain Controllers:** {_joined(domain['DomainControllers'])}")
    lines.append(f"**Is Domain Controller:** {'Yes' if domain.get('IsDomainController') else 'No'}")
    return "\n".join(lines)


def _usage_guide(guide: dict[str, Any]) -> str:
    parts = [
        "## Diagnostic Toolset Usage Guide",
        "### Quick Start\n\n"
        "**Basic Health Check:** `get_system_diagnostics`\n"
        "**Hardware Monitor:** `hardware_monitor`\n"
        "**Event Analysis:** `event_viewer_analyzer` with search terms\n"
        "**Deep Analysis:** `analyze_system_stability` with 30+ days",
    ]
    workflows = guide.get("CommonWorkflows") or {}
    steps = [
        f"**{title}:**\n" + "\n".join(f"- {step}" for step in as_list(workflows.get(key)))
        for title, key in _WORKFLOWS
    ]
    parts.append("### Common Troubleshooting Workflows\n\n" + "\n\n".join(steps))

    categories = guide.get("ToolCategories")
    if categories:
        parts.append(
            "### Available Tool Categories\n\n"
            + "\n".join(f"**{name}:** {_joined(categories.get(name))}" for name in _CATEGORIES)
        )

    notes = guide.get("PermissionNotes")
    if notes:
        block = (
            "### Permission Requirements\n\n"
            f"**Note:** {notes.get('RequiredForMost')}\n\n"
            f"**Can Run Without Admin:** {_joined(notes.get('CanRunWithoutAdmin'))}\n\n"
            f"**Admin Recommended:** {_joined(notes.get('AdminRecommended'))}"
        )
        performance = as_list(notes.get("PerformanceNotes"))
        if performance:
            block += "\n\n### Performance Notes\n\n" + "\n".join(str(n) for n in performance)
        parts.append(block)
    return "\n\n".join(parts)


def _next_steps(result: dict[str, Any]) -> str:
    if (result["Summary"] or {}).get("ReadyForDiagnostics"):
        return (
            "## Next Steps\n\n"
            "**System is ready for full diagnostic operations.**\n\n"
            "**Recommended starting points:**\n"
            "- Run `get_system_diagnostics` for an overview\n"
            "- Use `hardware_monitor` to check system health\n"
            "- Try `event_viewer_analyzer` to analyze recent events"
        )
    lines = [
        "## Next Steps\n",
        "**System has limitations for diagnostic operations.**\n",
        "**To enable full functionality:**",
    ]
    if not result["IsAdministrator"]:
        lines.append("- Run this tool as Administrator for elevated privileges")
    if not (result["PowerShellInfo"] or {}).get("CanRunScripts"):
        lines.append("- Use `fixExecutionPolicy: true` to enable script execution")
    lines += [
        "",
        "**Tools that work with current permissions:**",
        "- `list_processes`, `list_installed_apps`, `get_system_uptime`",
        "- Basic `hardware_monitor` (limited sensors)",
    ]
    return "\n".join(lines)


def format_system_info(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    powershell = result["PowerShellInfo"] or {}
    policy = (
        "## PowerShell Configuration\n\n"
        f"**Version:** {powershell.get('PSVersion')} ({powershell.get('PSEdition')})\n"
        f"**Execution Policy:** {powershell.get('EffectivePolicy')}\n"
        f"**Current User Policy:** {powershell.get('CurrentUserPolicy')}\n"
        f"**Local Machine Policy:** {powershell.get('LocalMachinePolicy')}"
    )
    if powershell.get("PolicyFixed"):
        policy += f"\n**Policy Updated:** Set to {powershell.get('NewPolicy')} for current user"

    sections = [
        "# System Information & Diagnostic Setup",
        _status(result),
        _domain(result.get("DomainInfo") or {}),
        policy,
    ]

    info = result.get("SystemInfo")
    if info:
        sections.append(
            "## System Details\n\n"
            f"**OS:** {info.get('OS')}\n"
            f"**Version:** {info.get('Version')}\n"
            f"**Build:** {info.get('Build')}\n"
            f"**RAM:** {info.get('TotalRAM_GB')} GB\n"
            f"**Architecture:** {info.get('Architecture')}\n"
            f"**Logical Processors:** {info.get('LogicalProcessors')}"
        )

    recommendations = as_list(result.get("Recommendations"))
    if recommendations:
        sections.append("## Recommendations\n\n" + "\n".join(f"- {r}" for r in recommendations))

    guide = result.get("UsageGuide")
    if guide:
        sections.append(_usage_guide(guide))

    for title, key in (("Errors", "Errors"), ("Warnings", "Warnings")):
        items = as_list(result.get(key))
        if items:
            sections.append(f"## {title}\n\n" + "\n".join(f"- {item}" for item in items))

    sections.append(_next_steps(result))
    return ToolResponse.text("\n\n".join(sections))


TOOLS = (
    ToolDescriptor(
        name="get_system_info",
        description=(
            "Check administrator privileges, PowerShell execution policy and domain "
            "membership, and show a usage guide for the diagnostic tools"
        ),
        script=SCRIPT,
        parameters=(
            (
                "fixExecutionPolicy",
                _switch(
                    "FixExecutionPolicy",
                    "Set the current user's execution policy to RemoteSigned if scripts are blocked",
                ),
            ),
            ("showHelp", _switch("ShowHelp", "Include the diagnostic toolset usage guide")),
            ("detailed", _switch("Detailed", "Include detailed system information")),
        ),
        fixed_params=(("JsonOutput", True),),
        formatter=format_system_info,
        required_fields=("IsAdministrator", "PowerShellInfo", "Summary"),
    ),
)
