"""Read-only WMI query tool backed by wmi_query.ps1.

The script enforces a whitelist of approved classes and rejects unsafe
WHERE clauses; this module only caps limits and renders the result.
"""

from __future__ import annotations

import json
from typing import Any

from .base import Arguments, ParameterDef, ParamKind, ToolDescriptor, ToolResponse, as_list

SCRIPT = "wmi_query"

MAX_RESULTS = 1000
MAX_QUERY_SECONDS = 60

_PREVIEW_ITEMS = 3


def _yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def _format_failure(result: dict[str, Any]) -> str:
    text = "# WMI Query Failed"
    errors = as_list(result.get("Errors"))
    if errors:
        text += "\n\n**Errors:**\n" + "\n".join(f"- {e}" for e in errors)
    security = result.get("SecurityInfo")
    if security and not security.get("ClassApproved"):
        text += (
            "\n\n**Security Notice**: The requested WMI class is not in the approved "
            "whitelist. Only read-only system information classes are allowed."
        )
    return text


def format_wmi(_args: Arguments, result: dict[str, Any]) -> ToolResponse:
    if not result.get("Success"):
        return ToolResponse.text(_format_failure(result))

    security = result.get("SecurityInfo") or {}
    limits = security.get("SecuritySummary") or {}
    query = result.get("QueryInfo") or {}
    properties = ", ".join(str(p) for p in as_list(query.get("Properties"))) or "All (*)"
    elapsed = result.get("ExecutionTime")
    elapsed_text = f"{elapsed:.2f}" if isinstance(elapsed, (int, float)) else "N/A"

    sections = [
        "# WMI Query Successful",
        "## Security Status\n"
        f"- **Class Approved**: {_yes_no(security.get('ClassApproved'))}\n"
        f"- **Query Sanitized**: {_yes_no(security.get('QuerySanitized'))}\n"
        f"- **Timeout Applied**: {_yes_no(security.get('TimeoutApplied'))}\n"
        "- **Read-Only Operation**: Yes\n"
        f"- **Max Results Limited**: {_yes_no(limits.get('MaxResultsLimited'))}",
        "## Query Information\n"
        f"- **Class**: `{query.get('ClassName')}`\n"
        f"- **Properties**: {properties}\n"
        f"- **WHERE Clause**: {query.get('WhereClause') or 'None'}\n"
        f"- **Max Results**: {query.get('MaxResults')}\n"
        f"- **Actual Results**: {query.get('ActualResults')}\n"
        f"- **Execution Time**: {elapsed_text} seconds",
    ]

    warnings = as_list(result.get("Warnings"))
    if warnings:
        sections.append("## Warnings\n" + "\n".join(f"- {w}" for w in warnings))

    data = as_list(result.get("Data"))
    if data:
        preview = [
            f"### Item {i}\n```json\n{json.dumps(item, indent=2)}\n```"
            for i, item in enumerate(data[:_PREVIEW_ITEMS], start=1)
        ]
        block = f"## Data Results ({len(data)} items)\n\n" + "\n\n".join(preview)
        if len(data) > _PREVIEW_ITEMS:
            block += f"\n\n*... and {len(data) - _PREVIEW_ITEMS} more items*"
        sections.append(block)
        names = sorted({key for item in data if isinstance(item, dict) for key in item})
        sections.append(
            f"## Available Properties\nFound {len(names)} unique properties:\n" + ", ".join(names)
        )
    else:
        sections.append("## Data Results\nNo data returned for the specified query.")

    return ToolResponse.text("\n\n".join(sections))


TOOLS = (
    ToolDescriptor(
        name="wmi_query",
        description=(
            "Run a read-only WMI query against an approved class, with result "
            "and timeout limits"
        ),
        script=SCRIPT,
        parameters=(
            (
                "className",
                ParameterDef(
                    kind=ParamKind.STRING,
                    description="WMI class to query (e.g., Win32_OperatingSystem)",
                    flag="ClassName",
                    required=True,
                ),
            ),
            (
                "properties",
                ParameterDef(
                    kind=ParamKind.STRING_LIST,
                    description="Properties to select (default: all)",
                    flag="Properties",
                ),
            ),
            (
                "whereClause",
                ParameterDef(
                    kind=ParamKind.STRING,
                    description="Optional WHERE clause filter",
                    flag="WhereClause",
                ),
            ),
            (
                "maxResults",
                ParameterDef(
                    kind=ParamKind.INTEGER,
                    description=f"Maximum results to return (default: 100, max: {MAX_RESULTS})",
                    flag="MaxResults",
                    default=100,
                    minimum=1,
                    maximum=MAX_RESULTS,
                ),
            ),
            (
                "timeoutSeconds",
                ParameterDef(
                    kind=ParamKind.INTEGER,
                    description=f"Query timeout in seconds (default: 30, max: {MAX_QUERY_SECONDS})",
                    flag="TimeoutSeconds",
                    default=30,
                    minimum=1,
                    maximum=MAX_QUERY_SECONDS,
                ),
            ),
        ),
        fixed_params=(("JsonOutput", True),),
        formatter=format_wmi,
        required_fields=("Success",),
    ),
)
