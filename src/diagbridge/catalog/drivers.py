"""Driver inventory tool backed by driver_scanner.ps1."""

from __future__ import annotations

from typing import Any

from .base import Arguments, ParameterDef, ParamKind, ToolDescriptor, ToolResponse, as_list

SCRIPT = "driver_scanner"

_DETAILED_LIMIT = 5


def _switch(flag: str, description: str) -> ParameterDef:
    return ParameterDef(kind=ParamKind.BOOLEAN, description=description, flag=flag, default=False)


def _filter(flag: str, description: str) -> ParameterDef:
    return ParameterDef(kind=ParamKind.STRING, description=description, flag=flag)


def _yes_no(value: Any) -> str:
    return "Yes" if value else "No"


def _driver_block(index: int, driver: dict[str, Any], fields: tuple[tuple[str, str], ...],
                  issues_label: str, issues_key: str) -> str:
    lines = [f"**{index}. {driver.get('DriverName')}**"]
    lines.extend(f"- **{label}**: {driver.get(key)}" for label, key in fields)
    issues = as_list(driver.get(issues_key))
    if issues:
        lines.append(f"- **{issues_label}**: {', '.join(str(i) for i in issues)}")
    return "\n".join(lines)


def format_drivers(args: Arguments, result: dict[str, Any]) -> ToolResponse:
    summary = result["Summary"] or {}
    drivers = as_list(result.get("Drivers"))
    security = result.get("SecurityAnalysis") or {}
    health = result.get("HealthAnalysis") or {}

    summary_lines = [
        f"- **Total Drivers**: {summary.get('TotalDrivers')}",
        f"- **Signed Drivers**: {summary.get('SignedDrivers')}",
        f"- **Unsigned Drivers**: {summary.get('UnsignedDrivers')}",
        f"- **Enabled Drivers**: {summary.get('EnabledDrivers')}",
        f"- **Disabled Drivers**: {summary.get('DisabledDrivers')}",
    ]
    if args.get("checkSecurity"):
        summary_lines.append(f"- **Security Issues**: {summary.get('SecurityIssues')}")
    if args.get("checkVersions"):
        summary_lines.append(f"- **Outdated Drivers**: {summary.get('OutdatedDrivers')}")
    if args.get("checkHealth"):
        summary_lines.append(f"- **Drivers with Errors**: {summary.get('DriversWithErrors')}")
    sections = ["# Driver Scanner Results", "## Summary\n" + "\n".join(summary_lines)]

    unsigned = as_list(security.get("UnsignedDrivers"))
    if args.get("checkSecurity") and unsigned:
        blocks = [
            _driver_block(
                i,
                d,
                (
                    ("Description", "Description"),
                    ("Manufacturer", "Manufacturer"),
                    ("Device Class", "DeviceClass"),
                    ("Path", "DriverPathName"),
                ),
                "Security Issues",
                "SecurityIssues",
            )
            for i, d in enumerate(unsigned, start=1)
        ]
        sections.append(
            f"## Security Analysis\n\n### Unsigned Drivers ({len(unsigned)})\n\n"
            + "\n\n".join(blocks)
        )

    error_devices = as_list(health.get("ErrorDevices"))
    if args.get("checkHealth") and error_devices:
        blocks = [
            _driver_block(
                i,
                d,
                (
                    ("Description", "Description"),
                    ("Manufacturer", "Manufacturer"),
                    ("Device Class", "DeviceClass"),
                ),
                "Health Issues",
                "HealthIssues",
            )
            for i, d in enumerate(error_devices, start=1)
        ]
        sections.append(
            f"## Health Analysis\n\n### Devices with Errors ({len(error_devices)})\n\n"
            + "\n\n".join(blocks)
        )

    outdated = as_list(health.get("OutdatedDrivers"))
    if args.get("checkVersions") and outdated:
        blocks = [
            _driver_block(
                i,
                d,
                (
                    ("Description", "Description"),
                    ("Manufacturer", "Manufacturer"),
                    ("Version", "DriverVersion"),
                    ("Date", "DriverDate"),
                ),
                "Version Issues",
                "VersionIssues",
            )
            for i, d in enumerate(outdated, start=1)
        ]
        sections.append(
            f"## Version Analysis\n\n### Outdated Drivers ({len(outdated)})\n\n"
            + "\n\n".join(blocks)
        )

    if drivers:
        rows = [
            "| Driver Name | Description | Device Class | Manufacturer | Version | Signed | Enabled |",
            "|-------------|-------------|--------------|--------------|---------|--------|---------|",
        ]
        rows.extend(
            f"| {d.get('DriverName')} | {d.get('Description')} | {d.get('DeviceClass')} "
            f"| {d.get('Manufacturer')} | {d.get('DriverVersion')} "
            f"| {_yes_no(d.get('IsSigned'))} | {_yes_no(d.get('IsEnabled'))} |"
            for d in drivers
        )
        sections.append("## Driver Details\n\n" + "\n".join(rows))

    errors = as_list(result.get("Errors"))
    if errors:
        sections.append("## Errors\n\n" + "\n".join(f"- {e}" for e in errors))

    if args.get("detailed") and drivers:
        blocks = []
        for index, driver in enumerate(drivers[:_DETAILED_LIMIT], start=1):
            lines = [
                f"### {index}. {driver.get('DriverName')}",
                "",
                f"- **Hardware ID**: {driver.get('HardwareID')}",
                f"- **Compatible ID**: {driver.get('CompatID')}",
                f"- **Device ID**: {driver.get('DeviceID')}",
                f"- **Signer**: {driver.get('Signer')}",
                f"- **Provider**: {driver.get('ProviderName')}",
                f"- **INF Name**: {driver.get('InfName')}",
                f"- **INF Section**: {driver.get('InfSection')}",
            ]
            for label, key in (("Driver Type", "DriverType"), ("Driver Rank", "DriverRank")):
                if driver.get(key) is not None:
                    lines.append(f"- **{label}**: {driver[key]}")
            blocks.append("\n".join(lines))
        detail = "## Detailed Driver Information\n\n" + "\n\n".join(blocks)
        if len(drivers) > _DETAILED_LIMIT:
            detail += f"\n\n*... and {len(drivers) - _DETAILED_LIMIT} more drivers*"
        sections.append(detail)

    return ToolResponse.text("\n\n".join(sections))


TOOLS = (
    ToolDescriptor(
        name="scan_drivers",
        description=(
            "Scan installed drivers with filters for signing, state and errors, "
            "with optional security, version and health analysis"
        ),
        script=SCRIPT,
        parameters=(
            ("driverName", _filter("DriverName", "Filter by driver name (wildcards accepted)")),
            ("deviceClass", _filter("DeviceClass", "Filter by device class (e.g., Display, Net)")),
            ("manufacturer", _filter("Manufacturer", "Filter by manufacturer")),
            ("signedOnly", _switch("SignedOnly", "Only include signed drivers")),
            ("unsignedOnly", _switch("UnsignedOnly", "Only include unsigned drivers")),
            ("enabledOnly", _switch("EnabledOnly", "Only include enabled drivers")),
            ("disabledOnly", _switch("DisabledOnly", "Only include disabled drivers")),
            ("withErrors", _switch("WithErrors", "Only include devices reporting errors")),
            ("checkSecurity", _switch("CheckSecurity", "Analyze driver signing and security")),
            ("checkVersions", _switch("CheckVersions", "Check for outdated driver versions")),
            ("checkHealth", _switch("CheckHealth", "Check device health and error codes")),
            ("detailed", _switch("Detailed", "Include detailed driver information")),
        ),
        formatter=format_drivers,
        required_fields=("Summary", "Drivers"),
    ),
)
