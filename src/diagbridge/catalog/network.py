"""Network diagnostic tool backed by network_diagnostic.ps1."""

from __future__ import annotations

from typing import Any

from .base import Arguments, ParameterDef, ParamKind, ToolDescriptor, ToolResponse, as_list

SCRIPT = "network_diagnostic"

# Ping, DNS and bandwidth tests against remote hosts.
_NETWORK_TIMEOUT = 300


def _adapter(adapter: dict[str, Any]) -> str:
    dns = ", ".join(str(s) for s in as_list(adapter.get("DNSServers"))) or "None"
    lines = [
        f"- **{adapter.get('Name')}** ({adapter.get('Status')}, {adapter.get('Type')})",
        f"  **IPv4**: {adapter.get('IPv4Address') or 'N/A'}",
        f"  **Gateway**: {adapter.get('DefaultGateway') or 'N/A'}",
        f"  **DNS**: {dns}",
    ]
    if adapter.get("SSID"):
        lines.append(f"  **SSID**: {adapter['SSID']} ({adapter.get('SignalStrength')})")
    return "\n".join(lines)


def _dns(entry: dict[str, Any]) -> str:
    if entry.get("Status") == "Success":
        return (
            f"- **{entry.get('Hostname')}**: {entry.get('ResolvedIP')} "
            f"({entry.get('ResponseTime')} ms)"
        )
    return f"- **{entry.get('Hostname')}**: Failed ({entry.get('Error') or 'no response'})"


def _ping(test: dict[str, Any]) -> str:
    if test.get("Status") != "Success":
        return f"- **{test.get('Target')}**: Failed ({test.get('Error') or 'unreachable'})"
    return (
        f"- **{test.get('Target')}**: avg {test.get('AverageMs')} ms "
        f"(min {test.get('MinimumMs')}, max {test.get('MaximumMs')})"
    )


def format_network(args: Arguments, result: dict[str, Any]) -> ToolResponse:
    adapters = as_list(result.get("NetworkAdapters"))
    sections = [
        "# Network Diagnostic Report",
        f"- **Computer**: {result.get('ComputerName')}\n- **Timestamp**: {result.get('Timestamp')}",
        "## Network Adapters\n"
        + ("\n".join(_adapter(a) for a in adapters) or "No network adapters found"),
    ]

    dns = as_list(result.get("DNSResults"))
    sections.append("## DNS Resolution\n" + ("\n".join(_dns(d) for d in dns) or "No DNS tests run"))

    bandwidth = result.get("BandwidthTest") or {}
    pings = as_list(bandwidth.get("PingTests"))
    latency = "\n".join(_ping(p) for p in pings) or "No ping tests run"
    if bandwidth.get("DownloadSpeedMbps") is not None:
        latency += (
            f"\n- **Download Speed**: {bandwidth['DownloadSpeedMbps']} Mbps "
            f"({bandwidth.get('TestFileSize')})"
        )
    sections.append("## Connectivity\n" + latency)

    ports = result.get("PortScan") or {}
    if ports:
        lines = []
        for target, scan in ports.items():
            open_ports = ", ".join(str(p) for p in as_list(scan.get("OpenPorts"))) or "none"
            lines.append(
                f"- **{target}**: open {open_ports} "
                f"(scanned {len(as_list(scan.get('ScannedPorts')))})"
            )
        sections.append("## Port Scan\n" + "\n".join(lines))

    firewall = result.get("FirewallStatus") or {}
    if firewall:
        lines = [
            f"- **{p.get('Name') or name}**: {'Enabled' if p.get('Enabled') else 'Disabled'} "
            f"(in: {p.get('DefaultInboundAction')}, out: {p.get('DefaultOutboundAction')})"
            for name, p in firewall.items()
        ]
        sections.append("## Firewall\n" + "\n".join(lines))

    connections = as_list(result.get("ActiveConnections"))
    if connections:
        header = f"## Active Connections ({len(connections)})"
        if args.get("detailed"):
            rows = "\n".join(
                f"- {c.get('LocalAddress')}:{c.get('LocalPort')} -> "
                f"{c.get('RemoteAddress')}:{c.get('RemotePort')} "
                f"{c.get('State')} ({c.get('ProcessName')}, PID {c.get('ProcessId')})"
                for c in connections
            )
            header += "\n" + rows
        sections.append(header)

    wifi = as_list(result.get("WiFiNetworks"))
    if wifi:
        sections.append(
            "## Wi-Fi Networks\n"
            + "\n".join(
                f"- **{w.get('SSID')}**: {w.get('Authentication')}/{w.get('Encryption')}"
                + (" (saved)" if w.get("Saved") else "")
                for w in wifi
            )
        )

    errors = as_list(result.get("Errors"))
    if errors:
        sections.append("## Errors\n" + "\n".join(f"- {e}" for e in errors))
    return ToolResponse.text("\n\n".join(sections))


TOOLS = (
    ToolDescriptor(
        name="network_diagnostic",
        description=(
            "Diagnose network adapters, DNS resolution, connectivity, open ports "
            "and firewall profiles"
        ),
        script=SCRIPT,
        parameters=(
            (
                "detailed",
                ParameterDef(
                    kind=ParamKind.BOOLEAN,
                    description="Include active connection details",
                    flag="Detailed",
                    default=False,
                ),
            ),
            (
                "testHosts",
                ParameterDef(
                    kind=ParamKind.STRING_LIST,
                    description="Hosts used for DNS and ping tests",
                    flag="TestHosts",
                    default=("8.8.8.8", "1.1.1.1", "google.com"),
                ),
            ),
            (
                "bandwidthTestSize",
                ParameterDef(
                    kind=ParamKind.INTEGER,
                    description="Download test size in MB (default: 10)",
                    flag="BandwidthTestSize",
                    default=10,
                    minimum=1,
                ),
            ),
            (
                "portScanTargets",
                ParameterDef(
                    kind=ParamKind.STRING_LIST,
                    description="Hosts to scan for common open ports",
                    flag="PortScanTargets",
                    default=("localhost",),
                ),
            ),
        ),
        formatter=format_network,
        timeout_seconds=_NETWORK_TIMEOUT,
    ),
)
