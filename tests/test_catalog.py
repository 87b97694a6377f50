"""Tests for the tool catalog and argument validation."""

from typing import Any

import pytest

from diagbridge.catalog import (
    SCRIPT_NAMES,
    TOOL_REGISTRY,
    ParameterDef,
    ParamKind,
    ToolDescriptor,
    ToolResponse,
    coerce_value,
    get_tool,
    list_tool_names,
    validate_arguments,
)
from diagbridge.catalog.diagnostics import stability_assessment
from diagbridge.errors import FailureKind, ToolFailure

EXPECTED_TOOLS = {
    "get_system_diagnostics",
    "get_shutdown_events",
    "get_bsod_events",
    "get_system_uptime",
    "analyze_system_stability",
    "search_registry",
    "analyze_startup_programs",
    "scan_system_components",
    "find_orphaned_entries",
    "get_registry_health",
    "scan_security_risks",
    "list_processes",
    "kill_process",
    "start_process",
    "list_installed_apps",
    "hardware_monitor",
    "event_viewer_analyzer",
    "event_viewer_search",
    "scan_drivers",
    "network_diagnostic",
    "wmi_query",
    "get_system_info",
}


def _descriptor(*parameters: tuple[str, ParameterDef]) -> ToolDescriptor:
    return ToolDescriptor(
        name="t",
        description="test tool",
        script="t",
        parameters=parameters,
        formatter=lambda _args, _doc: ToolResponse.text("ok"),
    )


class TestRegistry:
    def test_contains_full_catalog(self) -> None:
        assert set(list_tool_names()) == EXPECTED_TOOLS

    def test_registry_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            TOOL_REGISTRY["new_tool"] = TOOL_REGISTRY["wmi_query"]  # type: ignore[index]

    def test_every_tool_references_a_known_script(self) -> None:
        for descriptor in TOOL_REGISTRY.values():
            assert descriptor.script in SCRIPT_NAMES

    def test_flags_are_unique_per_tool(self) -> None:
        for descriptor in TOOL_REGISTRY.values():
            flags = [flag for flag, _value in descriptor.script_params({})]
            assert len(flags) == len(set(flags)), descriptor.name

    def test_get_tool(self) -> None:
        assert get_tool("wmi_query") is TOOL_REGISTRY["wmi_query"]
        assert get_tool("nope") is None


class TestCoerceValue:
    def test_boolean_strings(self) -> None:
        param = ParameterDef(kind=ParamKind.BOOLEAN, description="")
        assert coerce_value("yes", param) is True
        assert coerce_value("0", param) is False
        assert coerce_value(1, param) is True
        with pytest.raises(ValueError):
            coerce_value("maybe", param)

    def test_number_rejects_bool(self) -> None:
        param = ParameterDef(kind=ParamKind.NUMBER, description="")
        with pytest.raises(ValueError):
            coerce_value(True, param)
        assert coerce_value("2.5", param) == 2.5

    def test_integer_accepts_integral_floats_only(self) -> None:
        param = ParameterDef(kind=ParamKind.INTEGER, description="")
        assert coerce_value(7.0, param) == 7
        assert coerce_value("12", param) == 12
        with pytest.raises(ValueError):
            coerce_value(7.5, param)

    def test_clamps_to_bounds(self) -> None:
        param = ParameterDef(kind=ParamKind.INTEGER, description="", minimum=1, maximum=365)
        assert coerce_value(0, param) == 1
        assert coerce_value(1000, param) == 365

    def test_list_forms(self) -> None:
        strings = ParameterDef(kind=ParamKind.STRING_LIST, description="")
        numbers = ParameterDef(kind=ParamKind.NUMBER_LIST, description="")
        assert coerce_value("System", strings) == ("System",)
        assert coerce_value("System, Application", strings) == ("System", "Application")
        assert coerce_value([4624, "4625", "bad", True], numbers) == (4624, 4625)


class TestValidateArguments:
    def test_defaults_applied_and_unknown_keys_dropped(self) -> None:
        descriptor = TOOL_REGISTRY["analyze_system_stability"]

        validated = validate_arguments(descriptor, {"bogus": 1})

        assert validated == {"daysBack": 30}

    def test_non_mapping_arguments_treated_as_empty(self) -> None:
        validated = validate_arguments(TOOL_REGISTRY["get_bsod_events"], ["junk"])
        assert validated == {"daysBack": 7}

    def test_uncoercible_value_falls_back_to_default(self, caplog: Any) -> None:
        validated = validate_arguments(TOOL_REGISTRY["get_bsod_events"], {"daysBack": "lots"})

        assert validated == {"daysBack": 7}
        assert "ignored" in caplog.text

    def test_missing_required_argument_is_a_failure(self) -> None:
        result = validate_arguments(TOOL_REGISTRY["search_registry"], {"searchTerm": "   "})

        assert isinstance(result, ToolFailure)
        assert result.kind is FailureKind.INVALID_ARGUMENTS
        assert "searchTerm" in result.message

    def test_optional_parameter_without_default_is_none(self) -> None:
        descriptor = _descriptor(("name", ParameterDef(ParamKind.STRING, "", flag="Name")))
        assert validate_arguments(descriptor, None) == {"name": None}


class TestScriptParams:
    def test_declaration_order_then_fixed(self) -> None:
        params = TOOL_REGISTRY["get_system_diagnostics"].script_params(
            {"daysBack": 14, "detailed": True}
        )
        assert params == [("DaysBack", 14), ("Detailed", True), ("JsonOutput", True)]

    def test_uptime_uses_fixed_window(self) -> None:
        params = TOOL_REGISTRY["get_system_uptime"].script_params({})
        assert params == [("DaysBack", 1), ("JsonOutput", True)]

    def test_kill_process_maps_pid_and_name(self) -> None:
        params = TOOL_REGISTRY["kill_process"].script_params({"pid": 42, "name": None})
        assert params == [("KillPID", 42), ("KillName", None), ("JsonOutput", True)]


class TestStabilityAssessment:
    def test_clean_system_is_excellent(self) -> None:
        assessment = stability_assessment({"SystemInfo": {"CurrentUptimeDays": 2}})

        assert assessment["score"] == 100
        assert assessment["rating"] == "Excellent"
        assert assessment["issues"] == []

    def test_penalties(self) -> None:
        result = {
            "BSODEvents": [{"EventID": 1001}],
            "ShutdownEvents": [{"EventID": 6008}, {"EventID": 1074}],
            "Summary": {"TotalApplicationCrashes": 12},
            "HardwareErrors": [{}, {}],
            "SystemInfo": {"CurrentUptimeDays": 45},
        }

        assessment = stability_assessment(result)

        # 100 - 20 (BSOD) - 10 (6008) - 12 (crashes) - 10 (hardware) - 5 (uptime)
        assert assessment["score"] == 43
        assert assessment["rating"] == "Poor"
        assert assessment["unexpected_shutdowns"] == 1
        assert len(assessment["recommendations"]) == 5

    def test_score_floors_at_zero(self) -> None:
        result = {"BSODEvents": [{}] * 10, "SystemInfo": {}, "Summary": {}}
        assert stability_assessment(result)["score"] == 0

    def test_single_powershell_object_is_treated_as_list(self) -> None:
        result = {"BSODEvents": {"EventID": 41}, "SystemInfo": {}, "Summary": {}}
        assessment = stability_assessment(result)
        assert assessment["bsod_count"] == 1
        assert assessment["rating"] == "Good"


class TestFormatters:
    def test_wmi_failure_mentions_whitelist(self) -> None:
        descriptor = TOOL_REGISTRY["wmi_query"]
        response = descriptor.formatter(
            {"className": "Win32_Bad"},
            {
                "Success": False,
                "Errors": ["Class not approved"],
                "SecurityInfo": {"ClassApproved": False},
            },
        )
        text = response.content[0].text
        assert "WMI Query Failed" in text
        assert "Class not approved" in text
        assert "approved whitelist" in text

    def test_wmi_success_previews_three_items(self) -> None:
        data = [{"Name": f"svc{i}", "State": "Running"} for i in range(5)]
        response = TOOL_REGISTRY["wmi_query"].formatter(
            {},
            {
                "Success": True,
                "SecurityInfo": {"ClassApproved": True},
                "QueryInfo": {"ClassName": "Win32_Service", "Properties": []},
                "ExecutionTime": 0.125,
                "Data": data,
            },
        )
        text = response.content[0].text
        assert "### Item 3" in text
        assert "### Item 4" not in text
        assert "*... and 2 more items*" in text
        assert "Name, State" in text
        assert "0.12 seconds" in text or "0.13 seconds" in text

    def test_event_formatter_limits_to_top_five(self) -> None:
        events = [
            {"TimeCreated": "t", "LogName": "System", "Id": i, "Message": "m" * 300}
            for i in range(8)
        ]
        response = TOOL_REGISTRY["event_viewer_search"].formatter(
            {}, {"SearchResults": {"TotalEventsFound": 8}, "Events": events}
        )
        text = response.content[0].text
        assert "Top 5" in text
        assert "### Event 6" not in text
        assert "m" * 200 + "..." in text

    def test_system_info_limited_environment(self) -> None:
        response = TOOL_REGISTRY["get_system_info"].formatter(
            {},
            {
                "IsAdministrator": False,
                "PowerShellInfo": {"CanRunScripts": False},
                "Summary": {"ReadyForDiagnostics": False},
            },
        )
        text = response.content[0].text
        assert "LIMITED" in text
        assert "Run this tool as Administrator" in text
        assert "fixExecutionPolicy" in text
