import importlib
import json
import sys
import textwrap
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from diagbridge.catalog import SCRIPT_NAMES
from diagbridge.interpreters import Interpreter, InterpreterConfig, InvocationMode
from diagbridge.scripts import ScriptLibrary

server_module = importlib.import_module("diagbridge.server")
runner_module = importlib.import_module("diagbridge.runner")

UPTIME_DOCUMENT = {
    "SystemInfo": {
        "CurrentUptimeDays": 3,
        "CurrentUptimeHours": 4,
        "CurrentUptimeMinutes": 5,
        "LastBootTime": "2024-05-01 08:00:00",
        "OSVersion": "Microsoft Windows 11 Pro",
        "TotalMemoryGB": 32,
    }
}

# Reads "-Flag value" / "-Switch" pairs the way a PowerShell param block binds them.
_ARGPARSE = textwrap.dedent(
    """
    import json
    import sys

    def parse(argv):
        params = {}
        index = 0
        while index < len(argv):
            key = argv[index].lstrip("-")
            if index + 1 < len(argv) and not argv[index + 1].startswith("-"):
                params[key] = argv[index + 1]
                index += 2
            else:
                params[key] = True
                index += 1
        return params

    params = parse(sys.argv[1:])
    """
)

PYTHON_SCRIPTS = {
    "emit_items": _ARGPARSE
    + textwrap.dedent(
        """
        count = int(params.get("Count", 0))
        print(json.dumps({"Items": [f"item-{i}" for i in range(count)], "Count": count}))
        """
    ),
    "echo_args": _ARGPARSE + "print(json.dumps({'argv': sys.argv[1:], 'params': params}))\n",
    "fail": "import sys\nsys.stderr.write('access denied\\n')\nsys.exit(3)\n",
    "garbage": "print('WARNING: not json at all')\n",
    "sleepy": "import time\ntime.sleep(30)\n",
    "noisy": textwrap.dedent(
        """
        import json
        import sys

        sys.stderr.write("x" * 1_000_000)
        sys.stderr.flush()
        print(json.dumps({"ok": True}))
        """
    ),
}


@pytest.fixture
def fake_scripts(tmp_path: Path, monkeypatch: Any) -> ScriptLibrary:
    """Install a placeholder .ps1 for every catalog script."""
    directory = tmp_path / "powershell_scripts"
    directory.mkdir()
    for name in SCRIPT_NAMES:
        (directory / f"{name}.ps1").write_text(
            "param([switch]$JsonOutput)\n'{}'\n", encoding="utf-8"
        )
    library = ScriptLibrary.load(directory, SCRIPT_NAMES)
    monkeypatch.setattr(server_module, "SCRIPTS", library)
    return library


@pytest.fixture
def mock_popen(mocker: Any, fake_scripts: ScriptLibrary) -> MagicMock:
    popen = mocker.patch("diagbridge.runner.Popen")
    process = MagicMock()
    process.pid = 4242
    process.communicate.return_value = (json.dumps(UPTIME_DOCUMENT).encode("utf-8"), b"")
    process.returncode = 0
    process.poll.return_value = 0
    popen.return_value = process
    return popen


@pytest.fixture
def python_interpreter() -> Interpreter:
    """The current Python standing in for PowerShell in file mode."""
    return Interpreter(
        InterpreterConfig(
            name="python",
            command=sys.executable,
            base_args=(),
            safe_env_keys=("PATH", "SYSTEMROOT", "SystemRoot", "TEMP", "TMP"),
            install_hint="use a Python interpreter",
            mode=InvocationMode.FILE,
            command_flag=None,
            file_flag=None,
            script_suffix=".py",
        )
    )


@pytest.fixture
def script_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "py_scripts"
    directory.mkdir()
    for name, body in PYTHON_SCRIPTS.items():
        (directory / f"{name}.py").write_text(body, encoding="utf-8")
    return directory


@pytest.fixture
def python_scripts(script_dir: Path) -> ScriptLibrary:
    return ScriptLibrary.load(script_dir, PYTHON_SCRIPTS, suffix=".py")


@pytest.fixture
def reset_active_processes() -> Iterator[None]:
    runner_module._active_processes.clear()
    yield
    runner_module._active_processes.clear()
