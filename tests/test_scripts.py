import hashlib
from pathlib import Path

from diagbridge.scripts import DEFAULT_SCRIPTS_DIR, ScriptLibrary


def test_loads_scripts_and_records_missing(tmp_path: Path) -> None:
    (tmp_path / "diagnostic.ps1").write_text("Write-Output 1\n", encoding="utf-8")

    library = ScriptLibrary.load(tmp_path, ["diagnostic", "wmi_query", "diagnostic"])

    script = library.get("diagnostic")
    assert script is not None
    assert script.body == "Write-Output 1\n"
    assert script.digest == hashlib.sha256(b"Write-Output 1\n").hexdigest()
    assert script.short_digest == script.digest[:12]
    assert library.get("wmi_query") is None
    assert library.missing == ("wmi_query",)


def test_byte_order_mark_is_stripped(tmp_path: Path) -> None:
    (tmp_path / "bom.ps1").write_bytes(b"\xef\xbb\xbfparam()\n")

    library = ScriptLibrary.load(tmp_path, ["bom"])

    assert library.get("bom").body == "param()\n"  # type: ignore[union-attr]


def test_suffix_is_configurable(tmp_path: Path) -> None:
    (tmp_path / "sensor.py").write_text("print(1)\n", encoding="utf-8")

    library = ScriptLibrary.load(tmp_path, ["sensor"], suffix=".py")

    assert library.get("sensor").path == tmp_path / "sensor.py"  # type: ignore[union-attr]


def test_missing_directory_loads_nothing(tmp_path: Path) -> None:
    library = ScriptLibrary.load(tmp_path / "absent", ["a", "b"])

    assert library.scripts == {}
    assert library.missing == ("a", "b")


def test_default_directory_is_inside_package() -> None:
    assert DEFAULT_SCRIPTS_DIR.name == "powershell_scripts"
    assert DEFAULT_SCRIPTS_DIR.parent.name == "diagbridge"
