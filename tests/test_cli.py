import json

from typer.testing import CliRunner

from scriptlens.decoration import DECORATION_MARKER
from scriptlens.main import app

runner = CliRunner()


def test_resolve_json_output(tmp_path):
    script = tmp_path / "main.cs"
    script.write_text("//css_inc helper.cs\nusing Acme;\n")
    helper = tmp_path / "helper.cs"
    helper.write_text("")
    (tmp_path / "Acme.dll").write_bytes(b"MZ")

    result = runner.invoke(app, ["resolve", str(script)])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["source_files"] == [str(helper.resolve()), str(script.resolve())]
    assert payload["libraries"] == [str((tmp_path / "Acme.dll").resolve())]
    assert payload["script"] == str(script.resolve())
    assert payload["dedup_strategy"] == "filename"


def test_resolve_missing_import_is_structured_error(tmp_path):
    script = tmp_path / "main.cs"
    script.write_text("//css_inc nowhere.cs\n")

    result = runner.invoke(app, ["resolve", str(script)])

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["status"] == "error"
    assert payload["code"] == "IMPORT_NOT_FOUND"
    assert payload["input"] == "nowhere.cs"


def test_resolve_missing_script(tmp_path):
    result = runner.invoke(app, ["resolve", str(tmp_path / "missing.cs")])

    assert result.exit_code == 1
    assert json.loads(result.stdout)["code"] == "RESOLUTION_FAILED"


def test_resolve_human_mode(tmp_path):
    script = tmp_path / "main.cs"
    script.write_text("")

    result = runner.invoke(app, ["--human", "resolve", str(script)])

    assert result.exit_code == 0
    assert "source" in result.stdout
    assert "main.cs" in result.stdout
    assert "Library identity: filename" in result.stdout


def test_search_dirs_without_engine_root():
    result = runner.invoke(app, ["search-dirs"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"search_dirs": []}


def test_search_dirs_with_engine_root(tmp_path, monkeypatch):
    monkeypatch.setenv("CSSCRIPT_DIR", str(tmp_path))

    result = runner.invoke(app, ["search-dirs"])

    assert json.loads(result.stdout) == {"search_dirs": [str(tmp_path / "Lib")]}


def test_decoration(tmp_path):
    script = tmp_path / "generated.cs"
    script.write_bytes(f"//css_args /ac\n{DECORATION_MARKER}\nvoid main() {{}}\n".encode("utf-8"))

    result = runner.invoke(app, ["decoration", str(script)])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {
        "offset": len("//css_args /ac\n"),
        "length": len(DECORATION_MARKER) + 1,
        "needs_autoclass": True,
    }


def test_decoration_missing_file(tmp_path):
    result = runner.invoke(app, ["decoration", str(tmp_path / "missing.cs")])

    assert result.exit_code == 1
    assert json.loads(result.stdout)["code"] == "FILE_NOT_FOUND"


def test_config_json():
    result = runner.invoke(app, ["config"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["resolution"]["dedup_strategy"] == "filename"


def test_resolve_unwritable_imports_cache_is_structured_error(tmp_path, monkeypatch):
    # The cache root is a regular file, so generated imports cannot be written
    temp_root = tmp_path / "temp"
    temp_root.mkdir()
    (temp_root / "scriptlens").write_text("not a directory")
    monkeypatch.setattr("scriptlens.paths.tempfile.gettempdir", lambda: str(temp_root))

    script = tmp_path / "main.cs"
    script.write_text("//css_import lib.cs, rename_namespace(Old, New);\n")
    (tmp_path / "lib.cs").write_text("namespace Old { }\n")

    result = runner.invoke(app, ["resolve", str(script)])

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["code"] == "MATERIALIZATION_FAILED"
    assert payload["input"] == str(script)
