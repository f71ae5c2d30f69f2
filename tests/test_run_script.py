import json

import yaml

import apidsl_run


DESIGN = '''
api("calc", lambda: metadata("swagger:tag:Backend", "Math"))
service("calc", lambda: endpoint("add"))
'''


def write_design(tmp_path, source=DESIGN):
    path = tmp_path / "design.py"
    path.write_text(source, encoding="utf-8")
    return str(path)


def test_prints_yaml_by_default(tmp_path, capsys):
    assert apidsl_run.main([write_design(tmp_path)]) == 0
    out = yaml.safe_load(capsys.readouterr().out)
    assert out["api"]["metadata"] == {"swagger:tag:Backend": ["Math"]}
    assert out["services"][0]["endpoints"] == [{"name": "add"}]


def test_prints_json(tmp_path, capsys):
    assert apidsl_run.main([write_design(tmp_path), "json"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["api"]["name"] == "calc"


def test_reports_errors_on_stderr(tmp_path, capsys):
    path = write_design(tmp_path, 'service("calc", lambda: metadata("k"))\n')
    assert apidsl_run.main([path]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("Error on line 1: ")
    assert 'invalid use of metadata in service "calc"' in captured.err


def test_missing_file(tmp_path, capsys):
    assert apidsl_run.main([str(tmp_path / "missing.py")]) == 1
    assert "file not found" in capsys.readouterr().err


def test_usage(capsys):
    assert apidsl_run.main([]) == 2
    assert "usage:" in capsys.readouterr().err


def test_unsupported_format(tmp_path, capsys):
    assert apidsl_run.main([write_design(tmp_path), "toml"]) == 2
    assert "unsupported format: toml" in capsys.readouterr().err


def test_reads_sys_argv(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr("sys.argv", ["apidsl_run.py", write_design(tmp_path), "json"])
    assert apidsl_run.main() == 0
    assert json.loads(capsys.readouterr().out)["api"]["name"] == "calc"


def test_unreadable_path(tmp_path, capsys):
    assert apidsl_run.main([str(tmp_path)]) == 1
    assert "cannot read" in capsys.readouterr().err


def test_prints_stdout_side_effects_before_design(tmp_path, capsys):
    source = (
        "from apidsl.apidsl_eval import current_context\n"
        "current_context().emit('stdout', 'loaded')\n"
        + DESIGN
    )
    assert apidsl_run.main([write_design(tmp_path, source), "json"]) == 0
    captured = capsys.readouterr()
    first, rest = captured.out.split("\n", 1)
    assert first == "loaded"
    assert json.loads(rest)["api"]["name"] == "calc"
    assert captured.err == ""
