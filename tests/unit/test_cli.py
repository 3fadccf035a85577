"""Command line interface."""

import json

import pytest
from click.testing import CliRunner

from hashnote.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def sample(tmp_path):
    path = tmp_path / "sample.js"
    path.write_text(
        "function equals(x #number, y #number) #boolean { return x === y }\n",
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture
def broken(tmp_path):
    path = tmp_path / "broken.js"
    path.write_text("let a #A\nlet b #(oops]\n", encoding="utf-8")
    return str(path)


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_scan_json(runner, sample):
    result = runner.invoke(cli, ["scan", sample, "--json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [a["payload"] for a in data["annotations"]] == ["number", "number", "boolean"]
    assert data["annotations"][0]["form"] == "identifier"
    assert data["diagnostics"] == []


def test_attach_json(runner, sample):
    result = runner.invoke(cli, ["attach", sample, "--json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    targets = [entry["target"] for entry in data["table"]]
    assert targets == [
        {"kind": "parameter", "function": "equals", "index": 0},
        {"kind": "parameter", "function": "equals", "index": 1},
        {"kind": "return", "function": "equals"},
    ]


def test_attach_table(runner, sample):
    result = runner.invoke(cli, ["attach", sample])
    assert result.exit_code == 0
    assert "Attachments" in result.output


def test_tokens(runner, sample):
    result = runner.invoke(cli, ["tokens", sample])
    assert result.exit_code == 0
    assert "ANNOTATION" in result.output
    assert "FUNCTION" in result.output


def test_strip(runner, sample):
    result = runner.invoke(cli, ["strip", sample])
    assert result.exit_code == 0
    assert result.output == "function equals(x , y )  { return x === y }\n"


def test_check_ok(runner, sample):
    result = runner.invoke(cli, ["check", sample])
    assert result.exit_code == 0
    assert "3 annotation(s) OK" in result.output


def test_check_reports_malformed(runner, broken):
    result = runner.invoke(cli, ["check", broken])
    assert result.exit_code == 1


def test_strict_rejects_unattached(runner, tmp_path):
    path = tmp_path / "loose.js"
    path.write_text("call() #x\nmore()\n", encoding="utf-8")
    assert runner.invoke(cli, ["scan", str(path)]).exit_code == 0
    assert runner.invoke(cli, ["scan", str(path), "--strict"]).exit_code == 1


def test_variant_option(runner, tmp_path):
    path = tmp_path / "at.js"
    path.write_text("let x @{a: 1} = 2\n", encoding="utf-8")
    result = runner.invoke(cli, ["scan", str(path), "--variant", "at", "--json"])
    assert result.exit_code == 0
    assert [a["payload"] for a in json.loads(result.output)["annotations"]] == ["a: 1"]


def test_max_depth_option(runner, tmp_path):
    path = tmp_path / "deep.js"
    path.write_text("let a #((x))\n", encoding="utf-8")
    assert runner.invoke(cli, ["check", str(path)]).exit_code == 0
    assert runner.invoke(cli, ["check", str(path), "--max-depth", "2"]).exit_code == 1
