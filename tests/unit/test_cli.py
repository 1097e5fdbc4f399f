"""
Unit tests for the command-line interface.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner
from quarryselect import __version__
from quarryselect.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def html_file(tmp_path: Path, sample_html: str) -> Path:
    path = tmp_path / "catalogue.html"
    path.write_text(sample_html, encoding="utf-8")
    return path


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "extraction:\n"
        "  root_selector: '#products'\n"
        "  selectors:\n"
        "    names: .name\n"
        "    note: .note\n",
        encoding="utf-8",
    )
    return path


class TestEvaluateCommand:
    """Test the evaluate command."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_fields_from_options(self, runner, html_file):
        result = runner.invoke(cli, ["evaluate", str(html_file), "-f", "title=h1", "-f", "prices=.price"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["route"] == "success"
        assert data["attributes"]["title"] == "Spring Catalogue"
        assert data["attributes"]["prices"] == '["19.99","49.00"]'

    def test_fields_from_config_file(self, runner, html_file, config_file):
        result = runner.invoke(cli, ["evaluate", str(html_file), "-c", str(config_file), "--destination", "content"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert json.loads(data["content"]) == [["Lamp", "Chair"], "Prices include VAT."]
        assert data["attributes"]["mime.type"] == "application/json"

    def test_config_file_without_selectors(self, runner, html_file, tmp_path: Path):
        path = tmp_path / "options.yaml"
        path.write_text("extraction:\n  root_selector: '#main-header'\n", encoding="utf-8")

        result = runner.invoke(cli, ["evaluate", str(html_file), "-c", str(path), "-f", "nav=li"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["attributes"]["nav"] == '["Home","About"]'

    def test_config_file_still_needs_selectors(self, runner, html_file, tmp_path: Path):
        path = tmp_path / "options.yaml"
        path.write_text("extraction:\n  root_selector: '#main-header'\n", encoding="utf-8")

        result = runner.invoke(cli, ["evaluate", str(html_file), "-c", str(path)])

        assert result.exit_code == 1
        assert "At least one field selector" in result.output

    def test_xpath_markup(self, runner, html_file):
        result = runner.invoke(
            cli,
            ["evaluate", str(html_file), "--dialect", "xpath", "--markup", "-f", "note=//p[@class='note']"],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["attributes"]["note"] == '<p class="note">Prices include <b>VAT</b>.</p>'

    def test_stdin(self, runner):
        result = runner.invoke(cli, ["evaluate", "-", "-f", "x=#a"], input='<div id="a">hello</div>')

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["attributes"] == {"x": "hello"}

    def test_record_attributes_feed_placeholders(self, runner, html_file):
        result = runner.invoke(
            cli,
            ["evaluate", str(html_file), "-a", "sku=B2", "-f", "price=[data-sku='${sku}'] .price"],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["attributes"]["price"] == "49.00"

    def test_not_found_exit_code(self, runner, html_file):
        result = runner.invoke(cli, ["evaluate", str(html_file), "--root", "#missing-root", "-f", "x=h1"])

        assert result.exit_code == 2
        assert json.loads(result.output)["route"] == "not found"

    def test_failure_exit_code(self, runner, html_file, tmp_path: Path):
        # Keep the error log out of the captured output
        log_file = str(tmp_path / "run.log")
        result = runner.invoke(
            cli,
            ["--log-file", log_file, "evaluate", str(html_file), "-f", "price=[data-sku='${sku}']"],
        )

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["route"] == "failure"
        assert "sku" in data["error"]

    def test_invalid_selector(self, runner, html_file):
        result = runner.invoke(cli, ["evaluate", str(html_file), "-f", "x=div["])

        assert result.exit_code == 1
        assert "Invalid selector for field 'x'" in result.output

    def test_malformed_field_option(self, runner, html_file):
        result = runner.invoke(cli, ["evaluate", str(html_file), "-f", "no-equals-sign"])

        assert result.exit_code == 2
        assert "NAME=VALUE" in result.output

    def test_table_format(self, runner, html_file):
        result = runner.invoke(cli, ["evaluate", str(html_file), "-f", "title=h1", "--format", "table"])

        assert result.exit_code == 0, result.output
        assert "Route: success" in result.output
        assert "Spring Catalogue" in result.output

    def test_json_log_file(self, runner, html_file, tmp_path: Path):
        log_file = tmp_path / "logs" / "run.log"

        result = runner.invoke(
            cli,
            ["--log-level", "INFO", "--log-file", str(log_file), "evaluate", str(html_file), "-f", "title=h1"],
        )

        assert result.exit_code == 0, result.output
        events = [json.loads(line)["event"] for line in log_file.read_text(encoding="utf-8").splitlines()]
        assert "Record processed" in events


class TestValidateConfigCommand:
    """Test the validate-config command."""

    def test_valid(self, runner, config_file):
        result = runner.invoke(cli, ["validate-config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Configuration is valid!" in result.output
        assert "names" in result.output

    def test_invalid(self, runner, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("extraction:\n  selectors:\n    x: 'div['\n", encoding="utf-8")

        result = runner.invoke(cli, ["validate-config", str(path)])

        assert result.exit_code == 1
        assert "Configuration has issues" in result.output

    def test_missing_selectors(self, runner, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("logging:\n  log_level: INFO\n", encoding="utf-8")

        result = runner.invoke(cli, ["validate-config", str(path)])

        assert result.exit_code == 1
        assert "At least one field selector" in result.output
