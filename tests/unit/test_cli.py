from click.testing import CliRunner
from locator_extractor import __version__
from locator_extractor.cli.main import cli


def test_version_command():
    result = CliRunner().invoke(cli, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_extract_requires_url(tmp_path):
    result = CliRunner().invoke(cli, ["extract", "--config", str(tmp_path / "missing.json")])
    assert result.exit_code == 1
    assert "URL is required" in result.output


def test_doctor_lists_dependencies():
    result = CliRunner().invoke(cli, ["doctor"])
    assert result.exit_code == 0
    assert "selenium" in result.output
