"""Unit tests for the canvasspider CLI commands."""

from unittest.mock import Mock, patch

import pytest
import yaml
from click.testing import CliRunner

from canvasspider.cli import main
from canvasspider.exceptions import CanvasAuthenticationError
from canvasspider.models import Course


@pytest.fixture
def runner():
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def no_token_env(monkeypatch):
    monkeypatch.delenv("CANVAS_API_TOKEN", raising=False)
    monkeypatch.delenv("CANVAS_API_URL", raising=False)


@pytest.fixture
def mock_client():
    with patch("canvasspider.cli.CanvasClient") as mock_class:
        client = Mock()
        mock_class.return_value = client
        yield client


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_main_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "--token" in result.output
        for command in ("courses", "download", "template", "user", "quota"):
            assert command in result.output


class TestCoursesCommand:
    """Tests for the courses command."""

    def test_courses_list(self, runner, mock_client):
        mock_client.list_courses.return_value = [
            Course(1, "Algorithms", "CS101", "2024-01-10T00:00:00Z", "2024-05-01T00:00:00Z")
        ]
        result = runner.invoke(main, ["--token", "abc", "courses", "--all"])

        assert result.exit_code == 0
        assert "Algorithms" in result.output
        assert "2024-01-10" in result.output
        mock_client.list_courses.assert_called_once_with("all")
        mock_client.close.assert_called_once()

    def test_courses_json(self, runner, mock_client):
        mock_client.list_courses.return_value = [Course(1, "Algorithms")]
        result = runner.invoke(main, ["--token", "abc", "--json", "courses"])

        assert result.exit_code == 0
        assert '"Name": "Algorithms"' in result.output

    def test_courses_without_token(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(main, ["courses"])
        assert result.exit_code == 1

    def test_courses_token_from_config_file(self, runner, tmp_path, mock_client):
        mock_client.list_courses.return_value = []
        with runner.isolated_filesystem(temp_dir=tmp_path):
            with open("main.yaml", "w") as f:
                yaml.safe_dump({"authentication": "from-file"}, f)
            with patch("canvasspider.cli.CanvasClient") as mock_class:
                mock_class.return_value = mock_client
                result = runner.invoke(main, ["courses"])

        assert result.exit_code == 0
        assert mock_class.call_args.kwargs["api_token"] == "from-file"

    def test_courses_api_error(self, runner, mock_client):
        mock_client.list_courses.side_effect = CanvasAuthenticationError("bad token")
        result = runner.invoke(main, ["--token", "abc", "courses"])
        assert result.exit_code == 1
        mock_client.close.assert_called_once()


class TestDownloadCommand:
    """Tests for the download command."""

    def test_missing_config(self, runner, tmp_path):
        result = runner.invoke(main, ["download", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1

    def test_missing_authentication(self, runner, tmp_path):
        config_file = tmp_path / "main.yaml"
        config_file.write_text(yaml.safe_dump({"baseDir": "out"}))
        result = runner.invoke(main, ["download", str(config_file)])
        assert result.exit_code == 1

    @patch("canvasspider.cli.SyncEngine")
    def test_download_runs_engine(self, mock_engine_class, runner, tmp_path, mock_client):
        engine = Mock()
        engine.run.return_value = {"failed": 0}
        mock_engine_class.return_value = engine
        config_file = tmp_path / "main.yaml"
        config_file.write_text(
            yaml.safe_dump({"authentication": "abc", "baseDir": str(tmp_path)})
        )

        result = runner.invoke(
            main, ["download", str(config_file), "--dry-run", "--workers", "3"]
        )

        assert result.exit_code == 0
        engine.run.assert_called_once_with(dry_run=True, status="all", max_workers=3)
        mock_client.close.assert_called_once()

    @patch("canvasspider.cli.SyncEngine")
    def test_download_failures_exit_non_zero(
        self, mock_engine_class, runner, tmp_path, mock_client
    ):
        engine = Mock()
        engine.run.return_value = {"failed": 2}
        mock_engine_class.return_value = engine
        config_file = tmp_path / "main.yaml"
        config_file.write_text(yaml.safe_dump({"authentication": "abc"}))

        result = runner.invoke(main, ["download", str(config_file)])

        assert result.exit_code == 1


class TestTemplateCommand:
    """Tests for the template command."""

    def test_template_to_stdout(self, runner):
        result = runner.invoke(
            main,
            ["template", "-o", "-", "--base", "courses", "-l", "2gb", "-b", "a.pdf,b.pdf"],
        )

        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["baseDir"] == "courses"
        assert data["maxTotalSize"] == "2.0gb"
        assert data["fileBlackList"] == ["a.pdf", "b.pdf"]

    def test_template_refuses_overwrite(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            with open("main.yaml", "w") as f:
                f.write("keep: me\n")
            result = runner.invoke(main, ["template"])
            with open("main.yaml") as f:
                content = f.read()

        assert result.exit_code == 1
        assert content == "keep: me\n"

    def test_template_writes_file(self, runner, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(main, ["template", "-u", "overwrite"])
            with open("main.yaml") as f:
                data = yaml.safe_load(f)

        assert result.exit_code == 0
        assert data["update"] == "overwrite"

    def test_template_invalid_size(self, runner):
        result = runner.invoke(main, ["template", "-o", "-", "-l", "lots"])
        assert result.exit_code == 1


class TestUserAndQuota:
    """Tests for the user and quota commands."""

    def test_user(self, runner, mock_client):
        mock_client.get_logged_user.return_value = {
            "id": 3,
            "name": "Ada Lovelace",
            "login_id": "ada",
        }
        result = runner.invoke(main, ["--token", "abc", "user"])

        assert result.exit_code == 0
        assert "Ada Lovelace" in result.output
        mock_client.close.assert_called_once()

    def test_quota(self, runner, mock_client):
        mock_client.get_quota.return_value = {
            "quota": 50 * 1024 * 1024,
            "quota_used": 10 * 1024 * 1024,
        }
        result = runner.invoke(main, ["--token", "abc", "quota"])

        assert result.exit_code == 0
        assert "40.0 MB" in result.output
        mock_client.close.assert_called_once()
