"""Tests for CLI module."""

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from artifactory_cleaner import __version__
from artifactory_cleaner.cli import app

from conftest import FakeClient, item

runner = CliRunner()

CONFIG = """
artifactory:
  url: https://artifactory.example.com/artifactory
  user: cleaner
  password: secret
retry:
  count: 2
  sleep: 0
snapshot:
  repo: snap
  release_repo: rel
docker:
  repo: docker
releases:
  - rel:org/acme
"""


@pytest.fixture
def config_file(temp_dir: Path) -> Path:
    path = temp_dir / "cleaner.yaml"
    path.write_text(CONFIG)
    return path


@pytest.fixture
def fake() -> FakeClient:
    client = FakeClient()
    client.add_aql(
        '"$or"',
        [item("org/lib/1.0-SNAPSHOT", repo="snap"), item("org/lib/1.0", repo="rel")],
    )
    return client


def invoke(fake: FakeClient, args: list[str]):
    with patch("artifactory_cleaner.cli.ArtifactoryClient", return_value=fake):
        return runner.invoke(app, args)


class TestRunCommand:
    """Tests for the run command."""

    def test_run_all_policies(self, fake: FakeClient, config_file: Path) -> None:
        """All configured policies run and the result table is shown."""
        result = invoke(fake, ["run", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "Cleanup Results" in result.stdout
        assert "release:rel:org/acme" in result.stdout
        assert fake.deleted == [("snap", "org/lib/1.0-SNAPSHOT")]
        assert "Cleanup finished with failures" not in result.stdout

    def test_dry_run(self, fake: FakeClient, config_file: Path) -> None:
        """Dry run performs the queries but no deletes."""
        result = invoke(fake, ["run", "--config", str(config_file), "--dry-run"])

        assert result.exit_code == 0
        assert "dry run" in result.stdout
        assert fake.deleted == []
        assert fake.queries

    def test_only_one_kind(self, fake: FakeClient, config_file: Path) -> None:
        result = invoke(fake, ["run", "--config", str(config_file), "--only", "docker"])

        assert result.exit_code == 0
        assert fake.deleted == []
        assert all("manifest.json" in q for q in fake.queries)

    def test_failure_exits_nonzero(self, fake: FakeClient, config_file: Path) -> None:
        """A failing policy makes the run exit 1 after the others ran."""
        fake.fail_paths.add("org/lib/1.0-SNAPSHOT")

        result = invoke(fake, ["run", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "Cleanup finished with failures: snapshot" in result.stdout
        assert any("manifest.json" in q for q in fake.queries)

    def test_unreachable_server(self, fake: FakeClient, config_file: Path) -> None:
        fake.failures["system_version"] = 100

        result = invoke(fake, ["run", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "Cannot reach Artifactory" in result.stdout
        assert fake.queries == []

    def test_missing_credentials(
        self, fake: FakeClient, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        for name in ("ARTIFACTORY_URL", "ARTIFACTORY_USER", "ARTIFACTORY_PASSWORD"):
            monkeypatch.delenv(name, raising=False)
        path = temp_dir / "nocreds.yaml"
        path.write_text("docker:\n  repo: docker\n")

        result = invoke(fake, ["run", "--config", str(path)])

        assert result.exit_code == 1
        assert "artifactory.url must be defined" in result.stdout


class TestCheckConfigCommand:
    """Tests for the check-config command."""

    def test_lists_policies(self, config_file: Path) -> None:
        result = runner.invoke(app, ["check-config", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "Retention Policies (3)" in result.stdout
        assert "2 attempts" in result.stdout

    def test_does_not_contact_server(self, fake: FakeClient, config_file: Path) -> None:
        """Policies are built against a real store but never executed."""
        result = invoke(fake, ["check-config", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "Retention Policies (3)" in result.stdout
        assert fake.calls == {}
        assert fake.queries == []

    def test_invalid_release_line(self, temp_dir: Path) -> None:
        path = temp_dir / "bad.yaml"
        path.write_text(CONFIG.replace("rel:org/acme", "only-a-repo"))

        result = runner.invoke(app, ["check-config", "--config", str(path)])

        assert result.exit_code == 1
        assert "Configuration error" in result.stdout

    def test_unreadable_filter_file(self, temp_dir: Path) -> None:
        path = temp_dir / "filters.yaml"
        path.write_text(
            CONFIG.replace(
                "  repo: docker\n",
                f"  repo: docker\n  filter_file: {temp_dir / 'absent.txt'}\n",
            )
        )

        result = runner.invoke(app, ["check-config", "--config", str(path)])

        assert result.exit_code == 1

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "broken.yaml"
        path.write_text("workers: [1\n")

        result = runner.invoke(app, ["check-config", "--config", str(path)])

        assert result.exit_code == 1


class TestVersionCommand:
    """Tests for the version command."""

    def test_version(self) -> None:
        """Show version information."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout
