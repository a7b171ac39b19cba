"""Unit tests for dev environment repository provisioning."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from helmboot_cli.boot import (
    BootError,
    GitError,
    PushError,
    RepositoryCreationError,
    ScmError,
)
from helmboot_cli.envfactory import (
    CreateRepository,
    RepositoryProvisioner,
    ScmRepository,
    ScmUser,
)

REPO = ScmRepository(
    name="environment-mycluster-dev",
    full_name="myorg/environment-mycluster-dev",
    link="https://github.com/myorg/environment-mycluster-dev",
    clone="https://github.com/myorg/environment-mycluster-dev.git",
)


@pytest.fixture
def git():
    """GitClient double."""
    client = MagicMock()
    client.create_authenticated_url.return_value = "https://octo:t@github.com/myorg/env.git"
    return client


@pytest.fixture
def scm():
    """ScmClient double for user 'octo'."""
    client = MagicMock()
    client.find_current_user.return_value = ScmUser(login="octo")
    client.create_repository.return_value = REPO
    return client


@pytest.fixture
def scm_factory(scm):
    """Factory returning the scm double and its token."""
    return MagicMock(return_value=(scm, "t"))


class TestCreateRepository:
    """Tests for CreateRepository."""

    def test_defaults_applied(self):
        """Test the server and kind default to GitHub."""
        cr = CreateRepository(owner="myorg", repository="env")
        cr.confirm_values(batch_mode=True)

        assert cr.git_server == "https://github.com"
        assert cr.git_kind == "github"

    def test_batch_mode_missing_values(self):
        """Test missing values are an error in batch mode."""
        cr = CreateRepository(owner="myorg")

        with pytest.raises(RepositoryCreationError, match="missing repository"):
            cr.confirm_values(batch_mode=True)

    def test_prompts(self):
        """Test values are prompted for interactively."""
        cr = CreateRepository(owner="myorg", repository="env")
        with patch("helmboot_cli.envfactory.create_repo.questionary.text") as mock_text:
            mock_text.return_value.ask.side_effect = [
                "https://github.example.com",
                "otherorg",
                "env-dev",
            ]
            cr.confirm_values(batch_mode=False)

        assert cr.git_server == "https://github.example.com"
        assert cr.owner == "otherorg"
        assert cr.repository == "env-dev"
        assert mock_text.call_args_list[1][1]["default"] == "myorg"

    def test_prompt_cancelled(self):
        """Test a cancelled prompt raises KeyboardInterrupt."""
        cr = CreateRepository()
        with patch("helmboot_cli.envfactory.create_repo.questionary.text") as mock_text:
            mock_text.return_value.ask.return_value = None
            with pytest.raises(KeyboardInterrupt):
                cr.confirm_values(batch_mode=False)

    def test_create_repository_failure(self, scm):
        """Test SCM failures are wrapped."""
        scm.create_repository.side_effect = ScmError("already exists", status_code=422)
        cr = CreateRepository(git_server="https://github.com", owner="myorg", repository="env")

        with pytest.raises(RepositoryCreationError, match="myorg/env"):
            cr.create_repository(scm)


class TestRepositoryProvisioner:
    """Tests for RepositoryProvisioner."""

    def test_provision(self, boot_dir, git, scm, scm_factory):
        """Test the repository is created and the code pushed to master."""
        provisioner = RepositoryProvisioner(git, scm_factory=scm_factory, batch_mode=True)

        repo = provisioner.provision(boot_dir)

        assert repo == REPO
        scm_factory.assert_called_once_with("https://github.com", "myorg", "github")
        scm.create_repository.assert_called_once_with(
            "myorg", "environment-mycluster-dev", "octo"
        )
        git.create_authenticated_url.assert_called_once_with(REPO.clone, "octo", "t")
        git.push.assert_called_once_with(
            boot_dir, "https://octo:t@github.com/myorg/env.git", True, "HEAD:master"
        )
        scm.close.assert_called_once()

    def test_prints_instructions(self, boot_dir, git, scm_factory, capsys):
        """Test the follow-up commands are printed."""
        RepositoryProvisioner(git, scm_factory=scm_factory, batch_mode=True).provision(boot_dir)

        out = capsys.readouterr().out
        assert "helmboot secrets edit" in out
        assert f"helmboot run --git-url {REPO.link}" in out

    def test_writes_git_url_file(self, boot_dir, git, scm_factory, tmp_path):
        """Test the created URL is saved when requested."""
        out_file = tmp_path / "giturl.txt"
        provisioner = RepositoryProvisioner(
            git, scm_factory=scm_factory, git_url_out_file=str(out_file), batch_mode=True
        )

        provisioner.provision(boot_dir)

        assert out_file.read_text() == REPO.link

    def test_repo_flag_fills_blank_name(self, tmp_path, git, scm, scm_factory):
        """Test --repo is used when the requirements leave the name blank."""
        (tmp_path / "jx-requirements.yml").write_text(
            "cluster:\n  environmentGitOwner: myorg\nenvironments:\n  - key: dev\n"
        )
        provisioner = RepositoryProvisioner(
            git, scm_factory=scm_factory, repo_name="from-flag", batch_mode=True
        )

        provisioner.provision(tmp_path)

        scm.create_repository.assert_called_once_with("myorg", "from-flag", "octo")

    def test_null_owner_and_repository(self, tmp_path, git, scm, scm_factory):
        """Test empty owner and repository fall back to the cluster owner and --repo."""
        (tmp_path / "jx-requirements.yml").write_text(
            "cluster:\n  environmentGitOwner: myorg\nenvironments:\n"
            "  - key: dev\n    owner:\n    repository:\n"
        )
        provisioner = RepositoryProvisioner(
            git, scm_factory=scm_factory, repo_name="env-dev", batch_mode=True
        )

        provisioner.provision(tmp_path)

        scm.create_repository.assert_called_once_with("myorg", "env-dev", "octo")

    def test_no_dev_environment(self, tmp_path, git, scm_factory):
        """Test requirements without a dev environment are rejected."""
        (tmp_path / "jx-requirements.yml").write_text("environments:\n  - key: staging\n")

        with pytest.raises(BootError, match="does not contain a development environment"):
            RepositoryProvisioner(git, scm_factory=scm_factory, batch_mode=True).provision(tmp_path)

        scm_factory.assert_not_called()

    def test_no_token(self, boot_dir, git):
        """Test a missing SCM token is a creation error."""
        factory = MagicMock(side_effect=ScmError("no API token found"))

        with pytest.raises(RepositoryCreationError, match="no API token found"):
            RepositoryProvisioner(git, scm_factory=factory, batch_mode=True).provision(boot_dir)

    def test_creation_failure(self, boot_dir, git, scm, scm_factory):
        """Test the client is closed and nothing pushed when creation fails."""
        scm.create_repository.side_effect = ScmError("already exists", status_code=422)

        with pytest.raises(RepositoryCreationError):
            RepositoryProvisioner(git, scm_factory=scm_factory, batch_mode=True).provision(boot_dir)

        scm.close.assert_called_once()
        git.push.assert_not_called()

    def test_push_failure(self, boot_dir, git, scm_factory, tmp_path):
        """Test a failed push is reported and no URL file written."""
        git.push.side_effect = GitError("rejected")
        out_file = tmp_path / "giturl.txt"

        with pytest.raises(PushError, match="pushing branch master"):
            RepositoryProvisioner(
                git, scm_factory=scm_factory, git_url_out_file=str(out_file), batch_mode=True
            ).provision(boot_dir)

        assert not out_file.exists()
