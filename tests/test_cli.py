import os

import pytest
from click.testing import CliRunner

import cli as cli_module
from cli import HOOK_MARKER, apply_cli_overrides, cli
from config.models import Config, ModelConfig


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def patched(mocker, auth_diff):
    """Runs the CLI offline against the dummy provider with a fixed diff."""
    mocker.patch.object(cli_module, "setup_logger")
    mocker.patch.object(cli_module, "is_git_repository", return_value=True)
    mocker.patch.object(
        cli_module, "load_and_merge_configs", return_value=Config(model=ModelConfig(provider="dummy"))
    )
    collect = mocker.patch.object(cli_module, "collect_diff", return_value=auth_diff)
    commit = mocker.patch.object(cli_module, "commit")
    return {"collect": collect, "commit": commit}


def test_generate_dry_run(runner, patched):
    """Tests that --dry-run prints the message without committing."""
    result = runner.invoke(cli, ["generate", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "Add auth" in result.output
    patched["commit"].assert_not_called()


def test_generate_commits(runner, patched):
    """Tests that generate commits the generated message."""
    result = runner.invoke(cli, ["generate"])

    assert result.exit_code == 0, result.output
    patched["commit"].assert_called_once_with("Add auth")


def test_default_command_is_generate(runner, patched):
    """Tests that running without a subcommand generates."""
    result = runner.invoke(cli, [])

    assert result.exit_code == 0, result.output
    patched["commit"].assert_called_once_with("Add auth")


def test_verbose_prints_timings(runner, patched):
    """Tests that --verbose prints the timing table."""
    result = runner.invoke(cli, ["-v", "generate", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "生成耗时" in result.output


def test_max_length_override(runner, patched):
    """Tests that --max-length overrides the configured length."""
    result = runner.invoke(cli, ["generate", "--dry-run", "--max-length", "5"])

    assert result.exit_code == 0, result.output
    assert "Add a" in result.output
    assert "Add auth" not in result.output


def test_no_changes(runner, patched):
    """Tests the error shown when there is nothing staged."""
    patched["collect"].return_value = ""

    result = runner.invoke(cli, ["generate"])

    assert result.exit_code == 1
    assert "没有发现变更" in result.output
    patched["commit"].assert_not_called()


def test_not_a_repository(runner, patched, mocker):
    """Tests the error shown outside a git repository."""
    mocker.patch.object(cli_module, "is_git_repository", return_value=False)

    result = runner.invoke(cli, ["generate"])

    assert result.exit_code == 1
    assert "不是一个 Git 仓库" in result.output


def test_hook_writes_message_file(runner, patched, tmp_path):
    """Tests that hook mode writes the message file silently."""
    msg_file = tmp_path / "COMMIT_EDITMSG"
    msg_file.write_text("# Please enter the commit message\n", encoding="utf-8")

    result = runner.invoke(cli, ["generate", "--from-hook", str(msg_file), ""])

    assert result.exit_code == 0, result.output
    assert msg_file.read_text(encoding="utf-8") == "Add auth\n"
    assert result.output == ""
    patched["commit"].assert_not_called()


@pytest.mark.parametrize("source", ["message", "merge", "squash"])
def test_hook_skips_user_supplied_messages(runner, patched, tmp_path, source):
    """Tests that hook mode leaves user supplied messages alone."""
    msg_file = tmp_path / "COMMIT_EDITMSG"
    msg_file.write_text("Keep me\n", encoding="utf-8")

    result = runner.invoke(cli, ["generate", "--from-hook", str(msg_file), source])

    assert result.exit_code == 0
    assert msg_file.read_text(encoding="utf-8") == "Keep me\n"
    patched["collect"].assert_not_called()


def test_hook_no_overwrite(runner, patched, tmp_path):
    """Tests that --no-overwrite keeps existing message text."""
    msg_file = tmp_path / "COMMIT_EDITMSG"
    msg_file.write_text("Existing text\n", encoding="utf-8")

    result = runner.invoke(cli, ["generate", "--no-overwrite", "--from-hook", str(msg_file), ""])

    assert result.exit_code == 0
    assert msg_file.read_text(encoding="utf-8") == "Existing text\n"


def test_hook_is_silent_on_failure(runner, patched, tmp_path):
    """Tests that hook mode never fails the commit."""
    patched["collect"].return_value = ""
    msg_file = tmp_path / "COMMIT_EDITMSG"
    msg_file.write_text("", encoding="utf-8")

    result = runner.invoke(cli, ["generate", "--from-hook", str(msg_file), ""])

    assert result.exit_code == 0
    assert result.output == ""
    assert msg_file.read_text(encoding="utf-8") == ""


def test_install_and_uninstall_hook(runner, mocker):
    """Tests installing and removing the prepare-commit-msg hook."""
    mocker.patch.object(cli_module, "setup_logger")
    mocker.patch.object(cli_module, "is_git_repository", return_value=True)

    with runner.isolated_filesystem():
        result = runner.invoke(cli, ["install-hook"])
        hook_path = os.path.join(".git", "hooks", "prepare-commit-msg")

        assert result.exit_code == 0, result.output
        with open(hook_path, encoding="utf-8") as f:
            content = f.read()
        assert HOOK_MARKER in content
        assert "commitcraft generate --from-hook" in content
        assert os.access(hook_path, os.X_OK)

        result = runner.invoke(cli, ["uninstall-hook"])
        assert result.exit_code == 0, result.output
        assert not os.path.exists(hook_path)


def test_uninstall_leaves_foreign_hooks(runner, mocker):
    """Tests that hooks not written by commitcraft are kept."""
    mocker.patch.object(cli_module, "setup_logger")
    mocker.patch.object(cli_module, "is_git_repository", return_value=True)

    with runner.isolated_filesystem():
        os.makedirs(os.path.join(".git", "hooks"))
        hook_path = os.path.join(".git", "hooks", "prepare-commit-msg")
        with open(hook_path, "w", encoding="utf-8") as f:
            f.write("#!/bin/sh\necho custom\n")

        result = runner.invoke(cli, ["uninstall-hook"])

        assert result.exit_code == 0
        assert os.path.exists(hook_path)


def test_apply_cli_overrides():
    """Tests that command line options override the config."""
    config = apply_cli_overrides(Config(), provider="claude", model="claude-3-5-sonnet-latest", max_length=50, ref="HEAD~1")

    assert config.model.provider == "claude"
    assert config.model.name == "claude-3-5-sonnet-latest"
    assert config.output.max_commit_length == 50
    assert config.diff.source == "commit"
    assert config.diff.options == {"ref": "HEAD~1"}

    assert apply_cli_overrides(Config(), source="worktree").diff.source == "worktree"
