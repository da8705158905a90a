import asyncio
import os
import stat
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# 导入 diff 来源以注册它们
import core.collectors

from config.logic import load_and_merge_configs
from config.models import Config
from core.generation.orchestrator import generate_commit_message
from core.registry import diff_source_registry
from utils.errors import AuthenticationError, CommitCraftException, GenerationError, NoChangesError
from utils.logger import DEFAULT_LOG_FILE, setup_logger, logger
from utils.git import is_git_repository, commit
from utils.trace import GenerationTrace


HOOK_MARKER = "Managed by commitcraft"

HOOK_SCRIPT = f"""#!/bin/sh
# commitcraft git hook. {HOOK_MARKER}.

# The commit message file is passed as the first argument.
COMMIT_MSG_FILE="$1"

# The source of the commit message is the second argument.
COMMIT_SOURCE="$2"

# Call the generator and pass along the git hook arguments.
# The command will internally decide whether to run.
exec commitcraft generate --from-hook "$COMMIT_MSG_FILE" "$COMMIT_SOURCE"
"""


def apply_cli_overrides(
    config: Config,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    max_length: Optional[int] = None,
    source: Optional[str] = None,
    ref: Optional[str] = None,
) -> Config:
    """将CLI选项应用于加载的配置"""
    if provider:
        config.model.provider = provider
        logger.info(f"使用 provider 覆盖配置: {provider}")
    if model:
        config.model.name = model
        logger.info(f"使用 model 覆盖配置: {model}")
    if max_length:
        config.output.max_commit_length = max_length
        logger.info(f"使用 max length 覆盖配置: {max_length}")
    if ref:
        config.diff.source = "commit"
        config.diff.options = {"ref": ref}
    elif source:
        config.diff.source = source
    return config


def collect_diff(config: Config) -> str:
    """从配置的来源读取 diff"""
    try:
        collector = diff_source_registry.create(config.diff.source, **config.diff.options)
    except KeyError:
        raise CommitCraftException(
            f"未知的 diff 来源 '{config.diff.source}'。可用来源: {diff_source_registry.names()}"
        )
    return collector.collect()["diff"]


def render_trace(console: Console, trace: GenerationTrace) -> None:
    table = Table(title="生成耗时", show_lines=False)
    table.add_column("阶段", style="cyan")
    table.add_column("耗时 (s)", justify="right")
    table.add_column("详情")
    table.add_column("结果")
    for entry in trace.entries:
        table.add_row(
            entry.stage,
            f"{entry.duration_sec:.3f}",
            entry.detail or "",
            "[green]ok[/green]" if entry.ok else "[red]failed[/red]",
        )
    table.caption = f"总计 {trace.total_duration():.3f}s"
    console.print(table)


@click.group(invoke_without_command=True)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="启用详细日志记录以进行调试",
)
@click.pass_context
def cli(ctx, verbose: bool):
    """
    将 diff 转换为简短提交信息的生成器。

    如果未指定子命令，则默认运行 'generate'。
    """
    # 设置日志级别
    setup_logger(log_level="DEBUG" if verbose else "WARNING", log_file=DEFAULT_LOG_FILE)

    # 将 verbose 状态传递给子命令
    ctx.obj = {'verbose': verbose}

    if ctx.invoked_subcommand is None:
        ctx.invoke(generate)


@cli.command("generate")
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="自定义配置文件的路径",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="生成提交信息但不应用它",
)
@click.option(
    "--no-overwrite",
    is_flag=True,
    default=None,  # Default to None to distinguish from False
    help="在 hook 模式下，不覆盖已存在内容的提交信息文件",
)
@click.option("--provider", type=str, help="覆盖 provider (例如 'openai', 'claude', 'dummy')")
@click.option("--model", type=str, help="覆盖模型名称 (例如 'gpt-4o-mini')")
@click.option("--max-length", type=click.IntRange(min=1), help="覆盖提交信息的最大长度")
@click.option(
    "--source",
    type=click.Choice(["staged", "worktree"]),
    help="diff 来源: 暂存区 (staged) 或工作区 (worktree)",
)
@click.option("--ref", type=str, help="为已有的提交生成信息 (例如 'HEAD~1')，隐含 --dry-run")
@click.option(
    "--from-hook",
    nargs=2,
    type=click.Path(),
    default=(None, None),
    help="由 git hook 调用。接收 [commit_msg_file, commit_source]。内部使用。",
    hidden=True,
)
@click.pass_context
def generate(ctx, config_path: str, dry_run: bool, no_overwrite: bool, provider: str, model: str,
             max_length: int, source: str, ref: str, from_hook: tuple):
    """
    生成提交信息。
    """
    console = Console()
    verbose = (ctx.obj or {}).get('verbose', False)
    commit_msg_file, commit_source = from_hook
    is_hook_run = commit_msg_file is not None

    try:
        # 0. 加载配置 (优先，因为 hook 逻辑可能需要配置)
        config = load_and_merge_configs(custom_config_path=config_path)

        # 如果从 hook 运行，执行 hook 的特定逻辑
        if is_hook_run:
            if not config.hook.enabled:
                return  # Hook is disabled in config

            # 如果用户提供了 -m, --template, 或者正在进行 merge/squash/amend，则跳过
            if commit_source in ("message", "template", "merge", "squash", "commit"):
                return

            # 检查文件是否已包含内容 (忽略 git 的注释行)
            if _has_user_content(commit_msg_file):
                should_overwrite = not config.hook.no_overwrite
                if no_overwrite is not None:  # a boolean value was passed
                    should_overwrite = not no_overwrite
                if not should_overwrite:
                    return

        # 1. 前置检查
        if not is_git_repository():
            raise CommitCraftException("不是一个 Git 仓库。请在 Git 仓库中运行此命令。")

        # 2. 应用CLI覆盖
        config = apply_cli_overrides(config, provider, model, max_length, source, ref)

        # 3. 读取 diff 并运行生成流程
        raw_diff = collect_diff(config)
        trace = GenerationTrace()
        # 在 hook 模式下，不显示状态，以免污染 git 输出
        if is_hook_run:
            message = asyncio.run(generate_commit_message(raw_diff, config, trace=trace))
        else:
            with console.status("[bold green]正在生成提交信息...[/bold green]"):
                message = asyncio.run(generate_commit_message(raw_diff, config, trace=trace))

        if verbose and not is_hook_run:
            render_trace(console, trace)

        # 4. 处理输出
        if is_hook_run:
            with open(commit_msg_file, "w", encoding="utf-8") as f:
                f.write(message + "\n")
            # hook 模式下静默退出
            return

        console.print(Panel(
            message,
            title="[bold cyan]生成的提交信息[/bold cyan]",
            border_style="cyan",
            expand=False,
        ))

        if dry_run or ref:
            console.print("\n[yellow]当前为预览模式。要提交信息，请移除 '--dry-run' 参数。[/yellow]")
        else:
            commit(message)
            console.print("\n[bold green]✅ 提交成功![/bold green]")

    except NoChangesError as e:
        logger.info(f"没有可描述的变更: {e}")
        if not is_hook_run:
            console.print("[yellow]没有发现变更。请先执行 git add 命令。[/yellow]")
            ctx.exit(1)
    except AuthenticationError as e:
        logger.error(f"认证失败: {e}")
        if not is_hook_run:
            console.print(f"[bold red]认证失败:[/bold red] {e}\n请检查 API 密钥配置。")
            ctx.exit(1)
    except GenerationError as e:
        logger.error(f"所有生成策略均失败: {e}")
        if not is_hook_run:
            console.print(f"[bold red]错误:[/bold red] {e}")
            ctx.exit(1)
    except CommitCraftException as e:
        logger.error(f"发生已知错误: {e}")
        # 在 hook 模式下，不要打印到控制台，以免干扰 git
        if not is_hook_run:
            console.print(f"[bold red]错误:[/bold red] {e}")
            ctx.exit(1)


def _has_user_content(commit_msg_file: str) -> bool:
    if not os.path.exists(commit_msg_file):
        return False
    with open(commit_msg_file, "r", encoding="utf-8") as f:
        return any(line.strip() and not line.startswith("#") for line in f)


def _hook_path() -> str:
    return os.path.join(".git", "hooks", "prepare-commit-msg")


@cli.command("install-hook")
def install_hook():
    """
    安装 git hook 以在 'git commit' 时自动生成消息。
    """
    console = Console()
    if not is_git_repository():
        console.print("[bold red]错误:[/bold red] 不是一个 Git 仓库。")
        return

    hook_path = _hook_path()
    os.makedirs(os.path.dirname(hook_path), exist_ok=True)

    if os.path.exists(hook_path):
        with open(hook_path, "r", encoding="utf-8") as f:
            content = f.read()
        if HOOK_MARKER not in content:
            console.print("[bold yellow]警告:[/bold yellow] 一个自定义的 'prepare-commit-msg' hook 已存在。")
            if not click.confirm("你确定要覆盖它吗? (建议先备份)"):
                return

    with open(hook_path, "w", encoding="utf-8") as f:
        f.write(HOOK_SCRIPT)

    # 赋予执行权限
    st = os.stat(hook_path)
    os.chmod(hook_path, st.st_mode | stat.S_IEXEC)

    console.print("[bold green]✅ Git hook 安装成功![/bold green]")
    console.print("现在，当你运行 'git commit' 时，将自动为你生成提交信息。")


@cli.command("uninstall-hook")
def uninstall_hook():
    """
    卸载 commitcraft 的 git hook。
    """
    console = Console()
    if not is_git_repository():
        console.print("[bold red]错误:[/bold red] 不是一个 Git 仓库。")
        return

    hook_path = _hook_path()

    if not os.path.exists(hook_path):
        console.print("[yellow]未找到 commitcraft 的 git hook。[/yellow]")
        return

    with open(hook_path, "r", encoding="utf-8") as f:
        content = f.read()

    if HOOK_MARKER in content:
        os.remove(hook_path)
        console.print("[bold green]✅ Git hook 卸载成功![/bold green]")
    else:
        console.print("[bold yellow]警告:[/bold yellow] 'prepare-commit-msg' hook 不是由 commitcraft 安装的。请手动移除。")


if __name__ == "__main__":
    cli()
