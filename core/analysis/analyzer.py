"""
Local, content-agnostic analysis of a single file change.
"""
from pathlib import PurePosixPath
from typing import Tuple

from core.contracts.models import FileAnalysis, FileCategory, FileChange, Operation
from utils.logger import logger

TEST_DIRECTORIES = frozenset({"test", "tests", "spec", "specs", "__tests__", "testing"})
TEST_SOURCE_EXTENSIONS = frozenset({
    ".py", ".rs", ".go", ".js", ".jsx", ".ts", ".tsx", ".java", ".kt", ".rb", ".php",
    ".cs", ".c", ".cc", ".cpp", ".swift", ".scala", ".ex", ".exs",
})
TEST_STEM_SUFFIXES = ("_test", ".test", "-test", "_tests", "_spec", ".spec", "-spec")
TEST_STEMS = frozenset({"test", "tests", "spec", "conftest"})
# Languages whose test classes are conventionally named FooTest / FooTests.
CLASS_NAMED_TEST_EXTENSIONS = frozenset({".java", ".kt", ".cs", ".swift", ".scala"})

DOCS_EXTENSIONS = frozenset({".md", ".rst", ".txt", ".adoc"})
DOCS_DIRECTORIES = frozenset({"docs", "doc"})

BUILD_FILENAMES = frozenset({
    "package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml",
    "cargo.toml", "cargo.lock", "go.mod", "go.sum",
    "pyproject.toml", "setup.py", "setup.cfg", "poetry.lock", "pipfile", "pipfile.lock",
    "requirements.txt", "gemfile", "gemfile.lock",
    "makefile", "cmakelists.txt", "build.gradle", "build.gradle.kts", "pom.xml",
    "dockerfile", "justfile",
})
BUILD_EXTENSIONS = frozenset({".lock", ".cmake"})

CONFIG_EXTENSIONS = frozenset({".yml", ".yaml", ".json", ".toml", ".ini", ".cfg", ".conf"})
CI_DIRECTORIES = frozenset({".github", ".circleci", ".gitlab", ".buildkite"})

BINARY_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".ico", ".bmp", ".webp", ".svgz",
    ".pdf", ".zip", ".gz", ".tgz", ".tar", ".bz2", ".xz", ".7z", ".jar",
    ".woff", ".woff2", ".ttf", ".otf",
})


def count_lines(diff_content: str) -> Tuple[int, int]:
    """Counts added and removed content lines, ignoring the ``+++``/``---`` file headers."""
    added = removed = 0
    for line in diff_content.splitlines():
        if line.startswith("+") and not line.startswith("+++"):
            added += 1
        elif line.startswith("-") and not line.startswith("---"):
            removed += 1
    return added, removed


def _is_test_file(directories: frozenset, name: str, suffix: str) -> bool:
    if directories & TEST_DIRECTORIES:
        return True
    if suffix not in TEST_SOURCE_EXTENSIONS:
        return False
    stem = name[: -len(suffix)]
    if stem in TEST_STEMS or stem.startswith("test_") or stem.endswith(TEST_STEM_SUFFIXES):
        return True
    return suffix in CLASS_NAMED_TEST_EXTENSIONS and stem.endswith(("test", "tests"))


def categorize_file(path: str) -> FileCategory:
    """
    Categorizes a file by its path alone.

    Rules are checked in order and the first match wins: test, docs, build,
    config, binary, and finally source.
    """
    pure = PurePosixPath(path.lower())
    name = pure.name
    suffix = pure.suffix
    directories = frozenset(pure.parts[:-1])

    if _is_test_file(directories, name, suffix):
        return FileCategory.TEST
    if suffix in DOCS_EXTENSIONS or directories & DOCS_DIRECTORIES:
        return FileCategory.DOCS
    if name in BUILD_FILENAMES or suffix in BUILD_EXTENSIONS:
        return FileCategory.BUILD
    if suffix in CONFIG_EXTENSIONS or directories & CI_DIRECTORIES or name == ".gitlab-ci.yml":
        return FileCategory.CONFIG
    if suffix in BINARY_EXTENSIONS:
        return FileCategory.BINARY
    return FileCategory.SOURCE


def summarize(category: FileCategory, operation: Operation) -> str:
    if operation is Operation.ADDED:
        return f"New {category.value} file added"
    if operation is Operation.DELETED:
        return f"Removed {category.value} file"
    if operation is Operation.RENAMED:
        return "File renamed"
    if operation is Operation.BINARY:
        return "Binary file updated"
    return "File modified"


def analyze_file(path: str, diff_content: str, operation: Operation) -> FileAnalysis:
    """Analyzes one file's diff section without any network access."""
    operation = Operation.parse(operation)
    lines_added, lines_removed = count_lines(diff_content)
    category = categorize_file(path)
    logger.debug(f"Analyzed {path} ({operation.value}): +{lines_added} -{lines_removed} lines, category: {category.value}")
    return FileAnalysis(
        path=path,
        operation=operation,
        lines_added=lines_added,
        lines_removed=lines_removed,
        category=category,
        summary=summarize(category, operation),
    )


def analyze_change(change: FileChange) -> FileAnalysis:
    return analyze_file(change.path, change.diff_content, change.operation)
