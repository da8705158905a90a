"""
Turns raw unified diff text into per-file change records.

The parser is deliberately forgiving: it accepts plain ``git diff`` output,
hook diffs using the ``c/``/``i/`` mnemonic prefixes, and history exports
(``git show``, ``git log -p``) that carry commit metadata before the first
file section. It never raises; unrecognised input degrades to a single
``unknown`` record.
"""
import string
from typing import List, Optional, Sequence

from core.contracts.models import FileChange, Operation
from utils.logger import logger

DIFF_HEADER = "diff --git"
UNKNOWN_PATH = "unknown"
PATH_PREFIXES = ("a/", "b/", "c/", "i/")
NULL_PATHS = ("/dev/null", "dev/null")
STRUCTURAL_PREFIXES = ("index ", "--- ", "+++ ", "@@ ")
OPERATION_MARKERS = (
    ("new file mode", Operation.ADDED),
    ("deleted file mode", Operation.DELETED),
    ("rename from", Operation.RENAMED),
    ("rename to", Operation.RENAMED),
    ("Binary files", Operation.BINARY),
)
COMMIT_HASH_LENGTH = 40
PREVIEW_CHARS = 500

_HEX_DIGITS = frozenset(string.hexdigits)


def _preview(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... (truncated)"


def is_commit_metadata(line: str) -> bool:
    """True for ``commit <sha>`` lines and lines that open with a full 40-char hash."""
    if line.startswith("commit "):
        return True
    head = line[:COMMIT_HASH_LENGTH]
    return len(head) == COMMIT_HASH_LENGTH and all(c in _HEX_DIGITS for c in head)


def strip_path_prefix(token: str) -> str:
    token = token.strip('"')
    for prefix in PATH_PREFIXES:
        if token.startswith(prefix):
            return token[len(prefix):]
    return token


def extract_path(header: str) -> Optional[str]:
    """
    Extracts the file path from a ``diff --git <old> <new>`` header.

    The new path wins unless it is ``/dev/null``, which is how some tools
    describe a deleted file; then the old path is used.
    """
    parts = header.split()
    if len(parts) < 4:
        return None
    old_path = strip_path_prefix(parts[2])
    new_path = strip_path_prefix(parts[3])
    path = old_path if new_path in NULL_PATHS else new_path
    return path or None


class _PendingFile:
    """Mutable accumulator for the file section currently being read."""

    def __init__(self, path: str):
        self.path = path
        self.operation = Operation.MODIFIED
        self.marked = False
        self.lines: List[str] = []

    def mark(self, operation: Operation):
        self.operation = operation
        self.marked = True

    def freeze(self) -> FileChange:
        content = "\n".join(self.lines) + "\n" if self.lines else ""
        return FileChange(path=self.path, operation=self.operation, diff_content=content)


class DiffParser:
    """Line-oriented scanner producing one FileChange per ``diff --git`` section."""

    def parse(self, raw_diff: str) -> List[FileChange]:
        if not raw_diff or not raw_diff.strip():
            return []

        lines = raw_diff.splitlines()
        logger.debug(f"Parsing diff with {len(lines)} lines")
        logger.debug(f"Diff content preview:\n{_preview(raw_diff, PREVIEW_CHARS)}")

        files = self._scan(lines)
        if not files:
            logger.debug("Trying to parse as raw git diff output with commit info")
            files = self._split_sections(raw_diff)
        if not files:
            logger.debug("No standard diff format found, treating as single file change")
            files = [FileChange(path=UNKNOWN_PATH, operation=Operation.MODIFIED, diff_content=raw_diff)]

        logger.debug(f"Parsed {len(files)} files from diff")
        for index, change in enumerate(files):
            logger.debug(f"File {index}: {change.path} ({change.operation.value})")
        return files

    def _scan(self, lines: Sequence[str]) -> List[FileChange]:
        files: List[FileChange] = []
        current: Optional[_PendingFile] = None

        for line in lines:
            if not line or is_commit_metadata(line):
                continue

            if line.startswith(DIFF_HEADER):
                if current is not None:
                    files.append(current.freeze())
                path = extract_path(line)
                if path is None:
                    logger.debug(f"Could not extract a path from header: {line!r}")
                    current = None
                    continue
                current = _PendingFile(path)
                current.lines.append(line)
                continue

            if current is None:
                # Metadata or free text outside any file section.
                continue

            marker = self._operation_marker(line)
            if marker is not None:
                current.mark(marker)
            elif not current.marked:
                # Header-less dialects only say /dev/null on the file lines.
                if line.startswith("--- ") and line[4:].strip() in NULL_PATHS:
                    current.operation = Operation.ADDED
                elif line.startswith("+++ ") and line[4:].strip() in NULL_PATHS:
                    current.operation = Operation.DELETED
            current.lines.append(line)

        if current is not None:
            files.append(current.freeze())
        return files

    @staticmethod
    def _operation_marker(line: str) -> Optional[Operation]:
        for prefix, operation in OPERATION_MARKERS:
            if line.startswith(prefix):
                return operation
        return None

    def _split_sections(self, raw_diff: str) -> List[FileChange]:
        files: List[FileChange] = []
        for index, section in enumerate(raw_diff.split(DIFF_HEADER)[1:]):
            if not section.strip():
                continue
            full_section = f"{DIFF_HEADER}{section}"
            path = None
            for section_line in full_section.splitlines()[:3]:
                if section_line.startswith(DIFF_HEADER):
                    path = extract_path(section_line)
                    break
            if path:
                logger.debug(f"Found file in section {index}: {path}")
                files.append(FileChange(path=path, operation=Operation.MODIFIED, diff_content=full_section))
        return files


def parse_diff(raw_diff: str) -> List[FileChange]:
    """Parses a raw diff with a fresh DiffParser."""
    return DiffParser().parse(raw_diff)
