import os
import stat
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from llmgrep.config import Config
from llmgrep.constants import BINARY_CHECK_BYTES, MAX_FILE_SIZE
from llmgrep.errors import SetupError
from llmgrep.logging import get_logger
from llmgrep.models import CandidateFile, SkippedFile, SkipReason

_logger = get_logger(__name__)


class FileClassifier:
    def __init__(self, max_file_size: int = MAX_FILE_SIZE, binary_check_bytes: int = BINARY_CHECK_BYTES):
        self.max_file_size = max_file_size
        self.binary_check_bytes = binary_check_bytes

    @classmethod
    def from_config(cls, config: Config) -> "FileClassifier":
        return cls(max_file_size=config.max_file_size, binary_check_bytes=config.binary_check_bytes)

    def is_eligible(self, path: Path) -> bool:
        return self.classify(path) is None

    def classify(self, path: Path) -> SkippedFile | None:
        """Return why `path` must be skipped, or None when it is eligible."""
        try:
            st = path.stat()
        except OSError as e:
            return self.unreadable(path, e)

        if not stat.S_ISREG(st.st_mode):
            return SkippedFile(path, SkipReason.NOT_REGULAR)

        if st.st_size > self.max_file_size:
            return SkippedFile(path, SkipReason.TOO_LARGE, f"{st.st_size} bytes")

        try:
            with path.open("rb") as f:
                prefix = f.read(self.binary_check_bytes)
        except OSError as e:
            return self.unreadable(path, e)

        if b"\0" in prefix:
            return SkippedFile(path, SkipReason.BINARY)
        return None

    def unreadable(self, path: Path, exc: OSError) -> SkippedFile:
        _logger.warning("Skipping unreadable file", path=str(path), error=exc.strerror or str(exc))
        return SkippedFile(path, SkipReason.UNREADABLE, exc.strerror or str(exc))


def validate_root(root: Path) -> Path:
    root = Path(root)
    if not root.exists():
        raise SetupError(f"Directory does not exist: {root}")
    if not root.is_dir():
        raise SetupError(f"Not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise SetupError(f"Directory is not readable: {root}")
    return root.absolute()


def _is_ignored(rel_path: PurePosixPath, ignore_paths: Iterable[str]) -> bool:
    for pattern in ignore_paths:
        pattern = pattern.strip("/")
        if not pattern:
            continue
        if "/" in pattern:
            if rel_path == PurePosixPath(pattern) or PurePosixPath(pattern) in rel_path.parents:
                return True
        elif pattern in rel_path.parts:
            return True
    return False


class TreeWalker:
    """Depth-first walk yielding eligible files in a deterministic order."""

    def __init__(
        self,
        classifier: FileClassifier,
        ignore_paths: Iterable[str] = (),
        follow_symlinks: bool = True,
    ):
        self.classifier = classifier
        self.ignore_paths = tuple(ignore_paths)
        self.follow_symlinks = follow_symlinks
        self.skipped: list[SkippedFile] = []

    @classmethod
    def from_config(cls, config: Config) -> "TreeWalker":
        return cls(
            FileClassifier.from_config(config),
            ignore_paths=config.ignore_paths,
            follow_symlinks=config.follow_symlinks,
        )

    def walk(self, root: Path) -> list[CandidateFile]:
        root = validate_root(root)
        self.skipped = []
        candidates: list[CandidateFile] = []
        visited: set[str] = set()
        self._walk_dir(root, root, visited, candidates)
        _logger.debug("Walk finished", root=str(root), candidates=len(candidates), skipped=len(self.skipped))
        return candidates

    def _walk_dir(self, root: Path, directory: Path, visited: set[str], out: list[CandidateFile]) -> None:
        real = os.path.realpath(directory)
        if real in visited:
            _logger.debug("Skipping already visited directory", path=str(directory))
            return
        visited.add(real)

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            _logger.warning("Cannot list directory", path=str(directory), error=e.strerror or str(e))
            self.skipped.append(SkippedFile(directory, SkipReason.UNREADABLE, e.strerror or str(e)))
            return

        for entry in entries:
            path = Path(entry.path)
            rel = PurePosixPath(path.relative_to(root).as_posix())
            if _is_ignored(rel, self.ignore_paths):
                continue

            try:
                is_dir = entry.is_dir(follow_symlinks=self.follow_symlinks)
            except OSError:
                is_dir = False

            if is_dir:
                self._walk_dir(root, path, visited, out)
                continue
            if entry.is_symlink() and not self.follow_symlinks:
                continue

            if skip := self.classifier.classify(path):
                self.skipped.append(skip)
                continue

            try:
                size = path.stat().st_size
            except OSError as e:
                self.skipped.append(self.classifier.unreadable(path, e))
                continue
            out.append(CandidateFile(path=path, rel_path=str(rel), size=size))
