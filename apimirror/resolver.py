import glob
import os
from pathlib import PurePosixPath

from loguru import logger

from .errors import InvalidPattern
from .typed_path import AbsDir, AbsFile


class PathResolver:
    @classmethod
    def validate(cls, pattern: str) -> None:
        if not pattern.strip():
            raise InvalidPattern(pattern, "the pattern is empty")
        path = PurePosixPath(pattern)
        if path.is_absolute():
            raise InvalidPattern(pattern, "the pattern must be relative to the repository root")
        if ".." in path.parts:
            raise InvalidPattern(pattern, "the pattern goes out of the repository")
        for segment in path.parts:
            cls._validate_segment(pattern, segment)

    @classmethod
    def _validate_segment(cls, pattern: str, segment: str) -> None:
        if segment == "**":
            return
        depth = 0
        for char in segment:
            if char == "[":
                if depth:
                    raise InvalidPattern(pattern, "nested '[' in character class")
                depth += 1
            elif char == "]" and depth:
                depth -= 1
        if depth:
            raise InvalidPattern(pattern, "unterminated character class")

    @classmethod
    def resolve(cls, pattern: str, root: AbsDir) -> list[AbsFile | AbsDir]:
        cls.validate(pattern)
        matches: list[AbsFile | AbsDir] = []
        for match in sorted(glob.glob(pattern, root_dir=os.fspath(root), recursive=True)):
            path = root.path / match
            matches.append(AbsDir(path) if path.is_dir() else AbsFile(path))
        if not matches:
            logger.warning(f"{pattern!r} did not match anything in {os.fspath(root)!r}.")
        return matches
