from collections.abc import Iterable
import shutil

from loguru import logger

from .constants import GO_SOURCE_SUFFIX, GO_TEST_SUFFIX
from .errors import CopyFailure
from .typed_path import AbsDir, AbsFile


class PackageCopier:
    @classmethod
    def is_go_source(cls, file: AbsFile) -> bool:
        name = file.path.name
        return name.endswith(GO_SOURCE_SUFFIX) and not name.endswith(GO_TEST_SUFFIX)

    @classmethod
    def package_files(cls, package: AbsDir) -> list[AbsFile]:
        """Return the Go source files of a single package (no subdirectories)."""
        if not package.is_folder():
            return []
        return sorted(
            file
            for file in (AbsFile(path) for path in package.path.iterdir())
            if file.is_file() and cls.is_go_source(file)
        )

    @classmethod
    def copy(
        cls, paths: Iterable[AbsFile | AbsDir], source_root: AbsDir, dest_root: AbsDir
    ) -> None:
        for path in paths:
            match path:
                case AbsDir():
                    files = [file for file in path.files() if cls.is_go_source(file)]
                case _:
                    files = [path] if cls.is_go_source(path) else []
            for file in files:
                cls.copy_file(file, source_root, dest_root)

    @classmethod
    def copy_package(cls, package: AbsDir, source_root: AbsDir, dest_root: AbsDir) -> None:
        for file in cls.package_files(package):
            cls.copy_file(file, source_root, dest_root)

    @classmethod
    def copy_file(cls, file: AbsFile, source_root: AbsDir, dest_root: AbsDir) -> AbsFile:
        try:
            destination = dest_root / file.relative_to(source_root)
        except ValueError as e:
            raise CopyFailure(file, dest_root, f"not inside {source_root}") from e
        logger.debug(f"Copying {file} -> {destination}")
        try:
            destination.parent.path.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(file, destination)
        except OSError as e:
            raise CopyFailure(file, destination, f"{type(e).__name__}: {e}") from e
        return destination
