from collections.abc import Sequence
from dataclasses import dataclass
import os
from subprocess import PIPE, Popen
from typing import Protocol

from loguru import logger

from .config import Dependency
from .errors import OverrideApplyFailure, ResolutionFailure
from .logger import describe
from .typed_path import AbsDir


@dataclass(frozen=True, slots=True, kw_only=True)
class ProcessResult:
    stdout: str
    stderr: str
    returncode: int
    args: Sequence[str]

    def log(self, level: str) -> None:
        logger.log(level, f"Running: {self.args}")
        logger.log(level, f"stdout:\n{self.stdout}")
        logger.log(level, f"stderr:\n{self.stderr}")
        logger.log(level, f"returncode = {self.returncode}")

    @property
    def output(self) -> str:
        return (self.stderr or self.stdout).strip()


class ManifestResolver(Protocol):
    def pin(self, directory: AbsDir, dependency: Dependency) -> None: ...
    def resolve(self, directory: AbsDir) -> None: ...


class GoToolchain:
    executable: str = "go"

    @classmethod
    def environment(cls) -> dict[str, str]:
        env = dict(os.environ)
        # The mirror is its own module, whatever workspace surrounds it.
        env["GOWORK"] = "off"
        return env

    @classmethod
    def run_command(cls, directory: AbsDir, *args: str) -> ProcessResult:
        command = (cls.executable, *args)
        process = Popen(
            command,
            cwd=os.fspath(directory),
            env=cls.environment(),
            stdout=PIPE,
            stderr=PIPE,
            text=True,
        )
        return cls.wait(process, command)

    @classmethod
    def wait(cls, process: Popen[str], command: Sequence[str]) -> ProcessResult:
        stdout, stderr = process.communicate()
        result = ProcessResult(
            stdout=stdout, stderr=stderr, returncode=process.returncode, args=tuple(command)
        )
        result.log(level="TRACE" if result.returncode == 0 else "DEBUG")
        return result

    def pin(self, directory: AbsDir, dependency: Dependency) -> None:
        with describe(f"Pinning {dependency}", level="DEBUG", error_level="DEBUG"):
            try:
                result = self.run_command(
                    directory, "mod", "edit", f"-replace={dependency.name}={dependency}"
                )
            except OSError as e:
                raise OverrideApplyFailure(
                    dependency.name, dependency.version, f"{type(e).__name__}: {e}"
                ) from e
            if result.returncode != 0:
                raise OverrideApplyFailure(dependency.name, dependency.version, result.output)

    def resolve(self, directory: AbsDir) -> None:
        with describe(f"Running `go mod tidy` in {directory}", level="DEBUG", error_level="DEBUG"):
            try:
                result = self.run_command(directory, "mod", "tidy")
            except OSError as e:
                raise ResolutionFailure(directory, f"{type(e).__name__}: {e}") from e
            if result.returncode != 0:
                raise ResolutionFailure(directory, result.output)
