from collections.abc import Iterator
import contextlib
from contextlib import AbstractContextManager
import os
import re
import shutil
import tempfile
from typing import Protocol

from git import GitCommandError
from git import Repo as GitRepo
from loguru import logger

from .constants import MIRROR_CACHE
from .errors import FetchFailure
from .logger import describe
from .typed_path import AbsDir, Remote
from .types import Revision


class Fetcher(Protocol):
    def fetch(self, remote: Remote, revision: Revision) -> AbstractContextManager[AbsDir]: ...


class GitHelper:
    @classmethod
    @contextlib.contextmanager
    def fetch(cls, remote: Remote, revision: Revision) -> Iterator[AbsDir]:
        """Check out `revision` of `remote` into a fresh directory that is removed on exit."""
        local = cls.scratch_dir(remote, revision)
        try:
            cls._clone(remote, revision, local)
            yield local
        finally:
            cls.release(local)

    @classmethod
    def scratch_dir(cls, remote: Remote, revision: Revision) -> AbsDir:
        name = re.sub(r"[^\w.-]+", "-", remote.canonical.rsplit("/", 1)[-1]) or "repo"
        try:
            MIRROR_CACHE.path.mkdir(parents=True, exist_ok=True)
            return AbsDir(tempfile.mkdtemp(prefix=f"{name}-{revision}-", dir=MIRROR_CACHE))
        except OSError as e:
            reason = f"unable to create a directory in {MIRROR_CACHE} ({type(e).__name__}: {e})"
            raise FetchFailure(remote, revision, reason) from e

    @classmethod
    def _clone(cls, remote: Remote, revision: Revision, local: AbsDir) -> None:
        with describe(f"Cloning {remote} @ {str(revision)!r} into {local}", error_level="DEBUG"):
            try:
                # gitpython-developers/GitPython#2085
                GitRepo.clone_from(
                    remote.url,
                    os.fspath(local),
                    depth=1,
                    branch=revision.tag,
                    single_branch=True,
                )
            except GitCommandError as e:
                logger.debug(e)
                raise FetchFailure(remote, revision, cls.reason(e)) from e

    @classmethod
    def reason(cls, e: GitCommandError) -> str:
        stderr = str(e.stderr).strip().removeprefix("stderr:").strip().strip("'").strip()
        return stderr.splitlines()[-1] if stderr else f"git exited with {e.status}"

    @classmethod
    def release(cls, local: AbsDir) -> None:
        def log_failure(function: object, path: str, exception: BaseException) -> None:
            logger.warning(f"Unable to remove {path!r} ({type(exception).__name__}: {exception}).")

        logger.trace(f"Removing {local}")
        shutil.rmtree(os.fspath(local), onexc=log_failure)
