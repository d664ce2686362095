from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
import dataclasses
from dataclasses import dataclass, field
import os
from typing import Self

from loguru import logger

from .config import MirrorConfig, TargetConfig
from .config_parser import Parser
from .errors import InvalidMirrorRoot
from .githelper import Fetcher, GitHelper
from .logger import describe
from .orchestrator import MirrorOrchestrator
from .toolchain import GoToolchain, ManifestResolver
from .typed_path import AbsDir, AbsFile, RelDir, RelFile


@dataclass
class UnknownTargetError(Exception):
    slugs: Sequence[str]
    known: Sequence[str]

    def __str__(self) -> str:
        unknown = ", ".join(repr(slug) for slug in self.slugs)
        known = ", ".join(repr(slug) for slug in self.known) or "none"
        return f"No target named {unknown} (known targets: {known})."


@dataclass(frozen=True)
class Mirror:
    config: MirrorConfig
    mirror_root: AbsDir
    fetcher: Fetcher = field(default_factory=GitHelper)
    resolver: ManifestResolver = field(default_factory=GoToolchain)

    @classmethod
    def from_file(
        cls, config_file: AbsFile | RelFile, mirror_root: AbsDir | RelDir | None = None
    ) -> Self:
        """Load a mirror from its config file.

        An overriding `mirror_root` replaces `mirrorRoot` in the config, so it also
        changes the module path of every target. It must lie inside the working directory.
        """
        config = Parser.parse_file(config_file)
        if mirror_root is not None:
            config = dataclasses.replace(config, mirror_root=cls.relative_root(mirror_root))
        return cls(config, AbsDir.cwd() / config.mirror_root)

    @classmethod
    def relative_root(cls, mirror_root: AbsDir | RelDir) -> RelDir:
        match mirror_root:
            case AbsDir():
                try:
                    return mirror_root.relative_to(AbsDir.cwd())
                except ValueError as e:
                    raise InvalidMirrorRoot(mirror_root, "it is outside the working directory") from e
            case RelDir():
                if mirror_root.canonical.startswith(os.pardir):
                    raise InvalidMirrorRoot(mirror_root, "it goes out of the working directory")
                return mirror_root

    def __iter__(self) -> Iterator[TargetConfig]:
        return iter(self.config.targets)

    def select(self, only: Iterable[str] = ()) -> list[TargetConfig]:
        only = list(only)
        if not only:
            return list(self)
        known = [target.slug for target in self]
        if unknown := [slug for slug in only if slug not in known]:
            raise UnknownTargetError(unknown, known)
        return [target for target in self if target.slug in only]

    def orchestrator(self, target: TargetConfig) -> MirrorOrchestrator:
        return MirrorOrchestrator(
            self.config,
            target,
            self.mirror_root,
            fetcher=self.fetcher,
            resolver=self.resolver,
        )

    def mirror_all(self, only: Iterable[str] = ()) -> list[AbsDir]:
        targets = self.select(only)
        with describe(f"Mirroring {len(targets)} target(s)", level="INFO"):
            destinations = [self.orchestrator(target).run() for target in targets]
        for destination in destinations:
            logger.info(f"Wrote {destination}")
        return destinations
