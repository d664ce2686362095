from dataclasses import dataclass, field
import os

from .constants import GO_MOD, MIRROR_ROOT
from .module_path import ModulePath
from .typed_path import RelDir, RelFile, Remote
from .types import Revision


@dataclass(frozen=True, kw_only=True, slots=True)
class Dependency:
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(frozen=True, kw_only=True, slots=True)
class TargetConfig:
    slug: str
    repo: Remote
    revision: Revision
    go_mod_path: RelFile = GO_MOD
    api_paths: list[str]
    overrides: list[Dependency] = field(default_factory=list)

    @property
    def directory(self) -> RelDir:
        return RelDir(self.slug) / RelDir(self.revision.tag)


@dataclass(frozen=True, kw_only=True, slots=True)
class MirrorConfig:
    module: ModulePath
    mirror_root: RelDir = MIRROR_ROOT
    targets: list[TargetConfig]

    def module_path(self, target: TargetConfig) -> ModulePath:
        root = self.mirror_root.canonical
        segments = [target.slug, target.revision.tag]
        if root != os.curdir:
            segments.insert(0, root.replace(os.sep, "/"))
        return self.module.join(*segments)
