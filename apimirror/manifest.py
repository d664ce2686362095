from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger

from .config import Dependency
from .constants import DEFAULT_GO_VERSION, GO_MOD
from .gomod import GoMod, ModuleManifest
from .module_path import ModulePath
from .toolchain import GoToolchain, ManifestResolver
from .typed_path import AbsDir


@dataclass(frozen=True)
class ManifestBuilder:
    resolver: ManifestResolver = field(default_factory=GoToolchain)

    def build(
        self,
        upstream: bytes,
        new_module: ModulePath,
        overrides: Sequence[Dependency],
        dest_root: AbsDir,
    ) -> bytes:
        """Write `go.mod` for the mirror in `dest_root` and return its final content.

        Requirements are carried over verbatim; pins are applied on top and
        conflicts between the two are left for the resolver to reconcile.
        """
        manifest = self.manifest(GoMod.parse(upstream), new_module)
        go_mod = dest_root / GO_MOD
        with open(go_mod, "wb") as f:
            f.write(GoMod.format(manifest))
        for dependency in overrides:
            self.resolver.pin(dest_root, dependency)
        self.resolver.resolve(dest_root)
        with open(go_mod, "rb") as f:
            return f.read()

    @classmethod
    def manifest(cls, upstream: ModuleManifest, new_module: ModulePath) -> ModuleManifest:
        manifest = ModuleManifest(
            module=new_module.path,
            go=upstream.go or DEFAULT_GO_VERSION,
            toolchain=upstream.toolchain,
        )
        for requirement in upstream.requirements:
            manifest.add_requirement(
                requirement.path, requirement.version, indirect=requirement.indirect
            )
        logger.debug(f"Carrying over {len(manifest.requirements)} requirement(s)")
        return manifest
