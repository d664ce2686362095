from dataclasses import dataclass, field
import shutil

from loguru import logger

from .closure import DependencyClosureEngine
from .config import MirrorConfig, TargetConfig
from .copier import PackageCopier
from .errors import ManifestParseFailure, PurgeFailure
from .githelper import Fetcher, GitHelper
from .gomod import GoMod
from .imports import GoImports, ReferenceCodec
from .logger import describe
from .manifest import ManifestBuilder
from .module_path import ModulePath
from .resolver import PathResolver
from .rewriter import ImportRewriter
from .toolchain import GoToolchain, ManifestResolver
from .typed_path import AbsDir


@dataclass(frozen=True)
class MirrorOrchestrator:
    config: MirrorConfig
    target: TargetConfig
    mirror_root: AbsDir
    fetcher: Fetcher = field(default_factory=GitHelper)
    resolver: ManifestResolver = field(default_factory=GoToolchain)
    codec: ReferenceCodec = field(default_factory=GoImports)

    @property
    def destination(self) -> AbsDir:
        return self.mirror_root / self.target.directory

    @property
    def new_module(self) -> ModulePath:
        return self.config.module_path(self.target)

    def run(self) -> AbsDir:
        """Mirror the target into its destination directory and return it.

        The destination is purged first and left as is when a step fails.
        """
        with describe(f"Mirroring {self.target.slug} @ {self.target.revision}", level="INFO"):
            self.purge()
            with self.fetcher.fetch(self.target.repo, self.target.revision) as source_root:
                upstream, upstream_manifest = self.upstream(source_root)
                self.seed(source_root)
                self.expand(source_root, upstream)
                self.rewrite(upstream)
                self.build_manifest(upstream_manifest)
        return self.destination

    def purge(self) -> None:
        logger.debug(f"Purging {self.destination}")
        try:
            if self.destination.exists():
                shutil.rmtree(self.destination)
            self.destination.path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PurgeFailure(self.destination, f"{type(e).__name__}: {e}") from e

    def upstream(self, source_root: AbsDir) -> tuple[ModulePath, bytes]:
        go_mod = source_root / self.target.go_mod_path
        try:
            with open(go_mod, "rb") as f:
                content = f.read()
        except OSError as e:
            reason = f"unable to read {go_mod} ({type(e).__name__}: {e})"
            raise ManifestParseFailure(None, reason) from e
        module = GoMod.parse(content).module
        try:
            return ModulePath(module), content
        except ValueError as e:
            raise ManifestParseFailure(None, str(e).rstrip(".")) from e

    @describe("Copying API paths", level="INFO")
    def seed(self, source_root: AbsDir) -> None:
        for pattern in self.target.api_paths:
            matches = PathResolver.resolve(pattern, source_root)
            PackageCopier.copy(matches, source_root, self.destination)

    @describe("Copying internal dependencies", level="INFO")
    def expand(self, source_root: AbsDir, upstream: ModulePath) -> None:
        copied = DependencyClosureEngine(self.codec).expand(self.destination, upstream, source_root)
        logger.debug(f"Copied {len(copied)} internal package(s)")

    @describe("Rewriting imports", level="INFO")
    def rewrite(self, upstream: ModulePath) -> None:
        changed = ImportRewriter(self.codec).rewrite(self.destination, upstream, self.new_module)
        logger.debug(f"Rewrote {changed} file(s)")

    @describe("Building go.mod", level="INFO")
    def build_manifest(self, upstream_manifest: bytes) -> None:
        ManifestBuilder(self.resolver).build(
            upstream_manifest, self.new_module, self.target.overrides, self.destination
        )
