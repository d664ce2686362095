from dataclasses import dataclass, field

from loguru import logger

from .copier import PackageCopier
from .errors import MissingInternalPackage, ScanFailure
from .imports import GoImports, ReferenceCodec
from .module_path import ModulePath
from .typed_path import AbsDir
from .types import ImportPath


@dataclass(frozen=True)
class DependencyClosureEngine:
    """Copy every first-party package that the destination tree imports, transitively.

    Each pass scans the whole destination tree, subtracts the packages that were
    already copied and copies the rest in sorted order. The loop ends on the
    first pass that finds nothing new, so cyclic imports terminate and every
    package is copied exactly once.
    """

    codec: ReferenceCodec = field(default_factory=GoImports)

    def expand(
        self, dest_root: AbsDir, upstream: ModulePath, source_root: AbsDir
    ) -> set[ImportPath]:
        seen: set[ImportPath] = set()
        while to_copy := sorted(self.internal_imports(dest_root, upstream) - seen):
            logger.debug(f"Found {len(to_copy)} new internal package(s): {to_copy}")
            for import_path in to_copy:
                self.copy_package(import_path, upstream, source_root, dest_root)
                seen.add(import_path)
        return seen

    def internal_imports(self, dest_root: AbsDir, upstream: ModulePath) -> set[ImportPath]:
        imports: set[ImportPath] = set()
        for file in dest_root.files():
            if not self.codec.applies_to(file):
                continue
            try:
                with open(file, "rb") as f:
                    content = f.read()
            except OSError as e:
                raise ScanFailure(file, f"{type(e).__name__}: {e}") from e
            imports.update(
                import_path
                for import_path in self.codec.extract(content, file=file)
                if upstream.contains(import_path)
            )
        return imports

    def copy_package(
        self, import_path: ImportPath, upstream: ModulePath, source_root: AbsDir, dest_root: AbsDir
    ) -> None:
        package = source_root / upstream.package_dir(import_path)
        if not PackageCopier.package_files(package):
            raise MissingInternalPackage(import_path, package)
        logger.debug(f"Copying internal package {import_path!r}")
        PackageCopier.copy_package(package, source_root, dest_root)
