from __future__ import annotations

from dataclasses import dataclass

from .typed_path import RelDir
from .types import ImportPath


@dataclass(frozen=True, slots=True)
class ModulePath:
    path: ImportPath

    def __post_init__(self) -> None:
        if not self.path or self.path.startswith("/") or self.path.endswith("/"):
            raise ValueError(f"{self.path!r} is not a valid module path.")

    def __str__(self) -> str:
        return self.path

    def contains(self, import_path: ImportPath) -> bool:
        # "a/b" contains "a/b" and "a/b/c" but never "a/bc".
        return import_path == self.path or import_path.startswith(f"{self.path}/")

    def suffix(self, import_path: ImportPath) -> str:
        if not self.contains(import_path):
            raise ValueError(f"{import_path!r} is not inside {self.path!r}.")
        return import_path[len(self.path) + 1 :]

    def package_dir(self, import_path: ImportPath) -> RelDir:
        return RelDir(self.suffix(import_path) or ".")

    def relocate(self, import_path: ImportPath, new: ModulePath) -> ImportPath:
        """Swap this module's prefix for `new`, leaving the rest of the path untouched."""
        if not self.contains(import_path):
            return import_path
        return new.path + import_path[len(self.path) :]

    def join(self, *segments: str) -> ModulePath:
        return ModulePath("/".join([self.path, *(segment.strip("/") for segment in segments)]))
