from dataclasses import dataclass, field
import functools

from loguru import logger

from .errors import ScanFailure
from .imports import GoImports, ReferenceCodec
from .module_path import ModulePath
from .typed_path import AbsDir, AbsFile


@dataclass(frozen=True)
class ImportRewriter:
    codec: ReferenceCodec = field(default_factory=GoImports)

    def rewrite(self, dest_root: AbsDir, old: ModulePath, new: ModulePath) -> int:
        """Point every internal import below `dest_root` at `new`; return how many files changed.

        Every file is parsed before anything is written, so a file that cannot be
        parsed leaves the whole tree as it was.
        """
        rename = functools.partial(old.relocate, new=new)
        rewritten: dict[AbsFile, bytes] = {}
        for file in dest_root.files():
            if not self.codec.applies_to(file):
                continue
            content = self.read(file)
            new_content = self.codec.rewrite(content, rename, file=file)
            if new_content != content:
                rewritten[file] = new_content
        for file, content in rewritten.items():
            logger.trace(f"Rewriting imports in {file}")
            with open(file, "wb") as f:
                f.write(content)
        return len(rewritten)

    @classmethod
    def read(cls, file: AbsFile) -> bytes:
        try:
            with open(file, "rb") as f:
                return f.read()
        except OSError as e:
            raise ScanFailure(file, f"{type(e).__name__}: {e}") from e
