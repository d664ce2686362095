from dataclasses import dataclass

from .typed_path import AbsDir, AbsFile, RelDir, Remote
from .types import ImportPath, Revision


class MirrorError(Exception):
    """Base class for every error that aborts a mirror run."""


@dataclass
class InvalidPattern(MirrorError):
    pattern: str
    reason: str

    def __str__(self) -> str:
        return f"{self.pattern!r} is not a valid API path pattern: {self.reason}."


@dataclass
class CopyFailure(MirrorError):
    source: AbsFile | AbsDir
    destination: AbsFile | AbsDir
    reason: str

    def __str__(self) -> str:
        return f"Unable to copy {self.source} to {self.destination} ({self.reason})."


@dataclass
class MissingInternalPackage(MirrorError):
    import_path: ImportPath
    directory: AbsDir

    def __str__(self) -> str:
        return f"{self.import_path!r} is imported but {self.directory} has no Go source files."


@dataclass
class ScanFailure(MirrorError):
    file: AbsFile
    reason: str

    def __str__(self) -> str:
        return f"Unable to scan {self.file} for imports ({self.reason})."


@dataclass
class ParseFailure(MirrorError):
    file: AbsFile | None
    reason: str

    def __str__(self) -> str:
        location = "source" if self.file is None else str(self.file)
        return f"Unable to parse imports in {location}: {self.reason}."


@dataclass
class ManifestParseFailure(MirrorError):
    line: int | None
    reason: str

    def __str__(self) -> str:
        location = "" if self.line is None else f" @ line {self.line}"
        return f"Unable to parse go.mod{location}: {self.reason}."


@dataclass
class OverrideApplyFailure(MirrorError):
    name: str
    version: str
    reason: str

    def __str__(self) -> str:
        return f"Unable to pin {self.name!r} to {self.version!r} ({self.reason})."


@dataclass
class ResolutionFailure(MirrorError):
    directory: AbsDir
    reason: str

    def __str__(self) -> str:
        return f"Unable to resolve the dependencies of {self.directory} ({self.reason})."


@dataclass
class FetchFailure(MirrorError):
    source: Remote
    revision: Revision
    reason: str

    def __str__(self) -> str:
        return f"Unable to fetch {self.source} at {str(self.revision)!r} ({self.reason})."


@dataclass
class PurgeFailure(MirrorError):
    directory: AbsDir
    reason: str

    def __str__(self) -> str:
        return f"Unable to purge {self.directory} ({self.reason})."


@dataclass
class InvalidMirrorRoot(MirrorError):
    mirror_root: AbsDir | RelDir
    reason: str

    def __str__(self) -> str:
        return f"{self.mirror_root} cannot be used as the mirror root ({self.reason})."
