"""Read and write the subset of `go.mod` that mirroring needs.

`module`, `go`, `toolchain` and `require` are kept; the other directives
(`replace`, `exclude`, `retract`, `godebug`, `tool`, `ignore`) are accepted and
dropped, since a mirror only carries requirements forward. Pins are added to the
written file by the go toolchain.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
import re
from typing import ClassVar, NoReturn

from .errors import ManifestParseFailure


@dataclass(frozen=True, slots=True)
class Requirement:
    path: str
    version: str
    indirect: bool = False

    def format(self) -> str:
        line = f"{quote(self.path)} {quote(self.version)}"
        return f"{line} // indirect" if self.indirect else line


TOKEN_PATTERN = re.compile(r'"(?:[^"\\]|\\.)*"|`[^`]*`|\S+')


def quote(token: str) -> str:
    if token and not re.search(r'[\s"`\'(),]|//|=>', token):
        return token
    escaped = token.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def unquote(token: str) -> str:
    if len(token) >= 2 and token[0] == token[-1] == "`":
        return token[1:-1]
    if len(token) >= 2 and token[0] == token[-1] == '"':
        return re.sub(r"\\(.)", r"\1", token[1:-1])
    return token


@dataclass
class ModuleManifest:
    module: str
    go: str | None = None
    toolchain: str | None = None
    requirements: list[Requirement] = field(default_factory=list)

    def add_requirement(self, path: str, version: str, *, indirect: bool = False) -> None:
        self.requirements.append(Requirement(path, version, indirect))


class GoMod:
    @classmethod
    def parse(cls, data: bytes) -> ModuleManifest:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ManifestParseFailure(None, f"not valid UTF-8 ({e.reason})") from e
        return GoModParser().parse(text)

    @classmethod
    def format(cls, manifest: ModuleManifest) -> bytes:
        sections = [f"module {quote(manifest.module)}\n"]
        if manifest.go is not None:
            sections.append(f"go {manifest.go}\n")
        if manifest.toolchain is not None:
            sections.append(f"toolchain {manifest.toolchain}\n")
        if manifest.requirements:
            sections.append(cls._block("require", [req.format() for req in manifest.requirements]))
        return "\n".join(sections).encode("utf-8")

    @classmethod
    def _block(cls, verb: str, lines: Sequence[str]) -> str:
        if len(lines) == 1:
            [line] = lines
            return f"{verb} {line}\n"
        body = "".join(f"\t{line}\n" for line in lines)
        return f"{verb} (\n{body})\n"


@dataclass
class GoModParser:
    module: str | None = None
    go: str | None = None
    toolchain: str | None = None
    requirements: list[Requirement] = field(default_factory=list)
    line: int = 0
    BLOCK_VERBS: ClassVar[frozenset[str]] = frozenset(
        {"require", "replace", "exclude", "retract", "godebug", "tool", "ignore"}
    )
    IGNORED_VERBS: ClassVar[frozenset[str]] = frozenset(
        {"replace", "exclude", "retract", "godebug", "tool", "ignore"}
    )

    def fail(self, message: str) -> NoReturn:
        raise ManifestParseFailure(self.line, message)

    def parse(self, text: str) -> ModuleManifest:
        block: str | None = None
        for self.line, (tokens, comment) in enumerate(self.lines(text), start=1):
            if block is not None:
                if tokens == [")"]:
                    block = None
                elif tokens:
                    self.directive(block, tokens, comment)
                continue
            if not tokens:
                continue
            verb, *args = tokens
            if args == ["("]:
                if verb not in self.BLOCK_VERBS:
                    self.fail(f"{verb!r} does not support blocks")
                block = verb
                continue
            self.directive(verb, args, comment)
        if block is not None:
            self.fail(f"unterminated {block!r} block")
        if self.module is None:
            raise ManifestParseFailure(None, "no module directive")
        return ModuleManifest(
            module=self.module,
            go=self.go,
            toolchain=self.toolchain,
            requirements=self.requirements,
        )

    def lines(self, text: str) -> Iterator[tuple[list[str], str]]:
        for raw in text.splitlines():
            tokens: list[str] = []
            comment = ""
            for match in TOKEN_PATTERN.finditer(raw):
                token = match.group()
                if token.startswith("//"):
                    comment = raw[match.start() + 2 :].strip()
                    break
                tokens.append(token)
            yield tokens, comment

    def directive(self, verb: str, args: list[str], comment: str) -> None:
        match verb:
            case "module":
                self.module = unquote(self.single(verb, args))
            case "go":
                self.go = self.single(verb, args)
            case "toolchain":
                self.toolchain = self.single(verb, args)
            case "require":
                self.require(args, comment)
            case _ if verb in self.IGNORED_VERBS:
                pass
            case _:
                self.fail(f"unknown directive {verb!r}")

    def single(self, verb: str, args: list[str]) -> str:
        match args:
            case [value]:
                return value
        self.fail(f"{verb!r} expects exactly one argument, got {len(args)}")

    def require(self, args: list[str], comment: str) -> None:
        match args:
            case [path, version]:
                indirect = re.match(r"^indirect(;|$)", comment) is not None
                self.requirements.append(Requirement(unquote(path), unquote(version), indirect))
            case _:
                self.fail(f"'require' expects a module path and a version, got {args!r}")
