"""Locate and rewrite the import paths of a Go source file.

Files are parsed with the tree-sitter Go grammar. Only the package clause and
the import declarations that directly follow it are read; the first other
top-level declaration ends the header, so syntax in the body of the file is
never interpreted. Rewriting splices new import path literals into the
original bytes and leaves every other byte untouched.
"""

from __future__ import annotations

import codecs
from collections.abc import Callable, Iterator
from dataclasses import dataclass
import functools
from typing import NoReturn, Protocol

from tree_sitter import Node, Parser
from tree_sitter_language_pack import get_language

from .constants import GO_SOURCE_SUFFIX
from .errors import ParseFailure
from .typed_path import AbsFile
from .types import ImportPath


class ReferenceCodec(Protocol):
    def applies_to(self, file: AbsFile) -> bool: ...

    def extract(self, content: bytes, *, file: AbsFile | None = None) -> list[ImportPath]: ...

    def rewrite(
        self,
        content: bytes,
        rename: Callable[[ImportPath], ImportPath],
        *,
        file: AbsFile | None = None,
    ) -> bytes: ...


@dataclass(frozen=True, slots=True)
class ImportSpec:
    path: ImportPath
    # Byte offsets of the literal, quotes included.
    start: int
    end: int


@dataclass(frozen=True)
class ImportHeader:
    source: bytes
    file: AbsFile | None = None

    @classmethod
    @functools.cache
    def parser(cls) -> Parser:
        return Parser(get_language("go"))

    def fail(self, message: str, node: Node) -> NoReturn:
        raise ParseFailure(self.file, f"{message} (line {node.start_point.row + 1})")

    def specs(self) -> list[ImportSpec]:
        root = self.parser().parse(self.source).root_node
        return [self.spec(node) for node in self.import_specs(root)]

    def import_specs(self, root: Node) -> Iterator[Node]:
        seen_package = False
        for node in root.children:
            if node.type == "comment":
                continue
            if not seen_package:
                if node.type != "package_clause":
                    self.fail("missing package clause", node)
                self.check(node)
                seen_package = True
            elif node.type == "import_declaration":
                self.check(node)
                yield from self.declaration_specs(node)
            elif node.type == "ERROR":
                self.check(node)
            else:
                return
        if not seen_package:
            self.fail("missing package clause", root)

    @classmethod
    def declaration_specs(cls, declaration: Node) -> Iterator[Node]:
        for child in declaration.named_children:
            if child.type == "import_spec":
                yield child
            elif child.type == "import_spec_list":
                yield from (spec for spec in child.named_children if spec.type == "import_spec")

    def check(self, node: Node) -> None:
        if (error := self.first_error(node)) is None:
            return
        if error.is_missing:
            self.fail(f"missing {error.type!r}", error)
        self.fail("syntax error", error)

    @classmethod
    def first_error(cls, node: Node) -> Node | None:
        if node.type == "ERROR" or node.is_missing:
            return node
        if not node.has_error:
            return None
        for child in node.children:
            if (error := cls.first_error(child)) is not None:
                return error
        return None

    def spec(self, node: Node) -> ImportSpec:
        literal = node.child_by_field_name("path")
        if literal is None:
            self.fail("expected import path", node)
        if any(child.type == "escape_sequence" for child in literal.children):
            self.fail("escape sequences in import paths are not supported", literal)
        path = self.source[literal.start_byte + 1 : literal.end_byte - 1].decode("utf-8")
        if not path:
            self.fail("empty import path", literal)
        return ImportSpec(path=path, start=literal.start_byte, end=literal.end_byte)


class GoImports:
    def applies_to(self, file: AbsFile) -> bool:
        return file.path.name.endswith(GO_SOURCE_SUFFIX)

    @classmethod
    def split_bom(cls, content: bytes, *, file: AbsFile | None) -> tuple[bytes, bytes]:
        try:
            content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseFailure(file, f"not valid UTF-8 ({e.reason})") from e
        # A leading byte order mark is allowed in Go source and kept as is.
        bom = codecs.BOM_UTF8 if content.startswith(codecs.BOM_UTF8) else b""
        return bom, content[len(bom) :]

    def extract(self, content: bytes, *, file: AbsFile | None = None) -> list[ImportPath]:
        _bom, source = self.split_bom(content, file=file)
        return [spec.path for spec in ImportHeader(source, file).specs()]

    def rewrite(
        self,
        content: bytes,
        rename: Callable[[ImportPath], ImportPath],
        *,
        file: AbsFile | None = None,
    ) -> bytes:
        bom, source = self.split_bom(content, file=file)
        changed = False
        # Splice from the end so earlier offsets stay valid.
        for spec in reversed(ImportHeader(source, file).specs()):
            new_path = rename(spec.path)
            if new_path != spec.path:
                changed = True
                quote = source[spec.start : spec.start + 1]
                literal = quote + new_path.encode("utf-8") + quote
                source = source[: spec.start] + literal + source[spec.end :]
        return bom + source if changed else content
