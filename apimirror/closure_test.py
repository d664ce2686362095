from inline_snapshot import snapshot
import pytest

from .closure import DependencyClosureEngine
from .errors import MissingInternalPackage, ParseFailure
from .module_path import ModulePath
from .test_utils import go_source, normalize_message, snapshot_of_tree, write_tree
from .typed_path import AbsDir, AbsFile

UPSTREAM = ModulePath("github.com/acme/operator")


def internal(package: str) -> str:
    return f"{UPSTREAM}/{package}"


@pytest.fixture
def dest_root(typed_tmp_path: AbsDir) -> AbsDir:
    return AbsDir(typed_tmp_path.path / "dest")


@pytest.fixture
def source_root(typed_tmp_path: AbsDir) -> AbsDir:
    return AbsDir(typed_tmp_path.path / "source")


def seed(dest_root: AbsDir, *imports: str) -> None:
    write_tree(dest_root, {"api/v1/types.go": go_source("v1", *imports)})


def test_no_internal_imports(source_root: AbsDir, dest_root: AbsDir) -> None:
    write_tree(source_root, {"pkg/unused/unused.go": go_source("unused")})
    seed(dest_root, "fmt", "k8s.io/api/core/v1", "github.com/acme/operatorx/pkg")
    assert DependencyClosureEngine().expand(dest_root, UPSTREAM, source_root) == set()
    assert list(snapshot_of_tree(dest_root)) == ["api/v1/types.go"]


def test_transitive_chain(source_root: AbsDir, dest_root: AbsDir) -> None:
    write_tree(
        source_root,
        {
            "pkg/a/a.go": go_source("a", internal("pkg/b")),
            "pkg/a/a_test.go": go_source("a", internal("pkg/testonly")),
            "pkg/b/b.go": go_source("b", "strings", internal("pkg/c")),
            "pkg/c/c.go": go_source("c"),
            "pkg/c/sub/sub.go": go_source("sub"),
        },
    )
    seed(dest_root, internal("pkg/a"))
    copied = DependencyClosureEngine().expand(dest_root, UPSTREAM, source_root)
    assert copied == {internal("pkg/a"), internal("pkg/b"), internal("pkg/c")}
    assert list(snapshot_of_tree(dest_root)) == [
        "api/v1/types.go",
        "pkg/a/a.go",
        "pkg/b/b.go",
        "pkg/c/c.go",
    ]


def test_diamond_copies_once(source_root: AbsDir, dest_root: AbsDir) -> None:
    write_tree(
        source_root,
        {
            "pkg/left/left.go": go_source("left", internal("pkg/shared")),
            "pkg/right/right.go": go_source("right", internal("pkg/shared")),
            "pkg/shared/shared.go": go_source("shared"),
        },
    )
    seed(dest_root, internal("pkg/left"), internal("pkg/right"))
    copied = DependencyClosureEngine().expand(dest_root, UPSTREAM, source_root)
    assert copied == {internal("pkg/left"), internal("pkg/right"), internal("pkg/shared")}


def test_cycle_terminates(source_root: AbsDir, dest_root: AbsDir) -> None:
    write_tree(
        source_root,
        {
            "pkg/ping/ping.go": go_source("ping", internal("pkg/pong")),
            "pkg/pong/pong.go": go_source("pong", internal("pkg/ping")),
        },
    )
    seed(dest_root, internal("pkg/ping"))
    copied = DependencyClosureEngine().expand(dest_root, UPSTREAM, source_root)
    assert copied == {internal("pkg/ping"), internal("pkg/pong")}


def test_module_root_package(source_root: AbsDir, dest_root: AbsDir) -> None:
    write_tree(source_root, {"operator.go": go_source("operator"), "go.mod": "module x\n"})
    seed(dest_root, str(UPSTREAM))
    assert DependencyClosureEngine().expand(dest_root, UPSTREAM, source_root) == {str(UPSTREAM)}
    assert list(snapshot_of_tree(dest_root)) == ["api/v1/types.go", "operator.go"]


def test_package_nested_under_seed(source_root: AbsDir, dest_root: AbsDir) -> None:
    write_tree(
        source_root,
        {
            "api/v1/types.go": go_source("v1", internal("api/v1/helpers")),
            "api/v1/helpers/helpers.go": go_source("helpers"),
        },
    )
    seed(dest_root, internal("api/v1/helpers"))
    assert DependencyClosureEngine().expand(dest_root, UPSTREAM, source_root) == {
        internal("api/v1/helpers")
    }


def test_missing_package_stops_after_earlier_copies(
    source_root: AbsDir, dest_root: AbsDir
) -> None:
    write_tree(
        source_root,
        {
            "pkg/a/a.go": go_source("a"),
            "pkg/b/b.go": go_source("b"),
            "pkg/c/c_test.go": go_source("c"),
        },
    )
    seed(dest_root, internal("pkg/a"), internal("pkg/b"), internal("pkg/c"))
    with pytest.raises(MissingInternalPackage) as e:
        DependencyClosureEngine().expand(dest_root, UPSTREAM, source_root)
    assert normalize_message(e, paths={"SOURCE": source_root}) == snapshot(
        "'github.com/acme/operator/pkg/c' is imported but 'SOURCE/pkg/c' has no Go source files."
    )
    assert list(snapshot_of_tree(dest_root)) == ["api/v1/types.go", "pkg/a/a.go", "pkg/b/b.go"]


def test_unparsable_copied_file(source_root: AbsDir, dest_root: AbsDir) -> None:
    write_tree(source_root, {"pkg/broken/broken.go": "not go at all\n"})
    seed(dest_root, internal("pkg/broken"))
    with pytest.raises(ParseFailure) as e:
        DependencyClosureEngine().expand(dest_root, UPSTREAM, source_root)
    assert normalize_message(e, paths={"DEST": dest_root}) == snapshot(
        "Unable to parse imports in 'DEST/pkg/broken/broken.go': missing package clause (line 1)."
    )


class RecordingCodec:
    def __init__(self, imports: dict[str, list[str]]) -> None:
        self.imports = imports
        self.scanned: list[str] = []

    def applies_to(self, file: AbsFile) -> bool:
        return file.path.suffix == ".go"

    def extract(self, content: bytes, *, file: AbsFile | None = None) -> list[str]:
        assert file is not None
        self.scanned.append(file.path.name)
        return self.imports.get(file.path.name, [])

    def rewrite(self, content: bytes, rename: object, *, file: object = None) -> bytes:
        raise NotImplementedError()


def test_injected_codec(source_root: AbsDir, dest_root: AbsDir) -> None:
    write_tree(source_root, {"pkg/a/a.go": "opaque"})
    write_tree(dest_root, {"api/api.go": "opaque"})
    codec = RecordingCodec({"api.go": [internal("pkg/a")]})
    assert DependencyClosureEngine(codec).expand(dest_root, UPSTREAM, source_root) == {
        internal("pkg/a")
    }
    assert codec.scanned == ["api.go", "api.go", "a.go"]
