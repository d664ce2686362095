from inline_snapshot import snapshot
import pytest

from .errors import ParseFailure
from .module_path import ModulePath
from .rewriter import ImportRewriter
from .test_utils import go_source, normalize_message, snapshot_of_tree, write_tree
from .typed_path import AbsDir

OLD = ModulePath("github.com/acme/operator")
NEW = ModulePath("github.com/acme/mirrors/mirrors/operator/v1.0.0")


def test_rewrite_respects_segment_boundaries(typed_tmp_path: AbsDir) -> None:
    write_tree(
        typed_tmp_path,
        {
            "api/v1/types.go": go_source(
                "v1",
                "github.com/acme/operator/pkg/utils",
                "github.com/acme/operatorx/pkg/utils",
                "github.com/acme/operator",
                "k8s.io/api/core/v1",
            ),
        },
    )
    assert ImportRewriter().rewrite(typed_tmp_path, OLD, NEW) == 1
    assert snapshot_of_tree(typed_tmp_path) == {
        "api/v1/types.go": go_source(
            "v1",
            "github.com/acme/mirrors/mirrors/operator/v1.0.0/pkg/utils",
            "github.com/acme/operatorx/pkg/utils",
            "github.com/acme/mirrors/mirrors/operator/v1.0.0",
            "k8s.io/api/core/v1",
        )
    }


def test_rewrite_leaves_bodies_and_other_files_alone(typed_tmp_path: AbsDir) -> None:
    body = 'const Upstream = "github.com/acme/operator/pkg/utils"'
    write_tree(
        typed_tmp_path,
        {
            "api/v1/types.go": go_source("v1", "fmt", body=body),
            "api/v1/README.md": "import github.com/acme/operator/pkg/utils\n",
        },
    )
    before = snapshot_of_tree(typed_tmp_path)
    assert ImportRewriter().rewrite(typed_tmp_path, OLD, NEW) == 0
    assert snapshot_of_tree(typed_tmp_path) == before


def test_rewrite_each_file_once(typed_tmp_path: AbsDir) -> None:
    # A second pass would find nothing left to change.
    write_tree(
        typed_tmp_path,
        {
            "a/a.go": go_source("a", "github.com/acme/operator/b"),
            "b/b.go": go_source("b", "github.com/acme/operator/a"),
        },
    )
    assert ImportRewriter().rewrite(typed_tmp_path, OLD, NEW) == 2
    assert ImportRewriter().rewrite(typed_tmp_path, OLD, NEW) == 0


def test_parse_failure_leaves_tree_untouched(typed_tmp_path: AbsDir) -> None:
    write_tree(
        typed_tmp_path,
        {
            "a/a.go": go_source("a", "github.com/acme/operator/b"),
            "b/b.go": 'import "github.com/acme/operator/a"\n',
        },
    )
    before = snapshot_of_tree(typed_tmp_path)
    with pytest.raises(ParseFailure) as e:
        ImportRewriter().rewrite(typed_tmp_path, OLD, NEW)
    assert normalize_message(e, paths={"DEST": typed_tmp_path}) == snapshot(
        "Unable to parse imports in 'DEST/b/b.go': missing package clause (line 1)."
    )
    assert snapshot_of_tree(typed_tmp_path) == before
