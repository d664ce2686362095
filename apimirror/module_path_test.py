import pytest

from .module_path import ModulePath
from .typed_path import RelDir

UPSTREAM = ModulePath("github.com/acme/operator")
MIRROR = ModulePath("github.com/acme/mirrors/mirrors/operator/v1.0.0")


@pytest.mark.parametrize(
    "import_path, contained",
    [
        # module root
        ("github.com/acme/operator", True),
        # nested package
        ("github.com/acme/operator/pkg/apis", True),
        # shared prefix without a segment boundary
        ("github.com/acme/operatorx/pkg", False),
        # unrelated
        ("k8s.io/api/core/v1", False),
        # parent module
        ("github.com/acme", False),
        # standard library
        ("fmt", False),
    ],
)
def test_contains(import_path: str, contained: bool) -> None:
    assert UPSTREAM.contains(import_path) == contained


@pytest.mark.parametrize(
    "import_path, directory",
    [
        ("github.com/acme/operator", "."),
        ("github.com/acme/operator/pkg/apis/v1", "pkg/apis/v1"),
    ],
)
def test_package_dir(import_path: str, directory: str) -> None:
    assert UPSTREAM.package_dir(import_path) == RelDir(directory)


def test_package_dir_outside_module() -> None:
    with pytest.raises(ValueError):
        UPSTREAM.package_dir("github.com/acme/operatorx")


@pytest.mark.parametrize(
    "import_path, relocated",
    [
        ("github.com/acme/operator", "github.com/acme/mirrors/mirrors/operator/v1.0.0"),
        (
            "github.com/acme/operator/pkg/utils",
            "github.com/acme/mirrors/mirrors/operator/v1.0.0/pkg/utils",
        ),
        ("github.com/acme/operatorx/pkg", "github.com/acme/operatorx/pkg"),
        ("k8s.io/api/core/v1", "k8s.io/api/core/v1"),
    ],
)
def test_relocate(import_path: str, relocated: str) -> None:
    assert UPSTREAM.relocate(import_path, MIRROR) == relocated


def test_join() -> None:
    assert ModulePath("github.com/acme/mirrors").join("third_party/", "operator", "v1") == (
        ModulePath("github.com/acme/mirrors/third_party/operator/v1")
    )


@pytest.mark.parametrize("path", ["", "/github.com/acme", "github.com/acme/"])
def test_invalid_module_path(path: str) -> None:
    with pytest.raises(ValueError):
        ModulePath(path)
