from collections.abc import Callable, Collection
from dataclasses import dataclass, field
import difflib
import functools
import inspect
from typing import Any, NoReturn, cast

import yaml
from yaml import MappingNode, Node, ScalarNode, SequenceNode, YAMLError

from .config import Dependency, MirrorConfig, TargetConfig
from .errors import InvalidPattern
from .module_path import ModulePath
from .resolver import PathResolver
from .typed_path import AbsFile, RelDir, RelFile, Remote, TypedPath
from .types import Revision


@dataclass(frozen=True, slots=True)
class Context:
    filename: RelFile | AbsFile
    node: Node


@dataclass
class ParserError(YAMLError):
    msg: str
    context: Context

    @property
    def position(self) -> str:
        position = str(self.context.filename.path)
        if self.context.node.start_mark is not None:
            position = f"{position}:{self.context.node.start_mark.line + 1}:{self.context.node.start_mark.column + 1}"
        return position

    def __str__(self) -> str:
        return f"An unexpected error occurred during parsing @ {self.position}: {self.msg}"


@dataclass
class Parser:
    filepath: AbsFile | RelFile
    _node: Node = field(
        init=False, repr=False, hash=False, compare=False, default=Node("", None, None, None)
    )
    _visited_slugs: dict[str, Node] = field(
        init=False, repr=False, hash=False, compare=False, default_factory=dict
    )
    _visited_nodes: set[int] = field(
        init=False, repr=False, hash=False, compare=False, default_factory=set
    )

    def __post_init__(self) -> None:
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        for attr in dir(self):
            method = getattr(self, attr)
            if not attr.startswith("__") and inspect.ismethod(method):
                setattr(self, attr, self._context_wrap(method))

    def _context_wrap[**P, R](self, method: Callable[P, R]) -> Callable[P, R]:
        signature = inspect.signature(method, eval_str=False)

        @functools.wraps(method)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            binding = signature.bind(*args, **kwargs)
            node = binding.arguments.get("node")
            if node is None or node is self._node:
                return method(*args, **kwargs)
            # Set nodes before to stop RecursionError during fail.
            previous_node = self._node
            self._node = node
            if id(node) in self._visited_nodes:
                self.fail("recursive reference detected.", node=node)
            self._visited_nodes.add(id(node))
            try:
                return method(*args, **kwargs)
            finally:
                self._node = previous_node
                self._visited_nodes.remove(id(node))

        return wrapper

    @property
    def context(self) -> Context:
        return Context(self.filepath, self._node)

    def fail(self, message: str, *, node: Node | None = None) -> NoReturn:
        error = ParserError(message, self.context if node is None else Context(self.filepath, node))
        raise error

    def type_of(self, node: Node) -> str:
        match node:
            case ScalarNode():
                match node.value:
                    case "":
                        return "empty string"
                    case str():
                        return "string"
                    case _:
                        return type(node.value).__name__
            case SequenceNode():
                return "sequence"
            case MappingNode():
                return "mapping"
            case _:
                return "unknown"

    def parse_mapping[T](
        self,
        node: Node,
        subparsers: dict[str, Callable[[Node], Any]],
        combine: Callable[..., T],
        *,
        name: str,
        optional: Collection[str] = (),
    ) -> T:
        results = {}
        match node:
            case MappingNode():
                key_node: Node
                value_node: Node
                for key_node, value_node in node.value:
                    key = self.parse_string_key(key_node, options=subparsers.keys())
                    sub_parser = subparsers[key]
                    if key in results:
                        self.fail(f"duplicate key {key!r} in mapping.", node=key_node)
                    results[key] = sub_parser(value_node)
            case _:
                self.fail(f"expected {name} mapping, got {self.type_of(node)}.")
        for key in subparsers.keys():
            if key not in results.keys() and key not in optional:
                self.fail(f"{name} mapping is missing the key {key!r}.")
        return combine(**results)

    def parse_sequence[T](
        self, node: Node, subparser: Callable[[Node], T], *, names: str, allow_empty: bool = False
    ) -> list[T]:
        match node:
            case SequenceNode():
                if len(node.value) == 0 and not allow_empty:
                    self.fail(f"{names} list is empty.")
                return [subparser(node) for node in node.value]
        return self.fail(f"expected sequence of {names}, got {self.type_of(node)}.")

    def parse_string(self, node: Node, *, name: str) -> str:
        match node:
            case ScalarNode() if isinstance(node.value, str):
                if not node.value.strip():
                    self.fail(f"{name} is empty.")
                return node.value
        return self.fail(f"expected {name} as a string, got {self.type_of(node)}.")

    def parse_string_key[T: str](self, node: Node, options: Collection[T]) -> T:
        match node:
            case ScalarNode() if isinstance(key := node.value, str):
                if key in options:
                    return cast(T, key)
                suggestions = difflib.get_close_matches(key, possibilities=options, n=1)
                if suggestions:
                    [suggestion] = suggestions
                    message = f"invalid key {key!r}, did you mean {suggestion!r}?"
                else:
                    message = f"mapping key should be one of {list(options)!r}, got {key!r}."
                self.fail(message)
        return self.fail(f"expected a string as the key, got {self.type_of(node)}.")

    def _check_inside_repository(self, path: TypedPath, value: str) -> None:
        # pathlib.Path.resolve uses the filesystem, which could have unwanted links.
        normpath = path.canonical
        if normpath.startswith("..") or path.path.is_absolute():
            self.fail(
                f"the path {value!r} goes out of the repository and is therefore not valid."
            )

    def parse_module(self, node: Node) -> ModulePath:
        module = self.parse_string(node, name="module")
        if any(char.isspace() for char in module):
            self.fail(f"module {module!r} contains whitespace.")
        try:
            return ModulePath(module)
        except ValueError as e:
            self.fail(str(e))

    def parse_mirror_root(self, node: Node) -> RelDir:
        value = self.parse_string(node, name="mirror root")
        mirror_root = RelDir(value)
        self._check_inside_repository(mirror_root, value)
        return mirror_root

    def parse_slug(self, node: Node) -> str:
        slug = self.parse_string(node, name="slug")
        if "/" in slug or slug in (".", ".."):
            self.fail(f"slug {slug!r} must be a single directory name.")
        if existing_node := self._visited_slugs.get(slug):
            line_details = (
                ""
                if existing_node.start_mark is None
                else f"; already used on line {existing_node.start_mark.line + 1}"
            )
            self.fail(f"duplicate slug {slug!r}{line_details}.")
        self._visited_slugs[slug] = node
        return slug

    def parse_remote(self, node: Node) -> Remote:
        return Remote(self.parse_string(node, name="repo"))

    def parse_revision(self, node: Node) -> Revision:
        tag = self.parse_string(node, name="version")
        self._check_inside_repository(RelDir(tag), tag)
        return Revision(tag)

    def parse_go_mod_path(self, node: Node) -> RelFile:
        value = self.parse_string(node, name="go.mod path")
        go_mod_path = RelFile(value)
        self._check_inside_repository(go_mod_path, value)
        return go_mod_path

    def parse_api_path(self, node: Node) -> str:
        pattern = self.parse_string(node, name="API path")
        try:
            PathResolver.validate(pattern)
        except InvalidPattern as e:
            self.fail(f"{e.reason}.")
        return pattern

    def parse_api_paths(self, node: Node) -> list[str]:
        return self.parse_sequence(node, self.parse_api_path, names="API paths")

    def parse_dependency(self, node: Node) -> Dependency:
        return self.parse_mapping(
            node,
            subparsers=dict(
                name=functools.partial(self.parse_string, name="dependency name"),
                version=functools.partial(self.parse_string, name="dependency version"),
            ),
            combine=Dependency,
            name="dependency",
        )

    def parse_dependencies(self, node: Node) -> list[Dependency]:
        return self.parse_sequence(
            node, self.parse_dependency, names="dependencies", allow_empty=True
        )

    def parse_target_config(self, node: Node) -> TargetConfig:
        return self.parse_mapping(
            node,
            subparsers=dict(
                slug=self.parse_slug,
                repo=self.parse_remote,
                currentVersion=self.parse_revision,
                goModPath=self.parse_go_mod_path,
                apiPaths=self.parse_api_paths,
                overwriteDependencies=self.parse_dependencies,
            ),
            combine=self._combine_target_config,
            name="target",
            optional=("goModPath", "overwriteDependencies"),
        )

    @staticmethod
    def _combine_target_config(
        *,
        slug: str,
        repo: Remote,
        currentVersion: Revision,  # noqa: N803
        apiPaths: list[str],  # noqa: N803
        goModPath: RelFile | None = None,  # noqa: N803
        overwriteDependencies: list[Dependency] | None = None,  # noqa: N803
    ) -> TargetConfig:
        optional: dict[str, Any] = {}
        if goModPath is not None:
            optional["go_mod_path"] = goModPath
        if overwriteDependencies is not None:
            optional["overrides"] = overwriteDependencies
        return TargetConfig(
            slug=slug, repo=repo, revision=currentVersion, api_paths=apiPaths, **optional
        )

    def parse_target_configs(self, node: Node) -> list[TargetConfig]:
        return self.parse_sequence(node, self.parse_target_config, names="targets")

    def parse_mirror_config(self, node: Node) -> MirrorConfig:
        return self.parse_mapping(
            node,
            subparsers=dict(
                module=self.parse_module,
                mirrorRoot=self.parse_mirror_root,
                targets=self.parse_target_configs,
            ),
            combine=self._combine_mirror_config,
            name="mirror",
            optional=("mirrorRoot",),
        )

    @staticmethod
    def _combine_mirror_config(
        *,
        module: ModulePath,
        targets: list[TargetConfig],
        mirrorRoot: RelDir | None = None,  # noqa: N803
    ) -> MirrorConfig:
        if mirrorRoot is None:
            return MirrorConfig(module=module, targets=targets)
        return MirrorConfig(module=module, mirror_root=mirrorRoot, targets=targets)

    def parse(self) -> MirrorConfig:
        with open(self.filepath) as f:
            tree = yaml.compose(f, Loader=yaml.SafeLoader)
        return self.parse_mirror_config(tree)

    @classmethod
    def parse_file(cls, filepath: AbsFile | RelFile) -> MirrorConfig:
        parser = cls(filepath)
        return parser.parse()
