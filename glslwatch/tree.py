import os
from types import MappingProxyType

from .errors import CycleError, MissingRootError, VersionMismatchError
from .source import AnnotatedSource, resolve_path

# OpenGL treats source without a version pragma as GLSL 1.10.
DEFAULT_VERSION = 110


class GLSLTree:
    """
    An in-memory GLSL source tree with all #include directives resolved.

    The root file is opened exactly as given; included files are looked up as
    given and then in each of `search_dirs`, in order, so the first match wins
    when an include name is ambiguous.

    The rendered source is computed once at construction. Call `expired()` to
    check the files on disk and `refresh()` to rebuild from the root:

        tree = GLSLTree("shaders/frag.glsl", ["shaders/include"])
        if tree.expired():
            tree = tree.refresh()
        program = ctx.program(vertex_shader=vs, fragment_shader=tree.render())
    """
    def __init__(self, root_path, search_dirs=(), default_version: int = DEFAULT_VERSION):
        if root_path is None:
            raise MissingRootError()
        root_path = os.fsdecode(root_path)
        if not root_path:
            raise MissingRootError()

        self._root_path = root_path
        self._search_dirs = tuple(os.fsdecode(d) for d in search_dirs)
        self._default_version = default_version

        # The root is never looked up in the include directories.
        root = AnnotatedSource.load(root_path)
        self._version = root.version if root.version is not None else default_version

        src_map, edges = {}, {}
        _build_node(root, self._search_dirs, [], self._version, src_map, edges)
        self._root = root.path
        self._src_map = src_map
        self._edges = edges
        self._rendered = render_tree(self._root, src_map, edges, self._version)

    @property
    def root_path(self) -> str:
        return self._root_path

    @property
    def search_dirs(self) -> tuple:
        return self._search_dirs

    @property
    def default_version(self) -> int:
        return self._default_version

    @property
    def version(self) -> int:
        """The effective version: the root's pragma, or the default without one."""
        return self._version

    @property
    def src_map(self):
        """Read-only mapping of resolved path to AnnotatedSource."""
        return MappingProxyType(self._src_map)

    @property
    def files(self) -> list:
        """Resolved paths of every file in the tree, sorted."""
        return sorted(self._src_map)

    @property
    def rendered(self) -> str:
        return self._rendered

    def render(self) -> str:
        """Returns the cached source with all includes processed. Feed this to the GLSL compiler."""
        return self._rendered

    def expired(self) -> bool:
        """
        Returns whether any file of the cached tree is newer on disk than when it was loaded.

        Every file is checked, so a file that was deleted since loading raises
        SourceNotFoundError even when another file is already known to be newer.
        """
        results = [src.expired() for src in self._src_map.values()]
        return any(results)

    def refresh(self) -> 'GLSLTree':
        """
        Rebuilds the tree from the root and returns it as a new GLSLTree.

        Only files still reachable from the root are present in the new tree.
        This tree is left untouched.
        """
        return GLSLTree(self._root_path, self._search_dirs, self._default_version)

    def refresh_if_expired(self) -> 'GLSLTree':
        return self.refresh() if self.expired() else self

    def export(self, path: str, verbose=True):
        """Writes the rendered source to `path`."""
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self._rendered)
        if verbose:
            print(f"SUCCESS: Shader exported to '{path}'.")

    def __repr__(self):
        return f"GLSLTree({self._root_path!r}, files={len(self._src_map)}, version={self._version})"


def _build_node(src: AnnotatedSource, search_dirs, branch: list, version: int, src_map: dict, edges: dict):
    """
    Adds `src` and everything it includes to `src_map`, depth first.

    `branch` holds the resolved paths from the root down to the parent of
    `src`. Each call extends its own copy, so siblings never see each other.
    `edges` maps a resolved path to {line index: resolved include path}.
    """
    if src.version is not None and src.version != version:
        raise VersionMismatchError(version, src.version, src.path)

    src_map[src.path] = src
    branch = branch + [src.path]

    targets = {}
    for line_index in sorted(src.includes):
        target = resolve_path(src.includes[line_index], search_dirs)
        if target in branch:
            raise CycleError(branch + [target])
        targets[line_index] = target
        _build_node(AnnotatedSource.from_file(target, search_dirs), search_dirs, branch, version, src_map, edges)
    edges[src.path] = targets


def render_tree(root: str, src_map: dict, edges: dict, version: int) -> str:
    """Flattens a built tree into one source string headed by a single #version line."""
    lines = _render_node(src_map[root], src_map, edges, set())
    return "\n".join([f"#version {version}"] + lines)


def _render_node(src: AnnotatedSource, src_map: dict, edges: dict, seen: set) -> list:
    pragma_line = src.version_pragma[0] if src.version_pragma else None
    targets = edges.get(src.path, {})
    lines = []
    for i, line in enumerate(src.lines):
        if i == pragma_line:
            continue
        if i in targets:
            target = targets[i]
            # Each file contributes its body once, at its first inclusion.
            if target in seen:
                continue
            seen.add(target)
            lines.extend(_render_node(src_map[target], src_map, edges, seen))
        else:
            lines.append(line)
    return lines
