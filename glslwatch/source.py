import os
import re

from .errors import SourceNotFoundError, SourceReadError

# Text following `#include`: a quoted or angle-bracketed path at the end of the line.
INCLUDE_RE = re.compile(r'\s*(?:"([^"]+)"|<([^>]+)>)\s*')
# Text following `#version`: a bare three-digit version number.
VERSION_RE = re.compile(r'\s+(\d{3})\s*')


def parse_directive(line: str):
    """
    Returns ('include', target), ('version', number) or None for a single line.

    Anything that does not match the expected shape is plain GLSL text.
    """
    stripped = line.lstrip()
    if not stripped.startswith('#'):
        return None
    keyword, rest = stripped[1:8], stripped[8:]
    if keyword == 'include':
        match = INCLUDE_RE.fullmatch(rest)
        if match:
            return 'include', match.group(1) or match.group(2)
    elif keyword == 'version':
        match = VERSION_RE.fullmatch(rest)
        if match:
            return 'version', int(match.group(1))
    return None


def split_lines(text: str) -> list:
    """Splits on '\\n', dropping a trailing '\\r' per line and the empty tail after a final newline."""
    if not text:
        return []
    lines = text.split('\n')
    if lines[-1] == '':
        lines.pop()
    return [line[:-1] if line.endswith('\r') else line for line in lines]


def resolve_path(path: str, search_dirs=()) -> str:
    """
    Returns the first location of `path` that can be opened for reading.

    The path is tried as given first, then joined onto each search directory in
    order. The result is made absolute so it can be used as the file's identity.
    """
    cause = None
    for candidate in [path] + [os.path.join(d, path) for d in search_dirs]:
        try:
            with open(candidate, 'rb'):
                return os.path.abspath(candidate)
        except OSError as e:
            cause = e
    raise SourceNotFoundError(path, search_dirs, cause) from cause


class AnnotatedSource:
    """One loaded GLSL file with its #version and #include directives located."""
    def __init__(self, path: str, lines: list, version_pragma=None, includes=None, mtime: int = 0):
        self.path = path
        self.lines = lines
        self.version_pragma = version_pragma
        self.includes = includes if includes is not None else {}
        self.mtime = mtime

    @classmethod
    def load(cls, path: str, search_dirs=()) -> 'AnnotatedSource':
        """Resolves `path` against `search_dirs` and loads the file found."""
        return cls.from_file(resolve_path(path, search_dirs))

    @classmethod
    def from_file(cls, path: str, searched_dirs=()) -> 'AnnotatedSource':
        """
        Loads an already resolved path, recording its mtime at read time.

        `searched_dirs` is only reported if the file has vanished since it was resolved.
        """
        try:
            f = open(path, 'rb')
        except OSError as e:
            raise SourceNotFoundError(path, searched_dirs, e) from e
        with f:
            try:
                data = f.read()
                mtime = os.fstat(f.fileno()).st_mtime_ns
            except OSError as e:
                raise SourceReadError(path, e) from e
        try:
            text = data.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise SourceReadError(path, e) from e
        return cls.from_text(path, text, mtime)

    @classmethod
    def from_text(cls, path: str, text: str, mtime: int = 0) -> 'AnnotatedSource':
        lines = split_lines(text)
        version_pragma = None
        includes = {}
        for i, line in enumerate(lines):
            directive = parse_directive(line)
            if directive is None:
                continue
            kind, value = directive
            if kind == 'include':
                includes[i] = value
            elif version_pragma is None:
                version_pragma = (i, value)
        return cls(path, lines, version_pragma, includes, mtime)

    @property
    def version(self):
        """The declared version number, or None without a pragma."""
        return self.version_pragma[1] if self.version_pragma else None

    def current_mtime(self) -> int:
        """The on-disk mtime, read through an open handle so unreadable files raise."""
        try:
            f = open(self.path, 'rb')
        except OSError as e:
            raise SourceNotFoundError(self.path, cause=e) from e
        with f:
            try:
                return os.fstat(f.fileno()).st_mtime_ns
            except OSError as e:
                raise SourceReadError(self.path, e) from e

    def expired(self) -> bool:
        """True if the file on disk is newer than when it was loaded."""
        return self.current_mtime() > self.mtime

    def __repr__(self):
        return f"AnnotatedSource({self.path!r}, lines={len(self.lines)}, version={self.version}, includes={len(self.includes)})"
