class GLSLTreeError(Exception):
    """Base class for errors loading or refreshing a GLSL source tree."""


class SourceIOError(GLSLTreeError):
    """A source file could not be opened, read or stat'ed."""
    def __init__(self, path: str, searched_dirs=None, message: str = None):
        self.path = path
        self.searched_dirs = list(searched_dirs or [])
        if message is None:
            message = f"I/O error on {path}"
        super().__init__(message)


class SourceNotFoundError(SourceIOError):
    """No candidate location for a source file could be opened."""
    def __init__(self, path: str, searched_dirs=None, cause: Exception = None):
        self.cause = cause
        message = f"Failed to open {path}; searched in all of: {list(searched_dirs or [])}"
        if cause is not None:
            message += f"; cause: {cause}"
        super().__init__(path, searched_dirs, message)


class SourceReadError(SourceIOError):
    """A source file was opened but its contents could not be read as text."""
    def __init__(self, path: str, cause: Exception = None):
        self.cause = cause
        super().__init__(path, message=f"Failed to read {path} as UTF-8 text: {cause}")


class CycleError(GLSLTreeError):
    """A file includes itself, directly or through other files."""
    def __init__(self, branch):
        self.branch = list(branch)
        super().__init__("Source tree has a cycle in branch: " + " -> ".join(self.branch))


class VersionMismatchError(GLSLTreeError):
    """An included file declares a different #version than the root."""
    def __init__(self, root_version: int, src_version: int, src_path: str):
        self.root_version = root_version
        self.src_version = src_version
        self.src_path = src_path
        super().__init__(
            f"Version mismatch: root has version {root_version} "
            f"but {src_path} has version {src_version}"
        )


class MissingRootError(GLSLTreeError):
    """No usable path was given for the root shader."""
    def __init__(self):
        super().__init__("No or empty path given for root shader.")
