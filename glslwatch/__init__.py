from .errors import (
    GLSLTreeError, SourceIOError, SourceNotFoundError, SourceReadError,
    CycleError, VersionMismatchError, MissingRootError
)
from .source import AnnotatedSource, resolve_path
from .tree import GLSLTree, DEFAULT_VERSION
from .preview import ShaderPreview, preview
