import pytest
import os
import shutil
import subprocess

GLSL_VALIDATOR = shutil.which("glslangValidator")
SKIP_GLSL = os.environ.get("SKIP_GLSL", "") == "1"

@pytest.fixture
def touch():
    """Moves a file's mtime forward, independent of the filesystem's timestamp resolution."""
    def _touch(path, seconds=2):
        st = os.stat(path)
        os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + seconds * 1_000_000_000))
    return _touch

@pytest.fixture
def shader_dir(tmp_path):
    """
    Returns a writer for GLSL files under a temporary directory.

    `write(name, *lines)` writes the lines joined by newlines and returns the
    absolute path as a string.
    """
    def _write(name, *lines):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return str(path)
    _write.root = str(tmp_path)
    return _write

@pytest.fixture(scope="session")
def validate_glsl(tmp_path_factory):
    if not GLSL_VALIDATOR or SKIP_GLSL:
        pytest.skip("Requires glslangValidator.")
    def _validator(source: str, stage="frag"):
        path = tmp_path_factory.mktemp("validate") / f"shader.{stage}"
        path.write_text(source, encoding="utf-8")
        result = subprocess.run([GLSL_VALIDATOR, str(path)], capture_output=True, text=True)
        if result.returncode != 0:
            raise AssertionError(f"GLSL Validation Failed:\n{result.stdout}{result.stderr}\nSOURCE:\n{source}")
    return _validator
