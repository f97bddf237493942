import sys
import os
from pathlib import Path
import numpy as np

from .errors import GLSLTreeError
from .tree import GLSLTree, DEFAULT_VERSION


def default_vertex_shader(version: int) -> str:
    """A fullscreen-quad vertex shader written for the given GLSL version."""
    qualifier = 'in' if version >= 130 else 'attribute'
    return (
        f"#version {version}\n"
        f"{qualifier} vec2 in_vert;\n"
        "void main() { gl_Position = vec4(in_vert, 0.0, 1.0); }\n"
    )


class ShaderPreview:
    """
    Draws a GLSL source tree as a fullscreen fragment shader.

    The tree is polled for staleness while the window is open. When a file of
    the tree changes on disk the tree is rebuilt and the shader recompiled; if
    either step fails the previous shader stays on screen.
    """
    def __init__(self, tree: GLSLTree, width=1280, height=720, title="glslwatch", vertex_shader: str = None, poll_interval=0.5):
        self.tree = tree
        self.width = width
        self.height = height
        self.title = title
        self.vertex_shader = vertex_shader
        self.poll_interval = poll_interval
        self.window = None
        self.ctx = None
        self.program = None
        self.vao = None
        self.vbo = None
        self._last_poll = None
        self._last_error = None

    def _compile_shader(self):
        """Compiles the current tree, returning the previous program on failure."""
        vertex_shader = self.vertex_shader or default_vertex_shader(self.tree.version)
        try:
            new_program = self.ctx.program(
                vertex_shader=vertex_shader, fragment_shader=self.tree.render()
            )
            print("INFO: Shader compiled successfully.")
            return new_program
        except Exception as e:
            print(f"ERROR: Shader compilation failed. Keeping previous shader. Details:\n{e}", file=sys.stderr)
            return self.program

    def _reload_if_expired(self) -> bool:
        """Rebuilds and recompiles if any file of the tree changed. Returns True on reload."""
        try:
            if not self.tree.expired():
                return False
            new_tree = self.tree.refresh()
        except GLSLTreeError as e:
            # The old tree stays expired, so only report each distinct failure once.
            if str(e) != self._last_error:
                print(f"ERROR: Failed to reload shader source. Keeping previous shader. Details:\n{e}", file=sys.stderr)
                self._last_error = str(e)
            return False

        self._last_error = None
        print(f"INFO: Change detected in '{Path(self.tree.root_path).name}'. Reloading...")
        self.tree = new_tree
        program = self._compile_shader()
        if program is not self.program:
            old_program, old_vao = self.program, self.vao
            self.program = program
            if self.vbo is not None:
                self.vao = self.ctx.simple_vertex_array(self.program, self.vbo, 'in_vert')
            if old_vao is not None and old_vao is not self.vao:
                old_vao.release()
            if old_program is not None:
                old_program.release()
        return True

    def _poll(self, now: float) -> bool:
        if self._last_poll is not None and now - self._last_poll < self.poll_interval:
            return False
        self._last_poll = now
        return self._reload_if_expired()

    def _mouse_position(self, glfw, fb_width, fb_height):
        """Cursor position in framebuffer pixels with the origin at the bottom left."""
        mx, my = glfw.get_cursor_pos(self.window)
        win_width, win_height = glfw.get_window_size(self.window)
        if not win_width or not win_height:
            return (0.0, 0.0, 0, 0)
        # Cursor coordinates are in screen units, which differ from pixels on HiDPI displays.
        sx, sy = fb_width / win_width, fb_height / win_height
        return (mx * sx, (win_height - my) * sy, 0, 0)

    def run(self):
        import glfw
        import moderngl

        if not glfw.init():
            raise RuntimeError("Could not initialize GLFW")

        self.window = glfw.create_window(self.width, self.height, self.title, None, None)
        if not self.window:
            glfw.terminate()
            raise RuntimeError("Could not create GLFW window.")
        glfw.make_context_current(self.window)

        self.ctx = moderngl.create_context()
        self.program = self._compile_shader()

        if self.program is None:
            print("FATAL: Initial shader compilation failed. Exiting.", file=sys.stderr)
            glfw.terminate()
            return

        vertices = np.array([-1.0, -1.0, -1.0, 1.0, 1.0, -1.0, 1.0, 1.0], dtype='f4')
        self.vbo = self.ctx.buffer(vertices)
        self.vao = self.ctx.simple_vertex_array(self.program, self.vbo, 'in_vert')

        print(f"INFO: Watching {len(self.tree.files)} file(s) of '{Path(self.tree.root_path).name}' for changes...")

        while not glfw.window_should_close(self.window):
            self._poll(glfw.get_time())

            width, height = glfw.get_framebuffer_size(self.window)
            self.ctx.viewport = (0, 0, width, height)

            try: self.program['u_resolution'].value = (width, height)
            except KeyError: pass

            try: self.program['u_time'].value = glfw.get_time()
            except KeyError: pass

            try:
                self.program['u_mouse'].value = self._mouse_position(glfw, width, height)
            except KeyError: pass

            self.ctx.clear(0.1, 0.12, 0.15)
            self.vao.render(mode=moderngl.TRIANGLE_STRIP)
            glfw.swap_buffers(self.window)
            glfw.poll_events()

        glfw.terminate()


def preview(path, search_dirs=(), default_version: int = DEFAULT_VERSION, **kwargs):
    """
    Opens a window drawing the fragment shader at `path`, reloading it when its files change.

    Args:
        path (str): The root fragment shader.
        search_dirs (list, optional): Directories searched for included files, in order.
        default_version (int, optional): Version used when the root has no #version pragma.
        **kwargs: Passed to ShaderPreview (width, height, title, vertex_shader, poll_interval).
    """
    try:
        import moderngl, glfw
    except ImportError:
        print("ERROR: Live preview requires 'moderngl' and 'glfw'.", file=sys.stderr)
        return

    try:
        tree = GLSLTree(path, search_dirs, default_version)
    except GLSLTreeError as e:
        print(f"ERROR: Could not load shader source: {e}", file=sys.stderr)
        return

    if not os.environ.get("DISPLAY") and sys.platform == 'linux':
        print("WARNING: No display detected. Window creation may fail.", file=sys.stderr)

    previewer = ShaderPreview(tree, **kwargs)
    try:
        previewer.run()
    except RuntimeError as e:
        print(f"ERROR: Failed to launch native window: {e}", file=sys.stderr)
        print("       This often happens due to missing drivers or a headless environment.", file=sys.stderr)
    return previewer.tree
