"""The annotation engine imports without a GUI toolkit."""
import os
import subprocess
import sys

ROOT = os.path.join(os.path.dirname(__file__), "..")

ENGINE_MODULES = (
    "canvas", "canvas.builder", "canvas.vertex_editor",
    "properties", "properties.metadata",
    "controller", "store", "models", "icons", "schemas",
)


def test_engine_modules_do_not_import_qt():
    script = (
        "import sys\n"
        "sys.modules['PyQt6'] = None\n"
        f"for name in {ENGINE_MODULES!r}:\n"
        "    __import__(name)\n"
    )
    result = subprocess.run(
        [sys.executable, "-c", script],
        cwd=ROOT, capture_output=True, text=True,
    )
    assert result.returncode == 0, result.stderr


def test_package_exports():
    import canvas
    import properties

    assert canvas.__all__ == ["GeometryBuilder", "EditSession", "VertexEditor"]
    assert properties.__all__ == ["LinkOutcome", "MetadataEditor"]
