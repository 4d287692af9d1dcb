import sys
from pathlib import Path

import pytest

# Modules live flat in src/
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))


@pytest.fixture
def write_log(tmp_path):
    """Write lines to tmp_path/<name> (one per line) and return the path."""
    def _write(lines, name="app.log"):
        path = tmp_path / name
        path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
        return path
    return _write
