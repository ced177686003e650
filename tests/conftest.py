"""
Shared fixtures for the caustics test suite.
"""

import pytest


@pytest.fixture
def write_lens(tmp_path):
    """Write OBJ text to a temporary file and return its path."""
    def _write(text, name="lens.obj"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def single_sample_obj(write_lens):
    """One position at the origin with a normal along the optical axis."""
    return write_lens("v 0 0 0\nvn 0 0 1\n")


@pytest.fixture
def tilted_lens_obj(write_lens):
    """Three samples, one of which is totally internally reflected at eta=1.457."""
    return write_lens(
        "# tilted test lens\n"
        "v 0 0 0\n"
        "v 0.5 0 0.1\n"
        "v -0.5 0.25 0.1\n"
        "vt 0.1 0.2\n"
        "vn 0 0 1\n"
        "vn 0.1 0 0.99498744\n"
        "vn 0.8 0 0.6\n"
        "f 1 2 3\n"
    )
