"""
Tests for OBJ-style geometry ingestion.
"""

import io
import logging

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from caustics.exceptions import EmptyGeometryError, SourceUnreadableError
from caustics.geometry import Geometry, load_geometry, parse_obj_lines, write_obj


def test_positions_and_normals_in_file_order(tilted_lens_obj):
    positions, normals = load_geometry(tilted_lens_obj)

    assert positions.shape == (3, 3)
    assert normals.shape == (3, 3)
    assert_array_equal(positions[1], [0.5, 0.0, 0.1])
    assert_array_equal(normals[2], [0.8, 0.0, 0.6])


def test_texture_faces_and_comments_are_ignored():
    geometry = parse_obj_lines([
        "# comment",
        "vt 0.5 0.5",
        "vt 0.5 0.5 0.5",
        "f 1 2 3",
        "g group",
        "usemtl glass",
        "v 1 2 3",
        "vn 0 0 1",
    ])
    assert len(geometry.positions) == 1
    assert len(geometry.normals) == 1


def test_extra_trailing_fields_are_ignored():
    geometry = parse_obj_lines(["v 1 2 3 1.0", "vn 0 0 1 extra"])
    assert_array_equal(geometry.positions, [[1.0, 2.0, 3.0]])
    assert_array_equal(geometry.normals, [[0.0, 0.0, 1.0]])


def test_repeated_spaces_do_not_break_parsing():
    geometry = parse_obj_lines(["v  1   2 3", "vn 0  0 1  ", "  v 4 5 6"])
    assert_array_equal(geometry.positions, [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    assert_array_equal(geometry.normals, [[0.0, 0.0, 1.0]])


@pytest.mark.parametrize("record", [
    "v 1 2",
    "vn 0 1",
    "v",
    "v 1 two 3",
    "vn 0 0 nan",
    "v 1 2 inf",
    "v 1,0 2 3",
])
def test_malformed_records_are_skipped(record, caplog):
    with caplog.at_level(logging.DEBUG, logger="caustics"):
        geometry = parse_obj_lines(["v 0 0 0", record, "vn 0 0 1"])

    assert len(geometry.positions) == 1
    assert len(geometry.normals) == 1
    assert "Skipped 1 malformed" in caplog.text


def test_crlf_line_endings():
    geometry = parse_obj_lines(io.StringIO("v 1 2 3\r\nvn 0 0 1\r\n"))
    assert_array_equal(geometry.positions, [[1.0, 2.0, 3.0]])


def test_prefix_must_be_a_whole_token():
    geometry = parse_obj_lines(["vx 1 2 3", "vnormal 0 0 1", "v 0 0 0", "vn 0 0 1"])
    assert len(geometry.positions) == 1
    assert len(geometry.normals) == 1


def test_results_are_read_only(single_sample_obj):
    positions, normals = load_geometry(single_sample_obj)
    with pytest.raises(ValueError):
        positions[0, 0] = 1.0
    with pytest.raises(ValueError):
        normals[0, 0] = 1.0


def test_load_from_open_lines():
    geometry = load_geometry(io.StringIO("v 0 0 0\nvn 0 0 1\n"))
    assert isinstance(geometry, Geometry)
    assert geometry.sample_count == 1


def test_unreadable_source(tmp_path):
    missing = tmp_path / "missing.obj"
    with pytest.raises(SourceUnreadableError) as excinfo:
        load_geometry(missing)

    assert excinfo.value.source == str(missing)
    assert isinstance(excinfo.value.__cause__, OSError)


def test_directory_is_unreadable(tmp_path):
    with pytest.raises(SourceUnreadableError):
        load_geometry(tmp_path)


def test_undecodable_source(tmp_path):
    path = tmp_path / "binary.obj"
    path.write_bytes(b"v 0 0 0\n\xff\xfe\xfa\n")
    with pytest.raises(SourceUnreadableError):
        load_geometry(path)


def test_undecodable_open_handle():
    handle = io.TextIOWrapper(io.BytesIO(b"v 0 0 0\n\xff\xfe\nvn 0 0 1\n"), encoding="utf-8")
    with pytest.raises(SourceUnreadableError) as excinfo:
        load_geometry(handle)

    assert excinfo.value.source == "<lines>"
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)


def test_open_file_handle_is_labelled_by_name(tmp_path):
    path = tmp_path / "binary.obj"
    path.write_bytes(b"v 0 0 0\n\xff\xfe\n")
    with open(str(path), encoding="utf-8") as handle:
        with pytest.raises(SourceUnreadableError) as excinfo:
            load_geometry(handle)

    assert excinfo.value.source == str(path)


@pytest.mark.parametrize("text, expected_positions, expected_normals", [
    ("", 0, 0),
    ("v 0 0 0\n", 1, 0),
    ("vn 0 0 1\n", 0, 1),
    ("vt 0 0\nf 1 2 3\n", 0, 0),
])
def test_empty_geometry(write_lens, text, expected_positions, expected_normals):
    path = write_lens(text)
    with pytest.raises(EmptyGeometryError) as excinfo:
        load_geometry(path)

    assert excinfo.value.num_positions == expected_positions
    assert excinfo.value.num_normals == expected_normals
    assert str(path) in str(excinfo.value)


def test_length_mismatch_is_reported(write_lens, caplog):
    path = write_lens("v 0 0 0\nv 1 0 0\nv 2 0 0\nvn 0 0 1\n")
    with caplog.at_level(logging.WARNING, logger="caustics"):
        geometry = load_geometry(path)

    assert len(geometry.positions) == 3
    assert len(geometry.normals) == 1
    assert not geometry.is_aligned
    assert geometry.sample_count == 1
    assert "Mismatch" in caplog.text


def test_write_obj_is_readable(tmp_path):
    positions = np.array([[0.0, 0.0, 0.0], [0.25, -0.5, 0.125]])
    normals = np.array([[0.0, 0.0, 1.0], [0.6, 0.0, 0.8]])
    path = tmp_path / "out.obj"

    write_obj(path, positions, normals, comment="two samples")

    assert path.read_text(encoding="utf-8").startswith("# two samples\n")
    loaded = load_geometry(path)
    assert_allclose(loaded.positions, positions)
    assert_allclose(loaded.normals, normals)
