"""
Tests for the caustic session and end-to-end pipeline behavior.
"""

import io
import logging
import math

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from caustics import (
    CausticConfig,
    CausticSession,
    EmptyGeometryError,
    InvalidDistanceError,
    SourceUnreadableError,
    compute_intersections,
    compute_refractions,
    load_geometry,
    parse_distance,
)
from caustics.refraction import INCIDENT_DIRECTION, TIR_DIRECTION


ETA = 1.457


def test_single_sample_end_to_end(single_sample_obj):
    positions, normals = load_geometry(single_sample_obj)
    refracteds = compute_refractions(normals, ETA)

    normal = np.array([0.0, 0.0, 1.0])
    expected_direction = ETA * INCIDENT_DIRECTION - (ETA - 1.0) * normal
    assert_allclose(refracteds[0], expected_direction)

    projected = compute_intersections(positions, refracteds, 5.0)
    t = (5.0 - 0.0) / expected_direction[2]
    ix = 0.0 + expected_direction[0] * t
    iy = 0.0 + expected_direction[1] * t
    assert_allclose(projected, [[ix * 128 + 128, iy * 128 + 128]])


def test_session_moves_plane_without_touching_geometry(tilted_lens_obj):
    session = CausticSession.from_config(CausticConfig(tilted_lens_obj, 5.0, eta=ETA))
    positions = session.positions
    normals = session.normals
    refracteds = session.refracteds
    before = session.projected

    after = session.set_distance(5.1)

    assert session.distance == 5.1
    assert after is session.projected
    assert after is not before
    # The tilted sample moves with the plane
    assert not np.array_equal(before[1], after[1])
    assert session.positions is positions
    assert session.normals is normals
    assert session.refracteds is refracteds
    assert_array_equal(positions[1], [0.5, 0.0, 0.1])


def test_increase_and_decrease_recompute_once_each(tilted_lens_obj):
    session = CausticSession.from_config(CausticConfig(tilted_lens_obj, 5.0, step=0.1))
    assert session.recompute_count == 1

    session.increase_distance()
    assert session.distance == pytest.approx(5.1)
    assert session.recompute_count == 2

    session.decrease_distance()
    session.decrease_distance()
    assert session.distance == pytest.approx(4.9)
    assert session.recompute_count == 4

    expected = compute_intersections(session.positions, session.refracteds, session.distance)
    assert_array_equal(session.projected, expected)


def test_refraction_runs_once(tilted_lens_obj, monkeypatch):
    import caustics.pipeline as pipeline

    calls = []
    original = pipeline.compute_refractions

    def counting(normals, eta):
        calls.append(eta)
        return original(normals, eta)

    monkeypatch.setattr(pipeline, "compute_refractions", counting)
    session = CausticSession.from_config(CausticConfig(tilted_lens_obj, 5.0))
    for _ in range(3):
        session.increase_distance()

    assert calls == [pytest.approx(1.457)]


def test_session_summary(tilted_lens_obj):
    session = CausticSession.from_config(CausticConfig(tilted_lens_obj, 1.0, eta=ETA))
    summary = session.summary()

    assert summary["samples"] == 3
    assert summary["total_internal_reflections"] == 1
    assert summary["degenerate"] == 0
    assert summary["in_frame"] == 2
    assert summary["distance"] == 1.0
    assert_array_equal(session.refracteds[2], TIR_DIRECTION)


def test_session_with_mismatched_geometry(write_lens, caplog):
    path = write_lens("v 0 0 0\nv 0.1 0 0\nv 0.2 0 0\nvn 0 0 1\nvn 0 0 1\n")
    with caplog.at_level(logging.WARNING, logger="caustics"):
        session = CausticSession.from_config(CausticConfig(path, 2.0))

    assert session.sample_count == 2
    assert session.projected.shape == (2, 2)
    assert "Mismatch" in caplog.text


def test_session_from_lines():
    source = io.StringIO("v 0 0 0\nvn 0 0 1\n")
    session = CausticSession.from_config(CausticConfig(source, 2.0))
    assert_allclose(session.projected, [[128.0, 128.0]])


def test_unreadable_source_is_fatal(tmp_path):
    with pytest.raises(SourceUnreadableError):
        CausticSession.from_config(CausticConfig(tmp_path / "nope.obj", 5.0))


def test_empty_source_is_fatal(write_lens):
    with pytest.raises(EmptyGeometryError):
        CausticSession.from_config(CausticConfig(write_lens("# nothing\n"), 5.0))


@pytest.mark.parametrize("field, value", [
    ("plane_distance", math.inf),
    ("plane_distance", math.nan),
    ("eta", 0.0),
    ("eta", -1.457),
    ("step", 0.0),
    ("step", math.nan),
])
def test_invalid_config(single_sample_obj, field, value):
    config = CausticConfig(single_sample_obj, 5.0)
    setattr(config, field, value)
    with pytest.raises(ValueError):
        CausticSession.from_config(config)


@pytest.mark.parametrize("text, expected", [
    ("5.0", 5.0),
    (" -1.5 ", -1.5),
    ("1e-3", 0.001),
    (2, 2.0),
])
def test_parse_distance(text, expected):
    assert parse_distance(text) == expected


@pytest.mark.parametrize("text", ["", "five", "5,0", "nan", "inf", None])
def test_parse_distance_rejects(text):
    with pytest.raises(InvalidDistanceError) as excinfo:
        parse_distance(text)
    assert excinfo.value.value == text
    assert isinstance(excinfo.value, ValueError)


def test_repr(single_sample_obj):
    session = CausticSession.from_config(CausticConfig(single_sample_obj, 5.0))
    assert repr(session) == "CausticSession(samples=1, eta=1.4570, distance=5.0000)"
