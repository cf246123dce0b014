"""End-to-end test of the offline bake script."""

import json

import numpy as np
from PIL import Image

from bake_terrain import bake_terrain


def write_config(tmp_path, **overrides):
    config = {
        "erode": True,
        "bake_voronoi": True,
        "terrain_generation_parameters": {
            "seed": 3,
            "complexity": 4,
            "erosion_threshold_percent": 0.05,
            "erosion_iterations": 2,
            "feature_count": 5,
            "voronoi_width": 32,
            "voronoi_height": 20,
            "max_chunk_size": 8,
        },
    }
    config.update(overrides)
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config))
    return path


def test_bake_writes_package(tmp_path):
    output = tmp_path / "package"
    assert bake_terrain(str(write_config(tmp_path)), str(output)) == str(output)

    with Image.open(output / "heightmap.png") as image:
        assert image.size == (17, 17)
        assert image.mode == "L"
    with Image.open(output / "palette.png") as image:
        assert image.mode == "RGB"
    with Image.open(output / "voronoi.png") as image:
        assert image.size == (32, 20)

    manifest = json.loads((output / "manifest.json").read_text())
    assert manifest["grid_size"] == [17, 17]
    assert len(manifest["chunks"]) == 9
    assert manifest["chunks"][0]["name"] == "SubMesh_X0_Y0"

    for entry in manifest["chunks"]:
        with np.load(output / "chunks" / entry["file"]) as data:
            columns, rows = entry["size"]
            assert data["vertices"].shape == (columns * rows, 3)
            assert data["triangles"].shape == (2 * (columns - 1) * (rows - 1), 3)

    settings = json.loads((output / "generation_config.json").read_text())
    assert settings["seed"] == 3
    assert settings["complexity"] == 4


def test_bake_is_reproducible(tmp_path):
    config = str(write_config(tmp_path))
    bake_terrain(config, str(tmp_path / "a"))
    bake_terrain(config, str(tmp_path / "b"))

    first = json.loads((tmp_path / "a" / "manifest.json").read_text())
    second = json.loads((tmp_path / "b" / "manifest.json").read_text())
    assert first == second
    assert (tmp_path / "a" / "heightmap.png").read_bytes() == (tmp_path / "b" / "heightmap.png").read_bytes()


def test_skips_voronoi_when_disabled(tmp_path):
    output = tmp_path / "package"
    bake_terrain(str(write_config(tmp_path, bake_voronoi=False)), str(output))
    assert (output / "heightmap.png").exists()
    assert not (output / "voronoi.png").exists()


def test_missing_config(tmp_path):
    assert bake_terrain(str(tmp_path / "missing.json"), str(tmp_path / "out")) is None
