"""Tests for generators."""

import pytest
import tempfile
from pathlib import Path
import yaml
import csv
import sys

from homoblur.codecs import TransformCodec
from homoblur.core import ConfigError, Rect
from homoblur.generators import FrameRange, RegionGenerator


def _write_config(tmpdir, config):
    config_path = Path(tmpdir) / "scene.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config, f)
    return config_path


def _read_rows(path):
    with open(path) as f:
        return list(csv.DictReader(f))


class TestRegionGenerator:
    @pytest.fixture
    def sample_config(self):
        return {
            "effect": {
                "type": "affine",
                "params_type": "motion_blur",
                "params": {
                    "translate_x": 10.0,
                    "translate_y": -5.0,
                },
            },
            "clip": {
                "rod": [0, 0, 100, 100],
                "pixel_aspect_ratio": 1.0,
            },
            "engine": {
                "motion_blur_count": 16,
            },
            "frames": {
                "first": 0,
                "last": 2,
                "step": 1,
            },
        }

    def test_load_config(self, sample_config):
        with tempfile.TemporaryDirectory() as tmpdir:
            gen = RegionGenerator(_write_config(tmpdir, sample_config))

            assert gen.clip.rod == Rect(0.0, 0.0, 100.0, 100.0)
            assert gen.engine.config.motion_blur_count == 16
            assert gen.frames.times() == [0.0, 1.0, 2.0]
            assert gen.render.render_scale == (1.0, 1.0)

    def test_generate(self, sample_config):
        with tempfile.TemporaryDirectory() as tmpdir:
            gen = RegionGenerator(_write_config(tmpdir, sample_config))
            output_csv = Path(tmpdir) / "out" / "regions.csv"

            results = gen.generate(output_csv, progress=False)

            assert results["total"] == 3
            assert results["written"] == 3
            assert results["errors"] == []

            rows = _read_rows(output_csv)
            assert len(rows) == 3
            row = rows[0]
            assert row["frame"] == "0"
            # forward translation plus one pixel of black border
            assert [float(row[k]) for k in ("rod_x1", "rod_y1", "rod_x2", "rod_y2")] == [9.0, -6.0, 111.0, 96.0]
            assert float(row["roi_x1"]) == pytest.approx(-1.5)
            assert float(row["roi_x2"]) == pytest.approx(101.5)
            assert row["identity"] == "0"
            assert row["num_samples"] == "1"
            coeffs = [float(c) for c in row["transform"].split()]
            assert coeffs[2] == pytest.approx(10.0)
            assert coeffs[5] == pytest.approx(-5.0)
            assert row["package"] == ""

    def test_motion_blur_scene(self, sample_config):
        sample_config["effect"]["params"] = {
            "translate_x": {"keys": [[0, 0], [10, 200]]},
            "motion_blur": 1.0,
            "shutter": 1.0,
            "shutter_offset": "start",
        }
        with tempfile.TemporaryDirectory() as tmpdir:
            gen = RegionGenerator(_write_config(tmpdir, sample_config))
            output_csv = Path(tmpdir) / "regions.csv"
            gen.generate(output_csv, progress=False)

            rows = _read_rows(output_csv)
            assert all(r["num_samples"] == "16" for r in rows)
            assert all(float(r["motion_blur"]) == 1.0 for r in rows)
            assert rows[1]["identity"] == "0"
            # t in [1, 2]: translation 20 -> 40 in quarter-frame steps of 5
            assert float(rows[1]["rod_x2"]) == pytest.approx(100.0 + 40.0 + 5.0 + 1.0)

    def test_identity_scene(self, sample_config):
        sample_config["effect"]["params"] = {}
        with tempfile.TemporaryDirectory() as tmpdir:
            gen = RegionGenerator(_write_config(tmpdir, sample_config))
            output_csv = Path(tmpdir) / "regions.csv"
            gen.generate(output_csv, progress=False)

            rows = _read_rows(output_csv)
            assert all(r["identity"] == "1" for r in rows)
            assert float(rows[0]["rod_x2"]) == 100.0

    def test_packages(self, sample_config):
        with tempfile.TemporaryDirectory() as tmpdir:
            gen = RegionGenerator(_write_config(tmpdir, sample_config))
            packages_dir = Path(tmpdir) / "packages"
            gen.generate(Path(tmpdir) / "regions.csv", packages_dir=packages_dir, progress=False)

            files = sorted(packages_dir.glob("*.npy"))
            assert [f.name for f in files] == ["frame_000000.npy", "frame_000001.npy", "frame_000002.npy"]

            loaded = TransformCodec.load(files[1])
            assert loaded["meta"]["time"] == 1.0
            assert loaded["meta"]["rod"] == (9.0, -6.0, 111.0, 96.0)
            assert loaded["package"].samples.matrices[0, 0, 2] == pytest.approx(-10.0)

    def test_missing_effect(self, sample_config):
        del sample_config["effect"]
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ConfigError):
                RegionGenerator(_write_config(tmpdir, sample_config))

    def test_unknown_effect(self, sample_config):
        sample_config["effect"]["type"] = "swirl"
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ConfigError):
                RegionGenerator(_write_config(tmpdir, sample_config))

    def test_bad_field(self, sample_config):
        sample_config["render"] = {"field": "diagonal"}
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ConfigError):
                RegionGenerator(_write_config(tmpdir, sample_config))


class TestFrameRange:
    def test_times(self):
        assert FrameRange(first=0, last=1, step=0.25).times() == [0.0, 0.25, 0.5, 0.75, 1.0]

    def test_single_frame(self):
        assert FrameRange.from_dict({"first": 5}).times() == [5.0]

    def test_empty(self):
        assert FrameRange(first=3, last=1).times() == []

    def test_invalid_step(self):
        with pytest.raises(ConfigError):
            FrameRange(first=0, last=1, step=0).times()


class TestCLI:
    def test_main(self, sample_config_path, monkeypatch, capsys):
        from homoblur.cli.generate_regions import main

        output_csv = sample_config_path.parent / "regions.csv"
        monkeypatch.setattr(sys, "argv", ["homoblur-regions", str(sample_config_path),
                                          "-o", str(output_csv), "--no-progress"])
        main()

        assert "Written: 3" in capsys.readouterr().out
        assert len(_read_rows(output_csv)) == 3

    def test_bad_config(self, tmp_path, monkeypatch):
        from homoblur.cli.generate_regions import main

        config_path = _write_config(tmp_path, {"clip": {}})
        monkeypatch.setattr(sys, "argv", ["homoblur-regions", str(config_path), "-o", str(tmp_path / "out.csv")])
        with pytest.raises(SystemExit):
            main()

    @pytest.fixture
    def sample_config_path(self, tmp_path):
        return _write_config(tmp_path, {
            "effect": {"type": "mirror", "params": {"flip": True, "center_x": 50}},
            "clip": {"rod": [0, 0, 100, 100]},
            "frames": {"first": 1, "last": 3},
        })
