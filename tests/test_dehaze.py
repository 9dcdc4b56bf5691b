import cv2
import numpy as np
import pytest

from haze_removal import viz
from haze_removal.config import DehazeConfig
from haze_removal.dehaze import dehaze_file, dehaze_image, main, output_paths
from haze_removal.errors import SaveError
from haze_removal.image_io import save_color_image


@pytest.fixture
def hazy_file(tmp_path, hazy_rgb):
    path = tmp_path / "scene.png"
    save_color_image(hazy_rgb, path)
    return path


def test_dehaze_image_stages(hazy_rgb):
    result = dehaze_image(hazy_rgb, DehazeConfig(radius=2))
    assert result.unfiltered_depth.dimensions == hazy_rgb.dimensions
    assert result.depth.dimensions == hazy_rgb.dimensions
    assert result.dehazed.is_color
    assert result.unfiltered_depth.data.min() == 0.0
    assert result.unfiltered_depth.data.max() == 1.0


def test_dehaze_file_writes_outputs(hazy_file, tmp_path):
    out_dir = tmp_path / "out"
    written = dehaze_file(hazy_file, DehazeConfig(radius=2, out_dir=out_dir))
    paths = output_paths(hazy_file, out_dir)
    assert written == [paths["unfiltered_depth"], paths["depth"], paths["dehazed"]]
    for path in written:
        assert path.is_file()


def test_dehaze_file_without_intermediates(hazy_file):
    written = dehaze_file(hazy_file, DehazeConfig(radius=2, save_intermediates=False))
    assert [p.name for p in written] == ["scene_dehazed.jpg"]


def test_cli_end_to_end(hazy_file, tmp_path, capsys):
    out_dir = tmp_path / "cli"
    code = main([str(hazy_file), "-r", "2", "-b", "0.9", "--out-dir", str(out_dir), "--plot"])
    assert code == 0
    assert (out_dir / "scene_dehazed.jpg").is_file()
    assert (out_dir / "scene_depth.jpg").is_file()
    assert (out_dir / "scene_comparison.png").is_file()
    assert "Wrote" in capsys.readouterr().out


def test_cli_reads_config(hazy_file, tmp_path):
    config = tmp_path / "run.yaml"
    config.write_text(f"radius: 2\nsave_intermediates: false\nout_dir: {tmp_path / 'cfg'}\n",
                      encoding="utf-8")
    assert main([str(hazy_file), "--config", str(config)]) == 0
    assert (tmp_path / "cfg" / "scene_dehazed.jpg").is_file()
    assert not (tmp_path / "cfg" / "scene_depth.jpg").exists()


def test_cli_flat_image_fails_without_output(tmp_path):
    path = tmp_path / "flat.png"
    cv2.imwrite(str(path), np.full((8, 8, 3), 128, dtype=np.uint8))
    assert main([str(path), "-r", "1"]) == 1
    assert sorted(p.name for p in tmp_path.iterdir()) == ["flat.png"]


def test_cli_missing_input(tmp_path):
    assert main([str(tmp_path / "missing.jpg")]) == 1


def test_cli_bad_config(hazy_file, tmp_path):
    config = tmp_path / "bad.yaml"
    config.write_text("radius: -3\n", encoding="utf-8")
    assert main([str(hazy_file), "--config", str(config)]) == 2


def test_failed_final_write_leaves_no_partial_output(hazy_file, tmp_path):
    out_dir = tmp_path / "out"
    (out_dir / "scene_dehazed.jpg").mkdir(parents=True)

    assert main([str(hazy_file), "-r", "2", "--out-dir", str(out_dir)]) == 1
    assert sorted(p.name for p in out_dir.iterdir()) == ["scene_dehazed.jpg"]
    assert (out_dir / "scene_dehazed.jpg").is_dir()


def test_failed_plot_leaves_no_partial_output(hazy_file, tmp_path, monkeypatch):
    def broken_figure(*args, **kwargs):
        raise SaveError(args[3], "figure backend failed")

    monkeypatch.setattr(viz, "save_comparison", broken_figure)
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    (out_dir / "notes.txt").write_text("keep me", encoding="utf-8")

    with pytest.raises(SaveError):
        dehaze_file(hazy_file, DehazeConfig(radius=2, out_dir=out_dir), plot=True)
    assert sorted(p.name for p in out_dir.iterdir()) == ["notes.txt"]


def test_successful_run_leaves_no_staging_files(hazy_file, tmp_path):
    out_dir = tmp_path / "out"
    dehaze_file(hazy_file, DehazeConfig(radius=2, out_dir=out_dir), plot=True)
    assert sorted(p.name for p in out_dir.iterdir()) == [
        "scene_comparison.png", "scene_dehazed.jpg",
        "scene_depth.jpg", "scene_unfiltered_depth.jpg",
    ]
