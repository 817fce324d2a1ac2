import json

from stitch_map.cli import main
from stitch_map.image_io import save_png


def test_cli_writes_preview_and_grid(tmp_path, gradient_8x8):
    src = save_png(tmp_path / "in.png", gradient_8x8)
    out = tmp_path / "pattern.png"
    grid = tmp_path / "pattern.json"
    rc = main(
        [str(src), "--width", "4", "--height", "3", "--colors", "3",
         "--out", str(out), "--grid", str(grid), "--dither", "floyd_steinberg"]
    )
    assert rc == 0
    assert out.exists()
    payload = json.loads(grid.read_text(encoding="utf-8"))
    assert payload["width"] == 4
    assert len(payload["pixels"]) == 3
    assert all(len(row) == 4 for row in payload["pixels"])


def test_cli_matches_threads(tmp_path, gradient_8x8, capsys):
    src = save_png(tmp_path / "in.png", gradient_8x8)
    grid = tmp_path / "g.json"
    rc = main([str(src), "--width", "2", "--height", "2", "--brand", "Kreinik", "--grid", str(grid)])
    assert rc == 0
    payload = json.loads(grid.read_text(encoding="utf-8"))
    assert payload["thread_brand"] == "Kreinik"
    assert "Colours used:" in capsys.readouterr().out


def test_cli_missing_input(tmp_path, capsys):
    rc = main([str(tmp_path / "nope.png"), "--width", "2", "--height", "2"])
    assert rc == 2
    assert "[error]" in capsys.readouterr().err


def test_cli_bad_size(tmp_path, gradient_8x8):
    src = save_png(tmp_path / "in.png", gradient_8x8)
    assert main([str(src), "--width", "0", "--height", "2"]) == 1
