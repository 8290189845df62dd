from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from surf3tikz.cli.main import main


def test_locate_marker(tmp_path: Path, capsys):
    arr = np.full((80, 120, 3), 255, dtype=np.uint8)
    arr[20:31, 60:71] = 0
    p = tmp_path / "frame.png"
    Image.fromarray(arr).save(p)

    assert main(["locate-marker", str(p)]) == 0
    assert capsys.readouterr().out.strip() == "row=25 col=65"


def test_bad_anchor_override_is_rejected(tmp_path: Path):
    with pytest.raises(ValueError):
        main(["demo", "--mode", "box", "--out", str(tmp_path / "x"), "--anchors", "0,1,2"])


@pytest.mark.integration
def test_demo_surface_export(tmp_path: Path, capsys):
    out = tmp_path / "figs" / "peaks"
    rc = main(["demo", "--grid", "15", "--export-dpi", "50", "--json", "--out", str(out)])
    assert rc == 0

    png = out.with_name("peaks.png")
    tikz = out.with_name("peaks.tikz")
    meta = out.with_name("peaks.json")
    for p in (png, tikz, meta):
        assert p.exists()

    with Image.open(png) as im:
        assert im.mode == "RGBA"
        assert im.size == (250, 200)
        alpha = np.asarray(im)[..., 3]
    assert (alpha == 0).any()

    text = tikz.read_text(encoding="utf-8")
    assert "]{peaks.png};" in text
    assert json.loads(meta.read_text(encoding="utf-8"))["mode"] == "surface"
    assert "Wrote" in capsys.readouterr().out


@pytest.mark.integration
def test_demo_box_export_without_png(tmp_path: Path):
    out = tmp_path / "cloud"
    rc = main(["demo", "--mode", "box", "--no-png", "--debug", "--out", str(out)])
    assert rc == 0
    assert not out.with_name("cloud.png").exists()
    assert out.with_name("cloud.tikz").exists()
    assert out.with_name("cloud_debug.png").exists()
