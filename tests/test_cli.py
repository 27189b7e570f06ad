"""Tests for the sigilscope command line."""

from unittest.mock import patch

import pytest
from PIL import Image

from sigilscope import cli


class TestSigilCommand:
    def test_png(self, tmp_path, capsys):
        out = tmp_path / "star.png"
        cli.main(["sigil", "Starhaven Reaches", "--scale", "4", "-o", str(out)])
        with Image.open(out) as img:
            assert img.size == (192, 192)
            assert img.mode == "RGBA"
        stdout = capsys.readouterr().out
        assert "Pattern: constellation" in stdout
        assert f"Output: {out}" in stdout

    def test_platform_colour(self, tmp_path, capsys):
        out = tmp_path / "income.png"
        cli.main(["sigil", "income", "--platform", "ledger", "-o", str(out)])
        assert "Color: 91, 138, 122" in capsys.readouterr().out

    def test_platform_fallback_pattern(self, tmp_path, capsys):
        out = tmp_path / "misc.png"
        cli.main(["sigil", "misc", "--platform", "ledger", "-o", str(out)])
        assert "Pattern: scatter" in capsys.readouterr().out

    def test_animated_gif(self, tmp_path):
        out = tmp_path / "pulse.gif"
        cli.main(["sigil", "research", "--id", "doc-1", "--frames", "3",
                  "--pulse", "1", "-o", str(out)])
        assert out.exists()

    def test_too_small_is_an_error(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            cli.main(["sigil", "misc", "--size", "6", "-o", str(tmp_path / "x.png")])
        assert exc.value.code == 1
        assert capsys.readouterr().err.startswith("Error:")


class TestNebulaCommand:
    def test_png_frame(self, tmp_path):
        out = tmp_path / "thomas.png"
        cli.main(["nebula", "thomas", "--particles", "200", "--width", "64",
                  "--height", "48", "-o", str(out)])
        with Image.open(out) as img:
            assert img.size == (64, 48)

    def test_video_uses_profile(self, tmp_path):
        out = tmp_path / "lorenz.mp4"

        def fake_encode(frame_iterator, output_path, **kwargs):
            frames = list(frame_iterator)
            assert len(frames) == 2
            assert frames[0].shape == (720, 1280, 3)
            output_path.write_bytes(b"\x00" * 10)
            return output_path

        with patch.object(cli, "encode_video", side_effect=fake_encode) as enc:
            cli.main(["nebula", "lorenz", "--particles", "100", "--frames", "2",
                      "-p", "low", "--no-glow", "-o", str(out)])
        kwargs = enc.call_args.kwargs
        assert (kwargs["width"], kwargs["height"], kwargs["fps"]) == (1280, 720, 30)
        assert kwargs["quality"] == "fast"

    def test_bad_core_ratio(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            cli.main(["nebula", "galaxy", "--core-ratio", "3", "-o", str(tmp_path / "g.png")])
        assert exc.value.code == 1
        assert "core_ratio" in capsys.readouterr().err

    def test_zero_frames(self, tmp_path):
        with pytest.raises(SystemExit):
            cli.main(["nebula", "galaxy", "--frames", "0", "-o", str(tmp_path / "g.mp4")])

    def test_unknown_attractor_rejected_by_parser(self):
        with pytest.raises(SystemExit) as exc:
            cli.main(["nebula", "chua"])
        assert exc.value.code == 2


class TestListCommand:
    def test_lists_presets_and_attractors(self, capsys):
        cli.main(["list"])
        stdout = capsys.readouterr().out
        for name in ["constellation", "spiral", "lorenz", "galaxy", "ledger"]:
            assert name in stdout


class TestProgressBar:
    def test_non_tty_prints_percentages(self, capsys):
        for i in range(1, 21):
            cli._progress_bar(i, 20)
        lines = capsys.readouterr().out.strip().splitlines()
        assert lines[-1].strip().startswith("100.0%")
