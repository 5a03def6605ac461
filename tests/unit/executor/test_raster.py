"""Tests for ImageMagick argument planning."""

from pathlib import Path

from convertsave.executor.raster import (
    alpha_probe_args,
    channels_have_alpha,
    plan_multipage_pdf_args,
    plan_raster_args,
    raster_env,
    split_advanced_options,
)


def _index(args: list[str], token: str) -> int:
    return args.index(token)


class TestPlanRasterArgs:
    """Tests for plan_raster_args."""

    def test_png_with_alpha_to_jpg_flattens_before_quality(self):
        args = plan_raster_args(Path("/in/logo.png"), Path("/out/logo.jpg"), has_alpha=True)

        order = [
            _index(args, "-background"),
            _index(args, "white"),
            _index(args, "-flatten"),
            _index(args, "-quality"),
            _index(args, "90"),
        ]
        assert order == sorted(order)
        assert args[0] == "/in/logo.png"
        assert args[-1] == "/out/logo.jpg"

    def test_opaque_input_is_not_flattened(self):
        args = plan_raster_args(Path("a.png"), Path("a.jpg"), has_alpha=False)
        assert "-flatten" not in args

    def test_alpha_kept_for_png_output(self):
        args = plan_raster_args(Path("a.webp"), Path("a.png"), has_alpha=True)
        assert "-flatten" not in args

    def test_animation_to_still_selects_first_frame(self):
        args = plan_raster_args(Path("anim.gif"), Path("anim.png"))
        assert args[0] == "anim.gif[0]"

    def test_animation_to_animation_keeps_frames(self):
        args = plan_raster_args(Path("anim.gif"), Path("anim.webp"))
        assert args[0] == "anim.gif"

    def test_ico_resize(self):
        args = plan_raster_args(Path("a.png"), Path("a.ico"))
        assert args[1:9] == [
            "-resize", "256x256",
            "-gravity", "center",
            "-extent", "256x256",
            "-background", "transparent",
        ]

    def test_format_specific_flags(self):
        assert plan_raster_args(Path("a.png"), Path("a.heic"))[1:3] == ["-quality", "85"]
        assert plan_raster_args(Path("a.png"), Path("a.jp2"))[1:3] == ["-quality", "85"]
        assert plan_raster_args(Path("a.png"), Path("a.svg"))[1:3] == ["-density", "300"]
        assert plan_raster_args(Path("a.png"), Path("a.tif"))[1:3] == ["-quality", "100"]
        assert plan_raster_args(Path("a.png"), Path("a.pdf"))[1:5] == [
            "-compress", "jpeg", "-density", "300",
        ]

    def test_advanced_options_follow_defaults(self):
        args = plan_raster_args(
            Path("a.png"), Path("a.jpg"), extra='-resize 50% -comment "two words"'
        )
        assert args == [
            "a.png", "-quality", "90", "-resize", "50%", "-comment", "two words", "a.jpg",
        ]


def test_split_advanced_options_blank():
    assert split_advanced_options(None) == []
    assert split_advanced_options("   ") == []


class TestAlphaProbe:
    """Tests for the identify-based alpha probe."""

    def test_probe_args_read_first_frame(self):
        assert alpha_probe_args(Path("x.png")) == [
            "identify", "-format", "%[channels]", "x.png[0]",
        ]

    def test_channels(self):
        assert channels_have_alpha("srgba  4.0")
        assert channels_have_alpha("graya")
        assert not channels_have_alpha("srgb  3.0")
        assert not channels_have_alpha("")


class TestRasterEnv:
    """Tests for raster_env."""

    def test_empty_off_macos(self, linux_platform):
        assert raster_env(Path("/usr/bin/magick"), linux_platform) == {}

    def test_bundled_layout_on_macos(self, temp_dir: Path, macos_platform):
        coders = temp_dir / "lib" / "ImageMagick-7.0.10" / "modules-Q16HDRI" / "coders"
        coders.mkdir(parents=True)

        env = raster_env(temp_dir / "bin" / "magick", macos_platform)

        assert env["MAGICK_HOME"] == str(temp_dir)
        assert env["DYLD_LIBRARY_PATH"] == str(temp_dir / "lib")
        assert env["MAGICK_CONFIGURE_PATH"] == str(temp_dir / "etc" / "ImageMagick-7")
        assert env["MAGICK_CODER_MODULE_PATH"] == str(coders)


def test_multipage_pdf_args():
    args = plan_multipage_pdf_args([Path("a.png"), Path("b.jpg")], Path("a combined.pdf"))
    assert args == [
        "a.png", "b.jpg", "-compress", "jpeg", "-density", "300", "a combined.pdf",
    ]
