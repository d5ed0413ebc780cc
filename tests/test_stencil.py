import pytest
from PIL import Image

from iconforge.errors import UnsupportedMask
from iconforge.raster import RasterImage
from iconforge.stencil import apply_mask, build_stencil_mask, fit_stencil_mask, load_stencil_mask

KEEP = 0xFFFFFFFF


def assert_binary(mask: RasterImage):
    raw = mask.tobytes()
    for i in range(0, len(raw), 4):
        assert raw[i:i + 4] in (b"\x00\x00\x00\x00", b"\xff\xff\xff\xff")


def test_built_mask_is_binary_rounded_square():
    mask = build_stencil_mask(64, 8, corner_radius_factor=0.25)
    assert mask.size == (64, 64)
    assert_binary(mask)

    assert mask.get_pixel(32, 32) == KEEP
    assert mask.get_pixel(8, 32) == KEEP
    assert mask.get_pixel(55, 32) == KEEP
    assert mask.get_pixel(32, 8) == KEEP
    # margin and rounded corners are cleared
    assert mask.get_pixel(7, 32) == 0
    assert mask.get_pixel(56, 32) == 0
    assert mask.get_pixel(8, 8) == 0
    assert mask.get_pixel(55, 55) == 0


def test_build_rejects_oversized_inset():
    with pytest.raises(ValueError):
        build_stencil_mask(64, 32)


def test_apply_mask_is_bitwise_and():
    canvas = RasterImage.create(2, 1)
    canvas.set_pixel(0, 0, 0x12345678)
    canvas.set_pixel(1, 0, 0x12345678)
    mask = RasterImage.create(2, 1)
    mask.set_pixel(0, 0, KEEP)
    mask.set_pixel(1, 0, 0xF0F0F0F0)

    out = apply_mask(canvas, mask)
    assert out.get_pixel(0, 0) == 0x12345678
    assert out.get_pixel(1, 0) == 0x10305070
    # canvas is left untouched
    assert canvas.get_pixel(1, 0) == 0x12345678


def test_apply_mask_is_idempotent():
    canvas = RasterImage.create(32, 32, 0x3366CCFF)
    canvas.set_pixel(3, 4, 0xABCDEF01)
    mask = build_stencil_mask(32, 2)

    once = apply_mask(canvas, mask)
    twice = apply_mask(once, mask)
    assert once.tobytes() == twice.tobytes()


def test_apply_mask_rejects_size_mismatch():
    with pytest.raises(UnsupportedMask):
        apply_mask(RasterImage.create(8, 8), RasterImage.create(8, 9))


def test_load_stencil_mask_binarises_and_resizes(tmp_path):
    img = Image.new("RGBA", (4, 4), (255, 255, 255, 0))
    img.putpixel((0, 0), (255, 255, 255, 255))
    img.putpixel((3, 3), (10, 20, 30, 200))
    img.putpixel((3, 0), (255, 255, 255, 100))
    path = tmp_path / "mask.png"
    img.save(path)

    mask = load_stencil_mask(path, 8)
    assert mask.size == (8, 8)
    assert_binary(mask)
    assert mask.get_pixel(0, 0) == KEEP
    assert mask.get_pixel(7, 7) == KEEP
    assert mask.get_pixel(7, 0) == 0
    assert mask.get_pixel(4, 4) == 0


def test_fit_stencil_mask():
    mask = build_stencil_mask(16, 2)
    assert fit_stencil_mask(mask, 16) is mask
    bigger = fit_stencil_mask(mask, 32)
    assert bigger.size == (32, 32)
    assert_binary(bigger)
