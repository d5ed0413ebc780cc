import io

import pytest
from PIL import Image, features


def encode(img: Image.Image, fmt: str = "PNG", **params) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt, **params)
    return buf.getvalue()


def solid_png(size, color) -> bytes:
    return encode(Image.new("RGBA", size, color))


def gradient_png(size) -> bytes:
    w, h = size
    img = Image.new("RGBA", size)
    img.putdata([((x * 7) % 256, (y * 13) % 256, (x * y) % 256, 255) for y in range(h) for x in range(w)])
    return encode(img)


def bordered_png(size: int, border: int, color) -> bytes:
    """Opaque square of `color` with a fully transparent border."""
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    img.paste(Image.new("RGBA", (size - 2 * border, size - 2 * border), color), (border, border))
    return encode(img)


requires_jpeg2000 = pytest.mark.skipif(
    not features.check("jpg_2000"),
    reason="Pillow built without OpenJPEG",
)
