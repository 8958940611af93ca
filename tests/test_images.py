from io import BytesIO

import pytest
from PIL import Image

from assetpipe.core.errors import TransformError
from assetpipe.processing.images import compress_image
from assetpipe.tasks import transforms

from conftest import write

SVG = """<?xml version="1.0" encoding="UTF-8"?>
<!-- exported by an editor -->
<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10">
    <metadata>editor data</metadata>
    <rect   x="0"   y="0"   width="10"   height="10"   fill="#ff0000"  />
</svg>
"""


def image_bytes(fmt, size=(64, 64), color=(200, 30, 30)):
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, fmt, **({"quality": 95} if fmt == "JPEG" else {}))
    return buffer.getvalue()


def test_images_mirror_paths_and_never_grow(project, make_ctx):
    sources = {
        "logo.png": image_bytes("PNG"),
        "photos/beach.jpg": image_bytes("JPEG"),
        "photos/2024/anim.gif": image_bytes("GIF"),
        "icons/star.svg": SVG.encode(),
    }
    for rel, data in sources.items():
        write(project / "src/assets/images" / rel, data)
    write(project / "src/assets/images/readme.txt", "not an image")

    outputs = transforms.images(make_ctx())

    assert len(outputs) == len(sources)
    for rel, data in sources.items():
        out = project / "dist/assets/images" / rel
        assert out.exists(), rel
        assert out.stat().st_size <= len(data), rel
    assert not (project / "dist/assets/images/readme.txt").exists()


def test_compressed_raster_still_decodes(tmp_path):
    source = write(tmp_path / "a.png", image_bytes("PNG", size=(32, 16)))

    with Image.open(BytesIO(compress_image(source))) as image:
        assert image.size == (32, 16)


def test_svg_is_optimized(tmp_path):
    source = write(tmp_path / "star.svg", SVG)

    result = compress_image(source).decode()

    assert len(result) < len(SVG)
    assert "exported by an editor" not in result
    assert "<rect" in result


def test_corrupt_image_is_a_transform_error(tmp_path):
    source = write(tmp_path / "broken.png", b"not really a png")

    with pytest.raises(TransformError, match="broken.png"):
        compress_image(source)
