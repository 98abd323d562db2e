import base64
import io

import numpy as np
import pytest
from PIL import Image

from conftest import make_frame
from services.camera.frame_encoder import FrameEncoder


def test_render_uses_native_size_and_mirrors():
    frame = make_frame(6, 3)
    encoder = FrameEncoder("PNG")

    plain = np.array(encoder.render(frame))
    mirrored = np.array(encoder.render(frame, mirror=True))

    assert plain.shape == (3, 6, 3)
    np.testing.assert_array_equal(mirrored, plain[:, ::-1, :])


def test_render_scales_to_requested_surface():
    image = FrameEncoder().render(make_frame(4, 2), size=(8, 4))

    assert image.size == (8, 4)


def test_jpeg_data_url():
    encoder = FrameEncoder()
    data, mime = encoder.encode(make_frame(16, 16))

    url = encoder.to_data_url(data)

    assert mime == "image/jpeg"
    assert url.startswith("data:image/jpeg;base64,")
    decoded = Image.open(io.BytesIO(base64.b64decode(url.split(",", 1)[1])))
    assert decoded.format == "JPEG"
    assert decoded.size == (16, 16)


def test_grayscale_frames_are_converted():
    gray = np.full((5, 5), 128, dtype=np.uint8)

    image = FrameEncoder("PNG").render(gray)

    assert image.mode == "RGB"


def test_unknown_format_rejected():
    with pytest.raises(ValueError):
        FrameEncoder("TIFF")
