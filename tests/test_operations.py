from PIL import Image, ImageDraw
import logging

import pytest

from graphicskit.errors import SaliencyUnavailableError
from graphicskit.geometry import Rect, Size
from graphicskit.operations import (
    SaliencyType,
    apply_operations,
    configure_saliency_provider,
    cropped,
    embed,
    embed_in_square,
    fill,
    fill_in_square,
    get_saliency_provider,
    override_saliency_provider,
    resized,
)

RED = (255, 0, 0)
BLUE = (0, 0, 255)


def assert_color_close(actual, expected, tolerance=30):
    assert len(actual) == len(expected)
    for component_actual, component_expected in zip(actual, expected):
        assert abs(component_actual - component_expected) <= tolerance


def halves(size=(100, 50)):
    """Red on the left half, blue on the right half."""
    img = Image.new("RGB", size, BLUE)
    ImageDraw.Draw(img).rectangle((0, 0, size[0] // 2 - 1, size[1] - 1), fill=RED)
    return img


@pytest.fixture(autouse=True)
def no_saliency_provider():
    configure_saliency_provider(None)
    yield
    configure_saliency_provider(None)


def test_cropped_returns_region():
    result = cropped(halves(), Rect.of(50, 0, 50, 50))
    assert result.size == (50, 50)
    assert_color_close(result.getpixel((0, 0)), BLUE)
    assert_color_close(result.getpixel((49, 49)), BLUE)


def test_cropped_outside_is_transparent():
    img = Image.new("RGBA", (10, 10), RED + (255,))
    result = cropped(img, Rect.of(8, 8, 4, 4))
    assert result.size == (4, 4)
    assert result.getpixel((0, 0)) == RED + (255,)
    assert result.getpixel((3, 3))[3] == 0


def test_resized_stretches_and_short_circuits():
    img = halves()
    assert resized(img, Size(100, 50)) is img
    result = resized(img, (20, 40))
    assert result.size == (20, 40)
    assert_color_close(result.getpixel((2, 20)), RED)
    assert_color_close(result.getpixel((17, 20)), BLUE)


def test_embed_centers_fitted_image():
    img = Image.new("RGBA", (100, 50), RED + (255,))
    result = embed(img, (50, 50))
    assert result.size == (50, 50)
    assert result.getpixel((25, 2))[3] == 0
    assert result.getpixel((25, 25)) == RED + (255,)
    assert result.getpixel((25, 47))[3] == 0


def test_embed_in_square_pads_with_transparency():
    img = Image.new("RGB", (20, 10), RED)
    result = embed_in_square(img)
    assert result.size == (20, 20)
    assert result.mode == "RGBA"
    assert result.getpixel((0, 0))[3] == 0
    assert result.getpixel((10, 10)) == RED + (255,)


def test_embed_in_square_keeps_odd_heights():
    result = embed_in_square(Image.new("RGB", (20, 9), RED))
    opaque_rows = [y for y in range(20) if result.getpixel((10, y))[3] == 255]
    assert len(opaque_rows) == 9
    assert opaque_rows == list(range(opaque_rows[0], opaque_rows[0] + 9))
    assert all(result.getpixel((x, opaque_rows[0])) == RED + (255,) for x in range(20))


def ramp(width=101, height=10):
    """Column ``x`` holds the gray value ``2 * x``."""
    img = Image.new("RGB", (width, height))
    for x in range(width):
        for y in range(height):
            img.putpixel((x, y), (2 * x,) * 3)
    return img


def test_cropped_at_half_pixel_offset_shifts_without_resampling():
    source_values = {2 * x for x in range(101)}
    result = cropped(ramp(), Rect.of(20.5, 0, 50, 10))
    assert result.size == (50, 10)
    values = [result.getpixel((x, 5))[0] for x in range(50)]
    assert set(values) <= source_values
    assert all(b - a == 2 for a, b in zip(values, values[1:]))


def test_embed_in_square_keeps_square_images():
    img = Image.new("RGB", (8, 8))
    assert embed_in_square(img) is img


def test_fill_centers_without_saliency():
    result = fill(halves(), (50, 50))
    assert result.size == (50, 50)
    assert_color_close(result.getpixel((10, 25)), RED)
    assert_color_close(result.getpixel((40, 25)), BLUE)


def test_fill_moves_toward_salient_region():
    calls = []

    def provider(image, saliency_type):
        calls.append((image.size, saliency_type))
        return [Rect.of(0.8, 0.0, 0.2, 1.0)]

    result = fill(halves(), (50, 50), SaliencyType.ATTENTION_BASED, provider=provider)
    assert calls == [((100, 50), SaliencyType.ATTENTION_BASED)]
    assert result.size == (50, 50)
    assert_color_close(result.getpixel((5, 25)), BLUE)
    assert_color_close(result.getpixel((45, 25)), BLUE)


def test_fill_uses_configured_provider():
    with override_saliency_provider(lambda image, kind: [Rect.of(0, 0, 0.1, 0.1)]):
        result = fill(halves(), (50, 50), SaliencyType.OBJECTNESS_BASED)
    assert_color_close(result.getpixel((45, 25)), RED)
    with pytest.raises(SaliencyUnavailableError):
        get_saliency_provider()


def test_fill_without_provider_raises():
    with pytest.raises(SaliencyUnavailableError):
        fill(halves(), (50, 50), SaliencyType.ATTENTION_BASED)


def test_fill_returns_none_when_detection_fails(caplog):
    def broken(image, saliency_type):
        raise RuntimeError("detector crashed")

    with caplog.at_level(logging.ERROR):
        assert fill(halves(), (50, 50), SaliencyType.ATTENTION_BASED, provider=broken) is None
    assert "detector crashed" in caplog.text


def test_fill_returns_none_without_regions():
    assert fill(halves(), (50, 50), SaliencyType.ATTENTION_BASED, provider=lambda i, t: []) is None


def test_fill_in_square_uses_shorter_side():
    result = fill_in_square(halves((30, 10)))
    assert result.size == (10, 10)
    square = Image.new("RGB", (5, 5))
    assert fill_in_square(square) is square


def test_apply_operations_dispatch_and_warns(caplog):
    img = halves()
    operations = [
        {"type": "resize", "params": {"size": (10, 10)}},
        {"type": "rotate", "params": {"angle": 90}},
        {"type": "crop", "params": {"rect": (0, 0, 5, 5)}},
        {"type": "fill_in_square", "params": {"saliency": "attention_based"}},
    ]
    with override_saliency_provider(lambda image, kind: []):
        with caplog.at_level(logging.WARNING):
            result = apply_operations(img, operations)
    assert result.size == (5, 5)
    assert "Unknown operation type: rotate" in caplog.text
    assert "Operation fill_in_square produced no image" not in caplog.text


def test_apply_operations_keeps_previous_result_when_fill_fails(caplog):
    operations = [{"type": "fill", "params": {"size": (10, 10), "saliency": "objectness_based"}}]
    img = halves()
    with override_saliency_provider(lambda image, kind: []):
        with caplog.at_level(logging.WARNING):
            result = apply_operations(img, operations)
    assert result is img
    assert "Operation fill produced no image" in caplog.text
