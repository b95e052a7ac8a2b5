"""Unit tests for OCR image preprocessing."""

from PIL import Image

from nebenkosten.ocr.preprocess import MAX_DIMENSION, preprocess_image


def test_output_is_binary_grayscale() -> None:
    image = Image.new("RGB", (120, 40), color=(200, 190, 180))
    image.paste((60, 60, 60), (10, 10, 50, 30))

    result = preprocess_image(image)

    assert result.mode == "L"
    used_levels = {level for level, count in enumerate(result.histogram()) if count}
    assert used_levels <= {0, 255}


def test_light_background_becomes_white_and_text_black() -> None:
    image = Image.new("RGB", (120, 40), color=(220, 220, 220))
    image.paste((40, 40, 40), (40, 10, 80, 30))

    result = preprocess_image(image)

    assert result.getpixel((5, 5)) == 255
    assert result.getpixel((60, 20)) == 0


def test_large_images_are_downscaled() -> None:
    image = Image.new("RGB", (4096, 1024), color="white")

    result = preprocess_image(image)

    assert max(result.size) == MAX_DIMENSION
    assert result.size == (2048, 512)


def test_small_images_keep_size() -> None:
    image = Image.new("L", (300, 200), color=255)

    result = preprocess_image(image)

    assert result.size == (300, 200)


def test_input_image_is_not_modified() -> None:
    image = Image.new("RGB", (50, 50), color=(128, 128, 128))

    preprocess_image(image)

    assert image.mode == "RGB"
    assert image.getpixel((0, 0)) == (128, 128, 128)
