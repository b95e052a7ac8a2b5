"""Image enhancement before OCR.

Scanned or photographed bills are often low-contrast. The pipeline:
1. Respect EXIF orientation and downscale to at most 2048 px
2. Stretch contrast around mid-gray
3. Sharpen glyph edges with a 3x3 kernel
4. Convert to grayscale and binarize
"""

from PIL import Image, ImageFilter, ImageOps

MAX_DIMENSION = 2048
CONTRAST_FACTOR = 1.5
BINARIZE_THRESHOLD = 128

SHARPEN_KERNEL = ImageFilter.Kernel(
    (3, 3),
    [0, -1, 0, -1, 5, -1, 0, -1, 0],
    scale=1,
)


def _stretch(value: int) -> int:
    return max(0, min(255, int((value - 128) * CONTRAST_FACTOR + 128)))


def _binarize(value: int) -> int:
    return 255 if value > BINARIZE_THRESHOLD else 0


def preprocess_image(image: Image.Image) -> Image.Image:
    """Return a binarized, OCR-friendly copy of image (mode 'L')."""
    image = ImageOps.exif_transpose(image) or image
    image = image.convert("RGB")

    if max(image.size) > MAX_DIMENSION:
        image.thumbnail((MAX_DIMENSION, MAX_DIMENSION))

    image = image.point(_stretch)
    image = image.filter(SHARPEN_KERNEL)
    return image.convert("L").point(_binarize)
