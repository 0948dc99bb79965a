"""Page fitting geometry for placing a raster on a fixed-size page."""

from converter.errors import InvalidGeometryError
from converter.models import PageGeometry


def fit(
    bitmap_width: float,
    bitmap_height: float,
    page_width: float,
    page_height: float,
) -> PageGeometry:
    """
    Scale a bitmap uniformly to fit inside a page and center it.

    The scale is the smaller of the two axis ratios, so the whole image
    fits without cropping.

    Raises:
        InvalidGeometryError: If any dimension is not positive
    """
    dims = {
        "bitmap_width": bitmap_width,
        "bitmap_height": bitmap_height,
        "page_width": page_width,
        "page_height": page_height,
    }
    for name, value in dims.items():
        if value <= 0:
            raise InvalidGeometryError(f"{name} must be positive, got {value}")

    width_ratio = page_width / bitmap_width
    height_ratio = page_height / bitmap_height
    scale = min(width_ratio, height_ratio)

    # clamp rounding overshoot on the driving axis
    draw_width = min(bitmap_width * scale, page_width)
    draw_height = min(bitmap_height * scale, page_height)

    return PageGeometry(
        scale=scale,
        draw_width=draw_width,
        draw_height=draw_height,
        margin_x=(page_width - draw_width) / 2,
        margin_y=(page_height - draw_height) / 2,
    )
