"""Tests for page fitting geometry."""

import pytest

from converter.errors import InvalidGeometryError
from converter.fitter import fit


def test_portrait_image_on_a4_page():
    geometry = fit(100, 200, 595, 842)

    assert geometry.scale == pytest.approx(4.21)
    assert geometry.draw_width == pytest.approx(421)
    assert geometry.draw_height == pytest.approx(842)
    assert geometry.margin_x == pytest.approx(87)
    assert geometry.margin_y == pytest.approx(0)


def test_landscape_image_is_driven_by_width():
    geometry = fit(800, 200, 595, 842)

    assert geometry.scale == pytest.approx(595 / 800)
    assert geometry.draw_width == pytest.approx(595)
    assert geometry.margin_x == pytest.approx(0)
    assert geometry.margin_y == pytest.approx((842 - 200 * 595 / 800) / 2)


def test_equal_ratios_fill_the_page():
    geometry = fit(50, 50, 300, 300)

    assert geometry.scale == pytest.approx(6)
    assert geometry.draw_width == pytest.approx(300)
    assert geometry.draw_height == pytest.approx(300)
    assert geometry.margin_x == pytest.approx(0)
    assert geometry.margin_y == pytest.approx(0)


def test_large_image_is_scaled_down():
    geometry = fit(4000, 3000, 595, 842)

    assert geometry.scale < 1
    assert geometry.draw_width <= 595
    assert geometry.draw_height <= 842


@pytest.mark.parametrize("bitmap_width", [1, 7, 100, 333, 1920, 10000])
@pytest.mark.parametrize("bitmap_height", [1, 13, 200, 1080, 7777])
@pytest.mark.parametrize("page", [(595, 842), (595.28, 841.89), (612, 792), (1, 1000)])
def test_fit_and_centering_invariants(bitmap_width, bitmap_height, page):
    page_width, page_height = page
    geometry = fit(bitmap_width, bitmap_height, page_width, page_height)

    assert geometry.draw_width <= page_width
    assert geometry.draw_height <= page_height
    assert geometry.scale == min(page_width / bitmap_width, page_height / bitmap_height)
    assert geometry.margin_x * 2 + geometry.draw_width == pytest.approx(page_width)
    assert geometry.margin_y * 2 + geometry.draw_height == pytest.approx(page_height)
    assert geometry.margin_x >= -1e-9
    assert geometry.margin_y >= -1e-9


@pytest.mark.parametrize(
    "dims",
    [(0, 100, 595, 842), (100, -1, 595, 842), (100, 100, 0, 842), (100, 100, 595, -842)],
)
def test_non_positive_dimensions_are_rejected(dims):
    with pytest.raises(InvalidGeometryError) as exc_info:
        fit(*dims)
    assert exc_info.value.code == "INVALID_GEOMETRY"
