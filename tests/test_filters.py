import pytest

from pixelkit.errors import InvalidParameterError
from pixelkit.pipeline import FILTER_PRESETS, apply_filter, list_filters


def test_list_is_sorted_and_complete():
    names = list_filters()
    assert names == sorted(FILTER_PRESETS)
    assert {"oceanic", "vintage", "neon_edges"} <= set(names)


@pytest.mark.parametrize("name", sorted(FILTER_PRESETS))
def test_every_preset_keeps_dimensions(random_buffer, name):
    before = random_buffer.copy()
    out = apply_filter(random_buffer, name)
    assert out.dimensions == random_buffer.dimensions
    assert random_buffer == before


def test_preset_name_is_case_insensitive(grey_2x2):
    assert apply_filter(grey_2x2, " Vintage ") == apply_filter(grey_2x2, "vintage")


@pytest.mark.parametrize("name", ["not-a-filter", None])
def test_unknown_preset(grey_2x2, name):
    with pytest.raises(InvalidParameterError):
        apply_filter(grey_2x2, name)
