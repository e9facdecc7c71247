import numpy as np
import pytest

from pixelkit.errors import InvalidParameterError
from pixelkit.models import kernel as kernels
from pixelkit.models.colour import Channel
from pixelkit.models.kernel import Kernel
from pixelkit.models.pixel_buffer import PixelBuffer
from pixelkit.services.convolution_service import ConvolutionService


@pytest.fixture
def service():
    return ConvolutionService()


@pytest.fixture
def flat_buffer():
    return PixelBuffer.filled(9, 7, (37, 150, 222, 180))


# ─── Kernel model ────────────────────────────────────────────────────────

@pytest.mark.parametrize("rows", [
    [[1, 1], [1, 1]],
    [[1, 2, 3], [4, 5, 6]],
    [[1, 2, 3]],
    [[float("inf"), 0, 0], [0, 1, 0], [0, 0, 0]],
])
def test_invalid_kernels_rejected(rows):
    with pytest.raises(InvalidParameterError):
        Kernel.from_rows(rows)


def test_zero_divisor_rejected():
    with pytest.raises(InvalidParameterError):
        Kernel.from_rows([[0, 0, 0], [0, 1, 0], [0, 0, 0]], divisor=0)


def test_effective_divisor_rules():
    assert kernels.BOX_BLUR.effective_divisor == pytest.approx(9.0)
    assert Kernel.from_rows([[0, -1, 0], [-1, 4, -1], [0, -1, 0]]).effective_divisor == 1.0
    assert Kernel.from_rows([[1, 1, 1], [1, 1, 1], [1, 1, 1]], divisor=3).effective_divisor == 3.0


def test_separable_kernel_matches_outer_product():
    k = Kernel.from_separable([1, 2, 1], [-1, 0, 1])
    np.testing.assert_array_equal(k.weights, [[-1, -2, -1], [0, 0, 0], [1, 2, 1]])
    assert k.is_separable
    np.testing.assert_array_equal(kernels.SOBEL_HORIZONTAL.transposed().weights, kernels.SOBEL_VERTICAL.weights)


def test_kernel_weights_are_read_only():
    with pytest.raises(ValueError):
        kernels.SHARPEN.weights[0, 0] = 3


def test_gaussian_parameters_validated():
    with pytest.raises(InvalidParameterError):
        kernels.gaussian(0)
    with pytest.raises(InvalidParameterError):
        kernels.gaussian(2, sigma=-1.0)
    assert kernels.gaussian(2).size == 5
    assert kernels.gaussian(2).effective_divisor == pytest.approx(1.0)


# ─── Convolution ─────────────────────────────────────────────────────────

def test_laplace_on_flat_3x3_is_all_zero(service):
    for colour in [(0, 0, 0), (128, 64, 32), (255, 255, 255)]:
        buf = PixelBuffer.filled(3, 3, (*colour, 255))
        out = service.convolve(buf, Kernel.from_rows([[0, -1, 0], [-1, 4, -1], [0, -1, 0]], divisor=1))
        assert np.all(out.pixels[:, :, :3] == 0)
        assert np.all(out.pixels[:, :, 3] == 255)


@pytest.mark.parametrize("kernel", [
    kernels.BOX_BLUR,
    kernels.gaussian(1),
    kernels.gaussian(3, sigma=1.5),
    Kernel.from_rows([[1, 2, 1], [2, 4, 2], [1, 2, 1]]),
])
def test_blur_of_uniform_buffer_is_unchanged(service, flat_buffer, kernel):
    assert service.convolve(flat_buffer, kernel) == flat_buffer


def test_identity_kernel(service, random_buffer):
    assert service.identity(random_buffer) == random_buffer


def test_alpha_passes_through_by_default(service, random_buffer):
    out = service.box_blur(random_buffer)
    np.testing.assert_array_equal(out.alpha, random_buffer.alpha)
    with_alpha = service.convolve(random_buffer, kernels.BOX_BLUR, include_alpha=True)
    assert not np.array_equal(with_alpha.alpha, random_buffer.alpha)


def test_edge_replication_at_borders(service):
    # single bright column on the left edge; replicated border keeps it bright
    pixels = np.zeros((5, 5, 4), dtype=np.uint8)
    pixels[:, 0, :3] = 90
    pixels[:, :, 3] = 255
    out = service.box_blur(PixelBuffer(pixels))
    # left edge: neighbourhood columns (-1→0, 0, 1) = 90, 90, 0 → 60
    assert out.get_pixel(0, 2)[:3] == (60, 60, 60)
    # zero padding would have produced 30 in the corner
    assert out.get_pixel(0, 0)[:3] == (60, 60, 60)
    assert out.get_pixel(1, 2)[:3] == (30, 30, 30)
    assert out.get_pixel(3, 2)[:3] == (0, 0, 0)


def test_separable_matches_full_2d(service, random_buffer):
    separable = kernels.gaussian(2, sigma=1.2)
    full = Kernel(np.array(separable.weights))
    assert not full.is_separable
    a = service.convolve(random_buffer, separable).pixels.astype(int)
    b = service.convolve(random_buffer, full).pixels.astype(int)
    assert np.abs(a - b).max() <= 1


def test_high_pass_clamps_negative_to_zero(service, gradient_buffer):
    out = service.edge_detection(gradient_buffer)
    assert out.pixels[:, :, :3].min() == 0
    assert out.pixels[:, :, :3].max() <= 255


def test_kernel_larger_than_buffer(service):
    buf = PixelBuffer.filled(2, 1, (10, 20, 30, 255))
    assert service.gaussian_blur(buf, radius=4) == buf


def test_convolve_rejects_non_kernel(service, flat_buffer):
    with pytest.raises(InvalidParameterError):
        service.convolve(flat_buffer, [[0, 0, 0], [0, 1, 0], [0, 0, 0]])


def test_convolve_leaves_input_untouched(service, random_buffer):
    before = random_buffer.copy()
    service.sharpen(random_buffer)
    assert random_buffer == before


# ─── Sobel ───────────────────────────────────────────────────────────────

def test_sobel_of_uniform_is_zero(service, flat_buffer):
    out = service.sobel(flat_buffer)
    assert np.all(out.pixels[:, :, :3] == 0)
    np.testing.assert_array_equal(out.alpha, flat_buffer.alpha)


def test_sobel_vertical_edge_magnitude(service):
    pixels = np.zeros((6, 6, 4), dtype=np.uint8)
    pixels[:, 3:, :3] = 50
    pixels[:, :, 3] = 255
    out = service.sobel(PixelBuffer(pixels))
    # gx = (1 + 2 + 1) * 50 on both sides of the step, gy = 0
    assert out.get_pixel(2, 3)[:3] == (200, 200, 200)
    assert out.get_pixel(3, 3)[:3] == (200, 200, 200)
    assert out.get_pixel(0, 3)[:3] == (0, 0, 0)


def test_sobel_single_channel_broadcasts(service, random_buffer):
    out = service.sobel(random_buffer, Channel.GREEN)
    rgb = out.pixels[:, :, :3]
    assert np.array_equal(rgb[:, :, 0], rgb[:, :, 1])
    assert np.array_equal(rgb[:, :, 1], rgb[:, :, 2])


def test_sobel_magnitude_saturates(service):
    pixels = np.zeros((4, 4, 4), dtype=np.uint8)
    pixels[:, 2:, :3] = 255
    pixels[:, :, 3] = 255
    out = service.sobel(PixelBuffer(pixels))
    assert out.get_pixel(1, 1)[:3] == (255, 255, 255)


@pytest.mark.parametrize("effect", [
    "box_blur", "sharpen", "emboss", "edge_detection", "edge_one", "laplace",
    "prewitt_horizontal", "sobel_horizontal", "sobel_vertical",
    "detect_horizontal_lines", "detect_vertical_lines",
    "detect_45_deg_lines", "detect_135_deg_lines",
])
def test_named_effects_keep_dimensions(service, random_buffer, effect):
    out = getattr(service, effect)(random_buffer)
    assert out.dimensions == random_buffer.dimensions
    np.testing.assert_array_equal(out.alpha, random_buffer.alpha)
