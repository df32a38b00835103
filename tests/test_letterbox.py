import unittest

import numpy as np

from nude_kit.errors import ImageLoadError
from nude_kit.letterbox import INPUT_SIZE, compute_resize_factor, fit_size, letterbox, to_blob


class TestLetterbox(unittest.TestCase):
    def test_square_input_is_identity(self) -> None:
        rng = np.random.default_rng(0)
        img = rng.integers(0, 256, size=(INPUT_SIZE, INPUT_SIZE, 3), dtype=np.uint8)
        lb = letterbox(img)
        self.assertEqual(lb.resize_factor, 1.0)
        self.assertEqual((lb.pad_top, lb.pad_bottom, lb.pad_left, lb.pad_right), (0, 0, 0, 0))
        self.assertTrue(np.array_equal(lb.image, img))

    def test_landscape_640x480(self) -> None:
        img = np.full((480, 640, 3), 255, dtype=np.uint8)
        lb = letterbox(img)
        self.assertEqual(lb.image.shape, (INPUT_SIZE, INPUT_SIZE, 3))
        self.assertEqual(lb.resized_size, (320, 240))
        self.assertEqual(lb.resize_factor, 2.0)
        self.assertEqual((lb.pad_top, lb.pad_bottom), (40, 40))
        self.assertEqual((lb.pad_left, lb.pad_right), (0, 0))

        # Border is black, interior rows [40, 280) are the image.
        self.assertTrue(np.all(lb.image[:40] == 0))
        self.assertTrue(np.all(lb.image[280:] == 0))
        self.assertTrue(np.all(lb.image[40:280] == 255))

    def test_odd_padding_goes_to_bottom_and_right(self) -> None:
        tall = letterbox(np.zeros((320, 101, 3), dtype=np.uint8))
        self.assertEqual((tall.pad_left, tall.pad_right), (109, 110))
        self.assertEqual((tall.pad_top, tall.pad_bottom), (0, 0))

        wide = letterbox(np.zeros((101, 320, 3), dtype=np.uint8))
        self.assertEqual((wide.pad_top, wide.pad_bottom), (109, 110))

    def test_padding_sums_match_resized_size(self) -> None:
        for h, w in [(480, 640), (333, 1000), (13, 7), (1, 1), (321, 320), (1080, 1920)]:
            lb = letterbox(np.zeros((h, w, 3), dtype=np.uint8))
            rw, rh = lb.resized_size
            self.assertEqual(max(rw, rh), INPUT_SIZE)
            self.assertEqual(lb.pad_top + lb.pad_bottom, INPUT_SIZE - rh)
            self.assertEqual(lb.pad_left + lb.pad_right, INPUT_SIZE - rw)
            self.assertLessEqual(lb.pad_bottom - lb.pad_top, 1)
            self.assertLessEqual(lb.pad_right - lb.pad_left, 1)
            self.assertEqual(lb.image.shape, (INPUT_SIZE, INPUT_SIZE, 3))

    def test_upscales_small_images(self) -> None:
        lb = letterbox(np.zeros((10, 20, 3), dtype=np.uint8))
        self.assertEqual(lb.resized_size, (320, 160))
        self.assertAlmostEqual(lb.resize_factor, 1 / 16, places=6)

    def test_fit_size_rounds_half_away(self) -> None:
        # 1000x333 -> 333 * 0.32 = 106.56
        self.assertEqual(fit_size(1000, 333), (320, 107))
        # 640x3 -> 1.5 rounds up, not to even
        self.assertEqual(fit_size(640, 3), (320, 2))
        self.assertEqual(fit_size(10000, 1), (320, 1))

    def test_resize_factor_uses_diagonal_ratio(self) -> None:
        expected = np.sqrt(np.float32(1000 ** 2 + 333 ** 2) / np.float32(320 ** 2 + 107 ** 2))
        self.assertAlmostEqual(compute_resize_factor((1000, 333), (320, 107)), float(expected), places=5)

    def test_grayscale_and_bgra_accepted(self) -> None:
        gray = letterbox(np.zeros((100, 200), dtype=np.uint8))
        self.assertEqual(gray.image.shape, (INPUT_SIZE, INPUT_SIZE, 3))
        bgra = letterbox(np.zeros((100, 200, 4), dtype=np.uint8))
        self.assertEqual(bgra.image.shape, (INPUT_SIZE, INPUT_SIZE, 3))

    def test_zero_size_rejected(self) -> None:
        with self.assertRaises(ImageLoadError):
            letterbox(np.zeros((0, 10, 3), dtype=np.uint8))
        with self.assertRaises(ImageLoadError):
            letterbox(np.zeros((10, 0, 3), dtype=np.uint8))

    def test_unsupported_input_rejected(self) -> None:
        with self.assertRaises(ImageLoadError):
            letterbox(None)
        with self.assertRaises(ImageLoadError):
            letterbox(np.zeros((10, 10, 2), dtype=np.uint8))

    def test_non_uint8_rejected(self) -> None:
        # 16-bit or float pixels would normalize outside [0, 1].
        for img in (
            np.full((240, 320, 3), 60000, dtype=np.uint16),
            np.full((240, 320, 3), -5.0, dtype=np.float64),
            np.zeros((240, 320), dtype=np.float32),
        ):
            with self.assertRaises(ImageLoadError):
                letterbox(img)


class TestToBlob(unittest.TestCase):
    def test_shape_range_and_channel_order(self) -> None:
        img = np.zeros((INPUT_SIZE, INPUT_SIZE, 3), dtype=np.uint8)
        img[..., 0] = 255  # blue in BGR
        img[..., 1] = 51

        blob = to_blob(img)
        self.assertEqual(blob.shape, (1, 3, INPUT_SIZE, INPUT_SIZE))
        self.assertEqual(blob.dtype, np.float32)
        self.assertGreaterEqual(float(blob.min()), 0.0)
        self.assertLessEqual(float(blob.max()), 1.0)
        # RGB order: R=0, G=0.2, B=1.0
        self.assertTrue(np.all(blob[0, 0] == 0.0))
        self.assertTrue(np.allclose(blob[0, 1], 0.2))
        self.assertTrue(np.all(blob[0, 2] == 1.0))


if __name__ == "__main__":
    unittest.main()
