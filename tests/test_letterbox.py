import unittest

import numpy as np

from pose_kit.errors import DegenerateGeometry
from pose_kit.letterbox import compute_letterbox, letterbox_image, to_input_tensor


class TestComputeLetterbox(unittest.TestCase):
    def test_landscape_hd_into_640(self) -> None:
        t = compute_letterbox(1280, 720, 640, 640)
        self.assertEqual(t.scale, 0.5)
        self.assertEqual((t.scaled_width, t.scaled_height), (640, 360))
        self.assertEqual((t.pad_x, t.pad_y), (0, 140))

    def test_odd_leftover_goes_bottom_right(self) -> None:
        t = compute_letterbox(200, 101, 640, 640)
        self.assertAlmostEqual(t.scale, 3.2)
        self.assertEqual(t.scaled_height, 323)
        self.assertEqual(t.pad_y, 158)
        self.assertEqual(640 - t.scaled_height - t.pad_y, 159)

    def test_identity(self) -> None:
        t = compute_letterbox(640, 640, 640, 640)
        self.assertEqual((t.scale, t.pad_x, t.pad_y), (1.0, 0, 0))
        self.assertEqual(t.to_source(123.5, 7.0), (123.5, 7.0))

    def test_degenerate_sizes_rejected(self) -> None:
        for sizes in [(0, 100, 640, 640), (100, 0, 640, 640), (100, 100, 0, 640), (-5, 100, 640, 640)]:
            with self.assertRaises(DegenerateGeometry):
                compute_letterbox(*sizes)

    def test_round_trip_inside_content_region(self) -> None:
        for ow, oh in [(1280, 720), (480, 640), (333, 777), (640, 640)]:
            t = compute_letterbox(ow, oh, 640, 640)
            mx, my = np.meshgrid(
                np.linspace(t.pad_x, t.pad_x + t.scaled_width, 17),
                np.linspace(t.pad_y, t.pad_y + t.scaled_height, 13),
            )
            sx, sy = t.to_source(mx, my)
            rx, ry = t.to_model(sx, sy)
            np.testing.assert_allclose(rx, mx, atol=1e-9)
            np.testing.assert_allclose(ry, my, atol=1e-9)


class TestLetterboxImage(unittest.TestCase):
    def test_content_placed_between_padding(self) -> None:
        img = np.full((720, 1280, 3), 200, dtype=np.uint8)
        t = compute_letterbox(1280, 720, 640, 640)
        padded = letterbox_image(img, t)
        self.assertEqual(padded.shape, (640, 640, 3))
        self.assertTrue(np.all(padded[:140] == 114))
        self.assertTrue(np.all(padded[140:500] == 200))
        self.assertTrue(np.all(padded[500:] == 114))

    def test_size_mismatch_rejected(self) -> None:
        t = compute_letterbox(1280, 720, 640, 640)
        with self.assertRaises(ValueError):
            letterbox_image(np.zeros((100, 100, 3), dtype=np.uint8), t)

    def test_collapsed_image_rejected(self) -> None:
        t = compute_letterbox(10000, 1, 640, 640)
        with self.assertRaises(DegenerateGeometry):
            letterbox_image(np.zeros((1, 10000, 3), dtype=np.uint8), t)

    def test_input_tensor_layout(self) -> None:
        img = np.zeros((4, 6, 3), dtype=np.uint8)
        img[..., 0] = 255
        img[..., 2] = 51
        blob = to_input_tensor(img)
        self.assertEqual(blob.shape, (1, 3, 4, 6))
        self.assertEqual(blob.dtype, np.float32)
        self.assertTrue(np.allclose(blob[0, 0], 1.0))
        self.assertTrue(np.allclose(blob[0, 1], 0.0))
        self.assertTrue(np.allclose(blob[0, 2], 0.2))


if __name__ == "__main__":
    unittest.main()
