import unittest

import numpy as np

from nude_kit.nms import IOU_THRESHOLD, NMS_SCORE_THRESHOLD, NMSConfig, nms, rect_iou


class TestRectIou(unittest.TestCase):
    def test_partial_overlap(self) -> None:
        iou = rect_iou([0, 0, 100, 100], [[0, 0, 46, 100], [50, 0, 100, 100], [200, 200, 10, 10]])
        self.assertTrue(np.allclose(iou, [0.46, 5000 / 15000, 0.0]))

    def test_identical_boxes(self) -> None:
        self.assertEqual(rect_iou([5, 5, 10, 20], [[5, 5, 10, 20]]).tolist(), [1.0])

    def test_empty_boxes_count_as_overlapping(self) -> None:
        self.assertEqual(rect_iou([5, 5, 0, 0], [[5, 5, 0, 0]]).tolist(), [1.0])
        self.assertEqual(rect_iou([5, 5, 0, 0], [[5, 5, 10, 10]]).tolist(), [0.0])


class TestNms(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = NMSConfig()
        self.assertEqual(cfg.iou_threshold, IOU_THRESHOLD)
        self.assertEqual(cfg.score_threshold, NMS_SCORE_THRESHOLD)
        self.assertEqual((IOU_THRESHOLD, NMS_SCORE_THRESHOLD), (0.45, 0.25))

    def test_iou_above_threshold_suppresses_lower_score(self) -> None:
        rects = np.array([[0, 0, 100, 100], [0, 0, 46, 100]])
        keep = nms(rects, np.array([0.9, 0.8], dtype=np.float32))
        self.assertEqual(keep.tolist(), [0])

    def test_iou_below_threshold_keeps_both(self) -> None:
        rects = np.array([[0, 0, 100, 100], [0, 0, 44, 100]])
        keep = nms(rects, np.array([0.9, 0.8], dtype=np.float32))
        self.assertEqual(keep.tolist(), [0, 1])

    def test_iou_equal_to_threshold_is_kept(self) -> None:
        rects = np.array([[0, 0, 100, 100], [0, 0, 45, 100]])
        keep = nms(rects, np.array([0.9, 0.8], dtype=np.float32))
        self.assertEqual(keep.tolist(), [0, 1])

    def test_higher_score_wins_regardless_of_position(self) -> None:
        rects = np.array([[0, 0, 46, 100], [0, 0, 100, 100]])
        keep = nms(rects, np.array([0.8, 0.9], dtype=np.float32))
        self.assertEqual(keep.tolist(), [1])

    def test_keep_order_is_descending_score(self) -> None:
        rects = np.array([[0, 0, 10, 10], [100, 100, 10, 10], [200, 200, 10, 10]])
        keep = nms(rects, np.array([0.3, 0.9, 0.6], dtype=np.float32))
        self.assertEqual(keep.tolist(), [1, 2, 0])

    def test_score_gate(self) -> None:
        rects = np.array([[0, 0, 10, 10], [100, 100, 10, 10]])
        keep = nms(rects, np.array([0.25, 0.24], dtype=np.float32))
        self.assertEqual(keep.tolist(), [0])

    def test_equal_scores_keep_first(self) -> None:
        rects = np.array([[0, 0, 10, 10], [1, 1, 10, 10]])
        keep = nms(rects, np.array([0.5, 0.5], dtype=np.float32))
        self.assertEqual(keep.tolist(), [0])

    def test_greedy_chain(self) -> None:
        # B overlaps A and C; once B is gone, C survives next to A.
        rects = np.array([[0, 0, 100, 100], [30, 0, 100, 100], [60, 0, 100, 100]])
        keep = nms(rects, np.array([0.9, 0.8, 0.7], dtype=np.float32))
        self.assertEqual(keep.tolist(), [0, 2])

    def test_max_detections(self) -> None:
        rects = np.array([[0, 0, 10, 10], [100, 100, 10, 10], [200, 200, 10, 10]])
        keep = nms(rects, np.array([0.3, 0.9, 0.6], dtype=np.float32), NMSConfig(max_detections=2))
        self.assertEqual(keep.tolist(), [1, 2])

    def test_empty_input(self) -> None:
        keep = nms(np.zeros((0, 4), dtype=np.int64), np.zeros((0,), dtype=np.float32))
        self.assertEqual(keep.shape, (0,))
        self.assertEqual(keep.dtype, np.int32)

    def test_mismatched_lengths(self) -> None:
        with self.assertRaises(ValueError):
            nms(np.zeros((2, 4)), np.zeros((3,)))


if __name__ == "__main__":
    unittest.main()
