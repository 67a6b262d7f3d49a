import itertools
import unittest

import numpy as np

from pose_kit.nms import NMSConfig, box_iou, iou_one_to_many, nms, suppress
from pose_kit.types import BoundingBox, DetectionCandidate, Keypoint, PoseResult


def _cand(box, conf: float, idx: int) -> DetectionCandidate:
    kps = tuple(Keypoint(0.0, 0.0, 0.0) for _ in range(17))
    return DetectionCandidate(pose=PoseResult(box=BoundingBox(*box), confidence=conf, keypoints=kps), source_index=idx)


class TestBoxIou(unittest.TestCase):
    def test_identity_symmetry_and_disjoint(self) -> None:
        a = BoundingBox(10, 20, 30, 40)
        b = BoundingBox(25, 30, 50, 10)
        c = BoundingBox(200, 200, 5, 5)
        self.assertEqual(box_iou(a, a), 1.0)
        self.assertEqual(box_iou(a, b), box_iou(b, a))
        self.assertEqual(box_iou(a, c), 0.0)

    def test_touching_edges_do_not_overlap(self) -> None:
        self.assertEqual(box_iou(BoundingBox(0, 0, 10, 10), BoundingBox(10, 0, 10, 10)), 0.0)

    def test_zero_union_is_zero(self) -> None:
        self.assertEqual(box_iou(BoundingBox(5, 5, 0, 0), BoundingBox(5, 5, 0, 0)), 0.0)
        self.assertEqual(box_iou(BoundingBox(5, 5, -3, 2), BoundingBox(5, 5, -3, 2)), 0.0)

    def test_known_values(self) -> None:
        self.assertAlmostEqual(box_iou(BoundingBox(0, 0, 100, 100), BoundingBox(0, 0, 100, 60)), 0.6)
        self.assertAlmostEqual(box_iou(BoundingBox(0, 0, 10, 10), BoundingBox(0, 0, 1, 10)), 0.1)

    def test_vectorized_matches_scalar(self) -> None:
        rng = np.random.default_rng(3)
        boxes = np.column_stack([rng.uniform(0, 100, (20, 2)), rng.uniform(1, 60, (20, 2))])
        vec = iou_one_to_many(boxes[0], boxes)
        for i, row in enumerate(boxes):
            self.assertAlmostEqual(vec[i], box_iou(BoundingBox(*boxes[0]), BoundingBox(*row)))


class TestNms(unittest.TestCase):
    def test_high_overlap_keeps_higher_confidence(self) -> None:
        low = _cand((0, 0, 100, 60), 0.8, 0)
        high = _cand((0, 0, 100, 100), 0.9, 1)
        out = suppress([low, high], NMSConfig(iou_threshold=0.45))
        self.assertEqual(out, [high.pose])

    def test_low_overlap_keeps_both(self) -> None:
        a = _cand((0, 0, 10, 10), 0.3, 0)
        b = _cand((0, 0, 1, 10), 0.95, 1)
        out = suppress([a, b], NMSConfig(iou_threshold=0.45))
        self.assertEqual(out, [b.pose, a.pose])

    def test_suppressed_candidates_do_not_suppress(self) -> None:
        a = _cand((0, 0, 10, 10), 0.9, 0)
        b = _cand((3, 0, 10, 10), 0.8, 1)  # IoU(a, b) ~ 0.54
        c = _cand((6, 0, 10, 10), 0.7, 2)  # IoU(a, c) = 0.25, IoU(b, c) ~ 0.54
        out = suppress([c, b, a], NMSConfig(iou_threshold=0.45))
        self.assertEqual(out, [a.pose, c.pose])

    def test_ties_break_on_source_index(self) -> None:
        first = _cand((0, 0, 10, 10), 0.5, 3)
        second = _cand((0, 0, 10, 10), 0.5, 7)
        for ordering in itertools.permutations([first, second]):
            out = suppress(list(ordering))
            self.assertEqual(len(out), 1)
            self.assertIs(out[0], first.pose)

    def test_returns_input_instances_in_confidence_order(self) -> None:
        cands = [_cand((i * 50, 0, 20, 20), conf, i) for i, conf in enumerate([0.3, 0.9, 0.6])]
        out = suppress(cands)
        self.assertEqual([p.confidence for p in out], [0.9, 0.6, 0.3])
        self.assertIs(out[0], cands[1].pose)

    def test_max_detections(self) -> None:
        cands = [_cand((i * 50, 0, 20, 20), 0.5 + i * 0.01, i) for i in range(5)]
        out = suppress(cands, NMSConfig(max_detections=2))
        self.assertEqual(len(out), 2)

    def test_empty(self) -> None:
        self.assertEqual(suppress([]), [])
        self.assertEqual(nms(np.empty((0, 4)), np.empty((0,)), NMSConfig()).shape, (0,))

    def test_pairwise_invariant_and_idempotence(self) -> None:
        rng = np.random.default_rng(11)
        xy = rng.uniform(0, 400, (200, 2))
        wh = rng.uniform(10, 120, (200, 2))
        confs = rng.uniform(0.25, 1.0, 200)
        cands = [_cand((*xy[i], *wh[i]), float(confs[i]), i) for i in range(200)]

        cfg = NMSConfig(iou_threshold=0.45)
        out = suppress(cands, cfg)
        self.assertGreater(len(out), 0)
        for p, q in itertools.combinations(out, 2):
            self.assertLessEqual(box_iou(p.box, q.box), 0.45)

        by_pose = {id(c.pose): c for c in cands}
        again = suppress([by_pose[id(p)] for p in out], cfg)
        self.assertEqual(again, out)


if __name__ == "__main__":
    unittest.main()
