import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

import cv2

from pose_kit import (
    PoseConfig,
    PoseResult,
    draw_poses,
    load_pipeline,
    load_pose_config,
    read_image_rgb,
)
from pose_kit.skeleton import display_name


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run a YOLO pose ONNX/TorchScript model on one image and draw the skeletons.",
    )
    parser.add_argument("model_path", help="Path to the pose model (.onnx, .pt/.ts/.torchscript).")
    parser.add_argument("image_path", help="Path to the input image.")
    parser.add_argument(
        "output_path",
        nargs="?",
        default="output_skeleton.png",
        help="Where to write the skeleton image (default: output_skeleton.png).",
    )
    parser.add_argument("--config", default=None, help="Optional pose config JSON (thresholds, model size).")
    parser.add_argument("--conf", type=float, default=None, help="Detection confidence threshold (default 0.25).")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS (default 0.45).")
    parser.add_argument("--imgsz", type=int, default=None, help="Square model input size (default 640).")
    parser.add_argument("--backend", default=None, help="Force backend: onnxruntime / torchscript.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CPUExecutionProvider".',
    )
    parser.add_argument("--verbose", action="store_true", help="Log pipeline progress to stderr.")
    return parser


def _resolve_config(args: argparse.Namespace) -> PoseConfig:
    cfg = load_pose_config(Path(args.config)) if args.config else PoseConfig()
    if args.conf is not None:
        cfg = replace(cfg, conf_threshold=args.conf)
    if args.iou is not None:
        cfg = replace(cfg, iou_threshold=args.iou)
    if args.imgsz is not None:
        if args.imgsz < 32:
            raise ValueError("--imgsz must be >= 32")
        cfg = replace(cfg, model_width=args.imgsz, model_height=args.imgsz)
    return cfg


def print_poses(poses: Sequence[PoseResult]) -> None:
    print("\nDetection Results:")
    print("==================")
    for i, pose in enumerate(poses):
        box = pose.box
        print(f"\nPerson {i + 1}:")
        print(f"  Confidence: {pose.confidence:.3f}")
        print(f"  Bounding Box: X={box.x:.1f}, Y={box.y:.1f}, W={box.width:.1f}, H={box.height:.1f}")
        print("  Keypoints:")
        for j, kp in enumerate(pose.keypoints):
            print(f"    {display_name(j):<15}: ({kp.x:.1f}, {kp.y:.1f}) - Confidence: {kp.confidence:.3f}")


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    for label, path in (("Model", args.model_path), ("Image", args.image_path)):
        if not Path(path).exists():
            print(f"Error: {label} file not found: {path}")
            return 1

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    try:
        cfg = _resolve_config(args)
        # Without --imgsz or a config file the ONNX model's declared input size wins.
        model_size = cfg.model_size if (args.imgsz is not None or args.config) else None
        image = read_image_rgb(args.image_path)
        with load_pipeline(
            args.model_path,
            backend=args.backend,
            root=Path.cwd(),
            model_size=model_size,
            post_cfg=replace(cfg.post_config(), num_detections=None),
            onnx_providers=onnx_providers,
        ) as pipeline:
            poses = pipeline(image)
    except (OSError, ValueError, RuntimeError, ImportError) as exc:
        print(f"Error: {exc}")
        return 1

    if not poses:
        print("No person detected in the image.")
        return 0

    print_poses(poses)

    vis = draw_poses(image, poses, min_confidence=cfg.display_threshold)
    ok = cv2.imwrite(args.output_path, cv2.cvtColor(vis, cv2.COLOR_RGB2BGR))
    if not ok:
        raise RuntimeError(f"Failed to write output image: {args.output_path}")
    print(f"\nSkeleton visualization saved to: {args.output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
