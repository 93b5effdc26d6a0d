from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np
from pydantic import TypeAdapter, ValidationError

from .core.live_scan import analyze_frame
from .core.photo_scan import PhotoScanError, analyze_photo
from .core.smoothing import SmoothingState, commit_capture
from .models.landmarks import MaskData
from .models.records import DetectionPayload, ScanRecord
from .poses.library import POSE_NAMES, POSE_TEMPLATES, get_template
from .tuning import load_tuning
from .utils.mock_landmarks import mock_detection
from .vision.brightness import ArrayImageSource, measure_brightness

logger = logging.getLogger(__name__)

# One live detection pass every 80 ms.
FRAME_INTERVAL_MS = 80.0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bbscan",
        description="Physique scan scoring: alignment, confidence, measurements and check-in gating.",
    )
    p.add_argument("--config", default=None, help="Optional YAML file with tuning overrides")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("templates", help="List pose templates")

    p_an = sub.add_parser("analyze", help="Analyze one photo's pose detection")
    p_an.add_argument("--detection", required=True, help="JSON file with landmarks and world_landmarks")
    p_an.add_argument("--pose", required=True, help="Pose id (e.g. front-biceps, front-checkin)")
    p_an.add_argument("--image", default=None, help="Photo file; sets frame size and brightness")
    p_an.add_argument("--width", type=int, default=None, help="Frame width when no --image is given")
    p_an.add_argument("--height", type=int, default=None, help="Frame height when no --image is given")
    p_an.add_argument("--brightness", type=float, default=None, help="Average luma 0-255 (overrides --image)")
    p_an.add_argument("--mask", default=None, help="Segmentation mask as a 2-D .npy array")
    p_an.add_argument("--history", default=None, help="JSON list of prior scan records")
    p_an.add_argument("--scan-type", choices=["GALLERY", "CHECKIN"], default="GALLERY")
    p_an.add_argument("--height-cm", type=float, default=None, help="User height for calibration")
    p_an.add_argument("--out", default=None, help="Optional output JSON path")

    p_sim = sub.add_parser("simulate", help="Run a synthetic live session and commit a capture")
    p_sim.add_argument("--pose", default="front-biceps", choices=sorted(POSE_TEMPLATES))
    p_sim.add_argument("--frames", type=int, default=60)
    p_sim.add_argument("--brightness", type=float, default=128.0)
    p_sim.add_argument("--height-cm", type=float, default=None)
    p_sim.add_argument("--seed", type=int, default=0)
    return p


def _load_history(path: Optional[str]) -> List[ScanRecord]:
    if not path:
        return []
    return TypeAdapter(List[ScanRecord]).validate_json(Path(path).read_text(encoding="utf-8"))


def _run_templates() -> int:
    rows = [
        {"id": pose_id, "name": name, "template": pose_id in POSE_TEMPLATES}
        for pose_id, name in POSE_NAMES.items()
    ]
    print(json.dumps(rows, indent=2))
    return 0


def _run_analyze(args: argparse.Namespace, tuning) -> int:
    payload = DetectionPayload.model_validate_json(Path(args.detection).read_text(encoding="utf-8"))
    history = _load_history(args.history)

    width, height = args.width, args.height
    brightness = args.brightness
    if args.image:
        frame = cv2.imread(str(args.image), cv2.IMREAD_COLOR)
        if frame is None:
            print(f"Could not read image: {args.image}", file=sys.stderr)
            return 2
        height, width = frame.shape[:2]
        if brightness is None:
            brightness = measure_brightness(ArrayImageSource.from_bgr(frame))
    if not width or not height:
        print("Frame size unknown: pass --image or --width/--height", file=sys.stderr)
        return 2
    if brightness is None:
        logger.warning("No brightness source given; assuming mid luma")
        brightness = 128.0

    mask = None
    if args.mask:
        try:
            mask = MaskData.from_array(np.load(args.mask))
        except ValueError as exc:
            print(f"Invalid mask: {exc}", file=sys.stderr)
            return 2

    result = analyze_photo(
        payload.to_detection(),
        float(width),
        float(height),
        args.pose,
        float(brightness),
        mask=mask,
        history=history,
        scan_type=args.scan_type,
        user_height_cm=args.height_cm,
        tuning=tuning,
    )
    out_json = json.dumps(result.to_dict(), indent=2)
    if args.out:
        Path(args.out).write_text(out_json, encoding="utf-8")
    print(out_json)
    return 0


def _run_simulate(args: argparse.Namespace, tuning) -> int:
    template = get_template(args.pose)
    rng = np.random.default_rng(args.seed)
    state = SmoothingState()
    frame_result = None
    for i in range(max(0, args.frames)):
        detection = mock_detection(args.pose, i, rng)
        frame_result = analyze_frame(
            state, detection, template, 720.0, 960.0, args.brightness, i * FRAME_INTERVAL_MS,
            user_height_cm=args.height_cm, tuning=tuning,
        )
        state = frame_result.state
    commit = commit_capture(state, args.height_cm, tuning)
    print(
        json.dumps(
            {
                "last_frame": frame_result.to_dict() if frame_result else None,
                "capture": commit.to_dict() if commit else None,
            },
            indent=2,
        )
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    tuning = load_tuning(Path(args.config) if args.config else None)

    if args.cmd == "templates":
        return _run_templates()

    if args.cmd == "analyze":
        try:
            return _run_analyze(args, tuning)
        except ValidationError as exc:
            print(f"Invalid input: {exc}", file=sys.stderr)
            return 2
        except PhotoScanError as exc:
            print(str(exc), file=sys.stderr)
            return 1

    if args.cmd == "simulate":
        return _run_simulate(args, tuning)

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
