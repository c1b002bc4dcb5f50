"""
Main Pipeline for face-preserving hairstyle previews

Usage:
    # Keep the face of the original, take hair from an AI-edited copy
    faceguard --original photos/me.jpg --replacement photos/ai_edit.png --output out/preview.png

    # Draw a transparent hair cut-out on the original photo
    faceguard --original photos/me.jpg --hair-asset assets/bob.png --output out/bob.png --scale 1.1

    # Visualize what will be replaced
    faceguard --original photos/me.jpg --visualize-mask --output out/mask_viz.png
"""

import argparse
import json
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import numpy as np

from .core.compositor import composite
from .core.hair_placement import OverlaySettings, compute_hair_placement
from .core.mask_generator import MaskGenerator, MaskImageField
from .core.overlay_renderer import fade_out_below, render_overlay
from .errors import FaceGuardError, MissingFaceRegion
from .modules.face_detection import InsightFaceDetector, require_face
from .modules.face_region import FaceRegion
from .modules.prompt_generator import generate_face_protection_prompt
from .utils.config_loader import Config, get_config, load_config
from .utils.image_utils import draw_face_region_debug, load_image, resample_to, save_image
from .utils.logging_config import get_logger, reconfigure_logging

logger = get_logger(__name__)


class FacePreservingPipeline:
    """Main pipeline - coordinates detection, masking and compositing"""

    def __init__(self, detector=None, config: Optional[Config] = None):
        self.config = config or get_config()
        self.detector = detector

        self.mask_generator = MaskGenerator(
            blend_ratio=self.config.get("mask.blend_ratio", 0.4),
            feather=self.config.get("mask.face_mask_feather", 31),
            eyebrow_margin=self.config.get("mask.eyebrow_margin", 10),
        )
        self.default_strategy = self.config.get("mask.default_strategy", "ellipse")
        self.radii_kwargs = {
            "jaw_tightening": self.config.get("face_region.jaw_tightening", 0.85),
            "eye_to_jaw_tightening": self.config.get("face_region.eye_to_jaw_tightening", 0.95),
        }
        self.max_workers = self.config.get("pipeline.max_workers", 4)

    # -----------------------------------

    def _get_detector(self):
        if self.detector is None:
            det_cfg = self.config.get("detector", {}) or {}
            self.detector = InsightFaceDetector.load(
                model_name=det_cfg.get("model_name", "buffalo_l"),
                det_size=tuple(det_cfg.get("det_size", (640, 640))),
                ctx_id=det_cfg.get("ctx_id", -1),
                min_score=det_cfg.get("min_score", 0.3),
            )
        return self.detector

    def locate_face(self, image: np.ndarray, face: Optional[FaceRegion] = None) -> FaceRegion:
        """Given face, or detect one; clamped to the image either way."""
        if face is None:
            face = require_face(self._get_detector().detect(image))
        height, width = image.shape[:2]
        return face.clamped(width, height)

    # -----------------------------------

    def protect_face(self,
                     original: np.ndarray,
                     replacement: np.ndarray,
                     face: Optional[FaceRegion] = None,
                     strategy: Optional[str] = None,
                     blend_size: Optional[float] = None) -> np.ndarray:
        """Original face over the replacement's hair."""
        face = self.locate_face(original, face)
        height, width = original.shape[:2]

        replacement = resample_to(replacement, width, height)
        field = self.mask_generator.build_field(
            face, strategy or self.default_strategy, blend_size, **self.radii_kwargs)

        logger.info("Compositing %dx%d with %r", width, height, field)
        return composite(original, replacement, field)

    def protect_with_mask(self,
                          original: np.ndarray,
                          replacement: np.ndarray,
                          mask: np.ndarray,
                          threshold: Optional[int] = None) -> np.ndarray:
        """
        Composite with an externally supplied mask (white = replace).

        Replacement and mask are both resampled to the original's size.
        """
        height, width = original.shape[:2]
        replacement = resample_to(replacement, width, height)
        mask = resample_to(np.asarray(mask, dtype=np.uint8), width, height)

        field = MaskImageField(mask, threshold=threshold)
        logger.info("Compositing %dx%d with a %dx%d mask image", width, height,
                    field.width, field.height)
        return composite(original, replacement, field)

    def composite_many(self,
                       original: np.ndarray,
                       replacements: Sequence[np.ndarray],
                       face: Optional[FaceRegion] = None,
                       strategy: Optional[str] = None,
                       blend_size: Optional[float] = None) -> List[np.ndarray]:
        """Several previews of one photo; face detected once, results in input order."""
        face = self.locate_face(original, face)

        def run(replacement):
            return self.protect_face(original, replacement, face, strategy, blend_size)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(run, replacements))

    def apply_hair_asset(self,
                         original: np.ndarray,
                         asset: np.ndarray,
                         face: Optional[FaceRegion] = None,
                         settings: Optional[OverlaySettings] = None,
                         fade_reference: bool = False) -> np.ndarray:
        """
        Draw a transparent hair cut-out on the original.

        fade_reference: the asset is a full reference photo, not a cut-out;
        only its top part is used.
        """
        face = self.locate_face(original, face)

        if fade_reference:
            asset = fade_out_below(asset)

        placement = compute_hair_placement(
            face,
            asset.shape[1],
            asset.shape[0],
            settings,
            width_factor=self.config.get("placement.width_factor", 2.2),
            crown_ratio=self.config.get("placement.crown_ratio", 0.4),
            forehead_lift=self.config.get("face_region.forehead_lift", 0.15),
        )
        logger.info("Hair asset placed at %s", placement)
        return render_overlay(original, asset, placement)

    def visualize_mask(self, original: np.ndarray,
                       face: Optional[FaceRegion] = None,
                       strategy: Optional[str] = None) -> np.ndarray:
        """Red = what will be replaced"""
        face = self.locate_face(original, face)
        height, width = original.shape[:2]

        field = self.mask_generator.build_field(
            face, strategy or self.default_strategy, **self.radii_kwargs)
        mask = self.mask_generator.render_field(field, width, height)
        return self.mask_generator.visualize_mask(original, mask)


# ============================
# CLI
# ============================

def _load_face(path) -> FaceRegion:
    with open(path) as f:
        return FaceRegion.from_dict(json.load(f))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="faceguard",
        description="Hairstyle previews that keep the original face",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Protect the face of an AI-edited photo
  faceguard --original me.jpg --replacement ai_edit.png --output preview.png

  # Pixel-aligned edit, upright head
  faceguard --original me.jpg --replacement ai_edit.png --output preview.png --strategy horizontal

  # Hair cut-out with fine-tuning, face from a JSON file
  faceguard --original me.jpg --hair-asset bob.png --face-json face.json --output bob.png --offset-y -12 --rotation 3
        """
    )

    parser.add_argument("--original", required=True, help="Path to the original photo")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--replacement", help="Full image whose hair is kept (same framing)")
    source.add_argument("--hair-asset", help="Transparent hair cut-out to draw on the photo")
    parser.add_argument("--output", help="Output path (PNG keeps transparency)")
    parser.add_argument("--face-json", help="Face region JSON instead of running the detector")
    parser.add_argument("--config", help="Path to a config.yaml")

    # Mask options
    parser.add_argument("--strategy", choices=MaskGenerator.METHODS,
                        help="Protection field (default from config)")
    parser.add_argument("--blend-size", type=float, help="Blend band in pixels")
    parser.add_argument("--mask", help="Mask image (white = replace) used with --replacement instead of a face")
    parser.add_argument("--mask-threshold", type=int,
                        help="Binary mask: values above it are replaced outright")

    # Overlay options
    parser.add_argument("--offset-x", type=float, default=0.0)
    parser.add_argument("--offset-y", type=float, default=0.0)
    parser.add_argument("--scale", type=float, default=1.0)
    parser.add_argument("--rotation", type=float, default=0.0, help="Degrees, clockwise")
    parser.add_argument("--opacity", type=float, default=1.0)
    parser.add_argument("--fade-reference", action="store_true",
                        help="Hair asset is a full photo; keep only its top part")

    # Debug
    parser.add_argument("--visualize-mask", action="store_true",
                        help="Write the mask visualization instead of a composite")
    parser.add_argument("--debug-face", metavar="PATH",
                        help="Also save the original with the face box and landmarks drawn")
    parser.add_argument("--print-prompt", action="store_true",
                        help="Print the face protection prompt for an image model")

    return parser


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.config:
        # user config also drives the module loggers set up at import
        config = load_config(args.config)
        reconfigure_logging()
    else:
        config = get_config()

    try:
        original = load_image(args.original)

        if args.mask:
            if not (args.replacement and args.output):
                print("❌ Error: --mask needs --replacement and --output")
                return 2
            result = FacePreservingPipeline(config=config).protect_with_mask(
                original, load_image(args.replacement), load_image(args.mask), args.mask_threshold)
            save_image(result, args.output)
            print(f"✅ Done! View: open {args.output}")
            return 0

        face = _load_face(args.face_json) if args.face_json else None

        pipeline = FacePreservingPipeline(config=config)
        face = pipeline.locate_face(original, face)
        print(f"✔ Face at x={face.x:.0f} y={face.y:.0f} {face.width:.0f}x{face.height:.0f}")

        if args.print_prompt:
            print(generate_face_protection_prompt(face, original.shape[1], original.shape[0]))

        if args.debug_face:
            save_image(draw_face_region_debug(original, face), args.debug_face)
            print(f"🔍 Face debug saved: {args.debug_face}")

        if args.visualize_mask:
            result = pipeline.visualize_mask(original, face, args.strategy)
        elif args.replacement:
            result = pipeline.protect_face(
                original, load_image(args.replacement), face, args.strategy, args.blend_size)
        elif args.hair_asset:
            settings = OverlaySettings(
                offset_x=args.offset_x,
                offset_y=args.offset_y,
                scale=args.scale,
                rotation=args.rotation,
                opacity=args.opacity,
            )
            result = pipeline.apply_hair_asset(
                original, load_image(args.hair_asset), face, settings, args.fade_reference)
        else:
            if not (args.print_prompt or args.debug_face):
                parser.print_help()
            return 0

        if not args.output:
            print("❌ Error: --output is required to save the result")
            return 2

        save_image(result, args.output)
        print(f"✅ Done! View: open {args.output}")
        return 0

    except MissingFaceRegion as e:
        print(f"❌ {e}")
        return 1
    except FaceGuardError as e:
        print(f"❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
