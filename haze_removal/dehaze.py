"""Single-image dehazing: pipeline and command-line entry point.

Example:
    haze-removal data/hazy/forest.jpg -r 9 -b 1.0
writes forest_unfiltered_depth.jpg, forest_depth.jpg and forest_dehazed.jpg
next to the input (or into --out-dir).
"""

import argparse
import logging
import os
import time
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .config import DEFAULT_BETA, DEFAULT_EPS, DEFAULT_RADIUS, DehazeConfig, load_config
from .errors import HazeRemovalError, SaveError
from .guided_filter import guided_filter
from .haze import estimate_depth, remove_haze
from .image import PixelBuffer
from .image_io import load_color_image, save_color_image, save_scalar_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DehazeResult:
    unfiltered_depth: PixelBuffer
    depth: PixelBuffer
    dehazed: PixelBuffer


def dehaze_image(image: PixelBuffer, config: DehazeConfig = DehazeConfig()) -> DehazeResult:
    """Run depth estimation, guided refinement and radiance recovery."""
    start = time.perf_counter()
    depth = estimate_depth(image, config.radius)
    logger.debug("Depth estimated in %.3fs", time.perf_counter() - start)

    start = time.perf_counter()
    refined = guided_filter(depth, image, config.radius, config.eps)
    logger.debug("Depth refined in %.3fs", time.perf_counter() - start)

    start = time.perf_counter()
    dehazed = remove_haze(image, refined, config.beta)
    logger.debug("Haze removed in %.3fs", time.perf_counter() - start)

    return DehazeResult(unfiltered_depth=depth, depth=refined, dehazed=dehazed)


def output_paths(input_path: Path, out_dir: Optional[Path] = None) -> dict:
    out_dir = input_path.parent if out_dir is None else out_dir
    stem = input_path.stem
    return {
        "unfiltered_depth": out_dir / f"{stem}_unfiltered_depth.jpg",
        "depth": out_dir / f"{stem}_depth.jpg",
        "dehazed": out_dir / f"{stem}_dehazed.jpg",
        "comparison": out_dir / f"{stem}_comparison.png",
    }


def _staging_path(path: Path) -> Path:
    # Keep the suffix: the encoder is chosen from it.
    return path.with_name(f".{path.stem}.partial{path.suffix}")


def _commit(staged: List[Tuple[Path, Path]]) -> None:
    """Move staged files onto their final names, undoing the moves on failure."""
    moved = []
    for staging, final in staged:
        try:
            os.replace(staging, final)
        except OSError as exc:
            for path in moved:
                path.unlink(missing_ok=True)
            raise SaveError(final, str(exc)) from exc
        moved.append(final)


def dehaze_file(input_path: Path, config: DehazeConfig = DehazeConfig(),
                plot: bool = False) -> List[Path]:
    """
    Dehaze one image file and write the results.

    Every stage runs before anything is written. Outputs are written under
    temporary names and only renamed once all of them succeeded, so a failing
    run leaves no partial output behind.

    Returns:
        Paths of the files written.
    """
    input_path = Path(input_path)
    logger.info("Dehazing %s; radius: %d, beta: %g", input_path, config.radius, config.beta)

    image = load_color_image(input_path, linear=config.linear)
    result = dehaze_image(image, config)

    paths = output_paths(input_path, config.out_dir)
    writers = []
    if config.save_intermediates:
        writers.append((paths["unfiltered_depth"], partial(save_scalar_image, result.unfiltered_depth)))
        writers.append((paths["depth"], partial(save_scalar_image, result.depth)))
    writers.append((paths["dehazed"], partial(save_color_image, result.dehazed, linear=config.linear)))
    if plot:
        from .viz import save_comparison
        writers.append((paths["comparison"], partial(save_comparison, image, result.depth,
                                                     result.dehazed, title=input_path.name)))

    staged = []
    try:
        for final, write in writers:
            staging = _staging_path(final)
            staged.append((staging, final))
            write(staging)
        _commit(staged)
    finally:
        for staging, _ in staged:
            staging.unlink(missing_ok=True)
    return [final for final, _ in writers]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Single image haze removal (colour attenuation prior)")
    parser.add_argument("file", type=Path, help="Hazy input image")
    parser.add_argument("-r", "--radius", type=int, default=None,
                        help=f"Min-filter and guided filter radius (default {DEFAULT_RADIUS})")
    parser.add_argument("-b", "--beta", type=float, default=None,
                        help=f"Scattering coefficient (default {DEFAULT_BETA})")
    parser.add_argument("--eps", type=float, default=None,
                        help=f"Guided filter regulariser (default {DEFAULT_EPS})")
    parser.add_argument("--out-dir", dest="out_dir", type=Path, default=None,
                        help="Output directory (default: next to the input)")
    parser.add_argument("--config", type=Path, default=None, help="YAML file with run options")
    parser.add_argument("--linear", action="store_true", default=None,
                        help="Process in linear light (sRGB decode on load, encode on save)")
    parser.add_argument("--no-intermediates", dest="save_intermediates", action="store_false",
                        default=None, help="Do not write the depth maps")
    parser.add_argument("--plot", action="store_true", help="Also write a comparison figure")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> DehazeConfig:
    config = load_config(args.config) if args.config is not None else DehazeConfig()
    return config.merged({
        "radius": args.radius,
        "beta": args.beta,
        "eps": args.eps,
        "out_dir": args.out_dir,
        "linear": args.linear,
        "save_intermediates": args.save_intermediates,
    })


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    try:
        config = build_config(args)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[ERROR] Invalid configuration: {exc}")
        return 2
    logger.debug("Configuration: %s", config.as_dict())

    start = time.perf_counter()
    try:
        written = dehaze_file(args.file, config, plot=args.plot)
    except HazeRemovalError as exc:
        logger.error("Dehazing failed: %s", exc)
        print(f"[ERROR] {args.file}: {exc}")
        return 1

    for path in written:
        print(f"[INFO] Wrote {path}")
    print(f"Finished dehazing {args.file} in {time.perf_counter() - start:.2f}s.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
