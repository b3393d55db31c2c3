import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pathtracer import __version__
from pathtracer.config import LOG_LEVEL
from pathtracer.core.errors import RenderError, SceneError
from pathtracer.core.scene import Scene
from pathtracer.logging_config import setup_logging
from pathtracer.output import save_image
from pathtracer.renderers import RendererFactory
from pathtracer.scene_builders.demo_scene_builder import DemoSceneBuilder
from pathtracer.scene_builders.json_scene_builder import load_scene

logger = logging.getLogger("pathtracer.main")

EXIT_RENDER_ERROR = 1
EXIT_SCENE_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pathtracer", description="Monte-Carlo path tracer")
    parser.add_argument('scene', nargs='?', type=Path,
                        help='JSON scene file')
    parser.add_argument('--demo', action='store_true',
                        help='render the built-in random spheres scene instead of a file')
    parser.add_argument('--renderer', '-r',
                        choices=RendererFactory.list_available(),
                        default='parallel_raytracer',
                        help='renderer to use')
    parser.add_argument('--width', '-w', type=int,
                        help='image width (overrides the scene)')
    parser.add_argument('--height', type=int,
                        help='image height (overrides the scene)')
    parser.add_argument('--samples', '-s', type=int,
                        help='samples per pixel (overrides the scene)')
    parser.add_argument('--depth', '-d', type=int,
                        help='maximum scatter depth (overrides the scene)')
    parser.add_argument('--seed', type=int,
                        help='render seed (overrides the scene)')
    parser.add_argument('--workers', '-j', type=int,
                        help='worker processes for the parallel renderer (default: one per CPU)')
    parser.add_argument('--bvh', action='store_true',
                        help='build a bounding volume hierarchy before rendering')
    parser.add_argument('--no-progress', action='store_true',
                        help='hide the progress bar')
    parser.add_argument('--output', '-o', type=Path, default=Path('output.png'),
                        help='output file (.png, .ppm, or any format Pillow writes)')
    parser.add_argument('--log-level', default=LOG_LEVEL,
                        help='logging level')
    parser.add_argument('--log-file', type=Path,
                        help='also write the log to this rotating file')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def apply_overrides(scene: Scene, args: argparse.Namespace) -> Scene:
    overrides = {
        "width": args.width,
        "height": args.height,
        "samples_per_pixel": args.samples,
        "max_depth": args.depth,
        "seed": args.seed,
        "workers": args.workers,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        # replace() re-runs validation in __post_init__
        scene.settings = dataclasses.replace(scene.settings, **overrides)
    return scene


def load(args: argparse.Namespace) -> Scene:
    if args.demo:
        scene = DemoSceneBuilder().build_scene()
    else:
        scene = load_scene(args.scene)
    scene = apply_overrides(scene, args)
    scene.build_camera()
    if args.bvh:
        scene.world.build_bvh()
    return scene


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.scene is None and not args.demo:
        parser.error("a scene file is required unless --demo is given")

    setup_logging(level=args.log_level, log_file=args.log_file)

    try:
        scene = load(args)
    except SceneError as e:
        logger.error("invalid scene: %s", e)
        return EXIT_SCENE_ERROR

    renderer = RendererFactory.create(args.renderer, progress=not args.no_progress)
    logger.info("renderer %s supports: %s", renderer.get_name(), ", ".join(renderer.get_capabilities()))

    try:
        pixels = renderer.render(scene)
    except RenderError as e:
        logger.error("render failed: %s", e)
        return EXIT_RENDER_ERROR

    try:
        save_image(pixels, args.output)
    except (OSError, ValueError) as e:
        logger.error("cannot write %s: %s", args.output, e)
        return EXIT_RENDER_ERROR
    return 0


if __name__ == "__main__":
    sys.exit(main())
