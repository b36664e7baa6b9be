#!/usr/bin/env python3
"""
Render Effect - export generated effect frames as an editor animation file

Each frame is a fresh run of the effect generator. Randomised effects change
from frame to frame; pass --seed for a reproducible file. The rainbow effect
advances its hue shift by --shift-step per frame.
"""

import argparse
import logging
import os
import random
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from prizm.matrix import effects
from prizm.matrix.timeline import Animation
from prizm.library.sync import export_local

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def parse_param(text):
    """Parse NAME=VALUE into (name, float)."""
    name, sep, value = text.partition('=')
    if not sep:
        raise argparse.ArgumentTypeError(f"Expected NAME=VALUE, got '{text}'")
    try:
        return name.strip(), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Value for '{name}' must be a number")


def render_frames(effect, params, num_frames, rng, shift_step=0):
    store = effects.EffectParameterStore()
    for name, value in params.items():
        store.set(effect, name, value)
    frames = []
    for i in range(num_frames):
        values = dict(store.get(effect))
        if effect == 'rainbow' and shift_step:
            values['shift'] = (values['shift'] + i * shift_step) % 360
        frames.append(effects.generate(effect, values, rng))
    return frames


def main():
    parser = argparse.ArgumentParser(description="Render an effect into an animation file")
    parser.add_argument("effect", choices=effects.list_effects(), help="Effect to render")
    parser.add_argument("--frames", type=int, default=24, help="Number of frames")
    parser.add_argument("--fps", type=int, default=24, help="Playback rate stored in the file")
    parser.add_argument("--no-loop", action="store_true", help="Store loop=false")
    parser.add_argument("--param", type=parse_param, action="append", default=[],
                        help="Effect parameter as NAME=VALUE (repeatable)")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--shift-step", type=float, default=15, help="Rainbow hue step per frame")
    parser.add_argument("--output", type=str, help="Output file (default: <effect>.json)")
    args = parser.parse_args()

    if args.frames < 1:
        parser.error("--frames must be at least 1")

    try:
        frames = render_frames(args.effect, dict(args.param), args.frames,
                               random.Random(args.seed), args.shift_step)
    except KeyError as e:
        parser.error(f"Unknown parameter for {args.effect}: {e}")

    animation = Animation(name=args.effect, frames=frames, fps=args.fps, loop=not args.no_loop)
    output = args.output or f"{args.effect}.json"
    export_local(animation, output)
    logger.info(f"Wrote {len(frames)} frames of '{args.effect}' to {output}")


if __name__ == "__main__":
    main()
