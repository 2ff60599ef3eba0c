"""
Headless CHIP-8 runner: loads a ROM, runs it, and dumps the screen.
"""

import argparse
import os
import sys

import jax
import jax.numpy as jnp
from tqdm import tqdm

from chipax import create_state, load_rom, step, run, display_to_text, save_frame, MachineError
from chipax.logging import logger


def parse_keys(text):
    """Parse a comma separated list of hex keys, e.g. "5,A"."""
    if not text:
        return []
    keys = [int(key, 16) for key in text.split(",")]
    for key in keys:
        if not 0 <= key <= 0xF:
            raise argparse.ArgumentTypeError(f"key {key:X} is not on the keypad")
    return keys


def positive_int(text):
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not a positive number")
    return value


def build_parser():
    parser = argparse.ArgumentParser(description="Run a CHIP-8 program without a window.")
    parser.add_argument("rom", help="Path to the program image")
    parser.add_argument("--cycles", type=int, default=1000, help="Number of cycles to run")
    parser.add_argument("--cycles-per-frame", type=positive_int, default=None,
                        help="Run in frames of this many cycles (default: one batch)")
    parser.add_argument("--frames-dir", default=None, help="Save every frame as a PNG in this directory")
    parser.add_argument("--seed", type=int, default=None, help="Seed for Cxkk (default: wall clock)")
    parser.add_argument("--keys", type=parse_keys, default=[], help="Keys held down, e.g. 5,A")
    parser.add_argument("--trace", action="store_true", help="Step one cycle at a time and log each instruction")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument("--halt-on-unknown", action="store_true", help="Stop on unrecognized instructions")
    parser.add_argument("--wrap-stack", action="store_true", help="Wrap the stack pointer instead of faulting")
    parser.add_argument("--frame", default=None, help="Write the final screen to this image file")
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING or ERROR")
    return parser


def run_frames(state, cycles, cycles_per_frame, frames_dir=None, progress=False):
    """Run ``cycles`` cycles in frames of ``cycles_per_frame``, rendering after each frame.

    The last frame is shorter when ``cycles`` is not a multiple of the frame size.
    """
    if frames_dir:
        os.makedirs(frames_dir, exist_ok=True)

    starts = range(0, cycles, cycles_per_frame)
    if progress:
        starts = tqdm(starts, desc="Frames", unit="frame")

    for frame, start in enumerate(starts):
        state = run(state, min(cycles_per_frame, cycles - start))
        logger.debug(f"Frame {frame}: PC 0x{int(state.pc):03X}, {int(jnp.sum(state.display))} pixels lit")
        if frames_dir:
            save_frame(state.display, os.path.join(frames_dir, f"frame_{frame:05d}.png"))
    return state


def run_emulator(args):
    """Main emulator loop."""
    logger.set_level(args.log_level)

    rng = jax.random.PRNGKey(args.seed) if args.seed is not None else None
    state = create_state(rng, halt_on_unknown=args.halt_on_unknown, wrap_stack=args.wrap_stack)
    state = load_rom(state, args.rom)

    keypad = jnp.zeros(16, dtype=jnp.bool_)
    for key in args.keys:
        keypad = keypad.at[key].set(True)
    state = state.replace(keypad=keypad)

    try:
        if args.trace:
            for i in range(args.cycles):
                pc = int(state.pc)
                state = step(state)
                logger.debug(f"#{i:6d} 0x{pc:03X}: 0x{int(state.current_instruction):04X}")
                if bool(state.awaiting_key):
                    logger.info(f"Waiting for a key at 0x{int(state.pc):03X}, stopping")
                    break
        elif args.cycles_per_frame:
            state = run_frames(state, args.cycles, args.cycles_per_frame, args.frames_dir, args.progress)
        else:
            state = run(state, args.cycles, progress=args.progress)
    except MachineError as e:
        logger.critical(str(e))
        state = e.state if e.state is not None else state
        exit_code = 1
    else:
        exit_code = 0

    print(display_to_text(state.display))
    logger.info(
        f"PC: 0x{int(state.pc):03X}  I: 0x{int(state.I):03X}  "
        f"Delay: {int(state.delay_timer)}  Sound: {int(state.sound_timer)}"
    )
    logger.info("Registers: " + " ".join(f"V{i:X}:{int(v):02X}" for i, v in enumerate(state.V)))

    if args.frame:
        save_frame(state.display, args.frame)

    return exit_code


if __name__ == "__main__":
    sys.exit(run_emulator(build_parser().parse_args()))
