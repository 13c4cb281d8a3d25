import argparse
import logging
import sys

from chippy.config import Config
from chippy.constants import OPCODE_DELAY
from chippy.frontend import Frontend


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="chippy", description="Run a CHIP-8 program.")
    parser.add_argument("game", nargs="?", help="Program to run, a file picker is shown if omitted.")
    parser.add_argument("--shift-uses-y", action="store_true", help="8XY6 / 8XYE shift register Y into register X.")
    parser.add_argument("--keep-index", action="store_true", help="FX55 / FX65 leave register I untouched.")
    parser.add_argument("--cycle-delay", type=float, default=OPCODE_DELAY, help="Seconds between two opcodes.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random opcode.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every executed opcode.")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="[%(levelname)s]:  %(message)s", stream=sys.stdout)

    config = Config(
        shift_uses_source_y=args.shift_uses_y,
        auto_increment_index_on_bulk_transfer=not args.keep_index,
        cycle_delay=args.cycle_delay,
        random_seed=args.seed,
    )

    Frontend(config).event_loop(args.game)


if __name__ == "__main__":
    main()
