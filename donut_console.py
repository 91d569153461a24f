import argparse
import logging
import os
import sys
import time
from donut_config import DonutConfig
from donut_renderer import ROTATION_STRATEGIES, Donut, Orientation

logger = logging.getLogger(__name__)

CURSOR_HOME = "\033[H"
CLEAR_SCREEN = "\033[2J"
HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"


def frame_lines(glyphs, width):
    """
    Split a flat glyph buffer into rows of ``width`` characters.
    """
    return ["".join(glyphs[start:start + width]) for start in range(0, len(glyphs), width)]


def format_memory(num_bytes):
    """
    Format a byte count the way the status line shows it.

    Args:
        num_bytes (int):
            Number of bytes.

    Returns:
        str:
            "N bytes", "X.Y KB" or "X.Y MB".
    """
    if num_bytes < 1024:
        return f"{num_bytes} bytes"
    elif num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    else:
        return f"{num_bytes / (1024 * 1024):.1f} MB"


def approximate_memory(glyphs, depth, orientation):
    """
    Bytes held by one animation's frame state: both buffers and the orientation.
    """
    return glyphs.nbytes + depth.nbytes + sys.getsizeof(orientation) + sys.getsizeof(vars(orientation))


def status_line(fps, memory):
    return f"FPS: {fps:>5.1f} | Approx Mem: {memory}"



class ConsoleAnimation:
    def __init__(
        self,
        config=None,
        da=0.07, db=0.03,
        delay=0.02,
        strategy="incremental",
        out=None,
        fit_terminal=False):
        """
        Initialise the terminal animation host.

        Args:
            config (DonutConfig | None):
                Rasterizer configuration. Defaults to an 80 x 22 grid.
            da (float):
                Angle A increment per frame, in radians.
            db (float):
                Angle B increment per frame, in radians.
            delay (float):
                Sleep between frames, in seconds.
            strategy (str):
                Rotation strategy of the orientation.
            out (file-like | None):
                Text stream the frames are written to. Defaults to stdout.
            fit_terminal (bool):
                Follow the terminal size instead of the configured grid.
        """
        self.donut = Donut(config)
        self.orientation = Orientation(strategy)
        self.da = da
        self.db = db
        self.delay = delay
        self.out = out if out is not None else sys.stdout
        self.fit_terminal = fit_terminal

        self.glyphs, self.depth = self.donut.new_buffers()
        self.frames_drawn = 0


    @property
    def config(self):
        return self.donut.config


    def update_screen(self):
        """
        Resize the grid and buffers if the terminal size changed.

        Returns:
            bool:
                True if the grid was rebuilt.
        """
        if not self.fit_terminal:
            return False

        try:
            terminal_dimensions = os.get_terminal_size()
        except OSError:
            logger.warning(
                "No terminal attached, keeping the %d x %d grid", self.config.width, self.config.height)
            self.fit_terminal = False
            return False

        new_width = terminal_dimensions.columns
        # Keep the status line and the prompt on screen.
        new_height = max(1, terminal_dimensions.lines - 3)

        if new_width == self.config.width and new_height == self.config.height:
            return False

        logger.info("Terminal resized to %d x %d", new_width, new_height)
        self.donut = Donut(self.config.replace(width=new_width, height=new_height))
        self.glyphs, self.depth = self.donut.new_buffers()
        self.out.write(CLEAR_SCREEN)
        return True


    def draw_frame(self):
        """
        Render, write and rotate one frame.
        """
        start = time.perf_counter()

        self.donut.render(self.orientation, self.glyphs, self.depth)

        self.out.write(CURSOR_HOME)
        for line in frame_lines(self.glyphs, self.config.width):
            self.out.write(line + "\n")

        elapsed = max(time.perf_counter() - start, 0.0001)
        memory = format_memory(approximate_memory(self.glyphs, self.depth, self.orientation))
        self.out.write("\n" + status_line(1.0 / elapsed, memory) + "\n")
        self.out.flush()

        self.orientation.rotate(self.da, self.db)
        self.frames_drawn += 1


    def run(self, frames=None):
        """
        Animate until interrupted, or for a fixed number of frames.

        The cursor is always restored, also when the loop is interrupted
        with Ctrl+C.

        Args:
            frames (int | None):
                Number of frames to draw. None runs forever.
        """
        try:
            self.out.write(HIDE_CURSOR + CLEAR_SCREEN)
            self.out.flush()
            while frames is None or self.frames_drawn < frames:
                self.update_screen()
                self.draw_frame()
                if self.delay > 0:
                    time.sleep(self.delay)
        except KeyboardInterrupt:
            logger.info("Interrupted after %d frames", self.frames_drawn)
        finally:
            self.out.write(SHOW_CURSOR)
            self.out.flush()



def parse_arguments(argv=None):
    """
    Parses command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Renders a spinning ASCII torus in the terminal."
    )
    parser.add_argument("-W", "--width", type=int, default=80, help="Grid width (default: 80).")
    parser.add_argument("-H", "--height", type=int, default=22, help="Grid height (default: 22).")
    parser.add_argument(
        "-f",
        "--fit",
        action="store_true",
        help="Follow the terminal size instead of --width/--height.",
    )
    parser.add_argument(
        "-a",
        "--speed-a",
        type=float,
        default=0.07,
        help="Angle A increment per frame in radians (default: 0.07).",
    )
    parser.add_argument(
        "-b",
        "--speed-b",
        type=float,
        default=0.03,
        help="Angle B increment per frame in radians (default: 0.03).",
    )
    parser.add_argument(
        "-d",
        "--delay",
        type=float,
        default=0.02,
        help="Seconds to sleep between frames (default: 0.02).",
    )
    parser.add_argument(
        "-n",
        "--frames",
        type=int,
        default=None,
        help="Stop after this many frames (default: run until Ctrl+C).",
    )
    parser.add_argument(
        "-s",
        "--strategy",
        choices=ROTATION_STRATEGIES,
        default="incremental",
        help="Rotation update strategy (default: incremental).",
    )
    parser.add_argument(
        "-r",
        "--ramp",
        default=None,
        help="13 glyphs from dimmest to brightest (default: ' .,-~:;=!*#$@').",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (INFO level).",
    )
    parser.add_argument(
        "-vv",
        "--debug",
        action="store_true",
        help="Enable debug logging (DEBUG level).",
    )

    args = parser.parse_args(argv)

    if args.delay < 0:
        parser.error("delay must not be negative")

    if args.frames is not None and args.frames < 1:
        parser.error("frames must be at least 1")

    return args


def setup_logging(verbose=False, debug=False):
    """
    Sets up the logging configuration.
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def main(argv=None):
    args = parse_arguments(argv)
    setup_logging(verbose=args.verbose, debug=args.debug)

    overrides = {"width": args.width, "height": args.height}
    if args.ramp is not None:
        overrides["ramp"] = args.ramp

    try:
        config = DonutConfig(**overrides)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    logger.info("Grid: %d x %d, strategy: %s", config.width, config.height, args.strategy)
    logger.info("Speeds (a, b): (%s, %s), delay: %ss", args.speed_a, args.speed_b, args.delay)

    animation = ConsoleAnimation(
        config,
        da=args.speed_a, db=args.speed_b,
        delay=args.delay,
        strategy=args.strategy,
        fit_terminal=args.fit)
    animation.run(frames=args.frames)

    logger.info("Animation finished.")
    return 0



if __name__ == "__main__":
    sys.exit(main())
