import argparse
import logging
import sys
import timeit
from donut_config import DonutConfig
from donut_renderer import Donut, Orientation
from donut_console import setup_logging

logger = logging.getLogger(__name__)

ROTATE_ANGLES = (0.01, 0.1, 1.0)
FRAME_COUNTS = (1, 10, 100)



class BenchmarkResult:
    def __init__(self, group, parameter, timings, number):
        """
        Timing summary of one benchmark case.

        Args:
            group (str):
                Benchmark group name.
            parameter (str):
                Case label inside the group.
            timings (list[float]):
                Total seconds of each repeat, as returned by ``timeit.repeat``.
            number (int):
                Iterations per repeat.
        """
        self.group = group
        self.parameter = parameter
        self.best = min(timings) / number
        self.mean = sum(timings) / len(timings) / number


    def __repr__(self):
        return f"BenchmarkResult({self.group!r}, {self.parameter!r}, best={self.best:.6g}s)"



def bench_rotate(repeat=5, number=10000):
    orientation = Orientation()
    results = []
    for da in ROTATE_ANGLES:
        for db in ROTATE_ANGLES:
            timings = timeit.repeat(lambda: orientation.rotate(da, db), repeat=repeat, number=number)
            results.append(BenchmarkResult("rotate_angles", f"Angle_A={da:.2f}, Angle_B={db:.2f}", timings, number))
    return results


def bench_render(config=None, frame_counts=FRAME_COUNTS, repeat=5, number=1):
    """
    Time ``frames`` consecutive renders of a fixed orientation.
    """
    donut = Donut(config)
    orientation = Orientation()
    glyphs, depth = donut.new_buffers()

    results = []
    for frames in frame_counts:
        def render_frames():
            for _ in range(frames):
                donut.render(orientation, glyphs, depth)
        timings = timeit.repeat(render_frames, repeat=repeat, number=number)
        results.append(BenchmarkResult("render_frames", str(frames), timings, number))
    return results


def bench_rotate_and_render(config=None, frame_counts=FRAME_COUNTS, repeat=5, number=1):
    """
    Time ``frames`` rotate-then-render steps, as an animation loop does.
    """
    donut = Donut(config)
    orientation = Orientation()
    glyphs, depth = donut.new_buffers()

    results = []
    for frames in frame_counts:
        def animate_frames():
            for _ in range(frames):
                orientation.rotate(0.01, 0.01)
                donut.render(orientation, glyphs, depth)
        timings = timeit.repeat(animate_frames, repeat=repeat, number=number)
        results.append(BenchmarkResult("rotate_and_render_frames", str(frames), timings, number))
    return results


def run_benchmarks(config=None, frame_counts=FRAME_COUNTS, repeat=5, number=1, rotate_number=10000):
    """
    Run every benchmark group.

    Returns:
        list[BenchmarkResult]:
            Results in group order: rotate, render, rotate and render.
    """
    results = []
    logger.info("Benchmarking rotate")
    results.extend(bench_rotate(repeat=repeat, number=rotate_number))
    logger.info("Benchmarking render over %s frames", list(frame_counts))
    results.extend(bench_render(config, frame_counts, repeat=repeat, number=number))
    logger.info("Benchmarking rotate and render")
    results.extend(bench_rotate_and_render(config, frame_counts, repeat=repeat, number=number))
    return results


def format_time(seconds):
    if seconds < 1e-6:
        return f"{seconds * 1e9:.1f} ns"
    elif seconds < 1e-3:
        return f"{seconds * 1e6:.1f} us"
    elif seconds < 1:
        return f"{seconds * 1e3:.2f} ms"
    return f"{seconds:.3f} s"


def format_results(results):
    """
    Lay the results out as an aligned text table.
    """
    rows = [("group", "parameter", "best", "mean")]
    rows += [(r.group, r.parameter, format_time(r.best), format_time(r.mean)) for r in results]
    widths = [max(len(row[col]) for row in rows) for col in range(4)]
    lines = []
    for row in rows:
        lines.append("  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip())
    return "\n".join(lines)


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description="Times the torus rasterizer.")
    parser.add_argument("--repeat", type=int, default=5, help="Repeats per case (default: 5).")
    parser.add_argument("--number", type=int, default=1, help="Iterations per repeat for render cases (default: 1).")
    parser.add_argument(
        "--frames",
        type=int,
        nargs="+",
        default=list(FRAME_COUNTS),
        help="Frame counts for the render groups (default: 1 10 100).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging (INFO level).")
    parser.add_argument("-vv", "--debug", action="store_true", help="Enable debug logging (DEBUG level).")

    args = parser.parse_args(argv)

    if args.repeat < 1 or args.number < 1:
        parser.error("repeat and number must be at least 1")
    if any(frames < 1 for frames in args.frames):
        parser.error("frame counts must be at least 1")

    return args


def main(argv=None):
    args = parse_arguments(argv)
    setup_logging(verbose=args.verbose, debug=args.debug)

    results = run_benchmarks(DonutConfig(), tuple(args.frames), repeat=args.repeat, number=args.number)
    print(format_results(results))
    return 0



if __name__ == "__main__":
    sys.exit(main())
