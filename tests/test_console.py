import io
import os
import numpy as np
import pytest
import donut_console
from donut_config import DonutConfig
from donut_console import (
    CLEAR_SCREEN, CURSOR_HOME, HIDE_CURSOR, SHOW_CURSOR,
    ConsoleAnimation, approximate_memory, format_memory, frame_lines, main, parse_arguments, status_line)
from donut_renderer import Donut, Orientation


@pytest.mark.parametrize("num_bytes, text", [
    (0, "0 bytes"),
    (1023, "1023 bytes"),
    (1024, "1.0 KB"),
    (1536, "1.5 KB"),
    (1024 * 1024, "1.0 MB"),
    (5 * 1024 * 1024 + 512 * 1024, "5.5 MB"),
])
def test_format_memory(num_bytes, text):
    assert format_memory(num_bytes) == text


def test_status_line():
    assert status_line(60, "1.5 KB") == "FPS:  60.0 | Approx Mem: 1.5 KB"
    assert status_line(1234.56, "12 bytes") == "FPS: 1234.6 | Approx Mem: 12 bytes"


def test_frame_lines():
    glyphs = np.array(list("abcdef"), dtype="<U1")
    assert frame_lines(glyphs, 3) == ["abc", "def"]
    assert frame_lines("abcdef", 2) == ["ab", "cd", "ef"]


def test_approximate_memory_counts_both_buffers():
    glyphs, depth = Donut().new_buffers()
    memory = approximate_memory(glyphs, depth, Orientation())
    assert memory > glyphs.nbytes + depth.nbytes


def test_bounded_run_writes_frames():
    out = io.StringIO()
    animation = ConsoleAnimation(delay=0, out=out)
    animation.run(frames=3)

    text = out.getvalue()
    assert text.startswith(HIDE_CURSOR + CLEAR_SCREEN)
    assert text.endswith(SHOW_CURSOR)
    assert text.count(CURSOR_HOME) == 3
    assert text.count("Approx Mem:") == 3
    assert animation.frames_drawn == 3

    first_frame = text.split(CURSOR_HOME)[1].split("\n")
    assert len(first_frame[0]) == 80
    assert first_frame[:22] == Donut().frame(Orientation())


def test_each_frame_rotates():
    animation = ConsoleAnimation(da=0.5, db=0.25, delay=0, out=io.StringIO(), strategy="direct")
    animation.run(frames=2)
    assert animation.orientation.angle_a == pytest.approx(1.0)
    assert animation.orientation.angle_b == pytest.approx(0.5)


def test_interrupt_restores_cursor(monkeypatch):
    out = io.StringIO()
    animation = ConsoleAnimation(delay=0, out=out)

    def interrupted():
        raise KeyboardInterrupt

    monkeypatch.setattr(animation, "draw_frame", interrupted)
    animation.run()

    assert out.getvalue().endswith(SHOW_CURSOR)
    assert animation.frames_drawn == 0


def test_fit_terminal_resizes_once(monkeypatch):
    monkeypatch.setattr(donut_console.os, "get_terminal_size", lambda: os.terminal_size((60, 20)))
    out = io.StringIO()
    animation = ConsoleAnimation(DonutConfig(), delay=0, out=out, fit_terminal=True)

    assert animation.update_screen()
    assert (animation.config.width, animation.config.height) == (60, 17)
    assert animation.glyphs.shape == animation.depth.shape == (60 * 17,)
    assert CLEAR_SCREEN in out.getvalue()

    assert not animation.update_screen()


def test_fixed_size_ignores_terminal(monkeypatch):
    def unexpected():
        raise AssertionError("terminal size queried")

    monkeypatch.setattr(donut_console.os, "get_terminal_size", unexpected)
    animation = ConsoleAnimation(delay=0, out=io.StringIO())
    assert not animation.update_screen()


def test_parse_arguments_defaults():
    args = parse_arguments([])
    assert (args.width, args.height) == (80, 22)
    assert (args.speed_a, args.speed_b, args.delay) == (0.07, 0.03, 0.02)
    assert args.frames is None
    assert args.strategy == "incremental"
    assert not args.fit


@pytest.mark.parametrize("argv", [["--delay", "-1"], ["--frames", "0"], ["--strategy", "euler"]])
def test_parse_arguments_rejects(argv):
    with pytest.raises(SystemExit):
        parse_arguments(argv)


def test_main_runs_bounded_animation(capsys):
    assert main(["--frames", "2", "--delay", "0", "--width", "40", "--height", "11"]) == 0
    captured = capsys.readouterr()
    assert captured.out.count(CURSOR_HOME) == 2
    assert captured.out.endswith(SHOW_CURSOR)


def test_main_reports_invalid_configuration(capsys):
    assert main(["--ramp", "abc", "--frames", "1"]) == 2
    assert CURSOR_HOME not in capsys.readouterr().out


def test_fit_without_terminal_keeps_configured_grid(monkeypatch):
    def no_terminal():
        raise OSError("Inappropriate ioctl for device")

    monkeypatch.setattr(donut_console.os, "get_terminal_size", no_terminal)
    out = io.StringIO()
    animation = ConsoleAnimation(DonutConfig(width=40, height=11), delay=0, out=out, fit_terminal=True)

    animation.run(frames=2)

    assert animation.frames_drawn == 2
    assert (animation.config.width, animation.config.height) == (40, 11)
    assert not animation.fit_terminal
    assert out.getvalue().endswith(SHOW_CURSOR)


def test_main_logs_with_lazy_arguments(caplog):
    caplog.set_level("INFO", logger="donut_console")
    assert main(["--ramp", "abc", "--frames", "1"]) == 2
    record = caplog.records[-1]
    assert record.levelname == "ERROR"
    assert record.msg == "Invalid configuration: %s"
    assert "13 glyphs" in record.getMessage()
