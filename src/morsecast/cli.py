#!/usr/bin/env python3
"""morsecast - Convert text to Morse code and play, export or flash it."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Callable

from pymorse import supported_characters, text_to_morse, total_duration_ms, validate_text

from .app import Conversion, MorseApp
from .config import (
    get_config,
    get_flashlight_config,
    get_playback_config,
    get_timing_config,
    save_config,
)
from .devices import TerminalTorch, default_tone_device
from .errors import MorseError, friendly_message, notification_level
from .paths import config_file

log = logging.getLogger(__name__)

PROGRESS_BAR_WIDTH = 30

# Signals that mean we are losing the foreground
BACKGROUND_SIGNALS = ("SIGTSTP", "SIGTERM", "SIGHUP")


def read_text(args: argparse.Namespace) -> str:
    """Text from the command line, or stdin if none was given."""
    text = args.text
    if not text:
        text = sys.stdin.read()
    return text.strip() if text else ""


def format_progress(progress: float, width: int = PROGRESS_BAR_WIDTH) -> str:
    """Render progress as a text bar, e.g. "[#####     ]  50%"."""
    filled = int(round(progress * width))
    return f"[{'#' * filled}{' ' * (width - filled)}] {progress * 100:3.0f}%"


def print_progress(progress: float) -> None:
    sys.stderr.write("\r" + format_progress(progress))
    sys.stderr.flush()


def warn_unsupported(text: str) -> None:
    unsupported = validate_text(text).unsupported_chars
    if unsupported:
        print(f"Warning: skipping unsupported characters: {' '.join(unsupported)}", file=sys.stderr)


def get_speed(args: argparse.Namespace) -> float:
    if args.speed is not None:
        return args.speed
    return get_playback_config().get("speed", 1.0)


def convert_or_fail(app: MorseApp, text: str) -> Conversion | None:
    """Convert text, printing an error if nothing in it can be encoded."""
    conversion = app.convert(text)
    if conversion.unsupported_chars:
        warn_unsupported(text)
    if not conversion.events:
        print("Error: Text contains no characters that can be sent as Morse", file=sys.stderr)
        return None
    return conversion


def install_background_handlers(
    loop: asyncio.AbstractEventLoop,
    callback: Callable[[], None],
) -> None:
    """Call *callback* when the process is suspended or asked to exit."""
    for name in BACKGROUND_SIGNALS:
        sig = getattr(signal, name, None)
        if sig is None:
            continue
        try:
            loop.add_signal_handler(sig, callback)
        except (NotImplementedError, RuntimeError, ValueError):
            # Not supported on this platform / not the main thread
            log.debug("Cannot watch %s", name)


async def run_playback(app: MorseApp, conversion: Conversion, speed: float, quiet: bool) -> None:
    """Play a conversion and wait until it finishes or is interrupted."""
    loop = asyncio.get_running_loop()
    done = loop.create_future()

    def finish() -> None:
        if not done.done():
            done.set_result(None)

    def background() -> None:
        app.enter_background()
        finish()

    install_background_handlers(loop, background)
    app.play(
        conversion.events,
        speed,
        on_progress=None if quiet else print_progress,
        on_complete=finish,
    )
    await done
    if not quiet:
        print(file=sys.stderr)


async def run_transmission(app: MorseApp, conversion: Conversion) -> None:
    """Flash a conversion and wait until it finishes or fails."""
    loop = asyncio.get_running_loop()
    done = loop.create_future()

    def finish() -> None:
        if not done.done():
            done.set_result(None)

    def fail(error: MorseError) -> None:
        if not done.done():
            done.set_exception(error)

    def background() -> None:
        app.enter_background()
        finish()

    install_background_handlers(loop, background)
    app.flash(conversion.events, on_complete=finish, on_error=fail)
    try:
        await done
    finally:
        print(file=sys.stderr)


def cmd_encode(args: argparse.Namespace) -> int:
    """Handle the encode command."""
    text = read_text(args)
    if not text:
        print("Error: No text provided", file=sys.stderr)
        return 1

    warn_unsupported(text)
    print(text_to_morse(text))
    return 0


def cmd_timing(args: argparse.Namespace) -> int:
    """Handle the timing command - list the compiled events."""
    text = read_text(args)
    if not text:
        print("Error: No text provided", file=sys.stderr)
        return 1

    app = MorseApp(get_timing_config(args.unit))
    conversion = convert_or_fail(app, text)
    if conversion is None:
        return 1

    for event in conversion.events:
        marker = "on " if event.is_signal else "off"
        print(f"{marker}  {event.kind.value:<10} {event.duration_ms:>6} ms")
    print(f"Total: {total_duration_ms(conversion.events):.0f} ms")
    return 0


def cmd_chars(args: argparse.Namespace) -> int:
    """Handle the chars command."""
    print(" ".join(supported_characters()))
    return 0


def cmd_play(args: argparse.Namespace) -> int:
    """Handle the play command - play through the speakers."""
    text = read_text(args)
    if not text:
        print("Error: No text provided", file=sys.stderr)
        return 1

    speed = get_speed(args)
    app = MorseApp(
        get_timing_config(args.unit, args.frequency),
        tone_device=default_tone_device(),
        progress_interval_ms=get_playback_config().get("progress_interval_ms", 16),
    )
    conversion = convert_or_fail(app, text)
    if conversion is None:
        return 1

    if not args.quiet:
        print(conversion.morse, file=sys.stderr)

    try:
        asyncio.run(run_playback(app, conversion, speed, args.quiet))
    finally:
        app.close()
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Handle the export command - write a WAV file."""
    text = read_text(args)
    if not text:
        print("Error: No text provided", file=sys.stderr)
        return 1

    app = MorseApp(get_timing_config(args.unit, args.frequency))
    conversion = convert_or_fail(app, text)
    if conversion is None:
        return 1

    output_dir = Path(args.output_dir).expanduser() if args.output_dir else None
    path = app.export(conversion.events, get_speed(args), output_dir)
    print(path)
    return 0


def cmd_flash(args: argparse.Namespace) -> int:
    """Handle the flash command - blink the message in the terminal."""
    text = read_text(args)
    if not text:
        print("Error: No text provided", file=sys.stderr)
        return 1

    app = MorseApp(
        get_timing_config(args.unit),
        torch=TerminalTorch(sys.stderr),
        signal_buffer_ms=get_flashlight_config().get("signal_buffer_ms", 10),
    )
    conversion = convert_or_fail(app, text)
    if conversion is None:
        return 1

    try:
        asyncio.run(run_transmission(app, conversion))
    finally:
        app.close()
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the config command."""
    config = get_config()
    if args.init:
        save_config(config)
        print(f"Wrote {config_file()}", file=sys.stderr)
    print(json.dumps(config, indent=2))
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="morsecast",
        description="Convert text to Morse code and play, export or flash it",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def add_text(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("text", nargs="?", help="Text to convert (reads from stdin if not provided)")

    def add_unit(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("-u", "--unit", type=int, help="Time unit in milliseconds (default: 120)")

    def add_audio(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("-s", "--speed", type=float, help="Speed multiplier, 0.5 to 2.0")
        sub.add_argument("-f", "--frequency", type=float, help="Tone frequency in Hz (default: 600)")

    # encode command
    encode_parser = subparsers.add_parser("encode", help="Print the Morse code for text")
    add_text(encode_parser)
    encode_parser.set_defaults(func=cmd_encode)

    # timing command
    timing_parser = subparsers.add_parser("timing", help="Show the on/off timing for text")
    add_text(timing_parser)
    add_unit(timing_parser)
    timing_parser.set_defaults(func=cmd_timing)

    # chars command
    chars_parser = subparsers.add_parser("chars", help="List supported characters")
    chars_parser.set_defaults(func=cmd_chars)

    # play command
    play_parser = subparsers.add_parser("play", help="Play Morse code through the speakers")
    add_text(play_parser)
    add_unit(play_parser)
    add_audio(play_parser)
    play_parser.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress progress output"
    )
    play_parser.set_defaults(func=cmd_play)

    # export command
    export_parser = subparsers.add_parser("export", help="Write Morse code audio to a WAV file")
    add_text(export_parser)
    add_unit(export_parser)
    add_audio(export_parser)
    export_parser.add_argument("-o", "--output-dir", help="Directory for the WAV file")
    export_parser.set_defaults(func=cmd_export)

    # flash command
    flash_parser = subparsers.add_parser("flash", help="Blink Morse code in the terminal")
    add_text(flash_parser)
    add_unit(flash_parser)
    flash_parser.set_defaults(func=cmd_flash)

    # config command
    config_parser = subparsers.add_parser("config", help="Show the effective configuration")
    config_parser.add_argument(
        "--init", action="store_true", help="Write the configuration file"
    )
    config_parser.set_defaults(func=cmd_config)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except MorseError as e:
        label = "Warning" if notification_level(e) == "warning" else "Error"
        print(f"{label}: {friendly_message(e)}", file=sys.stderr)
        log.debug("%s: %s", e.kind.value, e.message)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
