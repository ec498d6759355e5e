"""Output devices: tone playback and the on/off light.

The engines only talk to the small capability interfaces defined here, so
any audio backend or torch driver can be plugged in.
"""

import logging
import platform
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Callable, Protocol, TextIO

from .errors import DeviceUnsupported
from .paths import ensure_dir, tones_dir

log = logging.getLogger(__name__)


class Sound(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def unload(self) -> None: ...


class ToneDevice(Protocol):
    def load(self, wav: bytes) -> Sound: ...


class Torch(Protocol):
    def is_available(self) -> bool: ...

    def has_permission(self) -> bool: ...

    def request_permission(self) -> bool: ...

    def set_enabled(self, enabled: bool) -> None: ...


# -- Audio -------------------------------------------------------------------

def get_audio_player() -> list[str] | None:
    """Get the appropriate audio player command for this platform."""
    system = platform.system()

    if system == "Darwin":
        if shutil.which("afplay"):
            return ["afplay"]
    elif system == "Linux":
        if shutil.which("paplay"):
            return ["paplay"]
        if shutil.which("aplay"):
            return ["aplay", "-q"]

    if shutil.which("ffplay"):
        return ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"]

    return None


class SubprocessSound:
    """A WAV file on disk played by an external player process."""

    def __init__(self, path: Path, command: list[str]):
        self.path = path
        self.command = command
        self._process: subprocess.Popen | None = None

    def start(self) -> None:
        self._process = subprocess.Popen(
            [*self.command, str(self.path)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def stop(self) -> None:
        if self._process is not None and self._process.poll() is None:
            self._process.terminate()
        self._process = None

    def unload(self) -> None:
        self.stop()
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            log.debug("Could not remove tone file %s: %s", self.path, e)


class SubprocessToneDevice:
    """Plays each tone through the platform's command line audio player."""

    def __init__(self, command: list[str], directory: Path | None = None):
        self.command = command
        self.directory = directory

    def load(self, wav: bytes) -> SubprocessSound:
        directory = ensure_dir(self.directory or tones_dir())
        with tempfile.NamedTemporaryFile(suffix=".wav", dir=directory, delete=False) as f:
            f.write(wav)
        return SubprocessSound(Path(f.name), self.command)


def default_tone_device() -> SubprocessToneDevice:
    """Tone device for this machine; raises DeviceUnsupported if there is none."""
    command = get_audio_player()
    if command is None:
        raise DeviceUnsupported("No audio player found", context="Audio playback")
    log.debug("Using audio player: %s", command[0])
    return SubprocessToneDevice(command)


# -- Light -------------------------------------------------------------------

class CallbackTorch:
    """Torch driven by a registered on/off callback."""

    def __init__(self, callback: Callable[[bool], None]):
        self.callback = callback

    def is_available(self) -> bool:
        return True

    def has_permission(self) -> bool:
        return True

    def request_permission(self) -> bool:
        return True

    def set_enabled(self, enabled: bool) -> None:
        self.callback(enabled)


class TerminalTorch:
    """Shows the light as a block character on a terminal stream."""

    ON = "██"
    OFF = "  "

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stderr

    def is_available(self) -> bool:
        return True

    def has_permission(self) -> bool:
        return True

    def request_permission(self) -> bool:
        return True

    def set_enabled(self, enabled: bool) -> None:
        self.stream.write("\r" + (self.ON if enabled else self.OFF))
        self.stream.flush()
