"""
MPV-backed media source using JSON IPC.

The IPC helpers are plain blocking socket calls. MpvSource sends its
commands from one worker thread and polls status off the event loop
thread, emitting source events back on the loop thread.
"""

import asyncio
import json
import os
import socket
import subprocess
import tempfile
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Any, NamedTuple, Optional

from loguru import logger

from .source import MediaSource, PlaybackDenied, SourceEvent

SOCKET_TIMEOUT = 5.0
POLL_INTERVAL = 0.1  # seconds (10Hz, matches UI refresh)


class MpvUnavailableError(RuntimeError):
    """mpv is not installed or could not be started."""


class MpvProcess(NamedTuple):
    socket_path: str
    process: subprocess.Popen


class MpvStatus(NamedTuple):
    """One polled snapshot of mpv properties (None = query failed)."""

    position: Optional[float]
    duration: Optional[float]
    paused: Optional[bool]
    eof: Optional[bool]


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def start_mpv(socket_path: Optional[str] = None, volume: float = 1.0) -> Optional[MpvProcess]:
    """Start an idle, paused MPV with JSON IPC."""
    if not socket_path:
        temp_dir = Path(tempfile.gettempdir())
        socket_path = str(temp_dir / f"soloist-mpv-{os.getpid()}-{uuid.uuid4().hex[:8]}")

    logger.info(f"Starting MPV player with socket: {socket_path}")

    try:
        if os.path.exists(socket_path):
            logger.debug(f"Removing existing socket: {socket_path}")
            os.unlink(socket_path)

        cmd = [
            "mpv",
            "--idle=yes",
            "--pause=yes",
            "--no-video",
            "--no-terminal",
            f"--input-ipc-server={socket_path}",
            f"--volume={round(volume * 100)}",
            "--keep-open=yes",
            "--load-scripts=no",
        ]

        process = subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
        )

        # Wait for socket to be created
        start_time = time.time()
        while not os.path.exists(socket_path):
            if time.time() - start_time > SOCKET_TIMEOUT:
                logger.error(f"MPV socket creation timeout after {SOCKET_TIMEOUT}s")
                process.kill()
                return None
            time.sleep(0.1)

        if send_mpv_command(socket_path, {"command": ["get_property", "idle-active"]}):
            logger.info("MPV started successfully")
            return MpvProcess(socket_path=socket_path, process=process)

        logger.error("MPV socket connection test failed")
        process.kill()
        return None

    except (subprocess.SubprocessError, OSError) as e:
        logger.error(f"Failed to start MPV: {e}")
        return None


def stop_mpv(mpv: MpvProcess) -> None:
    """Stop MPV process and cleanup."""
    try:
        mpv.process.kill()
        mpv.process.wait(timeout=2.0)
    except (OSError, subprocess.TimeoutExpired):
        pass  # already gone
    except Exception as e:
        logger.warning(f"Unexpected error during MPV cleanup: {e}")

    if os.path.exists(mpv.socket_path):
        try:
            os.unlink(mpv.socket_path)
        except OSError:
            pass


def is_mpv_running(mpv: Optional[MpvProcess]) -> bool:
    """Check if the MPV process is alive and its socket exists."""
    if mpv is None:
        return False
    if mpv.process.poll() is not None:
        return False
    return os.path.exists(mpv.socket_path)


def send_mpv_command(socket_path: Optional[str], command: dict[str, Any]) -> bool:
    """Send JSON IPC command to MPV."""
    if not socket_path or not os.path.exists(socket_path):
        return False

    try:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(2.0)
        sock.connect(socket_path)

        command_json = json.dumps(command) + "\n"
        sock.send(command_json.encode("utf-8"))

        response = sock.recv(4096).decode("utf-8").strip()
        sock.close()

        if response:
            try:
                # mpv may interleave event lines; the reply is the one with "error"
                for line in response.splitlines():
                    data = json.loads(line)
                    if "error" in data:
                        return data["error"] == "success"
            except json.JSONDecodeError:
                return False

        return True

    except (socket.error, OSError):
        return False


def get_mpv_property(socket_path: Optional[str], property_name: str) -> Any:
    """Get a property value from MPV."""
    if not socket_path or not os.path.exists(socket_path):
        return None

    try:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(2.0)
        sock.connect(socket_path)

        command = {"command": ["get_property", property_name]}
        sock.send((json.dumps(command) + "\n").encode("utf-8"))

        response = sock.recv(4096).decode("utf-8").strip()
        sock.close()

        for line in response.splitlines():
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                continue
            if data.get("error") == "success":
                return data.get("data")

        return None

    except (socket.error, OSError):
        return None


def _warn_if_rejected(what: str, pending: Future) -> None:
    if not pending.cancelled() and pending.exception() is None and not pending.result():
        logger.warning(f"mpv did not accept {what}")


class MpvSource(MediaSource):
    """MediaSource driving an mpv process.

    Use MpvSource.launch() to start a private mpv; the poll task starts
    with the first play() and stops on close(). IPC commands run in order
    on a single worker thread so setters never block the event loop.
    """

    def __init__(self, mpv: MpvProcess, poll_interval: float = POLL_INTERVAL):
        super().__init__()
        self.mpv = mpv
        self.poll_interval = poll_interval
        self._url: Optional[str] = None
        self._volume = 1.0
        self._playing = False
        self._position = 0.0
        self._duration = 0.0
        self._eof = False
        self._closed = False
        self._poll_task: Optional[asyncio.Task] = None
        self._commands = ThreadPoolExecutor(max_workers=1, thread_name_prefix="mpv-ipc")

    @classmethod
    def launch(cls, socket_path: Optional[str] = None, volume: float = 1.0) -> "MpvSource":
        """Start mpv and wrap it.

        Raises:
            MpvUnavailableError: If mpv could not be started
        """
        mpv = start_mpv(socket_path, volume)
        if mpv is None:
            raise MpvUnavailableError("mpv could not be started (is it installed?)")
        source = cls(mpv)
        source._volume = volume
        return source

    def _send(self, args: tuple) -> bool:
        return send_mpv_command(self.mpv.socket_path, {"command": list(args)})

    def _command(self, *args: Any) -> Optional[Future]:
        """Queue an IPC command behind any earlier ones."""
        if self._closed:
            return None
        return self._commands.submit(self._send, args)

    def flush(self) -> None:
        """Block until every queued command has been sent."""
        if not self._closed:
            self._commands.submit(lambda: None).result()

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = max(0.0, min(1.0, value))
        self._command("set_property", "volume", round(self._volume * 100, 1))

    def load(self, url: str) -> None:
        self._set_playing(False)
        self._command("set_property", "pause", True)
        pending = self._command("loadfile", url, "replace")
        if pending is not None:
            pending.add_done_callback(partial(_warn_if_rejected, f"loadfile for {url}"))
        self._url = url
        self._position = 0.0
        self._duration = 0.0
        self._eof = False

    def unload(self) -> None:
        self._set_playing(False)
        self._command("stop")
        self._url = None
        self._position = 0.0
        self._duration = 0.0

    async def play(self) -> None:
        if self._url is None:
            raise PlaybackDenied("no media loaded")
        if not is_mpv_running(self.mpv):
            raise PlaybackDenied("mpv is not running")

        # Queued after any pending volume write so the first samples use it
        pending = self._command("set_property", "pause", False)
        if pending is None or not await asyncio.wrap_future(pending):
            raise PlaybackDenied("mpv rejected unpause")

        self._set_playing(True)
        self._ensure_polling()

    def pause(self) -> None:
        self._command("set_property", "pause", True)
        self._set_playing(False)

    def seek(self, seconds: float) -> None:
        self._command("seek", seconds, "absolute")
        self._position = seconds

    def close(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
        self._closed = True
        self._commands.shutdown(wait=False, cancel_futures=True)
        stop_mpv(self.mpv)
        self._playing = False

    def _set_playing(self, playing: bool) -> None:
        if playing == self._playing:
            return
        self._playing = playing
        self.emit(SourceEvent.PLAY if playing else SourceEvent.PAUSE)

    def _ensure_polling(self) -> None:
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop())

    async def _poll_loop(self) -> None:
        while is_mpv_running(self.mpv):
            status = await asyncio.to_thread(self.read_status)
            self.apply_status(status)
            await asyncio.sleep(self.poll_interval)
        logger.warning("mpv exited; stopping status polling")
        self._set_playing(False)

    def read_status(self) -> MpvStatus:
        """Query mpv (blocking; call off the loop thread)."""
        socket_path = self.mpv.socket_path
        return MpvStatus(
            position=get_mpv_property(socket_path, "time-pos"),
            duration=get_mpv_property(socket_path, "duration"),
            paused=get_mpv_property(socket_path, "pause"),
            eof=get_mpv_property(socket_path, "eof-reached"),
        )

    def apply_status(self, status: MpvStatus) -> None:
        """Turn a polled snapshot into source events."""
        if self._url is None:
            return

        if status.duration is not None and status.duration > 0 and status.duration != self._duration:
            self._duration = float(status.duration)
            self.emit(SourceEvent.LOADED_METADATA, self._duration)

        # eof-reached stays true while parked at the end; emit once on the false->true edge.
        # Only a poll reporting eof=False clears the edge, so a stale eof=True after
        # a resume does not end the track twice.
        if status.eof is True:
            if not self._eof:
                self._eof = True
                self._position = 0.0
                self._set_playing(False)
                # keep-open parks mpv at the end; rewind so the next unpause restarts
                self._command("seek", 0, "absolute")
                self.emit(SourceEvent.ENDED)
            return
        if status.eof is False:
            self._eof = False

        # Preserve previous state if a query fails (None)
        if status.paused is not None:
            self._set_playing(not status.paused)

        if status.position is not None and status.position != self._position:
            self._position = float(status.position)
            self.emit(SourceEvent.TIME_UPDATE, self._position)
