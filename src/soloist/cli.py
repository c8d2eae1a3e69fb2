"""
Soloist CLI - Entry point

Plays a single track with fade-in, shows or sets the persisted volume,
and serves the web API.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from soloist.core import (
    Config,
    get_console,
    get_log_file_path,
    get_settings_path,
    load_config,
    log,
    setup_loguru,
)
from soloist.domain.library import get_display_name, track_from_file
from soloist.domain.playback import JsonFileStore, MemorySource, Track, VolumeStore, format_time
from soloist.domain.playback.mpv import MpvUnavailableError
from soloist.runtime import create_session, create_source

TICK_SECONDS = 0.1


def resolve_track(target: str, peaks: Optional[str] = None) -> Track:
    """Turn a CLI argument (local path or URL) into a Track.

    Raises:
        FileNotFoundError: If target is neither a URL nor an existing file
    """
    if "://" in target:
        return Track(id=target, title=target.rsplit("/", 1)[-1] or target, audio_url=target)
    return track_from_file(target, Path(peaks) if peaks else None)


async def play_track(config: Config, track: Track, fade: Optional[bool] = None) -> int:
    """Play track until it ends or the user interrupts."""
    console = get_console()

    if fade is not None:
        config.player.fade_in_enabled = fade

    try:
        source = create_source(config)
    except MpvUnavailableError as e:
        log(f"❌ {e}", level="error")
        return 1

    if isinstance(source, MemorySource):
        # Headless playback runs for the tagged duration
        if not track.duration:
            log("❌ Headless playback needs a track with a known duration", level="error")
            source.close()
            return 1
        source.durations.setdefault(track.audio_url, track.duration)

    finished = asyncio.Event()
    with create_session(config, source, on_end=finished.set) as session:
        log(f"▶ {get_display_name(track)}")
        if not await session.play(track):
            log("❌ Playback could not start", level="error")
            return 1

        with console.status("") as status:
            while not finished.is_set():
                if isinstance(source, MemorySource):
                    source.advance(TICK_SECONDS)
                fade_note = " (fading in)" if session.is_fading_in else ""
                status.update(
                    f"{format_time(session.current_time)} / {format_time(session.duration)}"
                    f"  vol {session.display_volume:.2f}{fade_note}"
                )
                await asyncio.sleep(TICK_SECONDS)

        log("■ Finished")
    return 0


def run_play(config: Config, target: str, peaks: Optional[str], fade: Optional[bool]) -> int:
    try:
        track = resolve_track(target, peaks)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(play_track(config, track, fade))
    except KeyboardInterrupt:
        print("\nStopped")
        return 130


def run_volume(config: Config, value: Optional[float]) -> int:
    """Show the persisted volume, or set it when value is given."""
    store = VolumeStore(JsonFileStore(get_settings_path(config)))
    key = config.player.storage_key

    if value is None:
        saved = store.load(key)
        if saved is None:
            print(f"{config.player.default_volume:.2f} (default)")
        else:
            print(f"{saved:.2f}")
        return 0

    if not 0.0 <= value <= 1.0:
        print(f"Error: volume must be between 0 and 1, got {value}", file=sys.stderr)
        return 1

    if not store.save(key, value):
        print("Error: could not save volume", file=sys.stderr)
        return 1
    print(f"Volume set to {value:.2f}")
    return 0


def run_serve(config: Config, host: Optional[str], port: Optional[int]) -> int:
    import uvicorn

    uvicorn.run(
        "web.backend.main:app",
        host=host or config.web.host,
        port=port or config.web.port,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="soloist",
        description="Soloist - one track at a time, faded in",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="Path to config.toml")

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    play_parser = subparsers.add_parser("play", help="Play an audio file or URL")
    play_parser.add_argument("target", help="Local audio file or stream URL")
    play_parser.add_argument("--peaks", help="Pre-computed peaks JSON for the track")
    fade_group = play_parser.add_mutually_exclusive_group()
    fade_group.add_argument(
        "--fade", dest="fade", action="store_true", default=None, help="Force fade-in on"
    )
    fade_group.add_argument(
        "--no-fade", dest="fade", action="store_false", help="Start at full volume"
    )

    volume_parser = subparsers.add_parser("volume", help="Show or set the saved volume")
    volume_parser.add_argument("value", nargs="?", type=float, help="New volume (0.0 - 1.0)")

    serve_parser = subparsers.add_parser("serve", help="Run the web API")
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default from config)")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the soloist command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        sys.exit(1)

    config = load_config(Path(args.config) if args.config else None)
    setup_loguru(
        get_log_file_path(config),
        level=config.logging.level,
        console_output=config.logging.console_output,
    )
    logger.debug(f"Running subcommand: {args.subcommand}")

    if args.subcommand == "play":
        sys.exit(run_play(config, args.target, args.peaks, args.fade))
    elif args.subcommand == "volume":
        sys.exit(run_volume(config, args.value))
    elif args.subcommand == "serve":
        sys.exit(run_serve(config, args.host, args.port))


if __name__ == "__main__":
    main()
