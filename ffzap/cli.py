"""Command-line entry point: run ffmpeg over many files in parallel."""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
import threading
from collections import deque
from dataclasses import dataclass
from pathlib import Path, PurePath

from ffzap.logger import Logger
from ffzap.progress import Progress

_VERSION = "1.1.2"
_DESCRIPTION = (
    "A multithreaded CLI for digital media processing using ffmpeg. "
    "If ffmpeg can do it, ffzap can do it - as many files in parallel "
    "as your system can handle."
)
_FAILED_HEADER = "\nThe following files were not processed due to the errors above:"
_FAILED_LOCK = threading.Lock()


class FileListError(Exception):
    """The file holding the list of paths could not be read."""


@dataclass
class Options:
    """Settings for one run."""

    output: str
    thread_count: int = 2
    ffmpeg_options: str | None = None
    input: list[str] | None = None
    file_list: str | None = None
    overwrite: bool = False
    verbose: bool = False
    delete: bool = False
    eta: bool = False
    log_dir: Path | None = None


def _thread_count(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid value '{text}'") from None
    if not 1 <= value <= 65535:
        raise argparse.ArgumentTypeError(f"{value} is not in 1..=65535")
    return value


def _join_hyphen_values(argv: list[str]) -> list[str]:
    """Let the value of --ffmpeg-options start with a hyphen."""
    result: list[str] = []
    tokens = iter(argv)
    for token in tokens:
        if token == "--":
            result.append(token)
            result.extend(tokens)
            break
        if token in ("-f", "--ffmpeg-options"):
            value = next(tokens, None)
            if value is None:
                result.append(token)
            else:
                result.append(f"--ffmpeg-options={value}")
            continue
        result.append(token)
    return result


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ffzap", description=_DESCRIPTION)
    parser.add_argument("-V", "--version", action="version", version=f"ffzap {_VERSION}")
    parser.add_argument(
        "-t",
        "--thread-count",
        type=_thread_count,
        default=2,
        help="The amount of threads you want to utilize. Default is 2. Can't be lower than 1",
    )
    parser.add_argument(
        "-f",
        "--ffmpeg-options",
        default=None,
        help="Options you want to pass to ffmpeg. For the output file name, use --output",
    )
    sources = parser.add_mutually_exclusive_group(required=True)
    sources.add_argument("-i", "--input", nargs="+", help="The files you want to process.")
    sources.add_argument(
        "--file-list", help="Path to a file containing paths to process. One path per line"
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="If ffmpeg should overwrite files if they already exist. Default is false",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="If verbose logs should be shown while ffzap is running",
    )
    parser.add_argument(
        "--delete",
        action="store_true",
        help="Delete the source file after it was successfully processed. "
        "If the process fails, the file is kept.",
    )
    parser.add_argument(
        "--eta", action="store_true", help="Displays the current eta in the progressbar"
    )
    parser.add_argument(
        "-o",
        "--output",
        required=True,
        help="Output file pattern. Placeholders: {{dir}} directory of the input file, "
        "{{name}} file name without extension, {{ext}} extension, "
        "{{parent}} name of the input file's directory. "
        "Example: /destination/{{dir}}/{{name}}_transcoded.{{ext}}",
    )
    return parser


def parse_args(argv=None) -> Options:
    """Parse command-line arguments into :class:`Options`."""
    if argv is None:
        argv = sys.argv[1:]
    namespace = _build_parser().parse_args(_join_hyphen_values(list(argv)))
    return Options(
        output=namespace.output,
        thread_count=namespace.thread_count,
        ffmpeg_options=namespace.ffmpeg_options,
        input=namespace.input,
        file_list=namespace.file_list,
        overwrite=namespace.overwrite,
        verbose=namespace.verbose,
        delete=namespace.delete,
        eta=namespace.eta,
    )


def read_file_list(path) -> list[str]:
    """Read paths from a file, one per line, trimmed."""
    try:
        with open(path, encoding="utf-8") as handle:
            contents = handle.read()
    except FileNotFoundError:
        raise FileListError(f"No file found at {path}.") from None
    except IsADirectoryError:
        raise FileListError(f"The path {path} is a directory.") from None
    except PermissionError:
        raise FileListError(f"Permission denied when reading file {path}.") from None
    except UnicodeDecodeError:
        raise FileListError(
            f"The contents of {path} contain invalid data. "
            "Please make sure it is encoded as UTF-8."
        ) from None
    except OSError as err:
        raise FileListError(
            f"An error has occurred reading the file at path {path}: {err!r}."
        ) from None
    return [line.strip() for line in contents.strip().split("\n")]


def build_output_path(pattern: str, path: str) -> str:
    """Fill the placeholders of ``pattern`` from the input ``path``."""
    pure = PurePath(path)
    if not pure.suffix:
        raise ValueError(f"{path} has no file extension")
    extension = pure.suffix[1:]
    directory = os.path.dirname(path)
    parent_name = PurePath(directory).name if directory else ""
    if parent_name == "..":
        parent_name = ""
    result = pattern.replace("{{ext}}", extension)
    result = result.replace("{{name}}", pure.stem)
    result = result.replace("{{dir}}", directory)
    return result.replace("{{parent}}", parent_name)


def build_command(input_path, output_path, ffmpeg_options, overwrite) -> list[str]:
    """The ffmpeg command line for one file."""
    command = ["ffmpeg", "-i", str(input_path)]
    if ffmpeg_options is not None:
        command.extend(ffmpeg_options.split(" "))
    command.append(str(output_path))
    if overwrite:
        command.append("-y")
    return command


def _record_failure(failed_paths: list[str], path: str) -> None:
    with _FAILED_LOCK:
        failed_paths.append(path)


def _delete_source(path: str, logger: Logger, thread: int, verbose: bool) -> None:
    try:
        os.remove(path)
    except PermissionError:
        logger.log_error(
            f"Permission denied when trying to delete file {path}", thread, verbose
        )
    except OSError:
        logger.log_error(
            f"An unknown error occurred when trying to delete file {path}", thread, verbose
        )
    else:
        logger.log_info(f"Removed {path}", thread, verbose)


def process_queue(queue: deque, options: Options, progress: Progress, logger: Logger,
                  failed_paths: list, thread: int) -> None:
    """Take paths from ``queue`` and run ffmpeg on each until it is empty."""
    verbose = options.verbose
    while True:
        try:
            path = queue.pop()
        except IndexError:
            return

        if not Path(path).is_file():
            logger.log_error(
                f"{path} doesn't appear to be a file, ignoring. "
                "Continuing with next task if there's more to do...",
                thread,
                verbose,
            )
            continue

        logger.log_info(f"Processing {path}", thread, verbose)

        try:
            final_file_name = build_output_path(options.output, path)
        except ValueError as err:
            logger.log_error(str(err), thread, verbose)
            _record_failure(failed_paths, path)
            continue

        if Path(final_file_name).exists() and not options.overwrite:
            logger.log_error(
                f"File {final_file_name} already exists and --overwrite is set to false. "
                "Continuing with next task if there is more to do...",
                thread,
                verbose,
            )
            _record_failure(failed_paths, final_file_name)
            return

        parent = os.path.dirname(final_file_name)
        if parent and not os.path.exists(parent):
            try:
                os.makedirs(parent, exist_ok=True)
            except OSError as err:
                logger.log_error(
                    f"Could not create directory structure for file {final_file_name}",
                    thread,
                    verbose,
                )
                logger.log_error(str(err), thread, verbose)

        command = build_command(path, final_file_name, options.ffmpeg_options, options.overwrite)
        try:
            result = subprocess.run(
                command, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE, check=False
            )
        except OSError:
            print(
                f"[THREAD {thread}] -- There was an error running ffmpeg. "
                "Please check if it's correctly installed and working as intended.",
                file=sys.stderr,
            )
            continue

        if result.returncode == 0:
            logger.log_info(f"Success, saving to {final_file_name}", thread, verbose)
            if options.delete:
                _delete_source(path, logger, thread, verbose)
            progress.inc(1)
        else:
            error_text = (result.stderr or b"").decode("utf-8", errors="replace")
            logger.log_error(
                f"Error processing file {path}. Error is: {error_text}", thread, verbose
            )
            if options.delete:
                logger.log_info("Keeping the file due to the error above", thread, verbose)
            logger.log_info(
                "Continuing with next task if there's more to do...", thread, verbose
            )
            _record_failure(failed_paths, path)


def run(options: Options) -> list[str]:
    """Process every input file; return the paths that failed."""
    if options.eta:
        print(
            "Warning: ETA is a highly experimental feature and prone to absurd estimations. "
            "If your encoding process has long pauses in-between each processed file, "
            "you WILL experience incredibly inaccurate estimations!"
        )
        print(
            "This is due to unwanted behaviour in one of ffzap's dependencies "
            "and cannot be fixed by ffzap."
        )

    if options.file_list is not None:
        paths = read_file_list(options.file_list)
    else:
        paths = list(options.input or [])

    queue = deque(paths)
    failed_paths: list[str] = []
    progress = Progress(len(paths), options.eta)

    with Logger(progress, options.log_dir) as logger:
        progress.start_tick(1000)
        workers = [
            threading.Thread(
                target=process_queue,
                args=(queue, options, progress, logger, failed_paths, thread),
            )
            for thread in range(options.thread_count)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        progress.finish()

        print(
            f"{progress.value()} out of {progress.total()} files have been successful. "
            f"A detailed log has been written to {logger.log_path}"
        )

        logger.append_failed_paths(failed_paths)
        if options.verbose and failed_paths:
            print(_FAILED_HEADER)
            for path in failed_paths:
                print(path)

    return failed_paths


def main(argv=None) -> int:
    """Run the command line; return the exit status."""
    options = parse_args(argv)
    try:
        run(options)
    except FileListError as err:
        print(err, file=sys.stderr)
        return 1
    return 0