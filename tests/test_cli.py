import subprocess
from collections import deque
from unittest.mock import patch

import pytest

from ffzap.cli import (
    FileListError,
    Options,
    build_command,
    build_output_path,
    main,
    parse_args,
    process_queue,
    read_file_list,
    run,
)
from ffzap.logger import Logger
from ffzap.progress import Progress


@pytest.fixture
def progress():
    bar = Progress(2, False)
    yield bar
    bar.finish()


@pytest.fixture
def logger(progress, tmp_path):
    log = Logger(progress, tmp_path / "logs")
    yield log
    log.close()


def _log_text(logger):
    return logger.log_path.read_text(encoding="utf-8")


# parse_args


def test_parse_args_defaults():
    options = parse_args(["-i", "a.mp4", "b.mp4", "-o", "{{name}}.mkv"])
    assert options.thread_count == 2
    assert options.input == ["a.mp4", "b.mp4"]
    assert options.output == "{{name}}.mkv"
    assert options.file_list is None
    assert options.ffmpeg_options is None
    assert (options.overwrite, options.verbose, options.delete, options.eta) == (
        False, False, False, False,
    )


def test_parse_args_flags_and_file_list():
    options = parse_args(
        ["--file-list", "list.txt", "-o", "out", "-t", "4",
         "--overwrite", "--verbose", "--delete", "--eta"]
    )
    assert options.file_list == "list.txt"
    assert options.input is None
    assert options.thread_count == 4
    assert options.overwrite and options.verbose and options.delete and options.eta


def test_parse_args_ffmpeg_options_may_start_with_hyphen():
    opts = "-c:v libx264 -crf 23"
    options = parse_args(["-i", "a.mp4", "-f", opts, "-o", "out"])
    assert options.ffmpeg_options == opts
    options = parse_args(["--ffmpeg-options", opts, "-i", "a.mp4", "-o", "out"])
    assert options.ffmpeg_options == opts
    assert options.input == ["a.mp4"]


@pytest.mark.parametrize(
    "argv",
    [
        ["-i", "a.mp4", "-o", "out", "-t", "0"],
        ["-i", "a.mp4", "-o", "out", "-t", "x"],
        ["-i", "a.mp4", "--file-list", "l.txt", "-o", "out"],
        ["-o", "out"],
        ["-i", "a.mp4"],
    ],
)
def test_parse_args_rejects_invalid(argv):
    with pytest.raises(SystemExit):
        parse_args(argv)


# read_file_list


def test_read_file_list_trims_lines(tmp_path):
    list_file = tmp_path / "list.txt"
    list_file.write_text("\n a.mp4 \r\nb.mp4\n\n", encoding="utf-8")
    assert read_file_list(list_file) == ["a.mp4", "b.mp4"]


def test_read_file_list_missing(tmp_path):
    missing = tmp_path / "nope.txt"
    with pytest.raises(FileListError, match="No file found at"):
        read_file_list(missing)


def test_read_file_list_directory(tmp_path):
    with pytest.raises(FileListError):
        read_file_list(tmp_path)


def test_read_file_list_invalid_utf8(tmp_path):
    list_file = tmp_path / "bad.txt"
    list_file.write_bytes(b"\xff\xfe\xfa")
    with pytest.raises(FileListError, match="contain invalid data"):
        read_file_list(list_file)


# build_output_path


def test_build_output_path_documented_example():
    result = build_output_path(
        "/destination/{{dir}}/{{name}}_transcoded.{{ext}}", "videos/clip.mp4"
    )
    assert result == "/destination/videos/clip_transcoded.mp4"


def test_build_output_path_parent_and_multiple_dots():
    result = build_output_path("{{parent}}/{{name}}.{{ext}}", "a/b/movie.part1.mkv")
    assert result == "b/movie.part1.mkv"


def test_build_output_path_without_directory():
    result = build_output_path("[{{dir}}][{{parent}}]{{name}}", "clip.mp4")
    assert result == "[][]clip"


def test_build_output_path_needs_extension():
    with pytest.raises(ValueError):
        build_output_path("{{name}}.{{ext}}", "dir/noext")


# build_command


def test_build_command_with_options_and_overwrite():
    command = build_command("in.mp4", "out.mkv", "-c:v libx264", True)
    assert command == ["ffmpeg", "-i", "in.mp4", "-c:v", "libx264", "out.mkv", "-y"]


def test_build_command_without_options():
    command = build_command("in.mp4", "out.mkv", None, False)
    assert command == ["ffmpeg", "-i", "in.mp4", "out.mkv"]


# process_queue


def test_process_queue_skips_non_files(tmp_path, progress, logger):
    missing = str(tmp_path / "missing.mp4")
    failed = []
    queue = deque([missing])
    process_queue(queue, Options(output="x.{{ext}}"), progress, logger, failed, 0)
    assert failed == []
    assert len(queue) == 0
    assert "doesn't appear to be a file" in _log_text(logger)
    assert missing in _log_text(logger)


def test_process_queue_stops_on_existing_output(tmp_path, progress, logger):
    source = tmp_path / "a.mp4"
    source.write_bytes(b"data")
    existing = tmp_path / "a_out.mp4"
    existing.write_bytes(b"old")
    other = tmp_path / "b.mp4"
    other.write_bytes(b"data")
    options = Options(output=str(tmp_path / "{{name}}_out.{{ext}}"))
    queue = deque([str(other), str(source)])
    failed = []
    process_queue(queue, options, progress, logger, failed, 1)
    assert failed == [str(existing)]
    assert list(queue) == [str(other)]
    assert existing.read_bytes() == b"old"


def test_process_queue_success_deletes_source(tmp_path, progress, logger):
    source = tmp_path / "a.mp4"
    source.write_bytes(b"data")
    options = Options(output=str(tmp_path / "out" / "{{name}}.mkv"), delete=True)
    failed = []
    done = subprocess.CompletedProcess([], 0, stdout=None, stderr=b"")
    with patch("ffzap.cli.subprocess.run", return_value=done) as fake_run:
        process_queue(deque([str(source)]), options, progress, logger, failed, 0)
    command = fake_run.call_args.args[0]
    assert command == ["ffmpeg", "-i", str(source), str(tmp_path / "out" / "a.mkv")]
    assert (tmp_path / "out").is_dir()
    assert not source.exists()
    assert failed == []
    assert progress.value() == 1
    assert "Success, saving to" in _log_text(logger)


def test_process_queue_failure_keeps_source(tmp_path, progress, logger):
    source = tmp_path / "a.mp4"
    source.write_bytes(b"data")
    options = Options(output=str(tmp_path / "{{name}}.mkv"), delete=True)
    failed = []
    broken = subprocess.CompletedProcess([], 1, stdout=None, stderr=b"boom")
    with patch("ffzap.cli.subprocess.run", return_value=broken):
        process_queue(deque([str(source)]), options, progress, logger, failed, 0)
    assert failed == [str(source)]
    assert source.exists()
    assert progress.value() == 0
    text = _log_text(logger)
    assert "boom" in text
    assert "Keeping the file due to the error above" in text


def test_process_queue_ffmpeg_missing(tmp_path, progress, logger, capsys):
    source = tmp_path / "a.mp4"
    source.write_bytes(b"data")
    options = Options(output=str(tmp_path / "{{name}}.mkv"))
    failed = []
    with patch("ffzap.cli.subprocess.run", side_effect=FileNotFoundError("ffmpeg")):
        process_queue(deque([str(source)]), options, progress, logger, failed, 3)
    assert failed == []
    assert progress.value() == 0
    assert "There was an error running ffmpeg" in capsys.readouterr().err


# run and main


def test_run_reports_summary(tmp_path, capsys):
    source = tmp_path / "a.mp4"
    source.write_bytes(b"data")
    options = Options(
        output=str(tmp_path / "out" / "{{name}}.mkv"),
        input=[str(source)],
        log_dir=tmp_path / "logs",
    )
    done = subprocess.CompletedProcess([], 0, stdout=None, stderr=b"")
    with patch("ffzap.cli.subprocess.run", return_value=done):
        failed = run(options)
    assert failed == []
    out = capsys.readouterr().out
    assert "1 out of 1 files have been successful" in out
    assert str(tmp_path / "logs") in out


def test_run_lists_failures_when_verbose(tmp_path, capsys):
    source = tmp_path / "a.mp4"
    source.write_bytes(b"data")
    list_file = tmp_path / "list.txt"
    list_file.write_text(f"{source}\n", encoding="utf-8")
    options = Options(
        output=str(tmp_path / "{{name}}.mkv"),
        file_list=str(list_file),
        verbose=True,
        thread_count=1,
        log_dir=tmp_path / "logs",
    )
    broken = subprocess.CompletedProcess([], 1, stdout=None, stderr=b"bad input")
    with patch("ffzap.cli.subprocess.run", return_value=broken):
        failed = run(options)
    assert failed == [str(source)]
    out = capsys.readouterr().out
    assert "0 out of 1 files have been successful" in out
    assert "The following files were not processed due to the errors above:" in out
    logs = list((tmp_path / "logs").glob("*.log"))
    assert len(logs) == 1
    assert logs[0].read_text(encoding="utf-8").endswith(str(source))


def test_main_reports_missing_file_list(tmp_path, capsys):
    missing = tmp_path / "missing.txt"
    status = main(["--file-list", str(missing), "-o", "out.{{ext}}"])
    assert status == 1
    assert f"No file found at {missing}." in capsys.readouterr().err