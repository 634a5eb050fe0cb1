# ffzap

Run ffmpeg on many files at once. If ffmpeg can do it, ffzap can do it, with as
many files in parallel as your system can handle.

ffzap does no media processing of its own: it starts the `ffmpeg` program once
per file, so `ffmpeg` must be installed and available on your `PATH`.

## Installation

```
pip install .
```

## Usage

```
ffzap -i FILE [FILE ...] -o PATTERN [options]
ffzap --file-list LIST.txt -o PATTERN [options]
```

Give the input files with `-i/--input`, or with `--file-list`, which names a
UTF-8 text file holding one path per line. You must use exactly one of the two.

### Options

| Option | Meaning |
| --- | --- |
| `-t, --thread-count N` | Number of worker threads, 1 to 65535. Default 2. |
| `-f, --ffmpeg-options "..."` | Options passed on to ffmpeg, split on single spaces. The value may start with a hyphen. |
| `-i, --input FILE ...` | Files to process. |
| `--file-list PATH` | A file listing the paths to process, one per line. |
| `-o, --output PATTERN` | Output path pattern (required). |
| `--overwrite` | Let ffmpeg overwrite existing output files (adds `-y`). |
| `--verbose` | Print log lines above the progress bar while running. |
| `--delete` | Delete each source file after it was processed successfully. |
| `--eta` | Show an experimental ETA in the progress bar. |
| `-V, --version` | Print the version and exit. |

For each file, ffzap runs `ffmpeg -i INPUT [ffmpeg options] OUTPUT [-y]`.

### Output patterns

The output pattern can contain these placeholders:

- `{{dir}}`: the directory part of the input path, e.g. `./path/to` for `./path/to/file.mp4`
- `{{name}}`: the input file's name without extension
- `{{ext}}`: the input file's extension, without the dot
- `{{parent}}`: the name of the directory that holds the input file

Missing output directories are created as needed. Input paths that are not
files are skipped, and input files without an extension are counted as failed.

If an output file already exists and `--overwrite` is not given, the file is
counted as failed and the worker thread that met it stops taking new files.

### Examples

Convert every PNG in the current directory to JPEG with four threads:

```
ffzap -i *.png -o "{{name}}.jpg" -t 4
```

Re-encode videos into `/destination`, keeping the original layout and adding a
suffix to the name:

```
ffzap -i videos/*.mkv -f "-c:v libx264 -crf 23" -o "/destination/{{dir}}/{{name}}_transcoded.{{ext}}"
```

## Logs

Each run writes a detailed log named after the start time into a per-user log
directory (`ffzap.logger.default_log_dir()`): the user cache directory on Linux,
`~/Library/Logs/ffzap` on macOS, and the local application data directory on
Windows. Its path is printed when the run finishes, along with how many files
succeeded. Files that failed are listed at the end of the log, and printed too
when `--verbose` is given.

If the file given to `--file-list` cannot be read, ffzap prints the reason and
exits with status 1.

## Use from Python

The command is built from a few parts that can be used directly:

- `ffzap.cli.parse_args(argv)` turns arguments into an `Options` dataclass, and
  `ffzap.cli.run(options)` processes the files and returns the paths that failed.
- `ffzap.cli.build_output_path(pattern, path)` fills in the placeholders above,
  and `ffzap.cli.build_command(...)` gives the ffmpeg command line for one file.
- `ffzap.cli.read_file_list(path)` reads a path list, raising `FileListError`.
- `ffzap.progress.Progress` is a thread-safe progress bar and
  `ffzap.logger.Logger` a thread-safe per-run log file (a context manager).