# devshield

devshield runs a set of external security scanners over a project
directory and collects what they find into one normalised list of
findings. It writes that list as SARIF 2.1.0, JSON and a self-contained
HTML report, and exits with status 1 when any unsuppressed finding
reaches the severity threshold you chose, so it can serve as a single
gate in a CI pipeline.

## Installation

```
pip install .
```

Install the test dependencies with `pip install ".[test]"`.

## Scanners

The scanners are external programs. A scanner takes part only if its
program can be found on `PATH`; devshield does not install them for you.

| Scanner  | Category | Program   | What it is run as                                 |
|----------|----------|-----------|---------------------------------------------------|
| semgrep  | `sast`   | `semgrep` | `semgrep scan --config auto --json --quiet <path>` |
| tfsec    | `iac`    | `tfsec`   | `tfsec <path> --format json --no-color`           |
| trivy    | `sca`    | `trivy`   | `trivy fs <path> --scanners vuln --format json --quiet` |

Each tool's JSON output is turned into findings with an ID, a severity,
a file and line where the tool gives one, and a SHA-256 fingerprint. A
scanner that fails or times out is recorded with its error in the
reports; the others still run.

## Usage

Scan the current directory:

```
devshield scan
```

Scan another path and fail only on critical findings:

```
devshield scan path/to/project --fail-on critical
```

Run only some categories, or leave some out:

```
devshield scan --only sast,sca
devshield scan --skip iac
```

Show the devshield version, the Python version and platform, and every
registered scanner with its tool version and whether it is available:

```
devshield version
```

The same commands are reachable as `python -m devshield.cli`.

### Options

| Option           | Default                 | Meaning                                                       |
|------------------|-------------------------|---------------------------------------------------------------|
| `--output-dir`   | `.devshield-reports`    | Directory the reports are written to (created if missing)     |
| `--format`       | `sarif,html,json`       | Comma-separated report formats                                |
| `--fail-on`      | `high`                  | Lowest severity that fails the run: critical, high, medium, low, info; anything else counts as info |
| `--timeout`      | `5m`                    | Time limit per scanner, e.g. `90s`, `5m`, `1h30m`, `250ms`    |
| `--concurrency`  | half the CPU count (at least 1) | How many scanners run at once                         |
| `--only`         |                         | Run only these categories (comma-separated, `scan` only)      |
| `--skip`         |                         | Skip these categories (comma-separated, `scan` only)          |
| `--full`         | off                     | Accepted by `scan`; it does not change which scanners run     |
| `--no-tui`       | off                     | Print a line as each scanner starts and finishes, even on a terminal |
| `--debug`        | off                     | Verbose logging to stderr                                     |

When standard output is not a terminal, the per-scanner progress lines
are always printed. On a terminal without `--no-tui`, the scanners run
without progress lines and only the final summary is printed.

After the scan devshield prints the counts per severity and the report
directory. Errors, including a run that fails the threshold, are printed
as `Error: ...` on stderr and give exit status 1.

## Reports

Reports are written as `devshield.sarif`, `devshield.json` and
`devshield.html` inside the output directory. Format names are matched
case-insensitively; unknown formats are skipped with a warning.

- **SARIF**: one run per tool, with its rules, result levels
  (`error` for critical and high, `warning` for medium, `note` for low
  and info), locations, a `devshield/v1` partial fingerprint, and an
  `inSource` suppression on suppressed results. With no findings at all
  the log holds a single empty `devshield` run.
- **JSON**: the whole scan result: version, timestamp, duration, project
  path, detected context, summary, tools used and every finding.
- **HTML**: a standalone page with summary cards, the tools that ran and
  a table of the findings that are not suppressed.

## Project detection

Before scanning, devshield walks the target directory and records the
languages in use (by file extension), Terraform files (`.tf`, `.tfvars`,
`.tf.json`), Docker and Compose files (`Dockerfile`, `Containerfile`,
`docker-compose.yml`, `compose.yaml`, ...), Kubernetes manifests (YAML
files with both `apiVersion:` and `kind:` in their first 30 lines), and a
`.git` directory with the URL of its `origin` remote. Directories named
`.git`, `node_modules`, `vendor`, `__pycache__`, `.venv`, `venv`, `.tox`,
`.terraform` and `.devshield-reports` are not walked.

## Severities

Every finding carries one of five severities, from highest to lowest:
`critical`, `high`, `medium`, `low`, `info`. A severity meets a
threshold when it is at least as severe.

## Suppressing findings

Put a `.devshield-ignore` file in the root of the scanned project. Each
line names a finding by its fingerprint or its ID, optionally followed by
a comment carrying a reason and an expiry date (`YYYY-MM-DD`):

```
# Known test fixture
3f2a9c0d1e4b # reason: Test fixture expires: 2099-12-31
semgrep:python.lang.security.audit.eval:app.py:12 # reason: Reviewed, input is constant
```

Suppressed findings stay in the JSON and SARIF reports, marked as
suppressed, but are left out of the summary, the HTML table and the exit
status. A suppression whose expiry date has passed is ignored.

## Using it as a library

- `devshield.schema` holds `Finding`, `ScanResult`, `ScanContext`,
  `Severity`, `Category`, `Language`, `compute_summary`,
  `parse_severity`, `all_severities` and `all_categories`.
  `ScanResult.to_dict` / `from_dict` give the JSON form.
- `devshield.detect.detect_context(root_path, exclude, timeout)` builds a
  `ScanContext` for a directory; `exclude` is a list of shell patterns
  matched against each file's relative path and its base name.
- `devshield.scanner` is the scanner registry: `register`, `get`,
  `all_scanners`, `available`, `names`, `reset`. Registering a name
  twice raises `DuplicateScannerError`.
- `devshield.suppress.SuppressionEngine(root_path, config_suppressions)`
  reads `.devshield-ignore` and extra `ConfigSuppression` entries;
  `apply(findings)` marks the matching findings.
- `devshield.runner.run_scanners(scanners, context, max_concurrency)`
  runs scanners in parallel and returns their findings and `ToolInfo`
  records.
- `devshield.report.generate.generate(result, output_dir, formats)`
  writes the requested formats and returns the paths written, raising
  `ReportError` on failure. The single writers are
  `devshield.report.json_report.write_json`,
  `devshield.report.sarif.write_sarif` (and `build_sarif`) and
  `devshield.report.html.write_html` (and `render_html`).

A new scanner subclasses `devshield.scanner.Scanner`, sets the class
attributes `name` and `category`, implements `is_available`, `version`
and `scan`, and is added with `devshield.scanner.register`.

## What it does not do

- There is no configuration file and no `init` command: everything is
  set on the command line. Exclude patterns and config-style
  suppressions are available only through the library.
- There is no built-in secrets scanner; the `secrets` category exists
  but no scanner uses it.
- There is no `install` command, although the message printed when no
  scanner is available mentions one; install the tools yourself.
- There is no interactive screen; on a terminal the scan simply runs
  and prints its summary.
- JUnit output is not produced.