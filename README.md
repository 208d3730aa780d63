# gilbert

Building blocks of a task runner: job run contexts, variable scopes, an
action handler registry, tracking of background jobs, shell helpers, storage
paths and plugin sources that fetch or build plugin files.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `gilbert.job`
  - `RunContext` carries a job's variables (`root_vars`), logger (`log`),
    cancellation token (`context`) and result queue (`errors`).
  - `result(error)` delivers only the first result. It also marks the
    optional `wait_group` as done.
  - `success()` reports `None` as the result.
  - `timeout(seconds)` cancels the job if it is still running after the given
    number of seconds.
  - `child_context()` gives a child context with its own result queue and a
    child cancellation token. `fork_context()` shares both with its parent.
  - `CancelToken` (with `cancel`, `child`, `wait` and `cancelled`) and
    `WaitGroup` (with `add`, `done` and `wait`) are the primitives it is built on.
- `gilbert.scope`
  - `Scope` holds global variables (`global_vars`) and local variables
    (`variables`).
  - `Scope.create(parser, project_directory, variables)` predefines the
    globals `PROJECT`, `BUILD` (which is `<project>/build`) and `GOPATH`.
  - `var(name)` returns `(is_local, value)` and raises `KeyError` when the name
    is undefined.
  - `expand_variables(text)` and `scan(*texts)` pass text to the parser the
    scope was given, through a `ScopeExprAdapter`. Without a parser they raise
    `ScopeError`.
  - `ScopeExprAdapter.eval_command` runs a shell command in the project
    directory with the scope's variables in its environment. It returns the
    combined output and raises `ProcessError` on failure.
- `gilbert.handlers`
  - `ActionHandler` is the abstract base of actions, with `call` and `cancel`.
  - `HandlerSet` maps action names to handler factories.
  - `handle_func` raises `HandlerAlreadyRegisteredError` for a name that is
    already taken.
  - `get_handler` raises `HandlerNotFoundError` for an unknown name.
- `gilbert.asyncjobs`
  - `AsyncJobTracker` binds run contexts to a shared wait group and result
    queue (`decorate_job_context`).
  - `track_async_jobs` logs an error result.
  - `wait` blocks until every tracked job has reported.
- `gilbert.shell`
  - `prepare_command(command)` returns keyword arguments for `subprocess` that
    run the command through `/bin/sh -c` in a new session, or through `cmd.exe /C`
    on Windows.
  - `kill_process_group(process)` kills such a process with its group.
  - `format_exit_error(error)` turns a failure into a `ProcessError`.
  - `Environment` is a dict of variables with `empty()` and `to_array()`.
- `gilbert.storage`
  - `path(storage_type, *parts)` gives paths under the storage root. The root is
    `~/.gilbert`, or the value of the `GILBERT_HOME` environment variable, which
    is remembered once read.
  - `local_path` gives paths under `./.gilbert` in the current directory.
  - `delete` removes an item if it exists.
  - `StorageType` is `ROOT` or `PLUGINS`. Any other type raises `StorageError`.
- `gilbert.pluginsupport`
  - `add_plugin_extension` adds `.so` on Linux and macOS, adds `.exe` on
    Windows, and adds nothing elsewhere.
  - `build_mode()` returns `"plugin"` or `"exe"`.
  - `PLUGIN_PERMISSIONS` is `0o755`.
- `gilbert.web`
  - `progress_download_file(session, uri, destination)` downloads to
    `<destination>.tmp` with a `tqdm` progress bar, then moves the file into
    place.
  - It raises `DownloadError` on a failed request, a status other than 200, or
    a failed write.
- Plugin sources. Each returns the local path of a plugin file.
  - `gilbert.github.get_plugin` reads `github://host/owner/repo`.
    - It downloads the release asset named `<repo>_<os>-<arch>` plus the
      platform extension into the plugins store, unless the asset is already
      there.
    - The `version` query picks a release tag. The default is the latest
      release.
    - The `token` query is sent as a bearer token.
    - Hosts other than `github.com` are treated as GitHub Enterprise. For them,
      the `protocol` query picks the scheme and any extra leading path segments
      become part of the base URL.
    - Failures raise `GitHubError`.
  - `gilbert.httpsource.get_plugin` downloads an `http`/`https` URL into
    `plugins/http/<md5 of url>/` in the store, unless the file is already there.
  - `gilbert.gopkg.get_plugin` handles `go://path/to/package`.
    - It runs `go build -buildmode <mode> -o <file> .` in the package directory.
      The output goes under `./.gilbert/plugins/<md5>/`.
    - A cached build is reused unless the URL has `?rebuild=true`.
    - Failures raise `BuildError`.
  - `gilbert.plugins.import_plugin(url)` dispatches on the URL scheme: `file`,
    `github`, `http`, `https` or `go`. It then hands the path to `load_plugin`.
    Every failure is raised as `PluginError`.

## Example

```python
from gilbert.handlers import HandlerSet, HandlerNotFoundError

handlers = HandlerSet({})
handlers.handle_func("build", lambda scope, params: ...)

try:
    handlers.get_handler("deploy")
except HandlerNotFoundError as err:
    print(err)  # no such action handler: "deploy"
```

```python
from gilbert.storage import StorageType, path

print(path(StorageType.PLUGINS, "github"))
```

## What the package does not do

- There is no task runner. Nothing reads a manifest of tasks, jobs and mixins
  or executes them in order. The pieces above are what such a runner would use.
- There is no command-line program.
- No expression parser is included. `Scope.expand_variables` and `Scope.scan`
  need a parser object with a `read_string(ctx, text)` method, supplied by the
  caller.
- Plugin files can be fetched and built, but not loaded. `load_plugin` always
  raises `PluginError`, so `import_plugin` fails once the plugin file has been
  obtained.