"""Cyclopts CLI entrypoint for rendering templates and inspecting selectors.

The ``codeless`` console script renders an HTML template with a YAML or JSON
data stack (``codeless render``) and shows the XPath a selector compiles to
(``codeless query``). Options may also come from ``CODELESS_*`` environment
variables.

Examples
--------
Render a template with a data file and print the result:

>>> from codeless_ui.cli import app
>>> app.run(
...     ["render", "--template", "page.html", "--data", "data.yaml"]
... )  # doctest: +SKIP

Show the compiled query for a selector:

>>> app.run(["query", "ul > li.item"])  # doctest: +SKIP
//ul/li[contains(concat(" ",@class," ")," item ")]
"""

from __future__ import annotations

import dataclasses as dc
import logging
import os
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter
from rich.console import Console
from rich.logging import RichHandler

from .config import RenderConfig, RenderJob, load_data_stack, load_render_job
from .dom.document import LxmlDocument
from .dom.selector import SelectorCompiler, css_to_xpath, split_dialect
from .errors import RenderConfigError
from .ui import CodelessUi

log = logging.getLogger(__name__)

console = Console(stderr=True)

app = App(name="codeless", config=cyclopts.config.Env("CODELESS_", command=False))  # type: ignore[unknown-argument]


def setup_logging(verbose: bool = False) -> None:
    """Configure the ``codeless_ui`` logger.

    Warnings only by default, INFO with ``--verbose`` and DEBUG when
    ``CODELESS_DEBUG`` is set.
    """
    debug = bool(os.environ.get("CODELESS_DEBUG"))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger = logging.getLogger("codeless_ui")
    package_logger.setLevel(level)
    package_logger.handlers = [handler]
    package_logger.propagate = False


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:
            return str(path)
    return str(path)


@app.command(help="Render an HTML template with a data stack.")
def render(
    *,
    template: typ.Annotated[
        Path | None, Parameter(help="HTML template file (or 'template' in --config)")
    ] = None,
    data: typ.Annotated[
        Path | None, Parameter(help="YAML or JSON data stack merged over the config's data")
    ] = None,
    config: typ.Annotated[
        Path | None, Parameter(help="YAML file with defaults, template, data and includes")
    ] = None,
    output: typ.Annotated[
        Path | None, Parameter(help="Write the markup here instead of stdout")
    ] = None,
    reparse: typ.Annotated[
        bool, Parameter(help="Run one more pass over markup inserted by the first")
    ] = False,
    verbose: typ.Annotated[bool, Parameter(help="Log progress at INFO level")] = False,
) -> None:
    """Render a template and print or write the resulting markup.

    Parameters
    ----------
    template : Path or None, optional
        Template file; overrides ``template`` from ``config``.
    data : Path or None, optional
        Data stack file (``.json`` or YAML); its top-level keys replace those
        of the config's ``data`` section.
    config : Path or None, optional
        Render job file holding ``defaults``, ``template``, ``data`` and
        ``includes`` sections.
    output : Path or None, optional
        Destination file; the markup is printed when omitted.
    reparse : bool, optional
        Force ``parse_inserted_data`` on.
    verbose : bool, optional
        Raise the log level to INFO.

    Raises
    ------
    RenderConfigError
        If neither ``--template`` nor the config names a template.
    """
    setup_logging(verbose)
    job = load_render_job(config) if config is not None else RenderJob(RenderConfig())
    if reparse:
        job.config = dc.replace(job.config, parse_inserted_data=True)
    if template is not None:
        job.template = str(template)
    if job.template is None:
        msg = "No template given; pass --template or set 'template' in --config."
        raise RenderConfigError(msg)
    if data is not None:
        job.data = {**job.data, **load_data_stack(data)}

    log.info("Rendering %s with %d top-level bindings", job.template, len(job.data))
    markup = CodelessUi.from_job(job).render()
    if output is None:
        print(markup)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(markup, encoding="utf-8")
    print(f"wrote {_format_path(output)}")


@app.command(help="Print the XPath a selector compiles to.")
def query(
    selector: str,
    *,
    dialect: typ.Annotated[
        str, Parameter(help="Default dialect when the selector has no prefix")
    ] = "css",
    template: typ.Annotated[
        Path | None, Parameter(help="Also print the matches in this template")
    ] = None,
) -> None:
    """Show the compiled query for ``selector`` and, optionally, its matches."""
    kind, body = split_dialect(selector, dialect)
    print(body if kind == "xpath" else css_to_xpath(body))
    if template is None:
        return
    document = LxmlDocument.from_file(template)
    for node in SelectorCompiler(document, dialect).compile(selector):
        print(document.serialize(node))


def main() -> None:
    """Invoke the Cyclopts application behind the ``codeless`` console command."""
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
