"""Command line interface for websight."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Awaitable, Optional, TypeVar

import typer
from rich.console import Console

from .browser.discovery import PageDetector
from .config import WebsightConfig, load_config
from .tool import ToolRequest, WebsightTool

app = typer.Typer(help="Inspect, drive and diff web pages from the command line")
console = Console()

T = TypeVar("T")

_FAILURE_PREFIXES = ("FAILED", "Error:", "Unknown action", "Missing required", "No baseline")

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to YAML configuration."),
]
EnvFileOption = Annotated[
    Optional[Path],
    typer.Option("--env-file", help="Path to an .env file with default configuration values."),
]
UrlOption = Annotated[
    Optional[str],
    typer.Option("--url", "-u", help="Page to open. Detected automatically when omitted."),
]
OutputDirOption = Annotated[
    Optional[Path],
    typer.Option("--output-dir", "-o", help="Directory for snapshots, screenshots and reports."),
]
HeadlessOption = Annotated[
    Optional[bool],
    typer.Option("--headless/--headed", help="Run a launched browser headless (or visible)."),
]
CdpOption = Annotated[
    Optional[bool],
    typer.Option("--cdp/--no-cdp", help="Attach to a running browser with remote debugging."),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("websight"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


def _load(
    config_path: Optional[Path],
    env_file: Optional[Path],
    *,
    output_dir: Optional[Path] = None,
    headless: Optional[bool] = None,
    prefer_cdp: Optional[bool] = None,
) -> WebsightConfig:
    overrides: dict[str, Any] = {}
    if output_dir is not None:
        overrides["output_dir"] = str(output_dir)
    if headless is not None or prefer_cdp is not None:
        overrides.setdefault("browser", {})
        if headless is not None:
            overrides["browser"]["headless"] = headless
        if prefer_cdp is not None:
            overrides["browser"]["prefer_cdp"] = prefer_cdp
    return load_config(config_path, env_file=env_file, **overrides)


async def _cancel_on_sigterm(awaitable: Awaitable[T]) -> T:
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(awaitable)
    installed = False
    with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
        # Unsupported on Windows and outside the main thread.
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
        installed = True
    try:
        return await task
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGTERM)


def _dispatch(config: WebsightConfig, request: ToolRequest) -> str:
    async def run() -> str:
        tool = WebsightTool(config)
        try:
            return await tool.dispatch(request)
        finally:
            await tool.close()

    try:
        return asyncio.run(_cancel_on_sigterm(run()))
    except asyncio.CancelledError:
        console.print("Interrupted, browser session closed", style="yellow")
        raise typer.Exit(code=143) from None


def _emit(text: str) -> None:
    failed = text.lstrip().startswith(_FAILURE_PREFIXES)
    style = "red" if failed else None
    console.print(text, style=style, markup=False, highlight=False, soft_wrap=True)
    if failed:
        raise typer.Exit(code=1)


@app.command()
def look(
    url: UrlOption = None,
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    output_dir: OutputDirOption = None,
    headless: HeadlessOption = None,
    cdp: CdpOption = None,
) -> None:
    """Analyze a page and print its layout and theme report."""

    config = _load(config_path, env_file, output_dir=output_dir, headless=headless, prefer_cdp=cdp)
    _emit(_dispatch(config, ToolRequest(action="look", url=url)))


@app.command()
def baseline(
    url: UrlOption = None,
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    output_dir: OutputDirOption = None,
    headless: HeadlessOption = None,
    cdp: CdpOption = None,
) -> None:
    """Analyze a page and save it as the baseline for later diffs."""

    config = _load(config_path, env_file, output_dir=output_dir, headless=headless, prefer_cdp=cdp)
    _emit(_dispatch(config, ToolRequest(action="baseline", url=url)))


@app.command()
def diff(
    url: UrlOption = None,
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    output_dir: OutputDirOption = None,
    headless: HeadlessOption = None,
    cdp: CdpOption = None,
) -> None:
    """Compare the page against the saved baseline."""

    config = _load(config_path, env_file, output_dir=output_dir, headless=headless, prefer_cdp=cdp)
    _emit(_dispatch(config, ToolRequest(action="diff", url=url)))


@app.command()
def act(
    action: Annotated[str, typer.Argument(help="Interaction to run, e.g. click or getValue.")],
    target: Annotated[
        Optional[str], typer.Option("--target", "-t", help="Element reference.")
    ] = None,
    text: Annotated[Optional[str], typer.Option("--text", help="Text to type.")] = None,
    value: Annotated[Optional[str], typer.Option("--value", help="Option value to select.")] = None,
    direction: Annotated[
        Optional[str], typer.Option("--direction", help="Scroll direction: up, down, top, bottom.")
    ] = None,
    key: Annotated[Optional[str], typer.Option("--key", help="Key to press.")] = None,
    attribute: Annotated[
        Optional[str], typer.Option("--attribute", help="Attribute to read.")
    ] = None,
    timeout: Annotated[
        Optional[float], typer.Option("--timeout", help="Seconds to wait for an element.")
    ] = None,
    path: Annotated[Optional[str], typer.Option("--path", help="Screenshot destination.")] = None,
    fast: Annotated[bool, typer.Option("--fast", help="Use the fast capture path.")] = False,
    url: UrlOption = None,
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    headless: HeadlessOption = None,
    cdp: CdpOption = None,
) -> None:
    """Run a single interaction against a page."""

    config = _load(config_path, env_file, headless=headless, prefer_cdp=cdp)
    request = ToolRequest(
        action=action,
        target=target,
        text=text,
        value=value,
        direction=direction,
        key=key,
        attribute=attribute,
        timeout=timeout,
        path=path,
        fast=fast,
        url=url,
    )
    _emit(_dispatch(config, request))


@app.command()
def detect(
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
) -> None:
    """Show which page would be analyzed when no URL is given."""

    config = _load(config_path, env_file)
    detector = PageDetector(config.discovery, cdp_ports=config.browser.cdp_ports)
    detected = asyncio.run(detector.detect())
    console.print(
        f"{detected.url} ({detected.describe()})", style="green", highlight=False, soft_wrap=True
    )


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="Binding address for the HTTP service."),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", help="HTTP port for the service."),
    ] = None,
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    headless: HeadlessOption = None,
    cdp: CdpOption = None,
) -> None:
    """Serve the tool over HTTP with a long-lived browser session."""

    import uvicorn

    from .service import create_app

    config = _load(config_path, env_file, headless=headless, prefer_cdp=cdp)
    uvicorn.run(
        create_app(config),
        host=host or config.service.host,
        port=port or config.service.port,
    )


if __name__ == "__main__":
    app()
