# cli.py
import asyncio
import os
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv

from backend.container import Container
from backend.core.hooks import HookManager
from plugins import core_assets, core_persistence
from plugins.core_assets.contracts import AssetsOptions, RequestContext
from plugins.core_assets.errors import AssetsError
from plugins.core_assets.file_gateway import FileGateway

app = typer.Typer(name="assets", help="Asset Engine Command-Line Interface")


def _build_options(
    root_dir: Optional[Path],
    allowed_files: Optional[List[str]],
    disk: bool,
) -> AssetsOptions:
    options = AssetsOptions.from_env()
    updates = {}
    if root_dir is not None:
        updates["root_directory"] = root_dir
    if allowed_files:
        updates["allowed_files"] = allowed_files
    if disk:
        updates["search_on_disk_if_not_found_in_store"] = True
    return options.model_copy(update=updates)


def _build_container(options: AssetsOptions) -> Container:
    container = Container()
    hook_manager = HookManager(container)
    container.register("container", lambda: container)
    container.register("hook_manager", lambda: hook_manager)

    core_persistence.register_plugin(container, hook_manager)
    core_assets.register_plugin(container, hook_manager)
    # 命令行参数优先于环境变量
    container.register("assets_options", lambda: options)
    return container


async def _expand(container: Container, text: str, principal: Optional[str]) -> str:
    await container.resolve("asset_store").initialize()
    evaluator = container.resolve("asset_evaluator")
    return await evaluator.expand(text, RequestContext(principal=principal))


@app.command("expand")
def expand_template(
    template: Path = typer.Argument(..., exists=True, dir_okay=False, help="Template file containing {#asset ...} directives."),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Asset store directory. Defaults to ASSETS_DATA_DIR."),
    root_dir: Optional[Path] = typer.Option(None, "--root-dir", help="Base directory for relative links."),
    allowed_files: Optional[List[str]] = typer.Option(None, "--allowed-files", "-a", help="Glob pattern of linkable files (repeatable)."),
    disk: bool = typer.Option(False, "--disk", help="Search on disk when an asset is not in the store."),
    principal: Optional[str] = typer.Option(None, "--principal", "-p", help="Resolve assets as this principal."),
):
    """
    Expands every asset directive in TEMPLATE and prints the result.
    """
    if data_dir is not None:
        os.environ["ASSETS_DATA_DIR"] = str(data_dir)

    container = _build_container(_build_options(root_dir, allowed_files, disk))
    text = template.read_text(encoding="utf-8")
    try:
        result = asyncio.run(_expand(container, text, principal))
    except AssetsError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(result, nl=False)


@app.command("check-link")
def check_link(
    link: str = typer.Argument(..., help="Path an asset would link to."),
    root_dir: Optional[Path] = typer.Option(None, "--root-dir", help="Base directory for relative links."),
    allowed_files: Optional[List[str]] = typer.Option(None, "--allowed-files", "-a", help="Glob pattern of linkable files (repeatable)."),
):
    """
    Prints the absolute path LINK resolves to, or fails if the allow-list denies it.
    """
    gateway = FileGateway(_build_options(root_dir, allowed_files, disk=False))
    try:
        typer.echo(str(gateway.link_path(link)))
    except AssetsError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    load_dotenv()
    app()
