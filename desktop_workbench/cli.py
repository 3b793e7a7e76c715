import json
import logging
import platform
from typing import Optional

import click

from .agent import Agent
from .config import Settings
from .connectors import get_connector
from .connectors.sim import SimConnector, SimElement
from .errors import WorkbenchError
from .items import sequential_ids
from .llm import build_provider
from .serializers import FORMATS
from .session import WorkbenchSession


def _session(settings: Settings, os_override: Optional[str], depth: Optional[int], fmt: Optional[str], id_factory=None) -> WorkbenchSession:
    try:
        connector = get_connector(os_override or settings.os_override)
    except RuntimeError as e:
        raise click.ClickException(str(e))
    return WorkbenchSession(
        connector,
        max_depth=depth if depth is not None else settings.max_depth,
        fmt=fmt or settings.format,
        id_factory=id_factory,
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log scans and dispatch to stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Accessibility-tree workbench: snapshot the desktop and drive it with a language model"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = Settings.from_env()


@cli.command()
@click.pass_obj
def info(settings: Settings) -> None:
    system = platform.system()
    out = {"platform": system, "connector": (settings.os_override or system).lower(), "settings": settings.to_public_dict()}
    if out["connector"] == "darwin":
        from .ax import AXFinder

        finder = AXFinder()
        out["accessibilityEnabled"] = finder.is_accessibility_enabled()
        out["frontmostApp"] = finder.get_frontmost_app_bundle_id()
    click.echo(json.dumps(out, indent=2))


@cli.command()
@click.option("--os", "os_override", type=str, default=None, help="Force platform: sim|darwin|windows")
@click.option("--depth", type=int, default=None, help="Maximum tree depth")
@click.option("--format", "fmt", type=click.Choice(FORMATS), default=None)
@click.option("--full", is_flag=True, default=False, help="Print the uncompacted tree")
@click.option("--scope", "scope_id", type=str, default=None, help="Only print the subtree of this item id")
@click.pass_obj
def scan(settings: Settings, os_override: Optional[str], depth: Optional[int], fmt: Optional[str], full: bool, scope_id: Optional[str]) -> None:
    session = _session(settings, os_override, depth, fmt)
    session.scan()
    try:
        click.echo(session.context(scope_id=scope_id, compact_tree=not full))
    except KeyError as e:
        raise click.ClickException(e.args[0])


@cli.command()
@click.argument("instruction", type=str)
@click.option("--provider", type=str, default=None, help="openai|lmstudio|xai|anthropic|local")
@click.option("--model", type=str, default=None)
@click.option("--api-key", type=str, default=None)
@click.option("--base-url", type=str, default=None)
@click.option("--os", "os_override", type=str, default=None, help="Force platform: sim|darwin|windows")
@click.option("--depth", type=int, default=None)
@click.option("--format", "fmt", type=click.Choice(FORMATS), default=None)
@click.option("--execute/--no-execute", default=False, help="Run the extracted actions")
@click.pass_obj
def ask(settings: Settings, instruction: str, provider: Optional[str], model: Optional[str], api_key: Optional[str], base_url: Optional[str], os_override: Optional[str], depth: Optional[int], fmt: Optional[str], execute: bool) -> None:
    model = model or settings.model
    try:
        llm = build_provider(provider or settings.provider, model, api_key=api_key or settings.api_key, base_url=base_url or settings.base_url)
    except (RuntimeError, ValueError) as e:
        raise click.ClickException(str(e))
    session = _session(settings, os_override, depth, fmt)
    agent = Agent(session, llm, model=model)
    try:
        out = agent.run(instruction, auto_execute=execute)
    except WorkbenchError as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(out, indent=2))


@cli.command()
@click.argument("reply_file", type=click.File("r", encoding="utf-8"))
@click.option("--os", "os_override", type=str, default=None, help="Force platform: sim|darwin|windows")
@click.option("--sim-tree", type=click.File("r", encoding="utf-8"), default=None, help="JSON desktop for the simulated connector")
@click.option("--depth", type=int, default=None)
@click.option("--execute/--no-execute", default=False)
@click.pass_obj
def parse(settings: Settings, reply_file, os_override: Optional[str], sim_tree, depth: Optional[int], execute: bool) -> None:
    """Extract actions from a saved model reply against a fresh scan."""
    ids = sequential_ids()
    if sim_tree is not None:
        try:
            root = SimElement.from_dict(json.load(sim_tree))
        except (json.JSONDecodeError, ValueError, AttributeError) as e:
            raise click.ClickException(f"--sim-tree is not a valid desktop: {e}")
        session = WorkbenchSession(SimConnector(root), max_depth=depth if depth is not None else settings.max_depth, id_factory=ids)
    else:
        session = _session(settings, os_override, depth, None, id_factory=ids)
    snap = session.scan()
    commands, errors = session.extract_actions(reply_file.read())
    out = {
        "generation": snap.generation,
        "actions": [c.to_dict() for c in commands],
        "errors": errors,
    }
    if execute and commands:
        out["outcomes"] = [o.to_dict() for o in session.execute(commands)]
    click.echo(json.dumps(out, indent=2))


if __name__ == "__main__":
    cli()
