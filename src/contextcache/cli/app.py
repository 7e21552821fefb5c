"""Main Click application root."""

from __future__ import annotations

import asyncio
import logging

import click

from contextcache.core.config import get_core_config, set_core_config
from contextcache.core.config.main import Config
from contextcache.service import AgentContextService


def _service(ctx: click.Context) -> AgentContextService:
    obj = ctx.ensure_object(dict)
    svc = obj.get("service")
    if svc is None:
        svc = obj["service"] = AgentContextService.from_config(get_core_config())
    return svc


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to settings.toml",
)
@click.pass_context
def cli(ctx, verbose, config_path):
    """contextcache CLI - manage agent rules and inspect retrieval."""
    ctx.ensure_object(dict)
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s %(message)s")

    # Suppress verbose HTTP logging from provider clients
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("google.genai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    # Defaults < TOML < env; `.env` is auto-detected in the working directory.
    set_core_config(Config.load(config_path))


@cli.group()
def rules():
    """Agent rule management."""


@rules.command("add")
@click.argument("agent_id")
@click.argument("content")
@click.option("--tag", "tags", multiple=True, help="Tag (repeatable)")
@click.pass_context
def add_rule(ctx, agent_id, content, tags):
    """Embed and store a new rule."""
    result = asyncio.run(_service(ctx).writer.upsert(agent_id, content, list(tags)))
    if not result.ok:
        raise click.ClickException(f"{result.error} ({result.code})")
    click.echo(result.id)


@rules.command("update")
@click.argument("agent_id")
@click.argument("rule_id")
@click.option("--content", default=None, help="New rule text")
@click.option("--tag", "tags", multiple=True, help="Replace tags (repeatable)")
@click.pass_context
def update_rule(ctx, agent_id, rule_id, content, tags):
    """Update a rule's text and/or tags (re-embeds the content)."""
    result = asyncio.run(
        _service(ctx).writer.update(
            agent_id, rule_id, content=content, tags=list(tags) if tags else None
        )
    )
    if not result.ok:
        raise click.ClickException(f"{result.error} ({result.code})")
    click.echo(result.id)


@rules.command("list")
@click.argument("agent_id")
@click.pass_context
def list_rules(ctx, agent_id):
    """List an agent's rules (priority first)."""
    for rule in asyncio.run(_service(ctx).writer.list_rules(agent_id)):
        state = "on " if rule.enabled else "off"
        tags = ",".join(rule.tags)
        click.echo(f"{rule.id}  [{state}] p={rule.priority}  {rule.content}  {{{tags}}}")


@rules.command("delete")
@click.argument("agent_id")
@click.argument("rule_id")
@click.pass_context
def delete_rule(ctx, agent_id, rule_id):
    """Delete a rule."""
    if not asyncio.run(_service(ctx).writer.delete(agent_id, rule_id)):
        raise click.ClickException("rule not found")


def _toggle(ctx, agent_id: str, rule_id: str, enabled: bool) -> None:
    if not asyncio.run(_service(ctx).writer.set_enabled(agent_id, rule_id, enabled)):
        raise click.ClickException("rule not found")


@rules.command("enable")
@click.argument("agent_id")
@click.argument("rule_id")
@click.pass_context
def enable_rule(ctx, agent_id, rule_id):
    """Enable a rule for retrieval."""
    _toggle(ctx, agent_id, rule_id, True)


@rules.command("disable")
@click.argument("agent_id")
@click.argument("rule_id")
@click.pass_context
def disable_rule(ctx, agent_id, rule_id):
    """Exclude a rule from retrieval."""
    _toggle(ctx, agent_id, rule_id, False)


@rules.command("search")
@click.argument("agent_id")
@click.argument("query")
@click.option("--limit", type=int, default=None, help="Max rules to return")
@click.pass_context
def search_rules(ctx, agent_id, query, limit):
    """Show the rules retrieval would inject for QUERY."""
    hits = asyncio.run(_service(ctx).retriever.retrieve(agent_id, query, limit))
    if not hits:
        click.echo("(no matching rules)")
    for hit in hits:
        score = f"{hit.similarity:.3f}" if hit.similarity is not None else "-"
        click.echo(f"{score}  {hit.id}  {hit.content}")
