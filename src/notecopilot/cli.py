"""CLI entry point for note-copilot."""

import logging
import signal
import threading
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress
from rich.table import Table

from .config import DEFAULT_CONFIG, knowledge_graph_settings, resolve_config_path, save_config
from .errors import CopilotError
from .llm.prompts import DEFAULT_PROMPT_TEMPLATES

console = Console()


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.option("--yes", "-y", is_flag=True, help="Apply changes without asking for confirmation")
@click.pass_context
def cli(ctx, config_path, verbose, yes):
    """note-copilot - Claude-powered writing help and a knowledge graph for your vault."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["yes"] = yes


def _get_context(ctx):
    from .context import CopilotContext
    return CopilotContext.load(ctx.obj.get("config_path"))


def _confirm(ctx, result: str, question: str) -> bool:
    """Show generated text and ask before it is applied."""
    console.print(Panel(escape(result), title="Claude suggestion", border_style="cyan"))
    if ctx.obj.get("yes"):
        return True
    return click.confirm(question, default=True)


@cli.command()
@click.option("--vault", "vault_path", default=None, help="Vault directory")
@click.pass_context
def init(ctx, vault_path):
    """Create a configuration file with the default settings."""
    import copy

    config_file = resolve_config_path(ctx.obj.get("config_path"))
    if config_file.exists():
        console.print(f"[yellow]Config already exists: {config_file}[/]")
        return

    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if vault_path:
        cfg["vault_path"] = str(Path(vault_path).expanduser().resolve())
    Path(cfg["vault_path"]).expanduser().mkdir(parents=True, exist_ok=True)
    save_config(cfg, config_file)

    console.print(f"[bold green]✓ Created config: {config_file}[/]")
    console.print(f"  Vault: {cfg['vault_path']}")
    console.print("  Set claude_api_key in the config or export ANTHROPIC_API_KEY.")


@cli.command()
@click.argument("note", required=False)
@click.option("--stdin", "from_stdin", is_flag=True, help="Read content from stdin and create a new note")
@click.option("--folder", default=None, help="Active folder, used when default_new_file_location is 'current'")
@click.pass_context
def title(ctx, note, from_stdin, folder):
    """Suggest a title for NOTE and rename it to '<date> - <title>'."""
    from .vault.writer import clean_suggested_title

    if not note and not from_stdin:
        raise click.UsageError("Give a NOTE path or --stdin")

    context = _get_context(ctx)
    try:
        if from_stdin:
            ref = None
            content = click.get_text_stream("stdin").read()
            current_title = None
        else:
            ref = context.store.get(note)
            content = context.store.read_body(ref)
            current_title = ref.name

        if not content.strip():
            console.print("[yellow]Note content is empty. Cannot generate title.[/]")
            return

        suggestion = context.assistant().generate_title(content, current_title)
        if not suggestion:
            console.print("[red]Failed to generate note title.[/]")
            return

        new_title = clean_suggested_title(suggestion)
        if not _confirm(ctx, new_title, "Use this title?"):
            return

        writer = context.writer()
        if ref is not None:
            new_ref = writer.rename_with_title(ref, new_title)
            console.print(f"[green]✓ Renamed to {new_ref.path}[/]")
        else:
            new_ref = writer.create_note(new_title, content, active_folder=folder)
            console.print(f"[green]✓ Created {new_ref.path}[/]")
    except CopilotError as e:
        console.print(f"[red]{escape(str(e))}[/]")


def _rewrite_selection(ctx, note, selection, generate, combine, label):
    """Shared flow for commands that replace a selection in a note."""
    context = _get_context(ctx)
    try:
        ref = context.store.get(note)
        body = context.store.read_body(ref)
        selection = selection or body
        if not selection.strip():
            console.print(f"[yellow]No text to {label}.[/]")
            return

        result = generate(context.assistant(), selection)
        if not result:
            console.print(f"[red]Failed to {label} text.[/]")
            return

        if not _confirm(ctx, result, "Apply to the note?"):
            return
        context.writer().replace_selection(ref, selection, combine(selection, result))
        console.print(f"[green]✓ Updated {ref.path}[/]")
    except (CopilotError, ValueError) as e:
        console.print(f"[red]{escape(str(e))}[/]")


@cli.command()
@click.argument("note")
@click.option("--selection", "-s", default=None, help="Text to summarize (default: the whole note)")
@click.pass_context
def summarize(ctx, note, selection):
    """Summarize a selection of NOTE and replace it with the summary."""
    _rewrite_selection(
        ctx, note, selection,
        lambda assistant, text: assistant.summarize(text),
        lambda original, result: result,
        "summarize",
    )


@cli.command()
@click.argument("note")
@click.option("--selection", "-s", default=None, help="Text to expand (default: the whole note)")
@click.pass_context
def expand(ctx, note, selection):
    """Expand a selection of NOTE, appending the new text after it."""
    _rewrite_selection(
        ctx, note, selection,
        lambda assistant, text: assistant.expand(text),
        lambda original, result: f"{original}\n\n{result}",
        "expand",
    )


@cli.command()
@click.argument("name")
@click.argument("note")
@click.option("--selection", "-s", default=None, help="Text to run the prompt on (default: the whole note)")
@click.pass_context
def prompt(ctx, name, note, selection):
    """Run the custom prompt NAME on NOTE and insert the result after the text."""
    def _generate(assistant, text):
        try:
            return assistant.run_custom_prompt(name, text)
        except KeyError:
            raise click.UsageError(f"Unknown custom prompt: {name}")

    _rewrite_selection(
        ctx, note, selection,
        _generate,
        lambda original, result: f"{original}\n\n{result}",
        "process",
    )


@cli.command()
@click.argument("note", required=False)
@click.option("--all", "all_notes", is_flag=True, help="Generate hashtags for every note in the vault")
@click.pass_context
def hashtags(ctx, note, all_notes):
    """Generate hashtags for NOTE (or every note) and add them at the top."""
    if not note and not all_notes:
        raise click.UsageError("Give a NOTE path or --all")

    context = _get_context(ctx)
    assistant = context.assistant()
    writer = context.writer()

    try:
        refs = context.store.list_documents() if all_notes else [context.store.get(note)]
    except CopilotError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        return

    for ref in refs:
        try:
            content = context.store.read_body(ref)
            if not content.strip():
                console.print(f"  [dim]Skipping empty note {ref.path}[/]")
                continue

            tags = assistant.generate_hashtags(content)
            if not tags:
                console.print(f"  [red]Failed to generate hashtags for {ref.path}[/]")
                continue

            if _confirm(ctx, tags, f"Add hashtags to {ref.path}?"):
                writer.prepend_hashtags(ref, tags)
                console.print(f"  [green]✓ Hashtags added to {ref.path}[/]")
        except CopilotError as e:
            console.print(f"  [red]✗ {ref.path}: {escape(str(e))}[/]")


@cli.group()
def prompts():
    """Manage custom prompts and prompt templates."""


@prompts.command("list")
@click.pass_context
def prompts_list(ctx):
    """List custom prompts."""
    context = _get_context(ctx)
    custom = context.assistant().custom_prompts
    if not custom:
        console.print("[yellow]No custom prompts defined.[/]")
        return

    table = Table(title="Custom Prompts")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for p in custom:
        table.add_row(escape(p.name), escape(p.description))
    console.print(table)


@prompts.command("add")
@click.option("--name", required=True, help="Prompt name")
@click.option("--prompt", "body", required=True, help="Prompt text; use {{content}} for the selection")
@click.option("--description", default="", help="Short description")
@click.pass_context
def prompts_add(ctx, name, body, description):
    """Add or replace a custom prompt."""
    from .models import CustomPrompt

    context = _get_context(ctx)
    new = CustomPrompt(name=name, prompt=body, description=description).to_dict()
    custom = [p for p in context.config.get("custom_prompts") or [] if p.get("name") != name]
    custom.append(new)
    context.config["custom_prompts"] = custom
    context.save()
    console.print(f"[green]✓ Saved custom prompt '{name}'[/]")


@prompts.command("remove")
@click.argument("name")
@click.pass_context
def prompts_remove(ctx, name):
    """Remove a custom prompt."""
    context = _get_context(ctx)
    custom = context.config.get("custom_prompts") or []
    remaining = [p for p in custom if p.get("name") != name]
    if len(remaining) == len(custom):
        console.print(f"[yellow]No custom prompt named '{name}'[/]")
        return
    context.config["custom_prompts"] = remaining
    context.save()
    console.print(f"[green]✓ Removed custom prompt '{name}'[/]")


@prompts.command("reset")
@click.pass_context
def prompts_reset(ctx):
    """Reset all prompt templates to their defaults."""
    context = _get_context(ctx)
    context.config["prompt_templates"] = dict(DEFAULT_PROMPT_TEMPLATES)
    context.save()
    console.print("[green]✓ Prompt templates reset to defaults[/]")


@cli.group()
def graph():
    """Build and query the knowledge graph."""


def _graph_context(ctx):
    context = _get_context(ctx)
    try:
        enabled = knowledge_graph_settings(context.config)["enabled"]
    except CopilotError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        return None
    if not enabled:
        console.print("[yellow]The knowledge graph is disabled (knowledge_graph.enabled in config).[/]")
        return None
    if not context.client.is_configured:
        console.print("[red]Claude API key required. Set ANTHROPIC_API_KEY or claude_api_key in config.[/]")
        return None
    return context


@graph.command("build")
@click.pass_context
def graph_build(ctx):
    """Relate every note to every other note (O(n²) Claude calls)."""
    from .graph.summary import summarize_relations

    context = _graph_context(ctx)
    if context is None:
        return
    builder = context.graph_builder()

    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    try:
        with Progress(console=console) as progress:
            task = progress.add_task("Relating documents...", total=None)

            def _progress(done, total, source):
                progress.update(task, completed=done, total=total, description=f"Related {source.name}")

            relations = builder.build_graph(progress=_progress, cancel=cancel)
    finally:
        signal.signal(signal.SIGINT, previous)

    if cancel.is_set():
        console.print("[yellow]Cancelled. Showing partial results; no links were added.[/]")

    summary = summarize_relations(relations)
    console.print(f"\n[bold]Knowledge graph[/]: {summary.total} connection(s) found")
    if not relations:
        return

    if summary.top_documents:
        top = Table(title="Most connected documents")
        top.add_column("Document", style="cyan")
        top.add_column("Connections", justify="right")
        for path, count in summary.top_documents:
            top.add_row(escape(Path(path).name), str(count))
        console.print(top)

    console.print(f"  Average similarity: {summary.average_similarity * 100:.1f}%")
    if builder.linked_documents:
        console.print(f"  [green]✓ Added related links to {len(builder.linked_documents)} document(s)[/]")

    details = Table(title="Relations")
    details.add_column("Source", style="cyan")
    details.add_column("Target", style="cyan")
    details.add_column("Similarity", justify="right", style="green")
    for relation in relations[:50]:
        details.add_row(escape(relation.source.name), escape(relation.target.name), f"{relation.similarity_score * 100:.1f}%")
    if len(relations) > 50:
        details.add_row(f"... {len(relations) - 50} more", "", "")
    console.print(details)


@graph.command("related")
@click.argument("note")
@click.option("--add-links", is_flag=True, help="Offer to add a wikilink for each related note")
@click.pass_context
def graph_related(ctx, note, add_links):
    """Find notes related to NOTE."""
    context = _graph_context(ctx)
    if context is None:
        return

    try:
        ref = context.store.get(note)
        console.print(f"[blue]Finding documents related to {ref.name}...[/]\n")
        relations = context.graph_builder().find_related(ref)
    except CopilotError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        return

    if not relations:
        console.print("[yellow]No related documents found.[/]")
        return

    table = Table(title=f"Related to {ref.name}")
    table.add_column("#", style="dim", width=3)
    table.add_column("Document", style="cyan")
    table.add_column("Similarity", justify="right", style="green")
    table.add_column("Context", max_width=60)
    for i, relation in enumerate(relations, 1):
        table.add_row(str(i), escape(relation.target.name), f"{relation.similarity_score * 100:.1f}%", escape(relation.context))
    console.print(table)

    if not add_links:
        return

    link_writer = context.link_writer()
    for relation in relations:
        if not ctx.obj.get("yes") and not click.confirm(f"Add wikilink to {relation.target.name}?", default=True):
            continue
        try:
            if link_writer.add_link(ref, relation):
                console.print(f"  [green]✓ Linked {relation.target.name}[/]")
            else:
                console.print(f"  [dim]Link to {relation.target.name} already exists[/]")
        except CopilotError as e:
            console.print(f"  [red]✗ Could not add link: {escape(str(e))}[/]")


@cli.command()
@click.option("--limit", "-n", default=20, type=click.IntRange(min=0), help="Number of entries to show")
@click.pass_context
def log(ctx, limit):
    """Show recent Claude interactions."""
    context = _get_context(ctx)
    entries = context.log.entries
    if not entries:
        console.print("[yellow]No Claude interactions logged yet.[/]")
        return
    if limit == 0:
        return

    table = Table(title="Claude Interaction Log")
    table.add_column("Timestamp", style="dim")
    table.add_column("Model")
    table.add_column("Input", max_width=40)
    table.add_column("Output", max_width=40)
    for entry in reversed(entries[-limit:]):
        output = escape(entry.output_response[:100]) if entry.output_response is not None else f"[red]Error: {escape(entry.error or '')}[/]"
        table.add_row(entry.timestamp, entry.model, escape(entry.input_prompt[:100]), output)
    console.print(table)


if __name__ == "__main__":
    cli()
