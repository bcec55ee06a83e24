"""
Command-line interface for Semantic Kit.

This module provides a CLI for interacting with Semantic Kit, including
commands for storing and searching texts, chatting with a memory search
plugin and serving the HTTP API.
"""

import json as json_lib
import logging
import sys
from typing import Optional, Tuple

import click

from semantic_kit import __version__

from .config import get_settings
from .core import DEFAULT_SYSTEM_PROMPT, SemanticKit
from .exceptions import SemanticKitError
from .kernel.chat_history import ChatHistory
from .records import EMBEDDING


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--database-url",
    help="SQLAlchemy database URL for the vector store",
)
@click.option(
    "--embedding-model",
    help="Embedding model to use",
)
@click.option(
    "--collection",
    help="Collection to work on",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug mode",
)
@click.pass_context
def cli(
    ctx: click.Context,
    database_url: Optional[str],
    embedding_model: Optional[str],
    collection: Optional[str],
    debug: bool,
):
    """Semantic Kit: vector stores, kernel functions and chat for LLM apps."""
    if debug:
        import litellm

        litellm._turn_on_debug()  # type: ignore
        click.echo("Debug mode enabled")

        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[logging.StreamHandler(sys.stdout)],
        )

    settings = get_settings(
        database_url=database_url,
        embedding_model=embedding_model,
        default_collection=collection,
    )

    ctx.ensure_object(dict)
    if "kit" not in ctx.obj:
        ctx.obj["kit"] = SemanticKit(settings=settings)


@cli.command()
@click.pass_context
def collections(ctx: click.Context):
    """List collections."""
    kit: SemanticKit = ctx.obj["kit"]

    names = kit.list_collections()
    if not names:
        click.echo("No collections")
    for name in names:
        click.echo(name)


@cli.command()
@click.argument("source", type=click.File("r"), default="-")
@click.pass_context
def upsert(ctx: click.Context, source):
    """Embed and store JSONL records of {"id", "text", "tags"} from SOURCE (default stdin)."""
    kit: SemanticKit = ctx.obj["kit"]

    items = []
    for line_number, line in enumerate(source, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            items.append(json_lib.loads(line))
        except json_lib.JSONDecodeError as e:
            raise click.ClickException(f"Invalid JSON on line {line_number}: {e}") from e

    try:
        keys = kit.upsert_texts(items)
    except (SemanticKitError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Upserted {len(keys)} records")


@cli.command()
@click.argument("query")
@click.option("--limit", default=5, help="Maximum number of results to return")
@click.option("--tag", "tags", multiple=True, help="Only return records with this tag")
@click.option("--json", is_flag=True, help="Output results as JSON")
@click.pass_context
def search(ctx: click.Context, query: str, limit: int, tags: Tuple[str, ...], json: bool):
    """Search for records similar to QUERY."""
    kit: SemanticKit = ctx.obj["kit"]

    try:
        results = kit.search(query, limit=limit, tags=list(tags))
    except (SemanticKitError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    if json:
        click.echo(
            json_lib.dumps(
                [
                    {
                        **{k: v for k, v in r.record.items() if k != EMBEDDING},
                        "score": r.score,
                    }
                    for r in results
                ]
            )
        )
    else:
        click.echo(f"Found {len(results)} records:")
        for i, result in enumerate(results):
            record = result.record
            score = "" if result.score is None else f" ({result.score:.3f})"
            click.echo(f"\n{i+1}. {record['id']}{score}")
            click.echo(f"   {record['text']}")
            if record.get("tags"):
                click.echo(f"   Tags: {', '.join(record['tags'])}")


@cli.command()
@click.argument("key")
@click.pass_context
def delete(ctx: click.Context, key: str):
    """Delete the record with KEY."""
    kit: SemanticKit = ctx.obj["kit"]

    try:
        kit.delete_text(key)
    except (SemanticKitError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Deleted {key}")


@cli.command()
@click.option("--model", help="Model to use for chat")
@click.option("--session", help="Name of a chat session to resume and save")
@click.pass_context
def chat(ctx: click.Context, model: Optional[str], session: Optional[str]):
    """Start an interactive chat session with memory search."""
    kit: SemanticKit = ctx.obj["kit"]
    model = model or kit.settings.completion_model

    click.echo("Semantic Kit Chat")
    click.echo(f"Using model: {model}")
    click.echo("Type 'exit' to quit, 'help' for commands")

    chat_history = (kit.chat_store.load(session) if session else None) or ChatHistory()
    if not chat_history.messages:
        chat_history.add_system_message(DEFAULT_SYSTEM_PROMPT)
    kernel = kit.create_kernel()

    while True:
        try:
            user_input = click.prompt("\nYou", prompt_suffix=": ")
        except (KeyboardInterrupt, EOFError, click.Abort):
            click.echo("\nExiting...")
            break

        command = user_input.strip().lower()
        if command == "exit":
            break
        elif command == "help":
            click.echo("\nCommands:")
            click.echo("  help - Show this help message")
            click.echo("  exit - Exit the chat")
            click.echo("  clear - Clear the conversation history")
            continue
        elif command == "clear":
            chat_history.messages = chat_history.messages[:1]
            click.echo("Conversation history cleared")
            continue

        chat_history.add_user_message(user_input)
        try:
            message = kit.chat(chat_history, kernel=kernel, model=model)
        except Exception as e:  # keep the session alive on provider errors
            logging.getLogger(__name__).exception("Chat completion failed")
            click.echo(f"\nError: {e}")
            continue

        click.echo(f"\nAssistant: {message.get('content') or ''}")
        if session:
            kit.chat_store.save(session, chat_history)


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int):
    """Start the HTTP API server."""
    click.echo(f"Starting Semantic Kit server on http://{host}:{port}...")
    click.echo("Press Ctrl+C to stop the server.")

    # Import here to avoid requiring fastapi and uvicorn for non-server use
    import uvicorn

    from semantic_kit.server import create_app

    kit: SemanticKit = ctx.obj["kit"]

    uvicorn.run(create_app(kit), host=host, port=port)


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
