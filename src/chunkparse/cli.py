"""CLI implementation for chunkparse."""

import asyncio
import codecs
import json
import logging
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import typer

from . import read_frames, read_frames_sync
from .core.model import ConstructionError, Report
from .core.util import report_asdict
from .framing import make_framer
from .io import DEFAULT_CHUNK_SIZE
from .io.http_async import close_global_client

app = typer.Typer(add_completion=False, help="Split files and URLs into records, chunk by chunk.")


def iter_sources(files: list[str]) -> list[str]:
    """Get list of sources from files argument or stdin."""
    if "-" in files:
        # stdin mode
        stdin_lines = [ln.strip() for ln in sys.stdin if ln.strip()]
        if not stdin_lines:
            return []
        return stdin_lines
    elif files:
        return list(files)
    return []


def _resolve(src: str) -> str:
    parsed_url = urlparse(src)
    if parsed_url.scheme and parsed_url.netloc:  # It's a URL
        return src
    return str(Path(src).resolve())


def _unescape(text: str) -> bytes:
    """Turn ``\\n``, ``\\x00`` and friends typed on the command line into bytes."""
    return codecs.decode(text, "unicode_escape").encode("latin-1")


async def _batch_read(sources: list[str], framer, options: dict) -> list[Report]:
    """Asynchronously frame a list of sources."""
    tasks = [read_frames(framer, _resolve(src), **options) for src in sources]
    try:
        results = await asyncio.gather(*tasks, return_exceptions=True)
    finally:
        await close_global_client()
    processed_results = []
    for res in results:
        if isinstance(res, Exception):
            processed_results.append(Report(success=False, data=None, error=str(res), bytes_fetched=0))
        else:
            processed_results.append(res)
    return processed_results


@app.command()
def main(
    files: list[str] = typer.Argument(None, help="Files or URLs to process, or '-' for stdin"),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", help="Record terminator, escapes allowed (default '\\n')"),
    length_prefix: Optional[str] = typer.Option(None, "--length-prefix", help="Number type of a length prefix, e.g. be_u32"),
    chunk_size: int = typer.Option(DEFAULT_CHUNK_SIZE, "--chunk-size", min=1, help="Bytes to request per pull"),
    peek: Optional[int] = typer.Option(None, "--peek", min=0, help="Emit the first N bytes of each record (Base64)"),
    fields: Optional[str] = typer.Option(None, "--fields", help="Comma-separated subset of keys to emit"),
    jsonl: bool = typer.Option(False, "--jsonl", help="Force JSON-lines output"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to PATH instead of stdout"),
    sync: bool = typer.Option(False, "--sync", help="Force synchronous I/O"),
    offset: int = typer.Option(0, "--offset", min=0, help="Start parsing at this byte offset"),
    max_frame: Optional[int] = typer.Option(None, "--max-frame", min=1, help="Reject records longer than N bytes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log producer and consumer activity to stderr"),
):
    """Frame one or many local paths or URLs and report what was found."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    sel_fields = set(fields.split(",")) if fields else None
    sources = iter_sources(files or [])

    if not sources:
        typer.echo("No input files given.", err=True)
        raise typer.Exit(code=1)

    try:
        framer = make_framer(
            delimiter=_unescape(delimiter) if delimiter is not None else None,
            length_prefix=length_prefix,
            max_frame=max_frame,
        )
    except ConstructionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    options = {"chunk_size": chunk_size, "offset": offset, "peek": peek}
    if max_frame is not None:
        # room for one unfinished record plus one oversized pull
        options["max_buffer_size"] = 2 * (max_frame + chunk_size) + 8

    results: list[Report] = []
    if sync:
        for src in sources:
            try:
                res = read_frames_sync(framer, _resolve(src), **options)
            except Exception as e:
                res = Report(success=False, data=None, error=str(e), bytes_fetched=0)
            results.append(res)
    else:
        results = asyncio.run(_batch_read(sources, framer, options))

    # open output sink
    sink = open(output, "w", encoding="utf-8") if output else sys.stdout
    try:
        # choose output style
        if len(sources) == 1 and not jsonl:
            obj = report_asdict(results[0], fields=sel_fields)
            json.dump(obj, sink, indent=2)
            sink.write("\n")
        else:
            for res in results:
                obj = report_asdict(res, fields=sel_fields)
                sink.write(json.dumps(obj))
                sink.write("\n")
    finally:
        if output:
            sink.close()

    # exit code
    if any(not r.success for r in results):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
