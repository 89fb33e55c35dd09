
from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional

import typer

from cipherbench import EmptyCorpusError, evaluate, load_weights, registry
from .report import (
    ConsoleSink,
    FileSink,
    TeeSink,
    write_comparison,
    write_failures,
    write_header,
    write_measurement,
    write_recommendations,
    write_sample,
)
from .runners.common import (
    BackgroundBenchmark,
    _load_adapters,
    export_json,
    load_corpus,
    random_corpus,
)

app = typer.Typer(add_completion=False, help="Cipher benchmarking and ranking CLI")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def list_algos():
    """List registered algorithms available via adapters."""
    _load_adapters()
    for name in registry.list().keys():
        typer.echo(f"- {name}")


@app.command()
def demo(name: str, message: str = "hello cipherbench"):
    """Encrypt and decrypt a short message with the selected algorithm."""
    _load_adapters()
    try:
        algo = registry.get(name)()
    except KeyError as exc:
        typer.echo(str(exc.args[0]), err=True)
        raise typer.Exit(code=1)
    plaintext = message.encode("utf-8")
    ct = algo.encrypt(plaintext)
    ok = algo.decrypt(ct) == plaintext
    typer.echo(
        f"{algo.name}: roundtrip={'ok' if ok else 'MISMATCH'} "
        f"ciphertext={len(ct)} bytes key={algo.key_length_bits()} bits"
    )
    if not ok:
        raise typer.Exit(code=1)


@app.command()
def run(
    corpus: Optional[Path] = typer.Argument(None, help="File to encrypt. Omit when using --random-bytes."),
    algo: Optional[List[str]] = typer.Option(None, "--algo", "-a", help="Registry key to benchmark (repeatable). Default: all."),
    random_bytes: int = typer.Option(0, help="Benchmark N random bytes instead of a file."),
    seed: Optional[int] = typer.Option(None, help="Seed for --random-bytes."),
    memory: bool = typer.Option(False, "--memory/--no-memory", help="Sample peak memory and score resource usage."),
    verify: bool = typer.Option(False, "--verify/--no-verify", help="Decrypt each ciphertext and require a round trip."),
    weights: Optional[Path] = typer.Option(None, help="JSON file with speed/security/efficiency weights."),
    export: str = typer.Option("", help="Write the ranking as JSON to this path."),
    results_file: str = typer.Option("", help="Also write the text report to this path."),
    samples: bool = typer.Option(True, "--samples/--no-samples", help="Show hex/text samples of each ciphertext."),
    progress: bool = typer.Option(True, "--progress/--no-progress", help="Show a progress bar while measuring."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
):
    """Benchmark ciphers against one corpus, then rank and recommend."""
    _configure_logging(verbose)
    _load_adapters()

    try:
        if random_bytes:
            data = random_corpus(random_bytes, seed)
            source = f"<{random_bytes} random bytes>"
        elif corpus is not None:
            data = load_corpus(corpus)
            source = str(corpus)
        else:
            typer.echo("Provide a corpus file or --random-bytes N.", err=True)
            raise typer.Exit(code=1)
        score_weights = load_weights(weights)
        for key in algo or []:
            registry.get(key)
        if export and Path(export).is_dir():
            raise IsADirectoryError(f"--export {export} is a directory")
        # output paths must be usable before any measurement runs
        file_sink = FileSink(results_file) if results_file else None
    except (EmptyCorpusError, OSError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    except KeyError as exc:
        typer.echo(f"Error: {exc.args[0]}", err=True)
        raise typer.Exit(code=1)

    job = BackgroundBenchmark(algo or None, data, capture_memory=memory, verify=verify).start()
    try:
        if progress:
            with typer.progressbar(length=100, label="Benchmarking") as bar:
                shown = 0
                for event in job.iter_events():
                    bar.update(event.percent - shown)
                    shown = event.percent
        else:
            for _ in job.iter_events():
                pass
    except KeyboardInterrupt:
        typer.echo("\nCancelling after the current algorithm...", err=True)
        job.cancel()
        for _ in job.iter_events():
            pass
    result = job.result()
    ranking = evaluate(result.records, score_weights)

    sink = TeeSink(ConsoleSink(), *([file_sink] if file_sink else []))
    try:
        write_header(sink, source, len(data))
        for record in result.records:
            write_measurement(sink, record)
            if samples and record.name in job.samples:
                write_sample(sink, record.name, data, job.samples[record.name])
        if result.cancelled:
            sink.write("")
            sink.write(f"Run cancelled: {len(result.records)} algorithm(s) measured before stopping.")
        if not ranking.is_empty:
            write_comparison(sink, ranking)
        write_recommendations(sink, ranking)
        write_failures(sink, result.failures)
    finally:
        if file_sink is not None:
            file_sink.close()
            typer.echo(f"\nResults have been saved to {file_sink.path}")

    try:
        export_json(result, ranking, export)
    except OSError as exc:
        typer.echo(f"Error: cannot write {export}: {exc}", err=True)
        raise typer.Exit(code=1)


def app_main():
    app()

if __name__ == "__main__":
    app_main()
