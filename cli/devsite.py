import click
import logging
from pathlib import Path

from services.config import load_config

STEPS = ["css", "libs", "html", "assets"]


def _load(root: Path | None, **overrides):
    try:
        return load_config(root, **overrides)
    except ValueError as e:
        click.echo(f"[ERR] {e}")
        raise SystemExit(1) from e


def _report(results: dict[str, bool]) -> bool:
    for name, ok in results.items():
        click.echo(f"  {'✓' if ok else '✗'} {name}")
    return all(results.values())


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def devsite(verbose: bool):
    """Static site build pipeline and development server."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@devsite.command("build")
@click.option("--root", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Project root containing src/ (defaults to the current directory)")
@click.option("--only", type=click.Choice(STEPS), default=None, help="Run a single build step")
def build(root: Path | None, only: str | None):
    """Build dist/ from src/ once."""
    config = _load(root)

    try:
        from services.dev_server import DevServer
        server = DevServer(config)
    except Exception as e:
        click.echo(f"[ERR] Site build failed: {e}")
        raise SystemExit(1) from e

    ok = True
    try:
        if only in (None, "css"):
            try:
                outputs = server.compile_stylesheets()
                for output in outputs:
                    click.echo(f"  ✓ {output.name}")
            except Exception as e:
                click.echo(f"[ERR] Stylesheet build failed: {e}")
                ok = False

        if only in (None, "libs"):
            ok = _report(server.copy_dependencies()) and ok

        if only in (None, "html"):
            ok = _report(server.build_html()) and ok

        if only in (None, "assets"):
            copied = server.copy_assets()
            click.echo(f"[INFO] {copied} asset file(s) copied")
    except Exception as e:
        click.echo(f"[ERR] Site build failed: {e}")
        raise SystemExit(1) from e

    if ok:
        click.echo("[OK] All site files built successfully")
    else:
        click.echo("[WARN] Some site files failed to build")
        raise SystemExit(1)


@devsite.command("dev")
@click.option("--root", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Project root containing src/ (defaults to the current directory)")
@click.option("--host", default=None, help="Preview host (DEVSITE_HOST)")
@click.option("--port", type=int, default=None, help="Preview port (DEVSITE_PORT)")
@click.option("--no-open", is_flag=True, help="Do not open the browser")
def dev(root: Path | None, host: str | None, port: int | None, no_open: bool):
    """Build, watch src/ and serve dist/ with live reload."""
    config = _load(root, host=host, port=port, open_browser=False if no_open else None)

    from services.dev_server import DevServer
    server = DevServer(config)

    try:
        server.start()
    except Exception as e:
        server.shutdown()
        click.echo(f"[ERR] Dev server failed to start: {e}")
        raise SystemExit(1) from e

    click.echo(f"[OK] Serving {config.dist_dir} at {server.preview.url}")
    server.serve()
