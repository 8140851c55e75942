"""
Locator Extractor CLI - Capture stable locators from a live page.
"""

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.panel import Panel

from locator_extractor import __version__
from locator_extractor.core.config import DEFAULT_CONFIG_FILE, load_config
from locator_extractor.core.exceptions import LocatorExtractorError
from locator_extractor.reporters.prompt_builder import FRAMEWORKS, PROMPT_TYPES

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@click.group()
@click.version_option(version=__version__, prog_name="locator-extractor")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """🔎 Locator Extractor - Stable locators and test prompts from live pages

    Hold Ctrl/Cmd and click elements in the browser to capture them.
    """
    _setup_logging(verbose)


@cli.command()
@click.argument("url", required=False)
@click.option("--config", "config_path", default=DEFAULT_CONFIG_FILE, show_default=True,
              help="JSON config file; CLI options override it")
@click.option("--framework", default=None, help=f"Prompt framework: {', '.join(FRAMEWORKS)} or any name")
@click.option("--prompt-type", default=None, type=click.Choice(PROMPT_TYPES), help="Prompt flavour")
@click.option("--custom-example", default=None, help="Example element definition for --framework custom")
@click.option("--filter", "filters", default=None,
              help="Comma-separated filters: tag, .class, #id, [attr], [attr=value]")
@click.option("--scan-all/--no-scan-all", default=None, help="Walk every visible element once at start")
@click.option("--scan-hidden/--no-scan-hidden", default=None, help="Walk every hidden element once at start")
@click.option("--advanced/--no-advanced", "advanced_metadata", default=None,
              help="Fetch computed style, ARIA and listeners over DevTools")
@click.option("--headless/--headed", default=None, help="Run browser in headless mode")
@click.option("--proxy", default=None, help="Upstream proxy, e.g. http://127.0.0.1:8080")
@click.option("--output-dir", default=None, help="Directory for locator and prompt files")
@click.option("--timeout", default=None, type=int, help="Auto-stop after N idle seconds (0 = never)")
def extract(url, config_path, framework, prompt_type, custom_example, filters, scan_all, scan_hidden,
            advanced_metadata, headless, proxy, output_dir, timeout):
    """
    Open URL and capture elements until Enter is pressed.

    \b
    Examples:

        locator-extractor extract https://example.com

        locator-extractor extract https://example.com --filter "button, .nav-link" --scan-all

        locator-extractor extract https://example.com --framework selenium --prompt-type action --timeout 60
    """
    config = load_config(config_path).merged({
        "url": url,
        "framework": framework,
        "prompt_type": prompt_type,
        "custom_example": custom_example,
        "filters": filters,
        "scan_all": scan_all,
        "scan_hidden": scan_hidden,
        "advanced_metadata": advanced_metadata,
        "headless": headless,
        "proxy": proxy,
        "output_dir": output_dir,
        "timeout": timeout,
    })

    if not config.url:
        console.print("[red]❗ URL is required. Provide it in config.json or on the command line.[/red]")
        sys.exit(1)

    console.print(Panel.fit(
        f"[bold blue]🔎 Locator Extractor[/bold blue]\n"
        f"[dim]Stable locators from live pages[/dim]",
        border_style="blue"
    ))
    console.print(f"\n[bold]Target:[/bold] {config.url}")
    console.print(f"[bold]Framework:[/bold] {config.framework} ({config.prompt_type})")
    console.print(f"[bold]Filters:[/bold] {config.filters or 'none'}")
    console.print()

    try:
        from locator_extractor.core.driver_factory import create_driver
        from locator_extractor.core.session import CaptureSession
        from locator_extractor.reporters import LocatorWriter, build_prompt

        driver = create_driver(headless=config.headless, proxy=config.proxy)
        try:
            driver.get(config.url)
            console.print(f"[green]✅ Page loaded:[/green] {config.url}")
            console.print("[bold]Hold Ctrl/Cmd + Click to capture. Press Enter to stop.[/bold]\n")

            def on_capture(record, source):
                if source == "pointer":
                    console.print(f"  [green]Captured[/green] <{record.tag}> [dim]{record.css_selector}[/dim]")

            session = CaptureSession(driver, config, on_capture=on_capture, stop_on_enter=True)
            snapshot = session.run()
        finally:
            driver.quit()
            console.print("[dim]🧹 Browser closed.[/dim]")

        prompts = [
            build_prompt(record, config.framework, config.prompt_type, config.custom_example)
            for record in snapshot.records
        ]
        files = LocatorWriter(config.output_dir).write(snapshot, prompts, framework=config.framework)

        table = Table(title="📄 Extraction Summary", show_header=False)
        table.add_row("[bold]Framework[/bold]", config.framework)
        table.add_row("[bold]Total elements captured[/bold]", str(snapshot.total_seen))
        table.add_row("[bold]Unique locators saved[/bold]", str(snapshot.unique_count))
        table.add_row("[bold]Visible / hidden[/bold]", f"{snapshot.visible_count} / {snapshot.hidden_count}")
        table.add_row("[bold]Prompts generated[/bold]", str(len(prompts)))
        console.print(table)
        console.print(f"[green]💾 Locators ->[/green] {files.locators_path}")
        console.print(f"[green]💾 Prompts  ->[/green] {files.prompts_path}")

    except ImportError as e:
        console.print(f"[red]Error: Missing dependency - {e}[/red]")
        sys.exit(1)
    except LocatorExtractorError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        sys.exit(1)


@cli.command()
def doctor():
    """
    Check system health and dependencies.
    """
    console.print(Panel.fit(
        f"[bold cyan]🩺 Locator Extractor Doctor[/bold cyan]\n"
        f"[dim]System Health Check[/dim]",
        border_style="cyan"
    ))
    console.print()

    dependencies = [
        ("selenium", "Core - WebDriver and DevTools"),
        ("click", "CLI"),
        ("rich", "Console output and logging"),
    ]

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Package", style="blue")
    table.add_column("Role", style="dim")
    table.add_column("Status", justify="center")

    all_good = True
    for package, role in dependencies:
        try:
            __import__(package)
            status = "[green]✅ Installed[/green]"
        except ImportError:
            status = "[red]❌ Missing[/red]"
            all_good = False
        table.add_row(package, role, status)

    console.print(table)
    console.print()

    if all_good:
        console.print("[bold green]✅ All dependencies installed! Ready to capture.[/bold green]")
    else:
        console.print("[red]Some dependencies are missing.[/red]")
        console.print("[dim]Install with: pip install locator-extractor[/dim]")


@cli.command()
def version():
    """Show version information."""
    console.print(f"Locator Extractor v{__version__}")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
