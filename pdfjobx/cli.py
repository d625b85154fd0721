"""
Command-line interface for pdfjobx.
"""

import logging
import os
import sys

import click
from rich.console import Console
from rich.table import Table

from pdfjobx import __version__
from pdfjobx.encryption import build_tier
from pdfjobx.engines import ENGINE_NAMES, detect_engine
from pdfjobx.enums import EncryptionTier, ExitCode, Modify, Print
from pdfjobx.exceptions import PdfJobError
from pdfjobx.job import Job, LoggingObserver
from pdfjobx.utils import get_logger

console = Console()

password_option = click.option(
    '--password', '-p',
    default=None,
    help='Password of the input file',
    type=str
)


def _fail(error):
    console.print(f"\n[bold red]✗ Error:[/bold red] {error}")
    sys.exit(1)


def _job(ctx):
    observer = LoggingObserver(get_logger("pdfjobx.cli")) if ctx.obj['verbose'] else None
    return Job(engine=detect_engine(ctx.obj['engine']), observer=observer)


def _report(result):
    """Print engine diagnostics and exit when the job failed."""
    if result.exit_code is ExitCode.ERRORS_FOUND_FILE_NOT_PROCESSED:
        _fail(result.output or "the engine reported an error")
    if result.exit_code is ExitCode.WARNINGS_FOUND_FILE_PROCESSED:
        for line in result.output.splitlines():
            if line.startswith("WARNING"):
                console.print(f"[yellow]{line}[/yellow]")


def _yes_no(flag):
    return "[green]Yes[/green]" if flag else "[red]No[/red]"


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--engine', '-e',
    default='auto',
    help='Engine that executes jobs (auto prefers qpdf when installed)',
    type=click.Choice(ENGINE_NAMES)
)
@click.option('--verbose', '-v', is_flag=True, help='Log option changes and engine calls')
@click.pass_context
def cli(ctx, engine, verbose):
    """
    pdfjobx - Build, run and inspect qpdf style PDF jobs.
    """
    ctx.ensure_object(dict)
    ctx.obj['engine'] = engine
    ctx.obj['verbose'] = verbose
    if verbose:
        get_logger("pdfjobx").setLevel(logging.DEBUG)


@cli.command(name="check")
@click.argument('input_pdf', type=click.Path(exists=True))
@password_option
@click.pass_context
def check(ctx, input_pdf, password):
    """
    Check the structure of a PDF file.

    Example:

        pdfjobx check input.pdf
    """
    try:
        result = _job(ctx).input_file(input_pdf, password).check().run()
        _report(result)
        info = result.check_info()

        table = Table(title=f"Check: {os.path.basename(input_pdf)}", show_header=False)
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("PDF Version", info.pdf_version)
        table.add_row("Encrypted", _yes_no(info.is_encrypted))
        table.add_row("Linearized", _yes_no(info.is_linearized))
        table.add_row("Warnings", str(len(info.warnings)))

        console.print()
        console.print(table)
        if not info.has_warnings:
            console.print("[bold green]✓ No problems found[/bold green]")
        console.print()

    except (PdfJobError, OSError) as e:
        _fail(e)


@cli.command(name="show-encryption")
@click.argument('input_pdf', type=click.Path(exists=True))
@password_option
@click.pass_context
def show_encryption(ctx, input_pdf, password):
    """
    Display encryption parameters and permissions.

    Example:

        pdfjobx show-encryption secret.pdf -p owner
    """
    try:
        result = _job(ctx).input_file(input_pdf, password).show_encryption().run()
        _report(result)
        info = result.encryption_info()

        if info.r is None:
            console.print("\n[bold]File is not encrypted[/bold]\n")
            return

        table = Table(title=f"Encryption: {os.path.basename(input_pdf)}")
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value")
        table.add_row("Revision (R)", str(info.r))
        table.add_row("Permissions (P)", str(info.p))
        table.add_row("Stream method", info.stream_encryption_method or "-")
        table.add_row("String method", info.string_encryption_method or "-")
        table.add_row("File method", info.file_encryption_method or "-")
        table.add_row("Print (low)", _yes_no(info.print_low_resolution))
        table.add_row("Print (high)", _yes_no(info.print_high_resolution))
        table.add_row("Extract", _yes_no(info.extract_for_any_purpose))
        table.add_row("Extract (accessibility)", _yes_no(info.extract_for_accessibility))
        table.add_row("Assemble", _yes_no(info.modify_document_assembly))
        table.add_row("Fill forms", _yes_no(info.modify_forms))
        table.add_row("Annotate", _yes_no(info.modify_annotations))
        table.add_row("Modify other", _yes_no(info.modify_other))

        console.print()
        console.print(table)
        console.print()

    except (PdfJobError, OSError) as e:
        _fail(e)


@cli.command(name="show-xref")
@click.argument('input_pdf', type=click.Path(exists=True))
@password_option
@click.pass_context
def show_xref(ctx, input_pdf, password):
    """
    List the cross-reference table (requires the qpdf engine).
    """
    try:
        result = _job(ctx).input_file(input_pdf, password).show_xref().run()
        _report(result)
        xref = result.xref_info()

        table = Table(title=f"Cross-reference: {os.path.basename(input_pdf)}")
        table.add_column("Object", style="cyan")
        table.add_column("State")
        table.add_column("Offset / Stream", justify="right")
        table.add_column("Index", justify="right")
        for entry in xref:
            table.add_row(entry.id, entry.state, str(entry.offset), "" if entry.index is None else str(entry.index))

        console.print()
        console.print(table)
        console.print(f"[dim]{len(xref)} entries[/dim]\n")

    except (PdfJobError, OSError, ValueError) as e:
        _fail(e)


@cli.command(name="attachments")
@click.argument('input_pdf', type=click.Path(exists=True))
@password_option
@click.option('--extract', '-x', 'key', default=None, help='Attachment key to extract', type=str)
@click.option(
    '--output', '-o',
    default=None,
    help='Where to write the extracted attachment (defaults to the key)',
    type=click.Path()
)
@click.pass_context
def attachments(ctx, input_pdf, password, key, output):
    """
    List embedded files, or extract one with --extract.

    Examples:

        pdfjobx attachments input.pdf

        pdfjobx attachments input.pdf -x notes.txt -o notes.txt
    """
    try:
        if key:
            result = _job(ctx).input_file(input_pdf, password).show_attachment(key).run()
            _report(result)
            destination = output or key
            with open(destination, 'wb') as handle:
                handle.write(result.data or b"")
            console.print(f"\n[bold green]✓ Extracted '{key}'[/bold green] -> {os.path.abspath(destination)}\n")
            return

        result = _job(ctx).input_file(input_pdf, password).list_attachments().run()
        _report(result)
        listing = result.attachment_listing()

        if not listing:
            console.print("\n[bold]No embedded files[/bold]\n")
            return

        table = Table(title=f"Attachments: {os.path.basename(input_pdf)}")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Key", style="cyan")
        for number, name in enumerate(listing, 1):
            table.add_row(str(number), name)

        console.print()
        console.print(table)
        console.print()

    except (PdfJobError, OSError) as e:
        _fail(e)


@cli.command(name="is-encrypted")
@click.argument('input_pdf', type=click.Path(exists=True))
@click.pass_context
def is_encrypted(ctx, input_pdf):
    """
    Report whether a PDF file is encrypted.
    """
    try:
        result = _job(ctx).input_file(input_pdf).is_encrypted().run_is_encrypted()
        console.print(f"Encrypted: {_yes_no(result.is_encrypted)}")

    except (PdfJobError, OSError) as e:
        _fail(e)


@cli.command(name="requires-password")
@click.argument('input_pdf', type=click.Path(exists=True))
@password_option
@click.pass_context
def requires_password(ctx, input_pdf, password):
    """
    Report whether opening a PDF file needs a password.
    """
    try:
        result = _job(ctx).input_file(input_pdf, password).requires_password().run_requires_password()
        console.print(f"Encrypted: {_yes_no(result.is_encrypted)}")
        console.print(f"Password required: {_yes_no(result.requires_password)}")

    except (PdfJobError, OSError) as e:
        _fail(e)


@cli.command(name="encrypt")
@click.argument('input_pdf', type=click.Path(exists=True))
@click.argument('output_pdf', type=click.Path())
@click.option('--user-password', '-u', required=True, help='Password needed to open the file', type=str)
@click.option('--owner-password', '-w', required=True, help='Password that lifts restrictions', type=str)
@click.option(
    '--bits', '-b',
    default='256',
    help='Key length',
    type=click.Choice(['40', '128', '256'])
)
@click.option('--aes/--no-aes', default=False, help='Use AES for 128-bit keys')
@click.option(
    '--print', 'print_level',
    default=Print.FULL.value,
    help='Printing permission',
    type=click.Choice([level.value for level in Print])
)
@click.option(
    '--modify',
    default=Modify.ALL.value,
    help='Modification permission',
    type=click.Choice([level.value for level in Modify])
)
@click.option('--no-extract', is_flag=True, help='Forbid text and image extraction')
@click.option('--dry-run', is_flag=True, help='Print the job document instead of running it')
@click.pass_context
def encrypt(ctx, input_pdf, output_pdf, user_password, owner_password, bits, aes, print_level, modify, no_extract, dry_run):
    """
    Encrypt a PDF file.

    Examples:

        pdfjobx encrypt input.pdf secret.pdf -u reader -w admin

        pdfjobx encrypt input.pdf secret.pdf -u reader -w admin -b 128 --aes --print low
    """
    try:
        params = {'print': Print(print_level), 'modify': Modify(modify), 'extract': not no_extract}
        if aes:
            params['use_aes'] = True
        tier = build_tier(EncryptionTier(f"{bits}bit"), **params)

        job = _job(ctx).input_file(input_pdf).output_file(output_pdf).encrypt(user_password, owner_password, tier)
        if dry_run:
            console.print_json(job.to_json())
            job.reset()
            return

        _report(job.run())
        console.print(f"\n[bold green]✓ Encrypted with {bits}-bit key[/bold green] -> {os.path.abspath(output_pdf)}\n")

    except (PdfJobError, OSError) as e:
        _fail(e)


@cli.command(name="decrypt")
@click.argument('input_pdf', type=click.Path(exists=True))
@click.argument('output_pdf', type=click.Path())
@password_option
@click.option('--dry-run', is_flag=True, help='Print the job document instead of running it')
@click.pass_context
def decrypt(ctx, input_pdf, output_pdf, password, dry_run):
    """
    Remove encryption from a PDF file.

    Example:

        pdfjobx decrypt secret.pdf plain.pdf -p admin
    """
    try:
        job = _job(ctx).input_file(input_pdf, password).output_file(output_pdf).decrypt()
        if dry_run:
            console.print_json(job.to_json())
            job.reset()
            return

        _report(job.run())
        console.print(f"\n[bold green]✓ Decrypted[/bold green] -> {os.path.abspath(output_pdf)}\n")

    except (PdfJobError, OSError) as e:
        _fail(e)


if __name__ == '__main__':
    cli()
