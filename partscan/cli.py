"""Command-line interface.

Usage::

    partscan IMAGE [--json] [--verbose]
"""

from __future__ import annotations

import json
import logging
import sys

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import gpt, mbr
from .analysis import analyze_file
from .binding import report_to_dict
from .report import Advisory, AnalysisReport
from .table import TableType

__all__ = ['main']


console = Console(highlight=False)


def _print_advisory(advisory: Advisory) -> None:
    console.print(f'[yellow]{escape(advisory.info)}[/yellow]')
    console.print(f'  {escape(advisory.note)}')


def _print_mbr(report: AnalysisReport) -> None:
    partitions = [p for p in report.partitions if isinstance(p, mbr.Partition)]
    if not partitions:
        console.print('No partitions found')
        return

    table = Table(title='Partitions', box=box.SIMPLE)
    table.add_column('#', justify='right')
    table.add_column('Status')
    table.add_column('Type')
    table.add_column('Start LBA', justify='right')
    table.add_column('Size (GB)', justify='right')
    table.add_column('Description')

    for p in partitions:
        table.add_row(
            str(p.number),
            'Active' if p.bootable else 'Inactive',
            f'0x{p.type:02X}',
            str(p.start_lba),
            f'{p.size_gib:.2f}',
            p.description,
        )
    console.print(table)


def _print_gpt(report: AnalysisReport) -> None:
    header = report.gpt_header
    if header is not None:
        console.print(f'GPT Revision: {header.revision_major}.{header.revision_minor}')
        console.print(f'Number of Partitions: {header.partition_entries_count}')

    partitions = [p for p in report.partitions if isinstance(p, gpt.Partition)]
    if partitions:
        table = Table(title='Partitions', box=box.SIMPLE)
        table.add_column('#', justify='right')
        table.add_column('Start LBA', justify='right')
        table.add_column('End LBA', justify='right')
        table.add_column('Size (GB)', justify='right')
        table.add_column('Name')

        for p in partitions:
            table.add_row(
                str(p.number),
                str(p.start_lba),
                str(p.end_lba),
                f'{p.size_gib:.2f}',
                escape(p.name),
            )
        console.print(table)

    for advisory in report.advisories:
        _print_advisory(advisory)


def print_report(report: AnalysisReport) -> None:
    """Print ``report`` of a successful analysis in human-readable form."""
    title = f'Disk Image: {report.label}'
    console.print(title, markup=False)
    console.print('=' * len(title))
    assert report.table_type is not None
    console.print(f'Partition Table Type: {report.table_type.name}\n')

    if report.table_type is TableType.GPT:
        _print_gpt(report)
    else:
        _print_mbr(report)


@click.command()
@click.argument('image', type=click.Path(dir_okay=False))
@click.option('--json', 'as_json', is_flag=True, help='Print the report as JSON.')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging.')
def main(image: str, as_json: bool, verbose: bool) -> None:
    """List the partitions of the raw disk image IMAGE."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    try:
        report = analyze_file(image)
    except (OSError, ValueError) as e:
        click.echo(f'Error opening file: {e}', err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report_to_dict(report), indent=2))
    elif report.ok:
        print_report(report)

    if not report.ok:
        if not as_json:
            click.echo(f'Error: {report.error}', err=True)
        sys.exit(1)
