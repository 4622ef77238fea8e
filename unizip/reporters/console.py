from __future__ import annotations
from rich.console import Console
from rich.table import Table

from unizip.model import ArchiveResult

console = Console()

def render_console(result: ArchiveResult) -> None:
    t = Table(title="unizip: UTF-8 ZIP archive")
    t.add_column("Entry", overflow="fold")
    t.add_column("Source", overflow="fold")
    t.add_column("Size", justify="right")
    t.add_column("Packed", justify="right")
    t.add_column("CRC-32")
    for e in result.entries:
        t.add_row(e.name, e.source_path, str(e.file_size), str(e.compress_size), f"{e.crc32:08x}")
    console.print(t)
    if result.skipped:
        console.print(f"[yellow]Skipped {len(result.skipped)} input(s)[/yellow]")
    console.print(f"[green]Archive written:[/green] {result.archive_path}")
