"""
BlockGraph - Command Line Interface
=====================================
CLI per ispezionare header, transazioni, blocchi e content identifier.

Last Updated: 2026-10-17
Version: 1.0.0

Commands:
- header: Decodifica header di blocco (80 byte)
- tx: Decodifica transazione
- block: Decodifica e verifica blocco completo
- merkle: Elenca i nodi merkle di un blocco
- cid: Ispeziona un content identifier
- version: Versione

Input: stringa hex, file contenente hex, oppure "-" per stdin.
"""

import re
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Internal imports
from block_graph.config import BlockGraphSettings, get_settings
from block_graph.constants import satoshi_to_coin
from block_graph.domain.content_id import ContentIdentifier
from block_graph.errors import BlockGraphException
from block_graph.logging_setup import setup_logging
from block_graph.services.block_service import BlockService
from block_graph.utils.serialization import hex_to_bytes, serialize_to_json, to_hash_hex
from block_graph.version import __version__


# ============================================================================
# CLI APP
# ============================================================================

app = typer.Typer(
    name="blockgraph",
    help="BlockGraph - content-addressed block & transaction codecs",
    add_completion=False
)

console = Console()

_HEX_PATTERN = re.compile(r"^[0-9a-fA-F\s]+$")


# ============================================================================
# GLOBAL STATE
# ============================================================================

class CLIState:
    """Global CLI state"""
    config: Optional[BlockGraphSettings] = None
    service: Optional[BlockService] = None


state = CLIState()


def _service() -> BlockService:
    if state.service is None:
        state.config = state.config or get_settings()
        state.service = BlockService(state.config)
    return state.service


# ============================================================================
# INPUT / OUTPUT HELPERS
# ============================================================================

def _read_input(source: str) -> bytes:
    """
    Legge bytes da hex inline, file hex o stdin ("-").

    Raises:
        typer.BadParameter: Sorgente non leggibile
    """
    if source == "-":
        text = typer.get_text_stream("stdin").read()
    elif _HEX_PATTERN.match(source):
        text = source
    else:
        path = Path(source)
        if not path.is_file():
            raise typer.BadParameter(f"Not a hex string or readable file: {source}")
        text = path.read_text(encoding="utf-8")

    return hex_to_bytes(text.strip())


def _emit_json(data: Any):
    indent = state.config.json_indent if state.config else 2
    typer.echo(serialize_to_json(data, indent=indent))


def _fail(error: BlockGraphException):
    console.print(f"[red]Error: {error.message}[/red]")
    if error.details:
        console.print(f"[dim]{error.code}: {error.details}[/dim]")
    raise typer.Exit(1)


def _cid(identifier: Optional[ContentIdentifier]) -> str:
    return identifier.encode() if identifier is not None else "-"


# ============================================================================
# HEADER
# ============================================================================

@app.command("header")
def header_cmd(
    source: str = typer.Argument(..., help="Hex, file path, or - for stdin"),
    as_json: bool = typer.Option(False, "--json", help="Output node-RPC JSON")
):
    """Decode a block header (first 80 bytes)"""
    service = _service()
    try:
        record = service.header_codec.decode(_read_input(source))
    except BlockGraphException as e:
        _fail(e)

    if as_json:
        _emit_json(service.header_codec.to_porcelain(record))
        return

    fields = record.fields
    table = Table(title="Block Header", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Hash", record.hash_hex)
    table.add_row("CID", _cid(service.header_codec.identifier(record)))
    table.add_row("Version", f"{fields.version} (0x{fields.version_hex})")
    table.add_row("Previous Block", fields.previous_block_hash_hex)
    table.add_row("Merkle Root", fields.merkle_root_hex)
    table.add_row("Time", str(fields.time))
    table.add_row("Bits", fields.bits_hex)
    table.add_row("Nonce", str(fields.nonce))
    table.add_row("Difficulty", f"{fields.difficulty:.8f}")
    table.add_row("Parent", _cid(record.parent))
    table.add_row("Transactions Root", _cid(record.transactions_root))

    console.print(table)


# ============================================================================
# TRANSACTION
# ============================================================================

@app.command("tx")
def tx_cmd(
    source: str = typer.Argument(..., help="Hex, file path, or - for stdin"),
    as_json: bool = typer.Option(False, "--json", help="Output node-RPC JSON")
):
    """Decode a single transaction"""
    codec = _service().tx_codec
    try:
        tx = codec.decode(_read_input(source))
    except BlockGraphException as e:
        _fail(e)

    if as_json:
        _emit_json(codec.to_porcelain(tx))
        return

    porcelain = codec.to_porcelain(tx)
    console.print(Panel.fit(
        f"[bold]TXID:[/bold] {porcelain['txid']}\n"
        f"[bold]WTXID:[/bold] {porcelain['hash']}\n"
        f"[bold]CID:[/bold] {_cid(codec.identifier(tx, witness=False))}\n"
        f"[bold]Size:[/bold] {porcelain['size']} bytes, "
        f"weight {porcelain['weight']}, vsize {porcelain['vsize']}\n"
        f"[bold]Segwit:[/bold] {'yes' if tx.has_witness else 'no'}",
        title="Transaction"
    ))

    inputs = Table(title=f"Inputs ({len(tx.inputs)})")
    inputs.add_column("#", style="dim")
    inputs.add_column("Outpoint", style="cyan")
    inputs.add_column("Spent From", style="green")
    inputs.add_column("Witness Items", justify="right")
    for index, tx_input in enumerate(tx.inputs):
        outpoint = (
            "coinbase" if tx_input.is_coinbase
            else f"{to_hash_hex(tx_input.prev_hash)}:{tx_input.prev_index}"
        )
        inputs.add_row(str(index), outpoint, _cid(tx_input.spent_from), str(len(tx_input.witness)))
    console.print(inputs)

    outputs = Table(title=f"Outputs ({len(tx.outputs)})")
    outputs.add_column("#", style="dim")
    outputs.add_column("Value", style="green", justify="right")
    outputs.add_column("Script", style="cyan")
    for index, tx_output in enumerate(tx.outputs):
        outputs.add_row(
            str(index),
            f"{satoshi_to_coin(tx_output.value):.8f}",
            tx_output.script_pubkey.hex(),
        )
    console.print(outputs)


# ============================================================================
# BLOCK
# ============================================================================

@app.command("block")
def block_cmd(
    source: str = typer.Argument(..., help="Hex, file path, or - for stdin"),
    as_json: bool = typer.Option(False, "--json", help="Output node-RPC JSON"),
    verify: bool = typer.Option(True, "--verify/--no-verify", help="Verify merkle root and witness commitment")
):
    """Decode (and verify) a full block"""
    service = _service()
    try:
        block = service.decode_block(_read_input(source))
        verification = service.verify_block(block) if verify else None
    except BlockGraphException as e:
        _fail(e)

    if as_json:
        data = service.to_porcelain(block)
        if verification is not None:
            data["verification"] = verification.to_dict()
        _emit_json(data)
        return

    table = Table(title="Block", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Hash", block.header.hash_hex)
    table.add_row("CID", _cid(service.block_identifier(block)))
    table.add_row("Parent", _cid(block.header.parent))
    table.add_row("Transactions Root", _cid(block.header.transactions_root))
    table.add_row("Transactions", str(len(block)))
    table.add_row("Segwit", "yes" if block.has_witness else "no")
    console.print(table)

    txs = Table(title="Transactions")
    txs.add_column("#", style="dim")
    txs.add_column("TXID", style="cyan")
    txs.add_column("Inputs", justify="right")
    txs.add_column("Outputs", justify="right")
    for index, tx in enumerate(block.transactions):
        txs.add_row(
            str(index),
            to_hash_hex(service.tx_codec.txid(tx)),
            str(len(tx.inputs)),
            str(len(tx.outputs)),
        )
    console.print(txs)

    if verification is not None:
        status = "[green]✅ valid[/green]" if verification.is_valid else "[red]❌ invalid[/red]"
        commitment = verification.commitment_found.hex() if verification.commitment_found else "none"
        console.print(Panel.fit(
            f"[bold]Merkle root:[/bold] "
            f"{'match' if verification.merkle_root_matches else 'MISMATCH'}\n"
            f"[bold]Witness commitment:[/bold] {commitment}\n"
            f"[bold]Status:[/bold] {status}",
            title="Verification"
        ))


# ============================================================================
# MERKLE
# ============================================================================

@app.command("merkle")
def merkle_cmd(
    source: str = typer.Argument(..., help="Block hex, file path, or - for stdin"),
    witness: bool = typer.Option(False, "--witness", help="Witness tree (wtxid leaves, zeroed coinbase)"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON")
):
    """List every merkle node of a block, leaves first"""
    service = _service()
    try:
        block = service.decode_block(_read_input(source))
        stream = service.merkle_nodes(block, witness=witness)
        nodes = list(stream)
    except BlockGraphException as e:
        _fail(e)

    if as_json:
        _emit_json({
            "witness": witness,
            "root": to_hash_hex(stream.root),
            "count": stream.emitted,
            "nodes": [
                {
                    "level": node.level,
                    "position": node.position,
                    "size": node.size,
                    "cid": node.identifier.encode(),
                }
                for node in nodes
            ],
        })
        return

    table = Table(title=f"Merkle Nodes ({'witness' if witness else 'base'})")
    table.add_column("Level", justify="right")
    table.add_column("Pos", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("CID", style="cyan")
    for node in nodes:
        table.add_row(str(node.level), str(node.position), str(node.size), node.identifier.encode())
    console.print(table)
    console.print(f"[bold]Root:[/bold] {to_hash_hex(stream.root)}  ({stream.emitted} nodes)")


# ============================================================================
# CONTENT IDENTIFIER
# ============================================================================

@app.command("cid")
def cid_cmd(
    identifier: str = typer.Argument(..., help="Base32 content identifier"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON")
):
    """Inspect a content identifier"""
    try:
        cid = ContentIdentifier.parse(identifier.strip())
    except BlockGraphException as e:
        _fail(e)

    if as_json:
        data = cid.to_dict()
        data["hashHex"] = cid.hash_hex()
        _emit_json(data)
        return

    table = Table(title="Content Identifier", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Version", str(cid.version))
    table.add_row("Codec", f"{cid.codec_name} (0x{cid.codec:02x})")
    table.add_row("Hash", f"{cid.hash_name} (0x{cid.hash_code:02x})")
    table.add_row("Digest", cid.digest.hex())
    table.add_row("Display Hash", cid.hash_hex())
    console.print(table)


# ============================================================================
# VERSION
# ============================================================================

@app.command("version")
def version_cmd():
    """Show version"""
    console.print(f"BlockGraph v{__version__}")


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Debug logging on stderr"
    )
):
    """
    BlockGraph - content-addressed block & transaction codecs

    Decodifica header, transazioni e blocchi e ne deriva i content identifier.
    """
    config = get_settings()
    setup_logging(
        log_level="DEBUG" if verbose else config.log_level,
        log_to_file=config.log_to_file,
        log_dir=config.log_dir,
        log_format=config.log_format,
        log_rotation_mb=config.log_rotation_mb,
        enable_console=config.enable_console_log,
    )
    state.config = config
    state.service = BlockService(config)


if __name__ == "__main__":
    app()


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "app",
]
