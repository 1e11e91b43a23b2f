import json
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from soldeps.exceptions import FileNotIndexedError, SoldepsError
from soldeps.index import WorkspaceIndex, compute_stats, load_workspace
from soldeps.logging_config import logger, reset_logging, setup_logging
from soldeps.resolution import FunctionAnalyzer, InheritanceResolver
from soldeps.resolution.config import LOOKUP_KINDS

app = typer.Typer()
console = Console()

WORKSPACE_OPTION = typer.Option(
    Path("."),
    "--workspace",
    "-w",
    help="Directory holding .sol files and their .sol.ast.json syntax trees.",
    exists=True,
    file_okay=False,
    dir_okay=True,
    readable=True,
)


@app.callback()
def global_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log resolver details to stderr."),
):
    """
    soldeps: resolve what a Solidity function depends on across a workspace.
    """
    if verbose:
        reset_logging()
        setup_logging(level="DEBUG", suppress_console=False)


def _index_key(index: WorkspaceIndex, file: Path) -> str:
    """Map a user-supplied path to the key it is indexed under."""
    target = file.resolve()
    for file_path in index:
        if Path(file_path).resolve() == target:
            return file_path
    raise FileNotIndexedError(str(file))


def _fail(action: str, error: SoldepsError) -> NoReturn:
    logger.error(f"Failed to {action}: {error}")
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(code=1)


@app.command()
def analyze(
    file: Path = typer.Argument(..., help="Source file containing the function."),
    line: int = typer.Option(..., "--line", "-l", help="Zero-based line of a position inside the function."),
    column: int = typer.Option(0, "--column", "-c", help="Zero-based column of the position."),
    workspace: Path = WORKSPACE_OPTION,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    Resolve the types, internal calls and state variables of the function at a position.
    """
    try:
        index = load_workspace(workspace)
        analysis = FunctionAnalyzer(index).analyze(_index_key(index, file), line, column)
    except SoldepsError as e:
        _fail("analyze function", e)

    if json_output:
        typer.echo(json.dumps(analysis.model_dump(), indent=2))
        return

    function = analysis.function
    title = f"{analysis.contract_name}.{function.name}" if analysis.contract_name else function.name
    console.print(f"[bold]{escape(title)}[/bold] [dim]{escape(function.file_path)}:{function.location.start.line}[/dim]")

    table = Table(title="Dependencies")
    table.add_column("Kind", style="magenta")
    table.add_column("Name", style="green bold")
    table.add_column("Defined in", style="cyan")
    table.add_column("Line", style="yellow")

    for reference in analysis.referenced_types:
        definition = reference.definition
        table.add_row(
            reference.kind,
            reference.name,
            definition.file_path if definition else "",
            str(definition.location.start.line) if definition else "",
        )
    for call in analysis.inner_calls:
        target = call.resolved_function
        table.add_row("call", call.expression, target.file_path, str(target.location.start.line))
    for variable in analysis.state_variables:
        table.add_row("statevar", variable.name, variable.file_path, str(variable.location.start.line))

    if table.row_count:
        console.print(table)
    else:
        console.print("[yellow]No resolvable dependencies.[/yellow]")


@app.command()
def lookup(
    name: str = typer.Argument(..., help="Symbol name, optionally qualified (Vault.Pool)."),
    kind: str = typer.Option("type", "--kind", "-k", help=f"One of: {', '.join(LOOKUP_KINDS)}."),
    contract: Optional[str] = typer.Option(None, "--contract", help="Contract to search first."),
    workspace: Path = WORKSPACE_OPTION,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    Resolve a single struct, enum, function or state variable by name.
    """
    try:
        index = load_workspace(workspace)
        result = FunctionAnalyzer(index).lookup(name, kind, contract)
    except SoldepsError as e:
        _fail("look up symbol", e)

    if json_output:
        typer.echo(json.dumps(result.model_dump(), indent=2))
        return

    if not result.success:
        console.print(f"[yellow]{escape(result.error or '')}[/yellow]")
        return

    if result.type_reference is not None and result.type_reference.definition is not None:
        definition = result.type_reference.definition
        header = f"{result.type_reference.kind} {result.type_reference.name}"
    elif result.function_info is not None:
        definition = result.function_info
        header = f"function {definition.name}"
    else:
        definition = result.state_variable
        header = f"statevar {definition.name}"

    console.print(f"[bold]{escape(header)}[/bold] [dim]{escape(definition.file_path)}:{definition.location.start.line}[/dim]")
    if result.ambiguous:
        console.print(f"[yellow]Also defined in: {escape(', '.join(result.candidate_files[1:]))}[/yellow]")
    console.print(escape(definition.full_source))


@app.command()
def implementations(
    interface: str = typer.Argument(..., help="Interface or base contract name."),
    method: str = typer.Argument(..., help="Method name."),
    workspace: Path = WORKSPACE_OPTION,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    List concrete implementations of an interface method.
    """
    try:
        index = load_workspace(workspace)
    except SoldepsError as e:
        _fail("load workspace", e)

    results = InheritanceResolver(index).find_implementations(interface, method)

    if json_output:
        typer.echo(json.dumps([r.model_dump() for r in results], indent=2))
        return

    if not results:
        console.print(f"[yellow]No implementations of {escape(interface)}.{escape(method)} found.[/yellow]")
        return

    table = Table(title=f"Implementations of {interface}.{method} ({len(results)} found)")
    table.add_column("Contract", style="green bold")
    table.add_column("Implemented in", style="magenta")
    table.add_column("File", style="cyan")
    table.add_column("Line", style="yellow")
    table.add_column("Chain", style="dim")

    for result in results:
        table.add_row(
            result.implementing_contract,
            result.contract_name + (" (inherited)" if result.is_inherited else ""),
            result.file_path,
            str(result.function_info.location.start.line),
            " -> ".join(result.inheritance_chain),
        )

    console.print(table)


@app.command()
def stats(
    workspace: Path = WORKSPACE_OPTION,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON."),
):
    """
    Summarize the indexed workspace.
    """
    try:
        index = load_workspace(workspace)
    except SoldepsError as e:
        _fail("load workspace", e)

    index_stats = compute_stats(index)

    if json_output:
        typer.echo(json.dumps(index_stats.model_dump(), indent=2))
        return

    table = Table(title="Workspace")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="yellow")
    table.add_row("Files", str(index_stats.total_files))
    table.add_row("Contracts", str(index_stats.total_contracts))
    for kind, count in sorted(index_stats.contract_kinds.items()):
        table.add_row(f"  {kind}", str(count))
    table.add_row("Functions", str(index_stats.total_functions))
    table.add_row("Structs + enums", str(index_stats.total_types))
    table.add_row("State variables", str(index_stats.total_state_variables))
    console.print(table)


if __name__ == "__main__":
    app()
