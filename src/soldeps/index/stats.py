from soldeps.schemas import IndexStats
from .workspace_index import WorkspaceIndex


def compute_stats(index: WorkspaceIndex) -> IndexStats:
    contracts = list(index.iter_contracts())
    kinds: dict = {}
    for contract in contracts:
        kinds[contract.kind] = kinds.get(contract.kind, 0) + 1

    free_functions = sum(len(p.functions) for p in index.files.values())
    free_types = sum(len(p.structs) + len(p.enums) for p in index.files.values())

    return IndexStats(
        total_files=len(index),
        total_contracts=len(contracts),
        contract_kinds=kinds,
        total_functions=sum(len(c.functions) for c in contracts) + free_functions,
        total_types=sum(len(c.structs) + len(c.enums) for c in contracts) + free_types,
        total_state_variables=sum(len(c.state_variables) for c in contracts),
    )
