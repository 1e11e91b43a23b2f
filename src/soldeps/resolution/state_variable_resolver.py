"""
State-variable resolution: which contract storage a function touches.
"""

from typing import List, Optional, Set

from soldeps.index import WorkspaceIndex
from soldeps.logging_config import logger
from soldeps.schemas import ContractInfo, FunctionInfo, StateVariableInfo
from .config import IDENTIFIER_PATTERN


class StateVariableResolver:
    """
    Finds state variables referenced by a function and resolves names to
    their declarations.

    References are plain identifier matches against the owning contract's
    state variables; local variables that shadow a state variable are not
    told apart.
    """

    def extract_state_variable_references(self, function: FunctionInfo, contract: ContractInfo) -> Set[str]:
        return set(self.ordered_state_variable_references(function, contract))

    def ordered_state_variable_references(self, function: FunctionInfo, contract: ContractInfo) -> List[str]:
        """State variable names the function mentions, in order of first mention."""
        names = {var.name for var in contract.state_variables}
        ordered: List[str] = []
        for match in IDENTIFIER_PATTERN.finditer(function.full_source):
            identifier = match.group(1)
            if identifier in names and identifier not in ordered:
                ordered.append(identifier)
        return ordered

    def resolve_state_variable(
        self,
        name: str,
        contract_name: Optional[str],
        index: WorkspaceIndex,
        current_file: Optional[str] = None
    ) -> Optional[StateVariableInfo]:
        """
        Resolve a state variable by name.

        Contracts named `contract_name` are searched first, then every
        contract in the workspace. Both passes follow the index search
        order, so `current_file` is checked before the other files.
        """
        if contract_name:
            for parsed in index.search_order(current_file):
                for contract in parsed.contracts:
                    if contract.name != contract_name:
                        continue
                    for var in contract.state_variables:
                        if var.name == name:
                            return var

        for parsed in index.search_order(current_file):
            for contract in parsed.contracts:
                for var in contract.state_variables:
                    if var.name == name:
                        return var

        logger.debug(f"State variable {name} not found (contract hint: {contract_name})")
        return None

    def find_contract_for_function(self, function: FunctionInfo, index: WorkspaceIndex) -> Optional[ContractInfo]:
        """Find the contract declaring a function, matched by name, file and start line."""
        parsed = index.get(function.file_path)
        if parsed is None:
            return None

        for contract in parsed.contracts:
            for candidate in contract.functions:
                if (
                    candidate.name == function.name
                    and candidate.location.start.line == function.location.start.line
                ):
                    return contract
        return None

    def get_contract_state_variables(self, contract_name: str, index: WorkspaceIndex) -> List[StateVariableInfo]:
        for contract in index.iter_contracts():
            if contract.name == contract_name:
                return list(contract.state_variables)
        return []

    def state_variable_exists(self, name: str, contract_name: Optional[str], index: WorkspaceIndex) -> bool:
        return self.resolve_state_variable(name, contract_name, index) is not None

    def find_state_variable_candidates(self, name: str, index: WorkspaceIndex) -> List[StateVariableInfo]:
        return [
            var
            for contract in index.iter_contracts()
            for var in contract.state_variables
            if var.name == name
        ]
