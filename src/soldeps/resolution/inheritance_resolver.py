"""
Inheritance Resolution.

Builds the contract inheritance graph of a workspace and maps interface (or
base contract) methods to the concrete functions that implement them.
"""

from typing import Dict, List, Optional, Set

from soldeps.index import WorkspaceIndex
from soldeps.logging_config import logger
from soldeps.schemas import ContractInfo, ImplementationInfo
from .config import INHERITANCE_CONFIG


class InheritanceResolver:
    """
    Resolves interface-to-implementation mappings across the workspace.

    Contracts are keyed by name; when two files declare the same name the
    one indexed last wins.
    """

    def __init__(self, index: Optional[WorkspaceIndex] = None):
        self.config = INHERITANCE_CONFIG
        self.contract_map: Dict[str, ContractInfo] = {}
        self.inherited_by: Dict[str, Set[str]] = {}
        self.inheritance_chains: Dict[str, List[str]] = {}

        if index is not None:
            self.build_inheritance_graph(index)

    def build_inheritance_graph(self, index: WorkspaceIndex) -> None:
        """
        Rebuild every map from the given index.

        Args:
            index: Workspace index
        """
        self.contract_map = {}
        self.inherited_by = {}
        self.inheritance_chains = {}

        for contract in index.iter_contracts():
            self.contract_map[contract.name] = contract

        for name, contract in self.contract_map.items():
            for base_name in contract.base_contracts:
                self.inherited_by.setdefault(base_name, set()).add(name)

        for name in self.contract_map:
            self.inheritance_chains[name] = self._compute_chain(name, visited=set(), depth=0)

        logger.debug(
            f"Inheritance graph: {len(self.contract_map)} contracts, "
            f"{sum(len(v) for v in self.inherited_by.values())} edges"
        )

    def _compute_chain(self, contract_name: str, visited: Set[str], depth: int) -> List[str]:
        """
        Linearized approach: the contract, then each base's chain depth first,
        skipping names already present.
        """
        if contract_name in visited:
            return []
        if depth > self.config["max_chain_depth"]:
            logger.warning(f"Inheritance chain for {contract_name} exceeds max depth, truncating")
            return []

        visited.add(contract_name)
        chain = [contract_name]

        contract = self.contract_map.get(contract_name)
        if contract is not None:
            for base_name in contract.base_contracts:
                # Each path gets its own copy so siblings can share ancestors
                for name in self._compute_chain(base_name, visited.copy(), depth + 1):
                    if name not in chain:
                        chain.append(name)

        return chain

    def get_inheritance_chain(self, contract_name: str) -> List[str]:
        return list(self.inheritance_chains.get(contract_name, [contract_name]))

    def get_implementing_contracts(self, interface_name: str) -> List[str]:
        """
        All contracts inheriting from a name, directly or transitively.

        Returns:
            Names in discovery order; the queried name appears only when an
            inheritance cycle leads back to it.
        """
        result: List[str] = []
        seen: Set[str] = set()

        def collect(name: str) -> None:
            for inheritor in sorted(self.inherited_by.get(name, ()), key=self._contract_order):
                if inheritor in seen:
                    continue
                seen.add(inheritor)
                result.append(inheritor)
                collect(inheritor)

        collect(interface_name)
        return result

    def _contract_order(self, name: str) -> int:
        """Sort key for deterministic iteration: position in the contract map."""
        try:
            return list(self.contract_map).index(name)
        except ValueError:
            return len(self.contract_map)

    def find_implementations(self, interface_name: str, method_name: str) -> List[ImplementationInfo]:
        """
        Find the implementations of a method for every contract deriving
        from an interface or base contract.

        Args:
            interface_name: Interface or contract name (e.g. "IERC20")
            method_name: Method name (e.g. "transfer")

        Returns:
            One ImplementationInfo per concrete inheritor that has (or inherits)
            a body for the method.
        """
        implementations: List[ImplementationInfo] = []

        for contract_name in self.get_implementing_contracts(interface_name):
            contract = self.contract_map.get(contract_name)
            if contract is None or contract.kind == "interface":
                continue

            implementation = self._find_method_in_contract(contract_name, method_name)
            if implementation is not None:
                implementations.append(implementation)

        logger.debug(
            f"Found {len(implementations)} implementations of {interface_name}.{method_name}"
        )
        return implementations

    def _find_method_in_contract(self, contract_name: str, method_name: str) -> Optional[ImplementationInfo]:
        """Walk a contract's chain for the first non-interface body of a method."""
        chain = self.get_inheritance_chain(contract_name)

        for name in chain:
            contract = self.contract_map.get(name)
            if contract is None or contract.kind == "interface":
                continue

            for function in contract.functions:
                if function.name == method_name and function.has_implementation:
                    return ImplementationInfo(
                        contract_name=name,
                        contract_kind=contract.kind,
                        function_info=function,
                        file_path=contract.file_path,
                        is_inherited=name != contract_name,
                        inheritance_chain=chain,
                        implementing_contract=contract_name,
                    )
        return None

    def find_contracts_with_method(
        self,
        method_name: str,
        param_count: Optional[int] = None
    ) -> List[ImplementationInfo]:
        """
        Every non-interface contract that implements a method itself,
        optionally filtered by parameter count.
        """
        implementations: List[ImplementationInfo] = []

        for name, contract in self.contract_map.items():
            if contract.kind == "interface":
                continue

            for function in contract.functions:
                if function.name != method_name:
                    continue
                if param_count is not None and len(function.parameters) != param_count:
                    continue
                if not function.has_implementation:
                    continue

                implementations.append(ImplementationInfo(
                    contract_name=name,
                    contract_kind=contract.kind,
                    function_info=function,
                    file_path=contract.file_path,
                    is_inherited=False,
                    inheritance_chain=self.get_inheritance_chain(name),
                    implementing_contract=name,
                ))

        return implementations

    def get_interface_definition(self, interface_name: str) -> Optional[ContractInfo]:
        contract = self.contract_map.get(interface_name)
        if contract is not None and contract.kind == "interface":
            return contract
        return None

    def has_contract(self, name: str) -> bool:
        return name in self.contract_map

    def get_contract(self, name: str) -> Optional[ContractInfo]:
        return self.contract_map.get(name)

    def get_all_interfaces(self) -> List[ContractInfo]:
        return [c for c in self.contract_map.values() if c.kind == "interface"]

    def get_all_concrete_contracts(self) -> List[ContractInfo]:
        return [c for c in self.contract_map.values() if c.kind != "interface"]

    def log_graph(self) -> None:
        """Dump the contract map, reverse edges and chains at debug level."""
        logger.debug("=== Contract Map ===")
        for name, contract in self.contract_map.items():
            logger.debug(f"{name} ({contract.kind}): inherits [{', '.join(contract.base_contracts)}]")

        logger.debug("=== Inherited By ===")
        for name in self.inherited_by:
            inheritors = sorted(self.inherited_by[name], key=self._contract_order)
            logger.debug(f"{name}: inherited by [{', '.join(inheritors)}]")

        logger.debug("=== Inheritance Chains ===")
        for name, chain in self.inheritance_chains.items():
            logger.debug(f"{name}: {' -> '.join(chain)}")
