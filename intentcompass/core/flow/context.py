"""Running chain/token context threaded through a flow run."""

from dataclasses import dataclass

from ..chains import ChainId, chain_id_to_name
from .models import StartNode, Token


@dataclass
class FlowContext:
    """Which token and chain the next step acts on.

    Seeded from the entry node; only bridge steps move it to another chain.
    The token never changes because no step converts between tokens.
    """
    token: Token
    current_chain: ChainId

    @classmethod
    def from_entry(cls, node: StartNode) -> "FlowContext":
        return cls(token=node.data.token, current_chain=node.data.chain)

    def apply_bridge(self, to_chain: ChainId) -> None:
        self.current_chain = to_chain

    def describe(self) -> str:
        return f"{self.token.value} on {chain_id_to_name(self.current_chain)}"
