# session/base.py

"""
Capability session interface

Check modules only talk to a page through this interface, never to a concrete
browser engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class NavigationResult:
    url: str
    status: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)


class ProbeError(Exception):
    """A HEAD probe failed at the network level (no HTTP status available)"""


class CapabilitySession(ABC):
    @abstractmethod
    async def navigate(self, url: str) -> NavigationResult:
        pass

    @abstractmethod
    async def title(self) -> str:
        pass

    @abstractmethod
    async def count(self, selector: str) -> int:
        pass

    @abstractmethod
    async def get_attribute(self, selector: str, name: str) -> Optional[str]:
        """Attribute of the first match, None when nothing matches"""

    @abstractmethod
    async def get_attributes(self, selector: str, name: str) -> List[Optional[str]]:
        pass

    @abstractmethod
    async def text_contents(self, selector: str) -> List[str]:
        pass

    @abstractmethod
    async def evaluate(self, script: str) -> Any:
        pass

    @abstractmethod
    async def probe_head(self, url: str) -> int:
        """HTTP status of a HEAD request; raises ProbeError on network failure"""
