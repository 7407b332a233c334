# checks/base.py

from abc import ABC, abstractmethod

from scan_worker.session.base import CapabilitySession


class Check(ABC):
    # Display name, also used to look up the check's time budget
    name: str = ""
    # Summary field the result fills
    key: str = ""

    @abstractmethod
    async def run(self, session: CapabilitySession, url: str):
        pass
