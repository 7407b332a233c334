# session/__init__.py

from .base import CapabilitySession, NavigationResult, ProbeError
from .playwright_session import PlaywrightSession

__all__ = ['CapabilitySession', 'NavigationResult', 'ProbeError', 'PlaywrightSession']
