"""
Client package for Cisco Perfmon: envelope builder, transport, response
parser and the PerfmonClient facade.
"""

from .main import PerfmonClient

__all__ = ["PerfmonClient"]
