"""
CLI support modules: output mode configuration and machine-aware printing.
"""

from scriptlens.cli import config, output

__all__ = ['config', 'output']
