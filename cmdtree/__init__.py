"""
cmdtree: a configuration-driven task runner.

A cmdtree.yaml file describes a tree of commands backed by shell templates
and the variables they use; cmdtree turns it into a command-line interface.
"""
import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
