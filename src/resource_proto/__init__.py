"""
Resource Prototype - multi-subsystem resource graph matching

A resource graph model for HPC job-resource matching: subsystem-aware
matchers project filtered views of one graph, and a depth-first-and-up
traverser walks them with visitor hooks.
"""

__version__ = "0.1.0"
