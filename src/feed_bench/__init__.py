"""
feed-bench: propagation latency of Swarm feed updates.

A writer publishes a sequence of feed updates through one set of Bee nodes;
readers on a different set of nodes poll until every one of them reports the
latest index. The time that takes is the measured quantity.
"""

__version__ = "0.1.0"
