# onion_relay/trace.py
import logging
from collections import deque

import networkx as nx
from pyvis.network import Network as PyvisNetwork

from onion_relay import config

logger = logging.getLogger(__name__)


class HopTrace:
    """
    Directed graph of endpoints and the deliveries between them.
    Edges are labelled with the step number and blob size of the latest delivery.

    The graph only holds bound endpoints and one edge per pair of them. The
    delivery log keeps the newest ``max_deliveries`` entries; ``delivery_count``
    keeps counting past that so step numbers stay unique.
    """

    def __init__(self, max_deliveries=config.MAX_TRACE_DELIVERIES):
        self.graph = nx.DiGraph()
        self.deliveries = deque(maxlen=max_deliveries)
        self.delivery_count = 0

    def add_endpoint(self, address, label=None):
        if address not in self.graph.nodes:
            self.graph.add_node(address, label=label if label else str(address))

    def record(self, source, destination, size):
        self.delivery_count += 1
        self.add_endpoint(destination)
        if source is not None:
            self.add_endpoint(source)
            self.graph.add_edge(source, destination, label=f"#{self.delivery_count} ({size} B)")
        self.deliveries.append((source, destination, size))

    def path_from(self, start):
        """Destinations of every retained delivery numbered after ``start``."""
        first_retained = self.delivery_count - len(self.deliveries)
        skip = max(start - first_retained, 0)
        return [destination for _, destination, _ in list(self.deliveries)[skip:]]

    def clear(self):
        """Forget recorded deliveries and edges; endpoints stay in the graph."""
        self.graph.remove_edges_from(list(self.graph.edges))
        self.deliveries.clear()
        self.delivery_count = 0

    def render_html(self, output_file="onion_routing_simulation.html", subtitle=""):
        net = PyvisNetwork(directed=True, height="600px", width="100%", notebook=False, cdn_resources="remote")
        net.from_nx(self.graph)
        if subtitle:
            net.heading = subtitle
        net.write_html(output_file, notebook=False)
        logger.info("[Visualizer] Wrote hop graph to '%s' (%d deliveries)", output_file, self.delivery_count)
        return output_file
