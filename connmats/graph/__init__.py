"""graph: Hand-off of thresholded matrices to graph tools.

contract_graph merges the nodes of an adjacency matrix by group label,
counting the edges between groups.
"""

from .contract import contract_graph
