"""Contract a connectivity graph by node group.

Nodes sharing a label (a lobe, a hemisphere, a lobe-hemisphere pair) are
merged into one node. The weight of an edge between two merged nodes is
the number of edges between their members; edges within a group vanish.
"""

import numpy as np
import pandas as pd

from connmats.bench.dataset import evaluate_datasets
from connmats.errors import InputError
from connmats.utils import get_logger

LOG = get_logger("graph.contract")


@evaluate_datasets
def contract_graph(adjacency, membership, coords=None):
    """Merge nodes by group label.

    Parameters
    ----------
    adjacency : np.ndarray or pd.DataFrame
        (Nv, Nv) weighted adjacency matrix; any nonzero entry is an edge,
        taken as undirected.
    membership : sequence
        Group label of every node (a string or number, e.g. "frontal_L").
    coords : array-like, optional
        (Nv, 2) node coordinates.

    Returns
    -------
    (pd.DataFrame, pd.DataFrame or None)
        The contracted adjacency matrix, indexed by group label in order of
        first appearance, with inter-group edge counts; and the mean x, y
        coordinate of every group (None without coords).
    """
    adjacency = np.asarray(adjacency, dtype=float)
    labels = np.asarray(list(membership), dtype=object)
    nv = adjacency.shape[0]
    if adjacency.ndim != 2 or adjacency.shape[1] != nv:
        raise InputError(f"Adjacency matrix must be square, got {adjacency.shape}")
    if len(labels) != nv:
        raise InputError(f"{len(labels)} group labels for {nv} nodes")

    order = pd.unique(pd.Series(labels))
    connected = np.triu((adjacency != 0) | (adjacency.T != 0), k=1)
    rows, cols = np.nonzero(connected)
    edges = pd.DataFrame({"source": labels[rows], "target": labels[cols]})
    edges = edges[edges["source"] != edges["target"]]

    if edges.empty:
        counts = pd.DataFrame(0, index=order, columns=order)
    else:
        counts = (edges.groupby(["source", "target"])
                  .size()
                  .unstack(fill_value=0)
                  .reindex(index=order, columns=order, fill_value=0))
    matrix = counts + counts.T
    matrix.index.name = matrix.columns.name = "group"

    positions = None
    if coords is not None:
        coords = np.asarray(coords, dtype=float)
        if coords.shape != (nv, 2):
            raise InputError(f"Coordinates must have shape ({nv}, 2), got {coords.shape}")
        positions = (pd.DataFrame(coords, columns=["x", "y"])
                     .groupby(labels, sort=False)
                     .mean()
                     .reindex(order))
        positions.index.name = "group"

    LOG.info("Contracted %d nodes into %d groups, %d inter-group edges",
             nv, len(order), int(len(edges)))
    return matrix, positions
