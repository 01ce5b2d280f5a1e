"""Tables describing a MatrixBundle.

How many edges survived each threshold, per subject and per group. Useful
to check that density-based strategies hit their target and to pick
thresholds for consensus-based ones.
"""

import numpy as np
import pandas as pd

from connmats.matrices.stack import lower_triangle, max_edges


def _edge_stats(matrix):
    weights = lower_triangle(matrix)
    present = weights[weights != 0]
    emax = max_edges(np.shape(matrix)[0])
    return {
        "n_edges": int(present.size),
        "density": present.size / emax if emax else np.nan,
        "mean_strength": float(present.mean()) if present.size else 0.0,
    }


def subject_densities(bundle):
    """Edge count and density of every thresholded subject matrix.

    Parameters
    ----------
    bundle : MatrixBundle

    Returns
    -------
    pd.DataFrame
        One row per (threshold, subject), with the subject's group.
    """
    group_of = {s: g for g, members in enumerate(bundle.groups) for s in members}
    rows = []
    for t, stack in zip(bundle.thresholds, bundle.thresholded):
        for s in range(stack.shape[-1]):
            stats = _edge_stats(stack[:, :, s])
            rows.append({
                "threshold": t,
                "subject": s,
                "group": group_of[s],
                "n_edges": stats["n_edges"],
                "density": stats["density"],
            })
    return pd.DataFrame(rows, columns=["threshold", "subject", "group",
                                       "n_edges", "density"])


def group_summary(bundle):
    """Edge count, density and mean edge strength of every group mean.

    Returns
    -------
    pd.DataFrame
        Indexed by (threshold, group).
    """
    rows = []
    for t, means in zip(bundle.thresholds, bundle.group_means):
        for g, mean in enumerate(means):
            rows.append({
                "threshold": t,
                "group": g,
                "n_subjects": bundle.groups.sizes[g],
                **_edge_stats(mean),
            })
    return (pd.DataFrame(rows)
            .set_index(["threshold", "group"])
            .sort_index())
