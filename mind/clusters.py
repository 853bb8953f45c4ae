"""
Cluster Engine
==============
Category clusters are derived, never authoritative: every recompute throws the
old set away and builds a new one from the current thoughts. Cluster ids are
fresh each time, so callers must not hold on to them across calls.
"""

from collections import defaultdict
from typing import Optional

import numpy as np

from mind.config import CLUSTER_MIN_THOUGHTS
from mind.log import log
from mind.models import Cluster, new_id, utc_now


def build_clusters(thoughts, now: Optional[str] = None) -> list[Cluster]:
    """Group thoughts by exact category and average their positions.

    Categories with fewer than CLUSTER_MIN_THOUGHTS members get no cluster.
    Output is ordered by category.
    """
    now = now or utc_now()
    groups = defaultdict(list)
    for t in thoughts:
        groups[t.category].append(t.position)

    clusters = []
    for category in sorted(groups):
        positions = groups[category]
        if len(positions) < CLUSTER_MIN_THOUGHTS:
            continue
        cx, cy, cz = np.mean(np.array(positions, dtype=np.float64), axis=0)
        clusters.append(Cluster(
            id=new_id(),
            name=f"{category} cluster",
            category=category,
            center_x=float(cx),
            center_y=float(cy),
            center_z=float(cz),
            thought_count=len(positions),
            created_at=now,
        ))
    return clusters


def recompute(store) -> list[Cluster]:
    """Rebuild and swap in the cluster set. Same path for log and on-demand."""
    clusters = store.recompute_clusters()
    log.debug("Recomputed %d cluster(s)", len(clusters))
    return clusters
