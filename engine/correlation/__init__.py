"""
Cross-signal correlation: temporal clustering of log and trace signals,
cluster severity scoring and error propagation inference between services.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.correlation.models import Cluster, CorrelationResult, PropagationEdge, Signal
from engine.correlation.propagation import detect_propagation
from engine.correlation.result import assemble
from engine.correlation.scoring import score_cluster, score_parts
from engine.correlation.temporal import find_clusters

__all__ = [
    "Cluster",
    "CorrelationResult",
    "PropagationEdge",
    "Signal",
    "assemble",
    "detect_propagation",
    "find_clusters",
    "score_cluster",
    "score_parts",
]
