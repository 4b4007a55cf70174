"""Patchwork visualization.

Plotly figures of how merged regions tile the reference.
"""

from patchwork.viz.region_view import RegionView, create_region_view

__all__ = [
    "RegionView",
    "create_region_view",
]
