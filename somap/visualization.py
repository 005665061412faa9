"""
Visualization utilities for SOM
"""

import math
import os
from pathlib import Path
from typing import TYPE_CHECKING, List

import numpy as np

# Set matplotlib backend to Agg (non-interactive) before importing pyplot
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.collections import PatchCollection  # noqa: E402
from matplotlib.patches import Rectangle, RegularPolygon  # noqa: E402

from .config import UnitShape  # noqa: E402

if TYPE_CHECKING:
    from .core import Map


def ensure_plots_dir(save_path: str) -> str:
    """Ensure plots directory exists and return full path"""
    if not os.path.isabs(save_path):
        plots_dir = Path("plots")
        plots_dir.mkdir(exist_ok=True)
        return str(plots_dir / save_path)
    return save_path


def unit_patches(coords: np.ndarray, unit_shape: UnitShape) -> List:
    """One patch per unit centred at its lattice coordinate"""
    if unit_shape == UnitShape.HEXAGONAL:
        # circumradius of a hexagon with unit distance between opposite sides
        radius = 1 / math.sqrt(3)
        return [
            RegularPolygon((x, y), numVertices=6, radius=radius, orientation=0)
            for x, y in coords
        ]
    return [Rectangle((x - 0.5, y - 0.5), 1.0, 1.0) for x, y in coords]


def _draw_lattice(ax, som: "Map", values: np.ndarray, cmap: str):
    coords = som.grid.coords
    collection = PatchCollection(
        unit_patches(coords, som.config.unit_shape),
        cmap=cmap,
        edgecolor="black",
        linewidth=0.5,
    )
    collection.set_array(np.asarray(values))
    ax.add_collection(collection)
    ax.set_xlim(coords[:, 0].min() - 1, coords[:, 0].max() + 1)
    ax.set_ylim(coords[:, 1].max() + 1, coords[:, 1].min() - 1)
    ax.set_aspect("equal")
    ax.axis("off")
    return collection


def _finish(fig, som: "Map", show_plot: bool, save_path: str, label: str):
    if save_path:
        full_path = ensure_plots_dir(save_path)
        fig.savefig(full_path, bbox_inches="tight")
        if som.verbose:
            print(f"{label} saved to {full_path}")

    if show_plot:
        plt.show()
    else:
        plt.close(fig)


class SOMVisualizer:
    """Visualization utilities for SOM analysis"""

    @staticmethod
    def plot_umatrix(
        som: "Map",
        show_plot: bool = True,
        save_path: str = "umatrix.png",
        title: str = "U-Matrix",
    ):
        """
        Plot the U-matrix, one hexagon or square per unit

        Light units sit in dense regions, dark units mark cluster borders.
        Saving to a ``.svg`` path writes vector output.

        Args:
            som: Trained Map instance
            show_plot: Whether to display the plot
            save_path: Path to save the plot image (None to skip saving)
            title: Plot title
        """
        rows, cols = som.config.size
        fig, ax = plt.subplots(figsize=(max(4, cols * 0.6), max(4, rows * 0.6)))
        collection = _draw_lattice(ax, som, som.umatrix(), "gray_r")
        fig.colorbar(collection, ax=ax, label="Mean neighbour distance")
        ax.set_title(title)

        _finish(fig, som, show_plot, save_path, "U-matrix")

    @staticmethod
    def plot_component_planes(
        som: "Map", show_plot: bool = True, save_path: str = "components.png"
    ):
        """
        Plot one lattice panel per feature coloured by codebook value

        Args:
            som: Trained Map instance
            show_plot: Whether to display the plot
            save_path: Path to save the plot image (None to skip saving)
        """
        codebook = som.codebook
        n_features = codebook.shape[1]
        n_cols = min(n_features, 4)
        n_rows = math.ceil(n_features / n_cols)

        fig, axes = plt.subplots(
            n_rows, n_cols, figsize=(4 * n_cols, 4 * n_rows), squeeze=False
        )
        for feature, ax in enumerate(axes.flat):
            if feature >= n_features:
                ax.axis("off")
                continue
            collection = _draw_lattice(ax, som, codebook[:, feature], "viridis")
            fig.colorbar(collection, ax=ax)
            ax.set_title(f"Feature {feature}")

        plt.tight_layout()
        _finish(fig, som, show_plot, save_path, "Component planes")
