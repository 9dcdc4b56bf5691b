"""Side-by-side comparison figure for a dehazing run."""

from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from .errors import SaveError
from .image import PixelBuffer

_COLUMNS = ("Hazy", "Depth", "Dehazed")


def save_comparison(hazy: PixelBuffer, depth: PixelBuffer, dehazed: PixelBuffer,
                    path: Path, title: Optional[str] = None) -> Path:
    panels = (hazy.data, depth.data, dehazed.data)
    fig, axes = plt.subplots(1, len(_COLUMNS), figsize=(4 * len(_COLUMNS), 3.5))
    try:
        for ax, image, name in zip(axes, panels, _COLUMNS):
            if image.ndim == 2:
                ax.imshow(np.clip(image, 0.0, 1.0), cmap="gray", vmin=0.0, vmax=1.0)
            else:
                ax.imshow(np.clip(image, 0.0, 1.0))
            ax.set_title(name)
            ax.axis("off")
        if title:
            fig.suptitle(title)
        fig.tight_layout()
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fig.savefig(path, dpi=150)
        except (OSError, ValueError) as exc:
            raise SaveError(path, str(exc)) from exc
    finally:
        plt.close(fig)
    return path
