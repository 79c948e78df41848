"""
image_export.py — Hand decoded ILBM images to Pillow, numpy and matplotlib

- to_pil_image: DecodedImage -> RGBA PIL.Image (via a numpy array)
- save_png: write a DecodedImage to disk
- rgb_histograms / plot_histogram_image: channel histograms for the viewer
"""

from io import BytesIO
from pathlib import Path
from typing import List, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
from PIL import Image

from ilbmdecoder import DecodedImage


def to_array(image: DecodedImage) -> np.ndarray:
    arr = np.array(image.pixels, dtype=np.uint8)
    return arr.reshape(image.height, image.width, 4)


def to_pil_image(image: DecodedImage) -> Image.Image:
    if image.width == 0 or image.height == 0:
        return Image.new("RGBA", (image.width, image.height))
    return Image.fromarray(to_array(image))


def save_png(image: DecodedImage, path: Union[str, Path]):
    to_pil_image(image).save(Path(path), format="PNG")


def rgb_histograms(image: DecodedImage) -> Tuple[List[int], List[int], List[int]]:
    if not image.pixels:
        return [0] * 256, [0] * 256, [0] * 256
    arr = to_array(image)
    rhist, ghist, bhist = (np.bincount(arr[..., c].ravel(), minlength=256).tolist() for c in range(3))
    return rhist, ghist, bhist


def plot_histogram_image(hist, color="gray", width=128, height=128) -> Image.Image:
    fig, ax = plt.subplots(figsize=(width/100, height/100), dpi=100)
    ax.bar(range(256), hist, color=color)
    ax.set_xlim(0, 255)
    ax.set_ylim(0, max(hist)*1.1 if hist and max(hist) else 1)
    ax.axis('off')
    buf = BytesIO()
    plt.savefig(buf, format='png', bbox_inches='tight', pad_inches=0)
    plt.close(fig)
    buf.seek(0)
    return Image.open(buf)
