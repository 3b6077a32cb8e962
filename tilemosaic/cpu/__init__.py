"""
CPU module for mosaic frame processing algorithms.
"""

from .grayscale_reduce import reduce_to_grid_cpu, area_resize_cpu
from .dither import apply_dither_cpu, ordered_dither_cpu, error_diffusion_dither_cpu, BAYER_4X4
from .mosaic_compose import compose_mosaic_cpu


__all__ = [
    'reduce_to_grid_cpu',
    'area_resize_cpu',
    'apply_dither_cpu',
    'ordered_dither_cpu',
    'error_diffusion_dither_cpu',
    'BAYER_4X4',
    'compose_mosaic_cpu'
]
