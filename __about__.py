# -*- coding: utf-8 -*-
# Skein: Spinning perceptual order out of color
#
# Copyright (c) 2026 opticsWolf
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Project metadata for the opticsWolf Skein.
"""

from typing import Final

# Metadata Definitions
__title__: Final[str] = "Skein"
__description__: Final[str] = (
    "A Numba-accelerated colorimetry toolkit: color space conversions, "
    "perceptual distances, color sequencing and constrained palettes."
)
__version__: Final[str] = "0.1.0"
__author__: Final[str] = "opticsWolf"
__license__: Final[str] = "LGPL-3.0-or-later"
__copyright__: Final[str] = "Copyright (c) 2026 opticsWolf"

def metadata_summary() -> dict[str, str]:
    """Returns a dictionary of project metadata for introspection."""
    return {
        "title": __title__,
        "version": __version__,
        "author": __author__,
        "license": __license__,
        "description": __description__,
        "copyright": __copyright__,
    }
