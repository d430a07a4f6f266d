# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

from .compiler import SoundFontCompiler, create_sf2
from .parser import SoundFontParser
from .samples import Instrument, SampleDescriptor

__all__ = [
    "Instrument",
    "SampleDescriptor",
    "SoundFontCompiler",
    "SoundFontParser",
    "create_sf2"
]
