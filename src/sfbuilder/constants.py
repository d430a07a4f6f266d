# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
SF2 Constants - Constant definitions shared by the encoder and the reader.
"""

# Mapping from generator name to ID for the generators this package writes
# SF2 2.04 spec section 8.1.2 - Generator Enumerators
GENERATOR_IDS = {
    "pan": 17,
    "releaseVolEnv": 38,
    "instrument": 41,
    "keyRange": 43,
    "sampleID": 53,
    "sampleModes": 54,
    "scaleTuning": 56,
    "exclusiveClass": 57,
}

# Reverse mapping from generator ID to name
GENERATOR_NAMES = {id_: name for name, id_ in GENERATOR_IDS.items()}

# Generators whose amount is an unsigned WORD or a byte range rather than a signed SHORT
UNSIGNED_GENERATORS = frozenset({
    GENERATOR_IDS["instrument"],
    GENERATOR_IDS["keyRange"],
    GENERATOR_IDS["sampleID"],
})

# Sample types (sfSampleLink)
SAMPLE_TYPE_MONO = 1
SAMPLE_TYPE_RIGHT = 2
SAMPLE_TYPE_LEFT = 4

# Sample modes
SAMPLE_MODE_NO_LOOP = 0
SAMPLE_MODE_LOOP = 1

# Zero frames written after every sample in the smpl chunk
GUARD_FRAMES = 46

# Fixed-size record layouts
NAME_LENGTH = 20
PRESET_HEADER_SIZE = 38
INSTRUMENT_HEADER_SIZE = 22
SAMPLE_HEADER_SIZE = 46
BAG_SIZE = 4
GENERATOR_SIZE = 4
MODULATOR_SIZE = 10

SOUNDFONT_VERSION = (2, 1)
SOUND_ENGINE = "EMU8000"
DEFAULT_BANK_NAME = "Untitled SoundFont"
DEFAULT_PRESET_NAME = "Preset"
DEFAULT_INSTRUMENT_NAME = "Instrument"

MELODIC_BANK = 0
DRUM_BANK = 128

DEFAULT_SAMPLE_RATE = 44100
DEFAULT_ROOT_NOTE = 60

# originalPitch value for unpitched (drum) samples
UNPITCHED = 255

# Pan amount for hard left / hard right stereo halves (0.1% units)
STEREO_PAN = 500

# Volume envelope release for the drum kit global zone, in timecents (~3.2 s)
DRUM_RELEASE_TIMECENTS = 2000

# General MIDI percussion key map: name -> (note, exclusive class)
# Hi-hats share exclusive class 1 so that a closed hat chokes an open one.
GM_DRUM_NOTES = {
    "acoustic bass drum": (35, 0),
    "bass drum 2": (35, 0),
    "kick 2": (35, 0),
    "kick": (36, 0),
    "bass drum": (36, 0),
    "bass drum 1": (36, 0),
    "bd": (36, 0),
    "side stick": (37, 0),
    "rimshot": (37, 0),
    "rim": (37, 0),
    "snare": (38, 0),
    "acoustic snare": (38, 0),
    "sd": (38, 0),
    "clap": (39, 0),
    "hand clap": (39, 0),
    "electric snare": (40, 0),
    "snare 2": (40, 0),
    "low floor tom": (41, 0),
    "floor tom": (41, 0),
    "closed hat": (42, 1),
    "closed hihat": (42, 1),
    "closed hi-hat": (42, 1),
    "hihat": (42, 1),
    "hi-hat": (42, 1),
    "hat": (42, 1),
    "hh": (42, 1),
    "chh": (42, 1),
    "high floor tom": (43, 0),
    "pedal hat": (44, 1),
    "pedal hihat": (44, 1),
    "pedal hi-hat": (44, 1),
    "phh": (44, 1),
    "low tom": (45, 0),
    "open hat": (46, 1),
    "open hihat": (46, 1),
    "open hi-hat": (46, 1),
    "ohh": (46, 1),
    "low-mid tom": (47, 0),
    "low mid tom": (47, 0),
    "mid tom": (47, 0),
    "hi-mid tom": (48, 0),
    "high mid tom": (48, 0),
    "crash": (49, 0),
    "crash cymbal": (49, 0),
    "crash cymbal 1": (49, 0),
    "high tom": (50, 0),
    "hi tom": (50, 0),
    "tom": (50, 0),
    "ride": (51, 0),
    "ride cymbal": (51, 0),
    "ride cymbal 1": (51, 0),
    "china": (52, 0),
    "chinese cymbal": (52, 0),
    "ride bell": (53, 0),
    "tambourine": (54, 0),
    "splash": (55, 0),
    "splash cymbal": (55, 0),
    "cowbell": (56, 0),
    "crash 2": (57, 0),
    "crash cymbal 2": (57, 0),
    "vibraslap": (58, 0),
    "ride 2": (59, 0),
    "ride cymbal 2": (59, 0),
    "hi bongo": (60, 0),
    "high bongo": (60, 0),
    "low bongo": (61, 0),
    "mute hi conga": (62, 0),
    "open hi conga": (63, 0),
    "conga": (63, 0),
    "low conga": (64, 0),
    "high timbale": (65, 0),
    "low timbale": (66, 0),
    "high agogo": (67, 0),
    "low agogo": (68, 0),
    "cabasa": (69, 0),
    "maracas": (70, 0),
    "shaker": (70, 0),
    "short whistle": (71, 0),
    "long whistle": (72, 0),
    "short guiro": (73, 0),
    "long guiro": (74, 0),
    "claves": (75, 0),
    "hi wood block": (76, 0),
    "high wood block": (76, 0),
    "low wood block": (77, 0),
    "mute cuica": (78, 0),
    "open cuica": (79, 0),
    "mute triangle": (80, 0),
    "open triangle": (81, 0),
    "triangle": (81, 0),
}
