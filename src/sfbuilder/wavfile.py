# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
WAV loading - Reads audio files into sample descriptors and parses note names from filenames.
"""

import re
from pathlib import Path

import soundfile as sf

from .samples import SampleDescriptor

NOTE_OFFSETS = {
    "C": 0,
    "D": 2,
    "E": 4,
    "F": 5,
    "G": 7,
    "A": 9,
    "B": 11
}

_NOTE_NAME_RE = re.compile(r"^([A-G])([#b]?)(-?\d+)$")
_NOTE_IN_FILENAME_RE = re.compile(r"([A-G][#b]?-?\d+)")


def note_name_to_midi(note_name):
    """
    Converts a note name such as "A3" or "G#4" into a MIDI note number (C4 = 60).

    Raises:
        ValueError: If the name is malformed or outside the MIDI range.
    """
    match = _NOTE_NAME_RE.match(note_name.strip())
    if not match:
        raise ValueError(f"Invalid note name: {note_name}")

    letter, accidental, octave = match.groups()
    offset = NOTE_OFFSETS[letter]
    if accidental == "#":
        offset += 1
    elif accidental == "b":
        offset -= 1

    midi = 12 * (int(octave) + 1) + offset
    if not 0 <= midi <= 127:
        raise ValueError(f"Note {note_name} is outside the MIDI range")
    return midi


def extract_note_name(filename):
    """
    Finds the first note name in a filename, e.g. "Banjo - G#4.wav" -> "G#4".

    Returns:
        The note name, or None if there is none.
    """
    match = _NOTE_IN_FILENAME_RE.search(filename)
    return match.group(1) if match else None


def read_wav_file(path):
    """
    Reads an audio file as float samples.

    Returns:
        Tuple of (channels, sample_rate, data). Stereo data is interleaved L/R.
    """
    data, samplerate = sf.read(path, dtype="float32", always_2d=True)
    channels = data.shape[1]

    if channels == 1:
        return 1, samplerate, data[:, 0]
    if channels == 2:
        # Row-major frames x channels flattens to L0, R0, L1, R1, ...
        return 2, samplerate, data.reshape(-1)

    raise ValueError(f"Unsupported channel count: {channels}")


def load_descriptors(paths, is_drum_kit=False):
    """
    Loads audio files into sample descriptors named after their file stems.

    In melodic mode the root note is parsed from the filename and files without one are
    skipped. In drum kit mode a missing note is left to the drum name table.

    Args:
        paths: Audio file paths.
        is_drum_kit: Whether the samples make up a drum kit.

    Returns:
        A list of SampleDescriptor.
    """
    descriptors = []
    for path in map(Path, paths):
        note_str = extract_note_name(path.name)
        root_note = None

        if note_str is not None:
            try:
                root_note = note_name_to_midi(note_str)
            except ValueError as e:
                if not is_drum_kit:
                    print(f"  Warning: Skipping \"{path.name}\": {e}")
                    continue
        elif not is_drum_kit:
            print(f"  Warning: Skipping \"{path.name}\": no note name found in filename.")
            continue

        try:
            channels, sample_rate, data = read_wav_file(path)
        except Exception as e:
            print(f"  ERROR reading {path}: {e}")
            continue

        if root_note is not None:
            print(f"  Loaded: \"{path.name}\" -> note: {note_str}, MIDI: {root_note}")
        else:
            print(f"  Loaded: \"{path.name}\"")

        descriptors.append(SampleDescriptor(
            name=path.stem,
            data=data,
            channels=channels,
            sample_rate=int(sample_rate),
            root_note=root_note,
        ))

    return descriptors