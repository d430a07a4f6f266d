# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
Note mapping - Assigns every MIDI note to a sample and compresses the assignment into key ranges.
"""

NOTE_COUNT = 128


def nearest_sample(records, note):
    """
    Returns the index of the record whose root note is closest to `note`.
    Only a strictly smaller distance replaces the current best, so ties go to the first record.
    """
    best_index = None
    best_distance = None
    for idx, record in enumerate(records):
        distance = abs(note - record.root_note)
        if best_distance is None or distance < best_distance:
            best_index = idx
            best_distance = distance
    return best_index


def _covering_sample(records, note):
    for idx, record in enumerate(records):
        if record.key_range is None or record.is_right:
            continue
        lo, hi = record.key_range
        if lo <= note <= hi:
            return idx
    return None


def map_notes(records, use_key_ranges=False):
    """
    Maps each of the 128 MIDI notes to a sample index.

    Args:
        records: The ordered sample pool.
        use_key_ranges: When True, a record whose explicit key_range covers the note wins first;
                        notes no range covers fall back to the nearest root note.

    Returns:
        A list of 128 sample indices.
    """
    if not records:
        raise ValueError("Cannot map notes without any samples.")

    note_map = []
    for note in range(NOTE_COUNT):
        chosen = _covering_sample(records, note) if use_key_ranges else None
        if chosen is None:
            chosen = nearest_sample(records, note)
        note_map.append(chosen)
    return note_map


def compress_runs(note_map):
    """
    Compresses a note-to-sample map into contiguous runs.

    Returns:
        A list of (key_lo, key_hi, sample_index) tuples covering 0-127 without gaps or overlaps.
    """
    runs = []
    run_start = 0
    for note in range(1, len(note_map)):
        if note_map[note] != note_map[note - 1]:
            runs.append((run_start, note - 1, note_map[note - 1]))
            run_start = note
    runs.append((run_start, len(note_map) - 1, note_map[-1]))
    return runs
