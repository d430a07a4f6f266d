# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
Zone building - Turns note runs (melodic) or per-sample key placement (drum kit) into
instrument zones and their generator lists.
"""

from dataclasses import dataclass
from typing import NamedTuple

from .constants import (
    DRUM_RELEASE_TIMECENTS,
    GENERATOR_IDS,
    SAMPLE_MODE_NO_LOOP,
    STEREO_PAN,
)


class Generator(NamedTuple):
    oper: int
    amount: int


@dataclass
class ZoneRecord:
    key_lo: int
    key_hi: int
    sample_id: int
    sample_mode: int = SAMPLE_MODE_NO_LOOP
    pan: int = 0
    exclusive_class: int = 0

    def generators(self):
        """
        Returns the zone's generators in write order.

        keyRange comes first and sampleID last; the optional generators in between are only
        present when they differ from the default.
        """
        gens = [Generator(GENERATOR_IDS["keyRange"], (self.key_hi << 8) | self.key_lo)]
        if self.sample_mode != SAMPLE_MODE_NO_LOOP:
            gens.append(Generator(GENERATOR_IDS["sampleModes"], self.sample_mode))
        if self.pan:
            gens.append(Generator(GENERATOR_IDS["pan"], self.pan))
        if self.exclusive_class:
            gens.append(Generator(GENERATOR_IDS["exclusiveClass"], self.exclusive_class))
        gens.append(Generator(GENERATOR_IDS["sampleID"], self.sample_id))
        return gens


def global_generators():
    """
    Returns the generators of the drum kit global zone.
    """
    return [
        Generator(GENERATOR_IDS["scaleTuning"], 0),
        Generator(GENERATOR_IDS["releaseVolEnv"], DRUM_RELEASE_TIMECENTS),
    ]


def _stereo_companion(records, record, key_lo, key_hi, exclusive_class=0):
    if not record.is_left or not record.sample_link:
        return None
    partner = records[record.sample_link]
    return ZoneRecord(
        key_lo=key_lo,
        key_hi=key_hi,
        sample_id=record.sample_link,
        sample_mode=partner.sample_mode,
        pan=STEREO_PAN,
        exclusive_class=exclusive_class,
    )


def build_melodic_zones(records, runs):
    """
    Builds one zone per note run. A stereo left sample is panned hard left and followed by a
    zone over the same keys for its linked right sample, panned hard right.

    Args:
        records: The ordered sample pool.
        runs: (key_lo, key_hi, sample_index) tuples from `compress_runs`.

    Returns:
        A list of ZoneRecord.
    """
    zones = []
    for key_lo, key_hi, sample_id in runs:
        record = records[sample_id]
        companion = _stereo_companion(records, record, key_lo, key_hi)

        zones.append(ZoneRecord(
            key_lo=key_lo,
            key_hi=key_hi,
            sample_id=sample_id,
            sample_mode=record.sample_mode,
            pan=-STEREO_PAN if companion is not None else 0,
        ))
        if companion is not None:
            zones.append(companion)
    return zones


def build_drum_zones(records):
    """
    Builds one single-key zone per drum sample at its root note. Right channels are
    emitted as companions of their left channel rather than on their own.

    Keys are not deduplicated: samples that resolve to the same root note, such as two
    names missing from the drum table, get overlapping zones. Give each sample a distinct
    root note or a known drum name to keep one sample per key.
    """
    zones = []
    for sample_id, record in enumerate(records):
        if record.is_right:
            continue

        key = record.root_note
        companion = _stereo_companion(records, record, key, key, record.exclusive_class)

        zones.append(ZoneRecord(
            key_lo=key,
            key_hi=key,
            sample_id=sample_id,
            sample_mode=record.sample_mode,
            pan=-STEREO_PAN if record.is_left else 0,
            exclusive_class=record.exclusive_class,
        ))
        if companion is not None:
            zones.append(companion)
    return zones
