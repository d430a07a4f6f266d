# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
Sample normalization - Converts user sample descriptors into the canonical sample records
written to the smpl and shdr chunks.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from .constants import (
    DEFAULT_ROOT_NOTE,
    DEFAULT_SAMPLE_RATE,
    GM_DRUM_NOTES,
    NAME_LENGTH,
    SAMPLE_MODE_LOOP,
    SAMPLE_MODE_NO_LOOP,
    SAMPLE_TYPE_LEFT,
    SAMPLE_TYPE_MONO,
    SAMPLE_TYPE_RIGHT,
    UNPITCHED,
)

KEY_MAPPING_NEAREST = "nearest"
KEY_MAPPING_RANGES = "ranges"


@dataclass
class SampleDescriptor:
    """
    One input sample as supplied by the caller.

    `data` holds float samples in [-1.0, 1.0]. When `channels` is 2 it is interleaved
    (L0, R0, L1, R1, ...).
    """
    name: Optional[str] = None
    data: Sequence[float] = ()
    channels: int = 1
    sample_rate: Optional[int] = None
    root_note: Optional[int] = None
    loop_start: Optional[int] = None
    loop_end: Optional[int] = None
    key_range: Optional[tuple[int, int]] = None
    exclusive_class: Optional[int] = None

    @classmethod
    def from_dict(cls, values):
        key_range = values.get("key_range")
        return cls(
            name=values.get("name"),
            data=values.get("data", ()),
            channels=values.get("channels", 1),
            sample_rate=values.get("sample_rate"),
            root_note=values.get("root_note"),
            loop_start=values.get("loop_start"),
            loop_end=values.get("loop_end"),
            key_range=tuple(key_range) if key_range is not None else None,
            exclusive_class=values.get("exclusive_class"),
        )


@dataclass
class Instrument:
    """
    A complete encoding request: one instrument built from an ordered list of samples.
    """
    name: Optional[str] = None
    author: Optional[str] = None
    is_drum_kit: bool = False
    samples: list[SampleDescriptor] = field(default_factory=list)
    key_mapping: str = KEY_MAPPING_NEAREST

    def __post_init__(self):
        if self.key_mapping not in (KEY_MAPPING_NEAREST, KEY_MAPPING_RANGES):
            raise ValueError(f"Unknown key mapping mode: {self.key_mapping!r}")

    @classmethod
    def from_dict(cls, values):
        samples = [
            s if isinstance(s, SampleDescriptor) else SampleDescriptor.from_dict(s)
            for s in values.get("samples") or []
        ]
        return cls(
            name=values.get("name"),
            author=values.get("author"),
            is_drum_kit=bool(values.get("is_drum_kit", False)),
            samples=samples,
            key_mapping=values.get("key_mapping", KEY_MAPPING_NEAREST),
        )


@dataclass
class SampleRecord:
    """
    A single-channel sample ready to be written.

    Loop points are relative to the start of this sample's own payload.
    """
    name: str
    pcm: np.ndarray
    sample_rate: int
    root_note: int
    original_pitch: int
    loop_start: int
    loop_end: int
    sample_mode: int = SAMPLE_MODE_NO_LOOP
    exclusive_class: int = 0
    sample_link: int = 0
    sample_type: int = SAMPLE_TYPE_MONO
    key_range: Optional[tuple[int, int]] = None

    @property
    def frame_count(self):
        return len(self.pcm)

    @property
    def is_left(self):
        return self.sample_type == SAMPLE_TYPE_LEFT

    @property
    def is_right(self):
        return self.sample_type == SAMPLE_TYPE_RIGHT


def float_to_pcm16(data) -> np.ndarray:
    """
    Converts float samples in [-1.0, 1.0] to signed 16-bit PCM.

    Values are clamped, negatives are scaled by 32768 and non-negatives by 32767,
    and the result is truncated toward zero. NaN becomes 0.

    Args:
        data: A sequence or array of float samples.

    Returns:
        An int16 numpy array.
    """
    floats = np.nan_to_num(np.asarray(data, dtype=np.float64), nan=0.0)
    floats = np.clip(floats, -1.0, 1.0)
    scaled = np.where(floats < 0, floats * 32768.0, floats * 32767.0)
    return np.trunc(scaled).astype(np.int16)


def resolve_loop(loop_start, loop_end, frame_count):
    """
    Resolves the loop region of a sample.

    Valid bounds (start < end, both within [0, frame_count]) enable continuous looping.
    Anything else falls back silently to no loop with a one-frame region at the very end.

    Returns:
        A tuple of (sample_mode, loop_start, loop_end).
    """
    if (
        loop_start is not None and
        loop_end is not None and
        0 <= loop_start < loop_end <= frame_count
    ):
        return SAMPLE_MODE_LOOP, int(loop_start), int(loop_end)
    return SAMPLE_MODE_NO_LOOP, frame_count - 1, frame_count


def lookup_drum_note(name):
    """
    Looks up a General MIDI percussion key by sample name.

    Returns:
        A tuple of (note, exclusive_class), or None when the name is unknown.
    """
    if not name:
        return None
    return GM_DRUM_NOTES.get(name.strip().lower())


def _stereo_names(name):
    base = name.replace(" ", "")
    budget = NAME_LENGTH - 2
    base = base.encode("ascii", errors="replace")[:budget].decode("ascii")
    return f"{base}_L", f"{base}_R"


def _silent_record(is_drum_kit=False):
    frames = 4
    return SampleRecord(
        name="Empty",
        pcm=np.zeros(frames, dtype=np.int16),
        sample_rate=DEFAULT_SAMPLE_RATE,
        root_note=DEFAULT_ROOT_NOTE,
        original_pitch=UNPITCHED if is_drum_kit else DEFAULT_ROOT_NOTE,
        loop_start=frames - 1,
        loop_end=frames,
        sample_mode=SAMPLE_MODE_NO_LOOP,
    )


def _split_channels(descriptor):
    data = np.asarray(descriptor.data, dtype=np.float64).ravel()

    if descriptor.channels == 1:
        return [data]
    if descriptor.channels == 2:
        left = data[0::2]
        right = data[1::2]
        frames = min(len(left), len(right))
        return [left[:frames], right[:frames]]

    raise ValueError(
        f"Unsupported channel count {descriptor.channels} for sample \"{descriptor.name}\"."
    )


def link_stereo_pairs(records):
    """
    Links adjacent left/right records that share a base name by setting their mutual sample_link.
    """
    for idx in range(len(records) - 1):
        left, right = records[idx], records[idx + 1]
        if not (left.is_left and right.is_right):
            continue
        if left.name[:-2] != right.name[:-2]:
            continue
        left.sample_link = idx + 1
        right.sample_link = idx


def normalize_samples(descriptors, is_drum_kit=False):
    """
    Builds the ordered sample pool from user descriptors.

    Loop bounds are never rejected: invalid or out-of-range bounds silently disable looping
    for that sample (see `resolve_loop`). An empty descriptor list yields a single silent
    placeholder sample so that the encoded file is always structurally valid.

    Args:
        descriptors: A sequence of SampleDescriptor.
        is_drum_kit: Whether the instrument is a percussion kit. Drum samples default their root
                     note from the General MIDI drum table and are written as unpitched.
                     Unknown names fall back to middle C, so several of them share one key
                     unless root_note is given.

    Returns:
        A list of SampleRecord in pool order.
    """
    if not descriptors:
        return [_silent_record(is_drum_kit)]

    records = []
    for idx, descriptor in enumerate(descriptors):
        name = descriptor.name or f"sample_{idx}"
        sample_rate = descriptor.sample_rate or DEFAULT_SAMPLE_RATE

        drum_entry = lookup_drum_note(name) if is_drum_kit else None
        if descriptor.root_note is not None:
            root_note = int(descriptor.root_note)
        elif drum_entry is not None:
            root_note = drum_entry[0]
        else:
            root_note = DEFAULT_ROOT_NOTE

        if not 0 <= root_note <= 127:
            raise ValueError(f"Root note must be between 0 and 127, got {root_note} for sample \"{name}\".")

        if descriptor.exclusive_class is not None:
            exclusive_class = int(descriptor.exclusive_class) if is_drum_kit else 0
        else:
            exclusive_class = drum_entry[1] if drum_entry is not None else 0

        original_pitch = UNPITCHED if is_drum_kit else root_note

        channels = _split_channels(descriptor)
        if len(channels) == 2:
            names = _stereo_names(name)
            sample_types = (SAMPLE_TYPE_LEFT, SAMPLE_TYPE_RIGHT)
        else:
            names = (name,)
            sample_types = (SAMPLE_TYPE_MONO,)

        for channel_data, channel_name, sample_type in zip(channels, names, sample_types):
            pcm = float_to_pcm16(channel_data)
            if len(pcm) == 0:
                pcm = np.zeros(1, dtype=np.int16)

            sample_mode, loop_start, loop_end = resolve_loop(
                descriptor.loop_start, descriptor.loop_end, len(pcm)
            )

            records.append(SampleRecord(
                name=channel_name,
                pcm=pcm,
                sample_rate=int(sample_rate),
                root_note=root_note,
                original_pitch=original_pitch,
                loop_start=loop_start,
                loop_end=loop_end,
                sample_mode=sample_mode,
                exclusive_class=exclusive_class,
                sample_type=sample_type,
                key_range=descriptor.key_range,
            ))

    link_stereo_pairs(records)
    return records
