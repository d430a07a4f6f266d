# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
SoundFont Compiler - Encodes an instrument definition into an SF2 file image.

The output contains a single preset that plays a single instrument:
- INFO-list: Version, sound engine, bank name and author
- sdta-list: 16-bit PCM of every sample followed by guard frames
- pdta-list: Preset, instrument and sample headers with their zones and generators
"""

from .constants import (
    DEFAULT_BANK_NAME,
    DEFAULT_INSTRUMENT_NAME,
    DEFAULT_PRESET_NAME,
    DRUM_BANK,
    GENERATOR_IDS,
    GUARD_FRAMES,
    MELODIC_BANK,
    NAME_LENGTH,
    SOUND_ENGINE,
    SOUNDFONT_VERSION,
    UNSIGNED_GENERATORS,
)
from .mapping import compress_runs, map_notes
from .riff import ChunkWriter
from .samples import KEY_MAPPING_RANGES, Instrument, normalize_samples
from .zones import build_drum_zones, build_melodic_zones, global_generators


def write_generator(writer, oper, amount):
    """
    Writes one generator record. Ranges and indices are packed unsigned, everything else signed.
    """
    fmt = "HH" if oper in UNSIGNED_GENERATORS else "Hh"
    writer.pack(fmt, oper, amount)


class SoundFontCompiler:
    """
    Compiles an Instrument into SF2 bytes.
    """

    def __init__(self, instrument, capacity=None):
        """
        Initializes the SoundFont Compiler.

        Args:
            instrument: An Instrument, or a mapping accepted by Instrument.from_dict.
            capacity: Optional fixed output size limit in bytes. Exceeding it raises OverflowError.
        """
        if not isinstance(instrument, Instrument):
            instrument = Instrument.from_dict(instrument)

        self.instrument = instrument
        self.capacity = capacity

        # Data storage
        self.samples = []
        self.zones = []
        self.bags = []

    def compile(self):
        """
        Encodes the instrument.

        Returns:
            The complete SF2 file as bytes.
        """
        self._prepare()

        writer = ChunkWriter(self.capacity)
        with writer.chunk(b"RIFF"):
            writer.write_fourcc(b"sfbk")
            writer.emit(b"LIST", self._write_info_list)
            writer.emit(b"LIST", self._write_sdta_list)
            writer.emit(b"LIST", self._write_pdta_list)

        return writer.getvalue()

    def _prepare(self):
        """
        Builds the sample pool, the zones and the per-bag generator lists.
        """
        instrument = self.instrument
        self.samples = normalize_samples(instrument.samples, instrument.is_drum_kit)

        if instrument.is_drum_kit:
            self.zones = build_drum_zones(self.samples)
        else:
            use_key_ranges = instrument.key_mapping == KEY_MAPPING_RANGES
            note_map = map_notes(self.samples, use_key_ranges=use_key_ranges)
            self.zones = build_melodic_zones(self.samples, compress_runs(note_map))

        # ibag and igen are both written from this list so their indices always agree
        self.bags = [zone.generators() for zone in self.zones]
        if instrument.is_drum_kit:
            self.bags.insert(0, global_generators())

    def _write_info_list(self, writer):
        """
        Writes the INFO-list payload.
        """
        writer.write_fourcc(b"INFO")

        # Version info (required, first)
        writer.emit(b"ifil", lambda w: w.pack("HH", *SOUNDFONT_VERSION))

        # Sound engine (required, second)
        writer.emit(b"isng", lambda w: w.write_zstr(SOUND_ENGINE))

        # Bank name (required, third)
        bank_name = self.instrument.name or DEFAULT_BANK_NAME
        writer.emit(b"INAM", lambda w: w.write_zstr(bank_name))

        if self.instrument.author:
            writer.emit(b"IENG", lambda w: w.write_zstr(self.instrument.author))

    def _write_sdta_list(self, writer):
        """
        Writes the sdta-list payload with a single smpl chunk.
        """
        writer.write_fourcc(b"sdta")
        writer.emit(b"smpl", self._write_sample_data)

    def _write_sample_data(self, writer):
        guard = b"\x00" * GUARD_FRAMES * 2  # 16-bit samples
        for sample in self.samples:
            writer.write(sample.pcm.astype("<i2").tobytes())
            writer.write(guard)

    def _write_pdta_list(self, writer):
        """
        Writes the pdta-list (Hydra) payload.
        """
        writer.write_fourcc(b"pdta")
        writer.emit(b"phdr", self._write_preset_headers)
        writer.emit(b"pbag", self._write_preset_bags)
        writer.emit(b"pmod", self._write_empty_modulators)
        writer.emit(b"pgen", self._write_preset_generators)
        writer.emit(b"inst", self._write_instrument_headers)
        writer.emit(b"ibag", self._write_instrument_bags)
        writer.emit(b"imod", self._write_empty_modulators)
        writer.emit(b"igen", self._write_instrument_generators)
        writer.emit(b"shdr", self._write_sample_headers)

    def _write_preset_headers(self, writer):
        bank = DRUM_BANK if self.instrument.is_drum_kit else MELODIC_BANK

        writer.write_fixed_string(self.instrument.name or DEFAULT_PRESET_NAME, NAME_LENGTH)
        writer.pack("HHHIII", 0, bank, 0, 0, 0, 0)

        # Terminator ("EOP")
        writer.write_fixed_string("EOP", NAME_LENGTH)
        writer.pack("HHHIII", 0, 0, 1, 0, 0, 0)

    def _write_preset_bags(self, writer):
        writer.pack("HH", 0, 0)
        # Terminator
        writer.pack("HH", 1, 0)

    def _write_preset_generators(self, writer):
        write_generator(writer, GENERATOR_IDS["instrument"], 0)
        # Terminator
        writer.pack("Hh", 0, 0)

    def _write_empty_modulators(self, writer):
        # Terminator only
        writer.pack("HHhHH", 0, 0, 0, 0, 0)

    def _write_instrument_headers(self, writer):
        writer.write_fixed_string(self.instrument.name or DEFAULT_INSTRUMENT_NAME, NAME_LENGTH)
        writer.write_u16(0)

        # Terminator ("EOI")
        writer.write_fixed_string("EOI", NAME_LENGTH)
        writer.write_u16(len(self.bags))

    def _write_instrument_bags(self, writer):
        gen_ndx = 0
        for generators in self.bags:
            writer.pack("HH", gen_ndx, 0)
            gen_ndx += len(generators)

        # Terminator
        writer.pack("HH", gen_ndx, 0)

    def _write_instrument_generators(self, writer):
        for generators in self.bags:
            for oper, amount in generators:
                write_generator(writer, oper, amount)

        # Terminator
        writer.pack("Hh", 0, 0)

    def _write_sample_headers(self, writer):
        """
        Writes one sample header per sample.

        SF2 positions are absolute sample-frame offsets from the start of the smpl chunk,
        loop positions included.
        """
        start = 0
        for sample in self.samples:
            end = start + sample.frame_count

            writer.write_fixed_string(sample.name, NAME_LENGTH)
            writer.pack(
                "IIIIIBbHH",
                start,
                end,
                start + sample.loop_start,
                start + sample.loop_end,
                sample.sample_rate,
                sample.original_pitch,
                0,
                sample.sample_link,
                sample.sample_type
            )

            start = end + GUARD_FRAMES

        # Terminator ("EOS")
        writer.write_fixed_string("EOS", NAME_LENGTH)
        writer.pack("IIIIIBbHH", 0, 0, 0, 0, 0, 0, 0, 0, 0)


def create_sf2(instrument, capacity=None):
    """
    Encodes an instrument into SF2 bytes.

    Args:
        instrument: An Instrument, or a mapping accepted by Instrument.from_dict.
        capacity: Optional fixed output size limit in bytes.

    Returns:
        The SF2 file as bytes.
    """
    return SoundFontCompiler(instrument, capacity=capacity).compile()
